import logging
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional, Union

from campusbus.models import User
from campusbus.auth.schemas import StudentCreate, AdminCreate, ConductorCreate, UserRole
from campusbus.auth.utils import get_password_hash, verify_password
from campusbus.config import settings
from campusbus.exceptions import ConflictError, ForbiddenError, UnauthorizedError

logger = logging.getLogger(__name__)

class UserService:
    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        """Get user by email"""
        return db.query(User).filter(User.email == email.lower()).first()

    @staticmethod
    def get_user_by_phone(db: Session, phone: str) -> Optional[User]:
        """Get user by phone number"""
        return db.query(User).filter(User.phone == phone).first()

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def create_user(db: Session, user: Union[StudentCreate, AdminCreate, ConductorCreate]) -> User:
        """Register a student, admin or conductor"""
        email = getattr(user, "email", None)
        phone = getattr(user, "phone", None)

        if email and UserService.get_user_by_email(db, email):
            raise ConflictError("User with this email already exists")
        if phone and UserService.get_user_by_phone(db, phone):
            raise ConflictError("User with this phone number already exists")

        if isinstance(user, ConductorCreate):
            if user.passcode != settings.CONDUCTOR_PASSCODE:
                raise UnauthorizedError("Invalid Conductor Passcode. Registration failed.")
            role = UserRole.CONDUCTOR
        elif email == settings.ADMIN_EMAIL.lower():
            role = UserRole.ADMIN
        elif isinstance(user, AdminCreate):
            raise ForbiddenError("Admin accounts cannot be self-registered")
        else:
            role = UserRole.STUDENT

        db_user = User(
            name=user.name,
            email=email,
            phone=phone,
            password=get_password_hash(user.password),
            role=role.value
        )

        try:
            db.add(db_user)
            db.commit()
            db.refresh(db_user)
        except IntegrityError:
            db.rollback()
            raise ConflictError("User with this email or phone number already exists")

        logger.info("Registered %s account %s", db_user.role, db_user.id)
        return db_user

    @staticmethod
    def authenticate_user(db: Session, login_id: str, password: str) -> Optional[User]:
        """Authenticate with an email address or a phone number"""
        if "@" in login_id:
            user = UserService.get_user_by_email(db, login_id)
        else:
            user = UserService.get_user_by_phone(db, login_id.strip())
        if not user:
            return None
        if not verify_password(password, user.password):
            return None
        return user

    @staticmethod
    def get_conductor(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(
            User.id == user_id,
            User.role == UserRole.CONDUCTOR.value
        ).first()
