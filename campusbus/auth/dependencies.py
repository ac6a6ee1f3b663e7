from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from campusbus.database import get_db
from campusbus.auth.utils import verify_token
from campusbus.auth.service import UserService
from campusbus.auth.schemas import UserRole
from campusbus.config import settings

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")

def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)):
    """Get current authenticated user"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    
    # Verify token and get payload
    token_data = verify_token(token, credentials_exception)
    
    # Get user from database
    user = UserService.get_user_by_id(db, user_id=token_data["user_id"])
    if user is None:
        raise credentials_exception
    
    return user

def _require_role(*roles: UserRole):
    allowed = {role.value for role in roles}

    def dependency(current_user = Depends(get_current_user)):
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions"
            )
        return current_user

    return dependency

require_admin = _require_role(UserRole.ADMIN)
require_conductor = _require_role(UserRole.CONDUCTOR)
require_student = _require_role(UserRole.STUDENT)
require_student_or_admin = _require_role(UserRole.STUDENT, UserRole.ADMIN)
