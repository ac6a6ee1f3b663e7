from fastapi import APIRouter, Body, Depends, HTTPException, status
from fastapi.exceptions import RequestValidationError
from pydantic import TypeAdapter, ValidationError
from typing import Any, Dict
from sqlalchemy.orm import Session
from campusbus.database import get_db
from campusbus.auth.schemas import UserCreate, User, LoginRequest, AuthResponse
from campusbus.auth.service import UserService
from campusbus.auth.utils import create_access_token
from campusbus.auth.dependencies import get_current_user
from campusbus.exceptions import ServiceError

router = APIRouter()

registration_adapter = TypeAdapter(UserCreate)

def _auth_response(user) -> AuthResponse:
    access_token = create_access_token(data={"sub": str(user.id), "role": user.role})
    return AuthResponse(
        access_token=access_token,
        token_type="bearer",
        user=User.model_validate(user)
    )

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register_user(payload: Dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    """Register a student or conductor account"""
    # Each role validates into its own variant, see UserCreate
    try:
        user = registration_adapter.validate_python(payload)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False))

    try:
        db_user = UserService.create_user(db=db, user=user)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return _auth_response(db_user)

@router.post("/login", response_model=AuthResponse)
def login(login_data: LoginRequest, db: Session = Depends(get_db)):
    """Login with an email address (students, admins) or phone number (conductors)"""
    user = UserService.authenticate_user(db, login_data.login_id, login_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _auth_response(user)

@router.get("/me", response_model=User)
def read_users_me(current_user = Depends(get_current_user)):
    """Get current user profile"""
    return current_user
