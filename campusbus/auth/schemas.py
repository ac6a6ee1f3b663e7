from pydantic import BaseModel, EmailStr, Field, Tag, Discriminator, field_validator, model_validator
from typing import Annotated, Any, Literal, Optional, Union
from enum import Enum

from campusbus.config import settings

class UserRole(str, Enum):
    STUDENT = "student"
    ADMIN = "admin"
    CONDUCTOR = "conductor"

# Registration: one variant per role, each carrying the contact field that role requires
class RegistrationBase(BaseModel):
    name: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self

class InstitutionalEmailMixin(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def institutional_domain(cls, v):
        domain = settings.EMAIL_DOMAIN.lower()
        if not v.lower().endswith(f"@{domain}"):
            raise ValueError(f"Must use a valid @{domain} email")
        return v.lower()

class StudentCreate(InstitutionalEmailMixin, RegistrationBase):
    role: Literal["student"] = "student"

class AdminCreate(InstitutionalEmailMixin, RegistrationBase):
    role: Literal["admin"]

class ConductorCreate(RegistrationBase):
    role: Literal["conductor"]
    phone: str = Field(..., min_length=6, max_length=20)
    passcode: str

    @field_validator("phone")
    @classmethod
    def phone_digits(cls, v):
        cleaned = v.replace(" ", "").replace("-", "")
        if not cleaned.lstrip("+").isdigit():
            raise ValueError("Phone number may only contain digits")
        return cleaned

def _registration_role(value: Any) -> str:
    # Registrations without a role are students
    if isinstance(value, dict):
        return value.get("role") or "student"
    return getattr(value, "role", "student")

UserCreate = Annotated[
    Union[
        Annotated[StudentCreate, Tag("student")],
        Annotated[AdminCreate, Tag("admin")],
        Annotated[ConductorCreate, Tag("conductor")],
    ],
    Discriminator(_registration_role),
]

class LoginRequest(BaseModel):
    login_id: str = Field(..., min_length=1, description="Email address or phone number")
    password: str = Field(..., min_length=1)

class User(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole

    class Config:
        from_attributes = True

class AuthResponse(BaseModel):
    access_token: str
    token_type: str
    user: User
