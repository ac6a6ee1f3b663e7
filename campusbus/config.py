from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./campusbus.db"
    
    # Security
    SECRET_KEY: str = "change-this-secret"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 30
    
    # Application
    PROJECT_NAME: str = "Campus Bus Booking System"
    API_V1_STR: str = "/api"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:8080"]
    
    # Booking rules (all times are evaluated in IST, UTC+05:30)
    UTC_OFFSET_MINUTES: int = 330
    CANCELLATION_CUTOFF_MINUTES: int = 30
    ATTENDANCE_WINDOW_MINUTES: int = 10
    
    # Accounts
    EMAIL_DOMAIN: str = "lnmiit.ac.in"
    ADMIN_EMAIL: str = "admin@lnmiit.ac.in"
    CONDUCTOR_PASSCODE: str = "LNMIIT_CONDUCTOR_2025"
    
    # Email notifications
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_EMAIL: str = ""
    SMTP_PASSWORD: str = ""
    
    @property
    def email_enabled(self) -> bool:
        return bool(self.SMTP_EMAIL and self.SMTP_PASSWORD)
    
    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
