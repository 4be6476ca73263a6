from pathlib import Path
from typing import Optional
from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(ENV_PATH)

class Settings(BaseSettings):
    #Database
    DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'pm_api.db'}"
    SQL_ECHO: bool = False

    #JWT (hex encoded HMAC-SHA512 secret)
    JWT_SECRET: str = Field(...)
    JWT_ACCESS_TOKEN_TTL_SECONDS: int = 3600
    JWT_REFRESH_TOKEN_TTL_SECONDS: int = 7 * 24 * 3600
    JWT_VERIFICATION_TOKEN_TTL_SECONDS: int = 600

    #One-time passwords for password reset
    OTP_TTL_SECONDS: int = 60
    OTP_LENGTH: int = 6

    #Optional administrator created at startup
    ADMIN_EMAIL: Optional[str] = None
    ADMIN_PASSWORD: Optional[str] = None
    ADMIN_NAME: str = "Administrator"

    ALLOWED_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

settings = Settings()
