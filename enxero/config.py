"""Application configuration via environment variables."""

import json
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database: DATABASE_URL MUST be set via environment / .env (no default)
    DATABASE_URL: str
    DATABASE_ECHO: bool = False
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20

    # Auth: JWT secrets MUST be set via environment / .env (no default)
    JWT_SECRET: str
    JWT_REFRESH_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_MINUTES: int = 60 * 24
    JWT_REFRESH_EXPIRES_DAYS: int = 7

    # Password login lockout
    LOGIN_MAX_ATTEMPTS: int = 5
    LOGIN_LOCKOUT_MINUTES: int = 15

    # App
    APP_NAME: str = "Enxero"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "info"
    LOG_JSON: bool = False
    CORS_ORIGIN: str = '["http://localhost:3000"]'
    FRONTEND_URL: str = "http://localhost:3000"
    RATE_LIMIT_DEFAULT: str = "100/minute"

    # SMS (infobip | console)
    SMS_PROVIDER: str = "console"
    SMS_API_KEY: str = ""
    SMS_SENDER_ID: str = "Enxero"
    SMS_ENDPOINT: str = "https://api.infobip.com"
    SMS_TIMEOUT_SECONDS: float = 10.0

    # Email
    EMAIL_HOST: str = ""
    EMAIL_PORT: int = 587
    EMAIL_USER: str = ""
    EMAIL_PASSWORD: str = ""
    EMAIL_FROM: str = "noreply@enxero.com"

    # OTP
    OTP_EXPIRY_MINUTES: int = 5
    OTP_MAX_ATTEMPTS: int = 3

    # File Storage
    UPLOAD_PATH: str = "./uploads"
    MAX_FILE_SIZE: int = 10 * 1024 * 1024

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS_ORIGIN as a JSON list, or a comma-separated string."""
        try:
            origins = json.loads(self.CORS_ORIGIN)
        except (json.JSONDecodeError, TypeError):
            return [o.strip() for o in self.CORS_ORIGIN.split(",") if o.strip()]
        if isinstance(origins, str):
            return [origins]
        return list(origins)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


settings = Settings()
