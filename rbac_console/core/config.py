"""Application configuration from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    APP_NAME: str = "RBAC Console"
    DEBUG: bool = False
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]
    CORS_ORIGIN_REGEX: str = r"^http://localhost(:\d+)?$"

    # Database
    DATABASE_URL: str = "sqlite:///./data/rbac.db"
    SEED_ON_STARTUP: bool = True

    # Auth
    JWT_SECRET: str = "rbac_default_secret_key_change_in_production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRY_MINUTES: int = 60 * 24 * 7
    BCRYPT_ROUNDS: int = 12
    LOGIN_RATE_LIMIT: str = "20/minute"
    RATE_LIMIT_ENABLED: bool = True

    # Accounts
    DEFAULT_ROLE: str = "Viewer"
    DEFAULT_USER_PASSWORD: str = "changeme123"

    # Admin seed
    SEED_ADMIN_NAME: str = "Admin"
    SEED_ADMIN_EMAIL: str = "admin@gmail.com"
    SEED_ADMIN_USERNAME: str = "admin"
    SEED_ADMIN_PASSWORD: str = "admin123"

    # Audit
    AUDIT_QUERY_LIMIT: int = 1000
    ACTIVITY_REPORT_LIMIT: int = 500

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


settings = Settings()
