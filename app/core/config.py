"""
Application Configuration
All settings loaded from environment variables
"""
from pydantic import BaseModel
from typing import Optional
import os


class Settings(BaseModel):
    # ==================== Application ====================
    APP_NAME: str = os.getenv("APP_NAME", "OTP Relay")
    APP_VERSION: str = os.getenv("APP_VERSION", "1.0")

    # ==================== Development ====================
    DEV_MODE: bool = os.getenv("DEV_MODE", "false").lower() in ("true", "1", "yes")

    # ==================== Redis ====================
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://redis:6379/0")
    REDIS_SOCKET_TIMEOUT: float = float(os.getenv("REDIS_SOCKET_TIMEOUT", "2"))

    # ==================== Database ====================
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./notifications.db")

    # ==================== OTP ====================
    OTP_LENGTH: int = int(os.getenv("OTP_LENGTH", "6"))
    OTP_EXPIRY: int = int(os.getenv("OTP_EXPIRY", "300"))
    OTP_RESEND_COOLDOWN: int = int(os.getenv("OTP_RESEND_COOLDOWN", "30"))
    OTP_USE_HASHING: bool = os.getenv("OTP_USE_HASHING", "true").lower() in ("true", "1", "yes")
    OTP_HASH_ALGORITHM: str = os.getenv("OTP_HASH_ALGORITHM", "sha256")
    OTP_ORIG_SYSTEM: str = os.getenv("OTP_ORIG_SYSTEM", "OTP-RELAY")
    OTP_DEFAULT_LOCALE: str = os.getenv("OTP_DEFAULT_LOCALE", "en_US")
    OTP_RETURN_CODE: bool = os.getenv("OTP_RETURN_CODE", "false").lower() in ("true", "1", "yes")

    # ==================== Dispatch ====================
    DISPATCH_BACKEND: str = os.getenv("DISPATCH_BACKEND", "thread")  # thread | celery
    DISPATCH_MAX_WORKERS: int = int(os.getenv("DISPATCH_MAX_WORKERS", "4"))
    NOTIFICATION_STATUS_BACKEND: str = os.getenv("NOTIFICATION_STATUS_BACKEND", "database")  # database | memory
    # memory backend only: finished entries are dropped after the retention window,
    # and the oldest entries go first once the cap is reached
    NOTIFICATION_STATUS_RETENTION_SECONDS: int = int(os.getenv("NOTIFICATION_STATUS_RETENTION_SECONDS", "3600"))
    NOTIFICATION_STATUS_MAX_ENTRIES: int = int(os.getenv("NOTIFICATION_STATUS_MAX_ENTRIES", "10000"))

    # ==================== Circuit Breaker ====================
    CB_NAME: str = os.getenv("CB_NAME", "notificationProvider")
    CB_SLIDING_WINDOW_SIZE: int = int(os.getenv("CB_SLIDING_WINDOW_SIZE", "10"))
    CB_MINIMUM_CALLS: int = int(os.getenv("CB_MINIMUM_CALLS", "5"))
    CB_FAILURE_RATE_THRESHOLD: float = float(os.getenv("CB_FAILURE_RATE_THRESHOLD", "50"))
    CB_SLOW_CALL_RATE_THRESHOLD: float = float(os.getenv("CB_SLOW_CALL_RATE_THRESHOLD", "100"))
    CB_SLOW_CALL_DURATION_SECONDS: float = float(os.getenv("CB_SLOW_CALL_DURATION_SECONDS", "2"))
    CB_WAIT_DURATION_SECONDS: float = float(os.getenv("CB_WAIT_DURATION_SECONDS", "30"))
    CB_PERMITTED_CALLS_IN_HALF_OPEN: int = int(os.getenv("CB_PERMITTED_CALLS_IN_HALF_OPEN", "3"))

    # ==================== Provider ====================
    PROVIDER_ENDPOINT: str = os.getenv("PROVIDER_ENDPOINT", "")
    PROVIDER_TIMEOUT: float = float(os.getenv("PROVIDER_TIMEOUT", "10"))
    PROVIDER_SMS_API_KEY: str = os.getenv("PROVIDER_SMS_API_KEY", "")
    PROVIDER_EMAIL_API_KEY: str = os.getenv("PROVIDER_EMAIL_API_KEY", "")
    PROVIDER_TOKEN_URL: str = os.getenv("PROVIDER_TOKEN_URL", "")
    PROVIDER_CLIENT_ID: str = os.getenv("PROVIDER_CLIENT_ID", "")
    PROVIDER_CLIENT_SECRET: str = os.getenv("PROVIDER_CLIENT_SECRET", "")
    PROVIDER_GRANT_TYPE: str = os.getenv("PROVIDER_GRANT_TYPE", "client_credentials")
    PROVIDER_TOKEN_SAFETY_MARGIN: int = int(os.getenv("PROVIDER_TOKEN_SAFETY_MARGIN", "60"))

    # ==================== Simulation ====================
    SIMULATION_ENABLED: bool = os.getenv("SIMULATION_ENABLED", "true").lower() in ("true", "1", "yes")
    SIMULATION_FAILURE_RATE: float = float(os.getenv("SIMULATION_FAILURE_RATE", "0.0"))
    SIMULATION_DELAY_MS: int = int(os.getenv("SIMULATION_DELAY_MS", "100"))
    SIMULATION_TIMEOUT_MS: int = int(os.getenv("SIMULATION_TIMEOUT_MS", "3000"))

    # ==================== Validation ====================
    PHONE_REGEX: str = os.getenv("PHONE_REGEX", r"^\+?[0-9]{10,15}$")
    PHONE_MIN_LENGTH: int = int(os.getenv("PHONE_MIN_LENGTH", "10"))
    PHONE_MAX_LENGTH: int = int(os.getenv("PHONE_MAX_LENGTH", "16"))
    EMAIL_REGEX: str = os.getenv("EMAIL_REGEX", r"^[a-z0-9._%+-]+@[a-z0-9.-]+\.[a-z]{2,}$")
    EMAIL_MAX_LENGTH: int = int(os.getenv("EMAIL_MAX_LENGTH", "254"))
    NAME_REGEX: str = os.getenv("NAME_REGEX", r"^[A-Za-zÀ-ɏ' .-]{1,100}$")
    DANGEROUS_CHARS_REGEX: Optional[str] = os.getenv("DANGEROUS_CHARS_REGEX", r"[<>\"';&$`|\\]")

    # ==================== Celery ====================
    CELERY_BROKER_URL: str = os.getenv("CELERY_BROKER_URL", "redis://redis:6379/1")
    CELERY_RESULT_BACKEND: str = os.getenv("CELERY_RESULT_BACKEND", "redis://redis:6379/1")
    CELERY_TIMEZONE: str = os.getenv("CELERY_TIMEZONE", "UTC")

    # ==================== Logging ====================
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info")
    LOG_FILE: str = os.getenv("LOG_FILE", "logs/app.log")
    LOG_MAX_SIZE: int = int(os.getenv("LOG_MAX_SIZE", "10485760"))  # 10MB
    LOG_BACKUP_COUNT: int = int(os.getenv("LOG_BACKUP_COUNT", "5"))

    # ==================== CORS ====================
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    CORS_ALLOW_CREDENTIALS: bool = os.getenv("CORS_ALLOW_CREDENTIALS", "true").lower() == "true"


settings = Settings()
