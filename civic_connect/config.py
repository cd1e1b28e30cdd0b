#config.py
import os
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict
from typing import Optional, List
from functools import lru_cache

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")
    # Application Settings
    APP_NAME: str = "Civic Connect API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    DOCS_ENABLED: bool = True  # Can disable in production
    API_PREFIX: str = "/api"

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = int(os.environ.get("PORT", 3001))

    # Database Settings
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "sqlite:///./civic_connect.db")

    # Session Settings
    SESSION_EXPIRY_DAYS: int = 30

    # OTP Settings
    OTP_TTL_SECONDS: int = 300
    OTP_LENGTH: int = 6
    OTP_STORE_BACKEND: str = "memory"  # memory | redis
    DEMO_OTP_ENABLED: bool = True

    # OTP delivery (Twilio messaging)
    OTP_DELIVERY_CHANNEL: str = "whatsapp"  # whatsapp | sms | log
    TWILIO_ACCOUNT_SID: str = os.environ.get("TWILIO_ACCOUNT_SID", "")
    TWILIO_AUTH_TOKEN: str = os.environ.get("TWILIO_AUTH_TOKEN", "")
    TWILIO_FROM_NUMBER: str = os.environ.get("TWILIO_FROM_NUMBER", "")
    DEFAULT_COUNTRY_CODE: str = "+91"

    # Rate Limiting (per phone number on send-otp)
    RATE_LIMIT_BACKEND: str = "memory"  # memory | redis
    OTP_SEND_MAX_PER_WINDOW: int = 5
    OTP_SEND_WINDOW_SECONDS: int = 3600
    REDIS_URL: Optional[str] = os.environ.get("REDIS_URL", None)

    # CORS Settings (accept comma-separated strings to avoid JSON parsing in env)
    ALLOWED_ORIGINS: str = os.environ.get("ALLOWED_ORIGINS", "*")

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    def _split_csv(self, value: str) -> List[str]:
        if value is None:
            return []
        value = value.strip()
        if value == "":
            return []
        return [item.strip() for item in value.split(",")]

    @property
    def allowed_origins_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_ORIGINS)

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


@lru_cache()
def get_settings() -> Settings:
    s = Settings()
    # Normalize ALLOWED_ORIGINS if provided as comma-separated string env var CORS_ORIGINS
    cors_env = os.environ.get("CORS_ORIGINS")
    if cors_env:
        s.ALLOWED_ORIGINS = cors_env
    return s

settings: Settings = get_settings()
