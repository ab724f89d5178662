from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Application
    APP_NAME: str = "keysmith"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Software credential store
    DATABASE_URL: str = "sqlite:///./keysmith.db"

    # Fernet key used to encrypt private key material at rest (Optional)
    STORE_ENCRYPTION_KEY: Optional[str] = None

    # Key generation
    DEFAULT_RSA_KEY_SIZE: int = 2048
    DEFAULT_EC_KEY_SIZE: int = 256
    MIN_RSA_KEY_SIZE: int = 1024
    DEFAULT_ACCESSIBILITY: str = "when_unlocked"


settings = Settings()
