# backend/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    REFRESH_SECRET_KEY: str = "dev-refresh-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    DATABASE_URL: str = "sqlite:///./pos.db"
    FRONTEND_URL: str = "http://localhost:5173"

    # Dashboard counter uses a fixed threshold; per-product alerts use min_quantity
    LOW_STOCK_THRESHOLD: int = 5
    INVOICE_NUMBER_RETRIES: int = 5
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=str(env_path), extra="ignore")

settings = Settings()
