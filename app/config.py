# app/config.py
from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    # MongoDB settings
    MONGODB_URI: str
    MONGODB_DB_NAME: str = "bus_kir"
    MONGODB_TIMEOUT_MS: int = 5000
    SEED_SAMPLE_DATA: bool = False

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    RELOAD: bool = True
    LOG_LEVEL: str = "INFO"

    # API settings
    API_PREFIX: str = "/api"

    # Access gate
    AUTH_COOKIE_NAME: str = "isAuthenticated"
    ADMIN_PATH: str = "/admin"
    LOGIN_PATH: str = "/login"

    class Config:
        env_file = ".env"

@lru_cache()
def get_settings():
    return Settings()
