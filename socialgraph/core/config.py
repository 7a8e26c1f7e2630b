# Defines application-wide settings using pydantic-settings' BaseSettings
# Manages environment variables for various aspects of the application:
# API configuration (version, project name)
# Security settings (secret key, JWT algorithm)
# Database connection details
# Feed composition and prefetch tuning


import json
from typing import List, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # API configuration
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Social Graph API"
    VERSION: str = "0.1.0"

    # Security
    SECRET_KEY: str = "development_secret_key"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days
    ALGORITHM: str = "HS256"

    # Database
    DATABASE_URL: str = "sqlite:///./socialgraph.db"

    # CORS
    BACKEND_CORS_ORIGINS: Union[List[str], str] = [
        "http://localhost:3000",     # Local development
        "http://10.0.2.2:3000",      # Android emulator
        "capacitor://localhost",     # Mobile app shell
    ]

    # Feed composition
    FEED_DEFAULT_PAGE_SIZE: int = 20
    FEED_MAX_PAGE_SIZE: int = 100
    FEED_CANDIDATE_LIMIT: int = 500  # posts fetched per source, whatever the cursor
    FEED_TRENDING_MIN_ENGAGEMENT: int = 5  # likes + comments
    FEED_TIME_WINDOW_HOURS: int = 24

    # Graph queries
    LIST_DEFAULT_LIMIT: int = 50  # friends, followers and following pages
    LIST_MAX_LIMIT: int = 100
    MUTUAL_FRIENDS_DEFAULT_LIMIT: int = 20
    SUGGESTED_FOLLOWS_DEFAULT_LIMIT: int = 10

    # Client prefetch
    PREFETCH_MIN_THRESHOLD: int = 3
    PREFETCH_RATIO: float = 0.7

    # Development settings - set these differently in production
    DEBUG: bool = False
    ENVIRONMENT: str = "production"

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, str):
            # Handle JSON string format
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return []
        return v

# Create settings instance
settings = Settings()
