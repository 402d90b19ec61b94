"""Configuration management using pydantic-settings"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    database_path: str = Field(default="./data/forms.db", description="Path to SQLite database")
    log_level: str = Field(default="INFO", description="Logging level")

    # Store backend: 'sqlite' or 'memory'
    store_mode: str = Field(default="sqlite", description="Template store backend: 'sqlite' or 'memory'")

    # Builder session settings
    session_ttl_minutes: int = Field(default=30, description="Idle minutes before a builder session expires")
    max_sessions: int = Field(default=1000, description="Max builder sessions kept in memory")

    # Listing settings
    default_page_size: int = Field(default=12, description="Templates per page when listing")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def get_settings() -> Settings:
    """Get application settings"""
    return Settings()
