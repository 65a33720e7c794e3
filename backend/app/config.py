"""
Application settings.

Values are read from the environment or a local `.env` file.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Database configuration settings."""

    database_url: str = "sqlite:///./users.db"
    database_echo: bool = False

    class Config:
        env_file = ".env"


settings = Settings()
