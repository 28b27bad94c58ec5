"""
Configuration for the application
"""
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings
    """

    database_url: str = ""  # PostgreSQL connection (asyncpg format)
    frontend_url: str = "http://localhost:5173"
    allow_all_origins: bool = False
    log_level: str = "INFO"

    # Auth0 configuration
    auth_disabled: bool = False
    auth_disabled_role: str = "admin"  # Role handed to the mock user when auth is off
    auth0_domain: str = ""
    auth0_audience: str = ""

    # Vision extraction (OpenAI multimodal)
    openai_api_key: str = ""
    vision_model: str = "gpt-4o-mini"
    vision_max_tokens: int = 1500

    # Google Cloud Storage configuration
    gcs_project_id: str = ""
    gcs_bucket_visit_documents: str = ""
    gcs_credentials_path: str = ""
    upload_url_ttl_seconds: int = 900  # 15 minutes
    download_url_ttl_seconds: int = 3600

    class Config:
        """
        Configuration for the application settings
        """
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings with caching.

    Returns:
        Settings: The application configuration settings.
    """
    return Settings()
