from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # Database / storage
    database_url: str = "sqlite:///./registrations.db"
    upload_dir: str = "./uploads"

    # Admin API key
    secret_key: str = ""

    # SendGrid
    sendgrid_api_key: str = ""
    sendgrid_from_email: str = "websters@shivaji.du.ac.in"

    # Registration tokens
    token_max_age_hours: int = 24
    token_academic_domains_only: bool = False

    # Global switch overriding every event status
    registration_open: bool = True

    site_url: str = "http://localhost:8000"
    api_base_url: str = "http://localhost:8000/api"

    @field_validator("site_url", "api_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


def get_settings() -> Settings:
    """Read settings from the environment and .env (re-read on every call)"""
    return Settings()
