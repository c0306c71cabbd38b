"""Application configuration using pydantic-settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Catalog API
    catalog_api_url: str = "https://next.cineville.nl/api/graphql"
    catalog_country: str = "NL"
    catalog_locale: str = "en-GB"
    catalog_fallback_locale: str = "nl-NL"
    catalog_page_limit: int = 999
    catalog_timeout: int = 30

    # Wall-clock zone used to resolve filter dates and times
    timezone: str = "Europe/Amsterdam"

    # Defaults for a fresh session
    default_city: str = "Amsterdam"
    default_buffer_minutes: int = 15
    max_buffer_minutes: int = 180


# Global settings instance
settings = Settings()
