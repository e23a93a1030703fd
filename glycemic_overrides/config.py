"""Library configuration using Pydantic Settings."""

from datetime import timedelta

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    service_name: str = "glycemic-overrides"

    # Override history retention. Events whose actual end is older than
    # this many hours before the resolve instant are pruned. The default
    # matches the maximum carbohydrate absorption time.
    override_retention_hours: float = Field(
        default=10.0,
        gt=0,
        description="Retention window for override history (hours).",
    )

    @property
    def override_retention_window(self) -> timedelta:
        return timedelta(hours=self.override_retention_hours)


settings = Settings()
