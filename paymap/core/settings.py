"""Configuration and environment settings for the payment pin importer."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings for the payment pin importer."""

    database_url: str = "sqlite:///jobs/paymap.db"
    log_dir: str = "jobs"

    geocode_country: str = "jp"
    geocode_backends: list[str] = ["google", "nominatim"]
    geocode_timeout_seconds: float = 10.0
    google_geocode_api_key: str | None = None
    google_geocode_url: str = "https://maps.googleapis.com/maps/api/geocode/json"
    nominatim_url: str = "https://nominatim.openstreetmap.org"
    nominatim_user_agent: str = "paymap-importer/1.0"

    import_row_delay_seconds: float = 1.0
    progress_snapshot_interval: int = Field(default=10, ge=1)
    csv_encoding: str = "utf-8-sig"
    payment_marker: str = "支払い"
    column_description: str = "取引内容"
    column_date: str = "取引日"
    column_amount: str = "出金金額（円）"
    column_place: str = "取引先"

    server_host: str = "127.0.0.1"
    server_port: int = 8000

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def required_columns(self) -> dict[str, str]:
        """Map each logical CSV field to the header name that carries it."""
        return {
            "description": self.column_description,
            "date": self.column_date,
            "amount": self.column_amount,
            "place": self.column_place,
        }


def get_settings() -> "Settings":
    """Return an instance of the application settings."""
    return Settings()
