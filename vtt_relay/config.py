"""Application config from environment."""

import tempfile
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment. Resolved once and handed to create_app."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Staging directory for uploaded .vtt files; created on app startup.
    UPLOAD_DIR: Path = Path(tempfile.gettempdir()) / "vtt-relay-uploads"
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024
    # Per outbound call (token fetch, recording lookup, download, forward).
    HTTP_TIMEOUT_SECONDS: float = 10.0

    ENABLE_URL_FETCH: bool = True
    ENABLE_WEBHOOK: bool = True

    # Server-to-Server OAuth app credentials
    ZOOM_CLIENT_ID: str = ""
    ZOOM_CLIENT_SECRET: str = ""
    ZOOM_ACCOUNT_ID: str = ""
    ZOOM_OAUTH_URL: str = "https://zoom.us/oauth/token"
    ZOOM_API_BASE_URL: str = "https://api.zoom.us/v2"

    # Webhook secret token from the Zoom app's Feature page
    ZOOM_WEBHOOK_SECRET_TOKEN: str = ""
    ZOOM_VERIFY_SIGNATURE: bool = False
    # Downstream workflow endpoint that receives recording.transcript_completed
    WEBHOOK_FORWARD_URL: str = ""

    OTEL_EXPORTER_OTLP_ENDPOINT: str | None = None

    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"


settings = Settings()
