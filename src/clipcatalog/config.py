"""Configuration management for clipcatalog."""

from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable overrides.

    All settings can be overridden via environment variables
    prefixed with CLIPCATALOG_ (e.g. CLIPCATALOG_MUSIC_ROOT).
    """

    model_config = {"env_prefix": "CLIPCATALOG_"}

    # Library layout
    music_root: Path = Field(
        default=Path("music"),
        description="Directory holding YYYY/MM.json partitions",
    )
    min_videos_file: Path = Path("public/videos.min.json")
    min_clips_file: Path = Path("public/clips.min.json")
    artists_file: Path = Field(
        default=Path("artists.json"),
        description="JSON list (or object keyed by id) of internal artist ids",
    )

    # Metadata provider
    provider: Literal["youtube-api", "yt-dlp"] = "youtube-api"
    youtube_api_key: SecretStr | None = None
    batch_size: int = Field(default=50, ge=1, le=50)
    max_retries: int = Field(default=3, ge=1)
    request_delay: float = 0.125  # seconds between batches
    retry_delay: float = 0.5
    request_timeout: float = 30.0

    log_level: str = "INFO"


# Module-level singleton, import this throughout the app
settings = Settings()
