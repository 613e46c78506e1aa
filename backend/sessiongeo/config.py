"""Application configuration using Pydantic settings."""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    environment: str = "development"

    # Redis (for ARQ worker)
    redis_url: str = "redis://127.0.0.1:6379"

    # Where saved sessions land
    sessions_dir: str = "sessions"

    # Screen recording of live captures (saved as session-<id>.webm)
    record_video: bool = False

    # Replay viewport
    viewport_width: int = 1280
    viewport_height: int = 720

    # Geometry sampling (empirical, tune per harness)
    step_ms: int = 500
    settle_ms: int = 150
    init_settle_ms: int = 500
    harness_timeout_ms: int = 10000
    max_geometry_elements: int = 2000

    # rrweb assets
    rrweb_version: str = "1.1.3"
    rrweb_cdn_base: Optional[str] = None

    # Console capture limits
    console_length_threshold: int = 10000
    console_string_length_limit: int = 1000
    console_num_of_keys_limit: int = 100
    console_depth_limit: int = 4

    @property
    def rrweb_asset_base(self) -> str:
        """Base URL for the rrweb dist files."""
        if self.rrweb_cdn_base:
            return self.rrweb_cdn_base.rstrip("/")
        return f"https://cdn.jsdelivr.net/npm/rrweb@{self.rrweb_version}/dist"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
