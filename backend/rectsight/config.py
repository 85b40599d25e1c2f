"""Application configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    rectsight_env: str = "development"
    rectsight_log_level: str = "info"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Engine defaults
    quantize_step: int = 16
    alpha_mode: str = "background"
    scale: float = 0.1
    image_size: int = 100
    # Decomposition is O(W²·H²) worst case; requests above this side are refused
    max_grid_side: int = 512

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
