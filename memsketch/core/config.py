"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Memory Sketches settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        gateway_base_url: OpenAI-compatible chat completions endpoint root.
        scene_provider: Which backend extracts scenes ("gateway", "claude", "ollama").
        api_tokens: Bearer token -> user id map (JSON in the environment).
        database_url: Async SQLAlchemy connection string.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- AI gateway ---
    # One OpenAI-compatible gateway serves transcription, scenes and sketches
    gateway_base_url: str = "https://ai.gateway.lovable.dev/v1"
    gateway_api_key: str = ""
    gateway_timeout: float = 120.0  # seconds; a hung upstream call ends here
    gateway_connect_attempts: int = 2  # refused connections only

    transcription_model: str = "google/gemini-2.5-flash"
    scene_model: str = "google/gemini-3-flash-preview"
    sketch_model: str = "google/gemini-2.5-flash-image"

    # --- Scene extraction provider ---
    scene_provider: str = "gateway"

    claude_api_key: str = ""  # Required when scene_provider="claude"
    claude_model: str = "claude-sonnet-4-20250514"

    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.2"

    # --- Pipeline ---
    sketch_max_concurrent: int = 5
    drop_unverified_scenes: bool = False  # Drop scenes whose sentence is not in the transcript

    # --- Auth ---
    # JSON object mapping bearer token -> user id, e.g. {"tok-123": "alice"}
    api_tokens: dict[str, str] = Field(default_factory=dict)

    # --- Application ---
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "INFO"
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:8501", "http://localhost:3000"]
    )

    # --- Storage ---
    database_url: str = "sqlite+aiosqlite:///data/memsketch.db"
    storage_dir: str = "data/storage"  # Buckets live in sub-directories
    max_audio_bytes: int = 25 * 1024 * 1024

    # --- UI ---
    api_base_url: str = "http://localhost:8000"
    api_token: str = ""  # Token the Streamlit client presents


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Returns:
        Settings: The application-wide configuration object.
    """
    return Settings()
