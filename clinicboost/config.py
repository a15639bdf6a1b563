from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from clinicboost.models.enums import EvictionStrategy


class Settings(BaseSettings):
    """Cache configuration loaded from environment variables and .env file.

    TTLs are in seconds. Each standard cache ("general", "selector", "api")
    has its own size and TTL; strategy and statistics apply to all three.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    general_cache_max_size: int = 1000
    general_cache_ttl: float = 300.0

    selector_cache_max_size: int = 500
    selector_cache_ttl: float = 120.0

    api_cache_max_size: int = 200
    api_cache_ttl: float = 600.0

    cache_strategy: EvictionStrategy = EvictionStrategy.LRU
    cache_enable_stats: bool = True

    # Logs go to <data_dir>/logs
    data_dir: Path = Path(__file__).resolve().parent.parent / "data"
    log_level: str = "INFO"


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the cached Settings singleton. Created on first call."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Clear the cached settings. Used in tests."""
    global _settings  # noqa: PLW0603
    _settings = None
