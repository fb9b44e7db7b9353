"""Application settings loaded from environment variables via pydantic-settings.

Two sources, in priority order:

  1. Environment variables, prefixed ``SVL_`` (e.g. ``SVL_DB_PATH``).
  2. A ``.env`` file in the working directory.

Field defaults apply when neither source sets a value.  ``APP_ENV`` and
``LOG_LEVEL`` are read without the prefix so they match the logging setup.
"""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Statistica Verborum settings."""

    model_config = SettingsConfigDict(
        env_prefix="SVL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # === Corpus ===
    corpus_index_url: str = "https://www.thelatinlibrary.com/index.html"

    # === Fetching ===
    max_concurrent_requests: int = Field(default=10, ge=1, le=100)
    request_timeout: float = Field(default=30.0, gt=0)
    user_agent: str = "statistica-verborum/0.1"

    # === Storage ===
    db_path: str = "data/svl-stats.db"
    persist_batch_size: int = Field(default=500, ge=1)
    persist_replace_existing: bool = True

    # === Aggregation ===
    # Fold documents in discovery order instead of fetch completion order,
    # making text ids reproducible across runs.
    ordered_fold: bool = False
    tokenizer_mode: str = "strict"

    # === App Config ===
    app_env: str = Field(default="development", validation_alias=AliasChoices("APP_ENV", "SVL_APP_ENV"))
    log_level: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "SVL_LOG_LEVEL"))
