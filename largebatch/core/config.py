"""Configuration settings for largebatch.

Values are read from the environment (``LARGEBATCH_*``) or a local ``.env`` file.
Anything passed explicitly to a ``BatchAccumulator`` takes precedence.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Firestore rejects a single write batch with more operations than this.
FIRESTORE_MAX_BATCH_OPERATIONS = 500


class Settings(BaseSettings):
    """Library settings.

    Attributes:
        BATCH_CAPACITY: Max operations staged into one underlying batch
        DEFAULT_COMMIT_UNIT: Batches committed concurrently per group when
            the caller does not pass ``commit_unit`` (None = all at once)
        LOG_LEVEL: Level applied to the ``largebatch`` logger
        FIRESTORE_PROJECT: Google Cloud project for the Firestore client
        FIRESTORE_DATABASE: Firestore database id (None = "(default)")
    """

    model_config = SettingsConfigDict(
        env_prefix="LARGEBATCH_",
        env_file=".env",
        extra="ignore",
        case_sensitive=True,
    )

    BATCH_CAPACITY: int = Field(
        FIRESTORE_MAX_BATCH_OPERATIONS,
        ge=1,
        le=FIRESTORE_MAX_BATCH_OPERATIONS,
        description="Max operations per underlying batch",
    )
    DEFAULT_COMMIT_UNIT: Optional[int] = Field(
        None, ge=1, description="Default number of batches committed per group"
    )
    LOG_LEVEL: str = Field("INFO", description="Log level for the largebatch logger")

    FIRESTORE_PROJECT: Optional[str] = None
    FIRESTORE_DATABASE: Optional[str] = None

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {v}")
        return level


settings = Settings()
