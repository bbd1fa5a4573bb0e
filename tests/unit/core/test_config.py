"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from largebatch.core.config import FIRESTORE_MAX_BATCH_OPERATIONS, Settings


def test_defaults(monkeypatch):
    """Test default values with no LARGEBATCH_* variables set."""
    for name in ("BATCH_CAPACITY", "DEFAULT_COMMIT_UNIT", "LOG_LEVEL"):
        monkeypatch.delenv(f"LARGEBATCH_{name}", raising=False)

    settings = Settings(_env_file=None)

    assert settings.BATCH_CAPACITY == FIRESTORE_MAX_BATCH_OPERATIONS == 500
    assert settings.DEFAULT_COMMIT_UNIT is None
    assert settings.LOG_LEVEL == "INFO"


def test_reads_prefixed_environment(monkeypatch):
    """Test that LARGEBATCH_* variables are picked up."""
    monkeypatch.setenv("LARGEBATCH_BATCH_CAPACITY", "100")
    monkeypatch.setenv("LARGEBATCH_DEFAULT_COMMIT_UNIT", "4")
    monkeypatch.setenv("LARGEBATCH_LOG_LEVEL", "warning")

    settings = Settings(_env_file=None)

    assert settings.BATCH_CAPACITY == 100
    assert settings.DEFAULT_COMMIT_UNIT == 4
    assert settings.LOG_LEVEL == "WARNING"


@pytest.mark.parametrize(
    "overrides",
    [
        {"BATCH_CAPACITY": 0},
        {"BATCH_CAPACITY": 501},
        {"DEFAULT_COMMIT_UNIT": 0},
        {"LOG_LEVEL": "LOUD"},
    ],
)
def test_invalid_values_rejected(overrides):
    """Test that out-of-range values fail validation."""
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **overrides)
