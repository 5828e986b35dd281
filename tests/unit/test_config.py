"""Tests for configuration validation."""

import pytest
from pydantic import ValidationError

from src.core.config import Constants, Settings


@pytest.mark.unit
def test_defaults() -> None:
    """Test defaults for storage, calendar and scheduling."""
    settings = Settings(_env_file=None)

    assert settings.storage_backend == "json"
    assert settings.tasks_file_path == "./data/tasks.json"
    assert settings.projects_file_path == "./data/projects.json"
    assert settings.reporting_timezone == "UTC"
    assert settings.daily_reset_cron == "5 0 * * *"
    assert settings.default_user_id == "user_001"


@pytest.mark.unit
def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test settings are read from environment variables."""
    monkeypatch.setenv("STORAGE_BACKEND", "sqlite")
    monkeypatch.setenv("REPORTING_TIMEZONE", "Asia/Shanghai")
    monkeypatch.setenv("SCHEDULER_AUTOSTART", "false")

    settings = Settings(_env_file=None)

    assert settings.storage_backend == "sqlite"
    assert settings.reporting_timezone == "Asia/Shanghai"
    assert settings.scheduler_autostart is False


@pytest.mark.unit
def test_unknown_backend_rejected() -> None:
    """Test only json and sqlite backends are accepted."""
    with pytest.raises(ValidationError):
        Settings(_env_file=None, storage_backend="mongodb")


@pytest.mark.unit
def test_unknown_timezone_rejected() -> None:
    """Test the reporting timezone must be an IANA name."""
    with pytest.raises(ValidationError, match="Unknown timezone"):
        Settings(_env_file=None, reporting_timezone="Mars/Olympus")


@pytest.mark.unit
@pytest.mark.parametrize("cron", ["5 0 * *", "61 0 * * *", "every day", "0 0 * * * *"])
def test_invalid_cron_rejected(cron: str) -> None:
    """Test the reset schedule must be a valid five-field crontab."""
    with pytest.raises(ValidationError, match="Invalid crontab expression"):
        Settings(_env_file=None, daily_reset_cron=cron)


@pytest.mark.unit
def test_batch_and_session_limits() -> None:
    """Test the limits the API relies on."""
    assert Constants.MAX_BATCH_SIZE == 50
    assert Constants.MIN_SESSION_SECONDS == 3
    assert Constants.DEFAULT_ESTIMATED_DURATION_SECONDS == 1500
