from pathlib import Path

import pytest

from habit_tracker.config import load_config

REQUIRED = {
    "DISCORD_TOKEN": "token",
    "GUILD_ID": "123",
    "REPORT_CHANNEL_ID": "456",
    "TIMEZONE": "Europe/Berlin",
}
OPTIONAL = ("DATABASE_PATH", "EXTERNAL_ENTRIES_PATH", "EXTERNAL_ACTIVITY_ID", "DAILY_SUMMARY_ENABLED")


@pytest.fixture
def env(monkeypatch):
    for name, value in REQUIRED.items():
        monkeypatch.setenv(name, value)
    for name in OPTIONAL:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_load_config_defaults(env) -> None:
    config = load_config()

    assert config.guild_id == 123
    assert config.timezone.key == "Europe/Berlin"
    assert config.database_path == Path("habit_tracker.db")
    assert config.external_entries_path is None
    assert config.daily_summary_enabled is True


def test_external_settings_must_come_together(env) -> None:
    env.setenv("EXTERNAL_ENTRIES_PATH", "spanish.json")

    with pytest.raises(ValueError, match="together"):
        load_config()

    env.setenv("EXTERNAL_ACTIVITY_ID", "abc")
    config = load_config()
    assert config.external_entries_path == Path("spanish.json")
    assert config.external_activity_id == "abc"


@pytest.mark.parametrize(
    ("name", "value"),
    [("GUILD_ID", "abc"), ("GUILD_ID", "-1"), ("TIMEZONE", "Mars/Olympus"), ("DAILY_SUMMARY_ENABLED", "maybe")],
)
def test_invalid_values_raise(env, name, value) -> None:
    env.setenv(name, value)

    with pytest.raises(ValueError):
        load_config()


def test_missing_token_raises(env) -> None:
    env.delenv("DISCORD_TOKEN")

    with pytest.raises(ValueError, match="DISCORD_TOKEN"):
        load_config()
