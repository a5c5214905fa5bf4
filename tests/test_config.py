"""
Tests for settings loading.
"""

from __future__ import annotations

import logging

import pytest

from record_envelope import ConfigError, Settings, configure_logging, load_settings

ENV_VARS = [
    "DATABASE_URL",
    "RECORD_ENVELOPE_DB_POOL_MIN",
    "RECORD_ENVELOPE_DB_POOL_MAX",
    "RECORD_ENVELOPE_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def empty_env_file(tmp_path):
    path = tmp_path / ".env"
    path.write_text("")
    return path


def test_defaults(empty_env_file):
    assert load_settings(empty_env_file) == Settings()


def test_reads_env_file(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "DATABASE_URL=postgresql://localhost/records\n"
        "RECORD_ENVELOPE_DB_POOL_MIN=2\n"
        "RECORD_ENVELOPE_DB_POOL_MAX=5\n"
        "RECORD_ENVELOPE_LOG_LEVEL=debug\n"
    )
    for name in ENV_VARS:
        # load_dotenv writes into os.environ; let monkeypatch undo it
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)

    settings = load_settings(env_file)

    assert settings.database_url == "postgresql://localhost/records"
    assert settings.db_pool_min_size == 2
    assert settings.db_pool_max_size == 5
    assert settings.log_level == "DEBUG"


def test_environment_wins_over_env_file(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("DATABASE_URL=postgresql://file/records\n")
    monkeypatch.setenv("DATABASE_URL", "postgresql://env/records")

    assert load_settings(env_file).database_url == "postgresql://env/records"


@pytest.mark.parametrize(
    "name, value",
    [
        ("RECORD_ENVELOPE_DB_POOL_MIN", "many"),
        ("RECORD_ENVELOPE_DB_POOL_MAX", "0"),
        ("RECORD_ENVELOPE_DB_POOL_MIN", "20"),
        ("RECORD_ENVELOPE_LOG_LEVEL", "CHATTY"),
    ],
)
def test_invalid_values(empty_env_file, monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigError):
        load_settings(empty_env_file)


def test_configure_logging(monkeypatch):
    calls = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.update(kwargs))

    configure_logging(Settings(log_level="WARNING"))

    assert calls["level"] == "WARNING"
    assert "%(name)s" in calls["format"]
