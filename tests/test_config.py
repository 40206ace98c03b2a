from pathlib import Path

import pytest

from taskhub.config import load_settings

_VARS = [
    "DB_PATH",
    "HOST",
    "PORT",
    "TOKEN_TTL_HOURS",
    "CORS_ORIGINS",
    "LOG_LEVEL",
    "ADMIN_USERNAME",
    "ADMIN_EMAIL",
    "ADMIN_PASSWORD",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    s = load_settings(dotenv=False)
    assert s.db_path == Path("data/taskhub.db")
    assert s.port == 8000
    assert s.token_ttl_hours == 168
    assert s.cors_origins == ()
    assert s.admin_email is None


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("DB_PATH", "/tmp/x.db")
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test,")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("ADMIN_EMAIL", "root@example.com")
    s = load_settings(dotenv=False)
    assert s.db_path == Path("/tmp/x.db")
    assert s.port == 9000
    assert s.cors_origins == ("http://a.test", "http://b.test")
    assert s.log_level == "DEBUG"
    assert s.admin_email == "root@example.com"
    assert s.admin_password is None


@pytest.mark.parametrize("name, value", [("PORT", "eighty"), ("TOKEN_TTL_HOURS", "0"), ("DB_PATH", "  ")])
def test_bad_values_fail_fast(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(RuntimeError):
        load_settings(dotenv=False)
