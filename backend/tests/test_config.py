import json
import sys

import pytest
from loguru import logger

from urlsigner.config import Settings, get_settings
from urlsigner.logging_config import configure_logging

from conftest import SECRET

ENV_VARS = [
    "SIGNED_URL_SECRET", "SECRET_KEY", "PUBLIC_BASE_URL", "BASE_URL",
    "PASSWORD_RESET_TTL", "EMAIL_VERIFICATION_TTL", "DOWNLOAD_TTL", "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults(monkeypatch):
    monkeypatch.setenv("SIGNED_URL_SECRET", SECRET)
    s = get_settings()
    assert s.secret.get_secret_value() == SECRET
    assert s.base_url == "http://localhost:8000"
    assert (s.password_reset_ttl, s.email_verification_ttl, s.download_ttl) == (3600, 86400, 3600)
    assert s.log_level == "INFO"
    assert get_settings() is s


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("SECRET_KEY", SECRET)
    monkeypatch.setenv("BASE_URL", "https://links.example.com/")
    monkeypatch.setenv("PASSWORD_RESET_TTL", "900")
    monkeypatch.setenv("DOWNLOAD_TTL", "60")
    s = Settings.from_env()
    assert s.base_url == "https://links.example.com"
    assert s.password_reset_ttl == 900
    assert s.download_ttl == 60


def test_public_base_url_wins(monkeypatch):
    monkeypatch.setenv("SIGNED_URL_SECRET", SECRET)
    monkeypatch.setenv("PUBLIC_BASE_URL", "https://public.example.com")
    monkeypatch.setenv("BASE_URL", "https://internal.example.com")
    assert Settings.from_env().base_url == "https://public.example.com"


def test_missing_secret():
    with pytest.raises(RuntimeError):
        Settings.from_env()


def test_short_secret_is_not_leaked(monkeypatch):
    monkeypatch.setenv("SIGNED_URL_SECRET", "too-short-secret")
    with pytest.raises(RuntimeError) as exc:
        Settings.from_env()
    assert "too-short-secret" not in str(exc.value)


def test_bad_ttl(monkeypatch):
    monkeypatch.setenv("SIGNED_URL_SECRET", SECRET)
    monkeypatch.setenv("EMAIL_VERIFICATION_TTL", "0")
    with pytest.raises(RuntimeError):
        Settings.from_env()


def test_secret_hidden_in_repr():
    s = Settings(secret=SECRET)
    assert SECRET not in repr(s)
    assert SECRET not in s.model_dump_json()


def test_json_logging(capsys):
    try:
        configure_logging("debug")
        logger.info("link issued")
        line = capsys.readouterr().out.strip().splitlines()[-1]
        payload = json.loads(line)
        assert payload["message"] == "link issued"
        assert payload["level"] == "INFO"
        assert payload["function"] == "test_json_logging"
    finally:
        logger.remove()
        logger.add(sys.stderr)
