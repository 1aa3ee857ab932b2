"""Client construction and settings tests."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from breeze_chms.client import BreezeClient
from breeze_chms.config import Settings, get_settings
from breeze_chms.exceptions import BreezeError, ConfigurationError


@pytest.mark.parametrize(
    "base_url",
    [
        "",
        None,
        "http://demo.breezechms.com",
        "demo.breezechms.com",
        "https://demo.example.com",
        "https://demo.breezechms.com.evil.net",
        "https://.breezechms.com",
    ],
)
def test_rejects_invalid_base_url(base_url):
    with pytest.raises(ConfigurationError):
        BreezeClient(base_url, "key")


@pytest.mark.parametrize("api_key", ["", "   ", None])
def test_rejects_missing_api_key(api_key):
    with pytest.raises(ConfigurationError, match="API key"):
        BreezeClient("https://demo.breezechms.com", api_key)


def test_rejects_non_positive_timeout():
    with pytest.raises(ConfigurationError):
        BreezeClient("https://demo.breezechms.com", "key", timeout_seconds=0)


def test_configuration_error_is_a_breeze_error():
    with pytest.raises(BreezeError):
        BreezeClient("https://demo.example.com", "key")


def test_accepts_valid_configuration():
    client = BreezeClient("https://demo.breezechms.com/", "key")

    assert client.base_url == "https://demo.breezechms.com"
    assert client.dry_run is False
    assert client.config.timeout_seconds == 30


def test_config_is_immutable():
    client = BreezeClient("https://demo.breezechms.com", "key", dry_run=True)

    with pytest.raises(ValidationError):
        client.config.dry_run = False
    assert client.dry_run is True


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("BREEZE_URL", "https://church.breezechms.com")
    monkeypatch.setenv("BREEZE_API_KEY", "env-key")
    monkeypatch.setenv("BREEZE_DRY_RUN", "true")
    monkeypatch.setenv("BREEZE_HTTP_TIMEOUT_SECONDS", "12.5")

    settings = get_settings()

    assert settings.url == "https://church.breezechms.com"
    assert settings.api_key == "env-key"
    assert settings.dry_run is True
    assert settings.http_timeout_seconds == 12.5


def test_from_settings_builds_client():
    settings = Settings(
        url="https://church.breezechms.com",
        api_key="env-key",
        dry_run=True,
        http_timeout_seconds=5,
        _env_file=None,
    )

    client = BreezeClient.from_settings(settings)

    assert client.base_url == "https://church.breezechms.com"
    assert client.dry_run is True
    assert client.config.timeout_seconds == 5


def test_from_settings_applies_overrides():
    settings = Settings(
        url="https://church.breezechms.com",
        api_key="env-key",
        dry_run=False,
        http_timeout_seconds=30,
        _env_file=None,
    )

    client = BreezeClient.from_settings(settings, dry_run=True, timeout_seconds=5)

    assert client.dry_run is True
    assert client.config.timeout_seconds == 5
    assert client.base_url == "https://church.breezechms.com"


def test_from_settings_without_url_fails(monkeypatch):
    monkeypatch.delenv("BREEZE_URL", raising=False)
    monkeypatch.delenv("BREEZE_API_KEY", raising=False)

    with pytest.raises(ConfigurationError):
        BreezeClient.from_settings(Settings(_env_file=None))
