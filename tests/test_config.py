import pytest

from focal.core.config import get_provider_credentials, settings
from focal.core.database import normalize_database_url
from focal.models.enums import ProviderType


def test_provider_credentials_order_and_dedup(monkeypatch):
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "primary")
    monkeypatch.setattr(settings, "GEMINI_API_KEY_2", "backup")
    assert get_provider_credentials(ProviderType.GEMINI) == ["primary", "backup"]

    monkeypatch.setattr(settings, "GEMINI_API_KEY_2", " primary ")
    assert get_provider_credentials(ProviderType.GEMINI) == ["primary"]

    monkeypatch.setattr(settings, "GEMINI_API_KEY", "")
    monkeypatch.setattr(settings, "GEMINI_API_KEY_2", None)
    assert get_provider_credentials(ProviderType.GEMINI) == []


def test_github_token_backs_openai(monkeypatch):
    monkeypatch.setattr(settings, "GITHUB_TOKEN", None)
    monkeypatch.setattr(settings, "GITHUB_TOKEN_2", "gh-2")
    assert get_provider_credentials(ProviderType.OPENAI) == ["gh-2"]


@pytest.mark.parametrize(
    "url, expected",
    [
        ("sqlite:///./focal.db", "sqlite+aiosqlite:///./focal.db"),
        ("sqlite+aiosqlite:///x.db", "sqlite+aiosqlite:///x.db"),
    ],
)
def test_normalize_sqlite_urls(url, expected):
    assert normalize_database_url(url) == expected


def test_normalize_postgres_url_uses_psycopg():
    url = normalize_database_url("postgres://u:p@db.example.com/focal")
    assert url.startswith("postgresql+psycopg://u:p@db.example.com/focal")
    assert "sslmode=require" in url
