from __future__ import annotations

import pytest

from tally.settings import PROJECT_ROOT, Settings, load_settings


ENV_NAMES = (
    "VOTE_SHEET_URL",
    "VOTE_SHEET_VERSION",
    "VOTE_TARGET",
    "VOTE_FETCH_TIMEOUT",
    "VOTE_IMAGES_DIR",
    "VOTE_IMAGES_BASE_URL",
    "VOTE_QUOTED_CSV",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = load_settings(use_dotenv=False)

    assert settings.sheet_url == str(PROJECT_ROOT / "data/vote.csv")
    assert settings.sheet_key.endswith("vote.csv?v=4")
    assert settings.vote_target == 376
    assert settings.fetch_timeout == 30.0
    assert settings.images_dir == PROJECT_ROOT / "data/images"
    assert settings.quoted_csv is False


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("VOTE_SHEET_URL", "https://example.org/vote.csv")
    monkeypatch.setenv("VOTE_SHEET_VERSION", "7")
    monkeypatch.setenv("VOTE_TARGET", "250")
    monkeypatch.setenv("VOTE_FETCH_TIMEOUT", "5.5")
    monkeypatch.setenv("VOTE_IMAGES_DIR", str(tmp_path))
    monkeypatch.setenv("VOTE_IMAGES_BASE_URL", "https://cdn.example.org/images/")
    monkeypatch.setenv("VOTE_QUOTED_CSV", "yes")

    settings = load_settings(use_dotenv=False)

    assert settings.sheet_key == "https://example.org/vote.csv?v=7"
    assert settings.vote_target == 250
    assert settings.fetch_timeout == 5.5
    assert settings.images_dir == tmp_path
    assert settings.images_base_url == "https://cdn.example.org/images"
    assert settings.quoted_csv is True


def test_sheet_key_appends_to_existing_query():
    settings = Settings(sheet_url="https://example.org/export?format=csv", sheet_version="4")

    assert settings.sheet_key == "https://example.org/export?format=csv&v=4"


def test_empty_version_leaves_locator_untouched():
    assert Settings(sheet_url="data/vote.csv", sheet_version="").sheet_key == "data/vote.csv"


def test_invalid_target_is_reported(monkeypatch):
    monkeypatch.setenv("VOTE_TARGET", "lots")

    with pytest.raises(RuntimeError, match="VOTE_TARGET"):
        load_settings(use_dotenv=False)
