"""Runtime configuration read from `.env` and the environment."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from urllib.parse import urlencode, urlparse

from dotenv import load_dotenv

from tally.vote_tally import DEFAULT_VOTE_TARGET


PROJECT_ROOT = Path(__file__).resolve().parents[1]

DEFAULT_SHEET_URL = "data/vote.csv"
DEFAULT_SHEET_VERSION = "4"
DEFAULT_FETCH_TIMEOUT = 30.0
DEFAULT_IMAGES_DIR = "data/images"
DEFAULT_IMAGES_BASE_URL = "/images"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    sheet_url: str = DEFAULT_SHEET_URL
    sheet_version: str = DEFAULT_SHEET_VERSION
    vote_target: int = DEFAULT_VOTE_TARGET
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    images_dir: Path = PROJECT_ROOT / DEFAULT_IMAGES_DIR
    images_base_url: str = DEFAULT_IMAGES_BASE_URL
    quoted_csv: bool = False
    log_level: str = "INFO"

    @property
    def sheet_key(self) -> str:
        """Sheet locator with the cache-busting version appended."""
        if not self.sheet_version:
            return self.sheet_url
        separator = "&" if urlparse(self.sheet_url).query else "?"
        return f"{self.sheet_url}{separator}{urlencode({'v': self.sheet_version})}"


def read_env() -> None:
    env_path = PROJECT_ROOT / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=False)
    else:
        load_dotenv(override=False)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}.") from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be a number, got {raw!r}.") from None


def _resolve_dir(raw: str) -> Path:
    path = Path(raw).expanduser()
    return path if path.is_absolute() else PROJECT_ROOT / path


def load_settings(*, use_dotenv: bool = True) -> Settings:
    if use_dotenv:
        read_env()
    sheet_url = os.getenv("VOTE_SHEET_URL", "").strip() or DEFAULT_SHEET_URL
    parsed = urlparse(sheet_url)
    if parsed.scheme not in ("http", "https") and not Path(parsed.path).is_absolute():
        sheet_url = str(PROJECT_ROOT / sheet_url)
    return Settings(
        sheet_url=sheet_url,
        sheet_version=os.getenv("VOTE_SHEET_VERSION", DEFAULT_SHEET_VERSION).strip(),
        vote_target=_env_int("VOTE_TARGET", DEFAULT_VOTE_TARGET),
        fetch_timeout=_env_float("VOTE_FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT),
        images_dir=_resolve_dir(os.getenv("VOTE_IMAGES_DIR", "").strip() or DEFAULT_IMAGES_DIR),
        images_base_url=(os.getenv("VOTE_IMAGES_BASE_URL", "").strip() or DEFAULT_IMAGES_BASE_URL).rstrip("/"),
        quoted_csv=os.getenv("VOTE_QUOTED_CSV", "").strip().lower() in _TRUTHY,
        log_level=os.getenv("LOG_LEVEL", "INFO").strip() or "INFO",
    )
