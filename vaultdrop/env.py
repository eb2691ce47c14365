from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from dotenv import load_dotenv

from .constants import DEFAULT_API_URL, DEFAULT_TIMEOUT_SECONDS, LOGGER


@dataclass
class Settings:
    api_url: str = DEFAULT_API_URL
    timeout: int = DEFAULT_TIMEOUT_SECONDS
    max_retries: int = 0
    credentials_file: str | None = None


def is_truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_env_int(key: str, default: int) -> int:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{key} must be an integer value.")


def load_env(env_path: Path | None = None) -> None:
    env_path = env_path or Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(env_path, override=False)


def load_settings() -> Settings:
    load_env()

    api_url = os.getenv("VAULTDROP_API_URL", "").strip() or DEFAULT_API_URL
    parsed = urlparse(api_url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise RuntimeError(
            "VAULTDROP_API_URL must be an http(s) URL (for example: "
            "https://api.vaultdrop.io)."
        )

    max_retries = _get_env_int("VAULTDROP_MAX_RETRIES", 0)
    if max_retries < 0:
        raise RuntimeError("VAULTDROP_MAX_RETRIES must not be negative.")

    return Settings(
        api_url=api_url.rstrip("/"),
        timeout=_get_env_int("VAULTDROP_TIMEOUT", DEFAULT_TIMEOUT_SECONDS),
        max_retries=max_retries,
        credentials_file=os.getenv("VAULTDROP_CREDENTIALS_FILE", "").strip() or None,
    )


def setup_logging() -> bool:
    debug_enabled = is_truthy(os.getenv("VAULTDROP_DEBUG"))
    if debug_enabled:
        logging.basicConfig(level=logging.INFO)
        LOGGER.setLevel(logging.INFO)
    return debug_enabled
