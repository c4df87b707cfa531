from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

OUTPUT_BASE_DIR_ENV = "OUTPUT_BASE_DIR"
LOGO_URL_ENV = "INCIDENT_LOGO_URL"
LOGO_TIMEOUT_ENV = "INCIDENT_LOGO_TIMEOUT"
FETCH_LOGO_ENV = "INCIDENT_FETCH_LOGO"
DEPARTMENT_NAME_ENV = "INCIDENT_DEPARTMENT_NAME"

DEFAULT_LOGO_URL = "https://dothis.to/goteam/files/16fd994f-dce3-11ec-ae5c-060273b163f6"
DEFAULT_LOGO_TIMEOUT_S = 10.0
DEFAULT_DEPARTMENT_NAME = "People and Culture Department"


@dataclass(frozen=True)
class Branding:
    department_name: str = DEFAULT_DEPARTMENT_NAME
    wordmark_primary: str = "Go"
    wordmark_secondary: str = "Team"
    tagline: str = "It's better together!"


def load_env() -> None:
    env_path = find_dotenv(usecwd=True)
    load_dotenv(env_path, override=False)


def _get_env_path(name: str) -> Path | None:
    value = os.getenv(name, "").strip()
    if not value:
        return None
    return Path(value)


def get_output_base_dir() -> Path | None:
    return _get_env_path(OUTPUT_BASE_DIR_ENV)


def get_logo_url() -> str:
    return os.getenv(LOGO_URL_ENV, "").strip() or DEFAULT_LOGO_URL


def get_logo_timeout(default: float = DEFAULT_LOGO_TIMEOUT_S) -> float:
    value = os.getenv(LOGO_TIMEOUT_ENV, "").strip()
    if not value:
        return default
    try:
        timeout = float(value)
    except ValueError:
        return default
    return timeout if timeout > 0 else default


def get_fetch_logo(default: bool = True) -> bool:
    value = os.getenv(FETCH_LOGO_ENV, "").strip()
    if not value:
        return default
    return value.lower() in {"1", "true", "yes", "y", "on"}


def get_branding() -> Branding:
    department = os.getenv(DEPARTMENT_NAME_ENV, "").strip()
    return Branding(department_name=department or DEFAULT_DEPARTMENT_NAME)
