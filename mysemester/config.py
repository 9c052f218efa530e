"""
Runtime configuration.

All settings come from environment variables so that the CLI, tests and
other callers can override them without touching files:

    MYSEMESTER_DATA_DIR        directory of the local JSON task store
    MYSEMESTER_USER            user id the tasks are stored under
    MYSEMESTER_ACADEMIC_YEAR   fixed academic start year (e.g. 2025)
    MYSEMESTER_REMOTE_URL      Supabase/PostgREST project URL (enables the remote store)
    MYSEMESTER_REMOTE_KEY      API key for the remote store
    MYSEMESTER_ACCESS_TOKEN    user access token (defaults to the API key)
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from mysemester.storage import JsonTaskStore, StorageContext, TaskStore


APP_NAME = "MySemester"
DEFAULT_USER = "local"


def default_data_dir() -> Path:
    """
    Per-OS user data location used when MYSEMESTER_DATA_DIR is not set.
    """
    home = Path.home()
    if sys.platform == "darwin":
        return home / "Library" / "Application Support" / APP_NAME
    if sys.platform.startswith("win"):
        roaming = os.environ.get("APPDATA")
        return Path(roaming) / APP_NAME if roaming else home / "AppData" / "Roaming" / APP_NAME
    return home / ".local" / "share" / "mysemester"


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    user_id: str = DEFAULT_USER
    academic_year: Optional[int] = None
    remote_url: Optional[str] = None
    remote_key: Optional[str] = None
    access_token: Optional[str] = None

    @property
    def uses_remote(self) -> bool:
        return bool(self.remote_url)

    def storage_context(self) -> StorageContext:
        return StorageContext(
            user_id=self.user_id,
            data_dir=self.data_dir,
            remote_url=self.remote_url,
            api_key=self.remote_key,
            access_token=self.access_token,
        )


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from the environment (os.environ by default).

    Raises ValueError if MYSEMESTER_ACADEMIC_YEAR is not an integer.
    """
    env = os.environ if environ is None else environ

    data_dir_raw = _clean(env.get("MYSEMESTER_DATA_DIR"))
    data_dir = Path(data_dir_raw).expanduser() if data_dir_raw else default_data_dir()

    year_raw = _clean(env.get("MYSEMESTER_ACADEMIC_YEAR"))
    try:
        academic_year = int(year_raw) if year_raw else None
    except ValueError as exc:
        raise ValueError(f"MYSEMESTER_ACADEMIC_YEAR must be a year, got {year_raw!r}") from exc

    return Settings(
        data_dir=data_dir,
        user_id=_clean(env.get("MYSEMESTER_USER")) or DEFAULT_USER,
        academic_year=academic_year,
        remote_url=_clean(env.get("MYSEMESTER_REMOTE_URL")),
        remote_key=_clean(env.get("MYSEMESTER_REMOTE_KEY")),
        access_token=_clean(env.get("MYSEMESTER_ACCESS_TOKEN")),
    )


def open_store(settings: Settings) -> TaskStore:
    """
    The remote store when a remote URL is configured, otherwise the local JSON file.
    """
    if settings.uses_remote:
        from mysemester.remote import RemoteTaskStore

        return RemoteTaskStore()
    return JsonTaskStore()
