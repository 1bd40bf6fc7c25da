from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parents[3]
ENV_PATH = BASE_DIR / ".env"

DOCUMENTS_PATH = Path(os.path.expanduser("~")) / "Documents"
DEFAULT_APP_NAME = "Mentorship Attendance Tracker"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}.") from exc


def _env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_data_dir: Path
    database_path: Path
    cache_ttl_seconds: float = 300.0
    document_host: str = "docs.google.com"
    log_level: str = "INFO"
    log_format: str = "plain"
    google_credentials_json: Optional[str] = None
    roster_sheet_id: str = ""
    attendance_sheet_id: str = ""
    attendance_tab: str = "Form Responses 1"
    ten_session_tab: str = "10-Session Student Info"
    twenty_five_session_tab: str = "25-Session Student Info"
    continuing_tab: str = "Continuing Students"

    @property
    def uses_sheets(self) -> bool:
        return bool(self.google_credentials_json and self.roster_sheet_id)

    @classmethod
    def from_env(cls) -> "Settings":
        app_name = _env_str("APP_NAME", DEFAULT_APP_NAME)
        app_data_dir = Path(_env_str("APP_DATA_DIR", str(DOCUMENTS_PATH / app_name))).expanduser()
        database_path = Path(_env_str("DATABASE_PATH", str(app_data_dir / "attendance.db"))).expanduser()

        roster_sheet_id = _env_str("GOOGLE_SHEETS_ID")
        log_format = _env_str("LOG_FORMAT", "plain").lower()
        if log_format not in ("plain", "json"):
            raise ValueError(f"LOG_FORMAT must be 'plain' or 'json', got {log_format!r}.")

        return cls(
            app_name=app_name,
            app_data_dir=app_data_dir,
            database_path=database_path,
            cache_ttl_seconds=_env_float("CACHE_TTL_SECONDS", 300.0),
            document_host=_env_str("DOCUMENT_HOST", "docs.google.com").lower(),
            log_level=_env_str("LOG_LEVEL", "INFO").upper(),
            log_format=log_format,
            google_credentials_json=os.getenv("GOOGLE_SHEETS_CREDENTIALS") or None,
            roster_sheet_id=roster_sheet_id,
            attendance_sheet_id=_env_str("GOOGLE_SHEETS_ATTENDANCE_ID", roster_sheet_id),
            attendance_tab=_env_str("GOOGLE_SHEETS_ATTENDANCE_TAB", "Form Responses 1"),
            ten_session_tab=_env_str("GOOGLE_SHEETS_10_SESSION_TAB", "10-Session Student Info"),
            twenty_five_session_tab=_env_str("GOOGLE_SHEETS_25_SESSION_TAB", "25-Session Student Info"),
            continuing_tab=_env_str("GOOGLE_SHEETS_CONTINUING_TAB", "Continuing Students"),
        )

    def __repr__(self) -> str:
        # Credentials never show up in logs.
        return (
            f"Settings(app_name={self.app_name!r}, "
            f"database_path={str(self.database_path)!r}, "
            f"cache_ttl_seconds={self.cache_ttl_seconds}, "
            f"document_host={self.document_host!r}, "
            f"log_level={self.log_level!r}, "
            f"log_format={self.log_format!r}, "
            f"sheets={'configured' if self.uses_sheets else 'off'})"
        )


def load_settings(env_path: Path | None = ENV_PATH) -> Settings:
    if env_path is not None and env_path.exists():
        load_dotenv(env_path)
    return Settings.from_env()


settings = load_settings()


def refresh_settings(env_path: Path | None = ENV_PATH) -> Settings:
    """Rebuild the module-level settings object from the current environment."""

    global settings

    settings = load_settings(env_path)
    return settings
