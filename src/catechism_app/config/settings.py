from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from catechism_app.config.user_settings_store import UserSettingsStore

BASE_DIR = Path(__file__).resolve().parents[2]
ENV_PATH = BASE_DIR / ".env"
load_dotenv(ENV_PATH)

APP_NAME = os.getenv("APP_NAME", "Catechism Class Reports")
user_settings_store = UserSettingsStore()

APP_DATA_DIR = user_settings_store.app_data_dir


def _optional_int(value: str | int | None) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


def _build_settings(app_data_dir: Path) -> "Settings":
    return Settings(
        app_name=APP_NAME,
        database_path=Path(os.getenv("DATABASE_PATH", str(app_data_dir / "catechism.db"))),
        report_output_dir=Path(
            os.getenv("REPORT_OUTPUT_DIR")
            or user_settings_store.get("report_output_dir", str(app_data_dir / "reports"))
        ).expanduser(),
        default_total_weeks=_optional_int(
            os.getenv("DEFAULT_TOTAL_WEEKS", user_settings_store.get("default_total_weeks"))
        ),
        supabase_url=os.getenv("SUPABASE_URL") or None,
        supabase_key=os.getenv("SUPABASE_KEY") or None,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        image_scale=int(os.getenv("IMAGE_SCALE", user_settings_store.get("image_scale", 2))),
    )


@dataclass(frozen=True)
class Settings:
    app_name: str
    database_path: Path
    report_output_dir: Path
    default_total_weeks: int | None = None
    supabase_url: str | None = None
    supabase_key: str | None = None
    log_level: str = "INFO"
    image_scale: int = 2

    def __str__(self) -> str:
        return (
            f"Settings(app_name={self.app_name}, "
            f"database_path={self.database_path}, "
            f"report_output_dir={self.report_output_dir}, "
            f"default_total_weeks={self.default_total_weeks}, "
            f"supabase_url={self.supabase_url}, "
            f"log_level={self.log_level}, "
            f"image_scale={self.image_scale})"
        )


settings = _build_settings(APP_DATA_DIR)


def refresh_settings_from_store() -> Settings:
    """Rebuild the settings object from the current user store values."""

    global settings, APP_DATA_DIR  # noqa: PLW0603 - module-level singletons

    user_settings_store.reload()
    APP_DATA_DIR = user_settings_store.app_data_dir
    settings = _build_settings(APP_DATA_DIR)
    return settings
