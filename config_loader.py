from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import asdict, dataclass
from pathlib import Path

from models import DataSourceType

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = "contact_extractor_settings.json"

ENV_SOURCE = "CONTACT_EXTRACTOR_SOURCE"
ENV_EXPORT_DIR = "CONTACT_EXTRACTOR_EXPORT_DIR"
ENV_LOG_LEVEL = "CONTACT_EXTRACTOR_LOG_LEVEL"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class Settings:
    default_source: DataSourceType = DataSourceType.EUROPE_PMC
    export_dir: Path = Path("data")
    log_level: str = "INFO"


def _app_dir() -> Path:
    """
    Directory to store config next to the .exe when packaged, or next to this file in dev.
    """
    if getattr(sys, "frozen", False):  # PyInstaller exe
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parent


def _settings_path() -> Path:
    return _app_dir() / SETTINGS_FILENAME


def _parse_source(value, fallback: DataSourceType) -> DataSourceType:
    if not value:
        return fallback
    try:
        return DataSourceType.from_name(str(value))
    except ValueError:
        logger.warning("Ignoring unknown data source %r in settings; using %s", value, fallback.label)
        return fallback


def load_settings() -> Settings:
    """
    Load settings from:
      1) contact_extractor_settings.json next to the exe
      2) Environment variables (override the file)
    """
    settings = Settings()

    p = _settings_path()
    if p.exists():
        try:
            stored = json.loads(p.read_text(encoding="utf-8", errors="ignore") or "{}")
        except json.JSONDecodeError:
            logger.warning("Settings file %s is not valid JSON; using defaults", p)
            stored = {}
        settings.default_source = _parse_source(stored.get("default_source"), settings.default_source)
        if stored.get("export_dir"):
            settings.export_dir = Path(stored["export_dir"])
        if stored.get("log_level"):
            settings.log_level = str(stored["log_level"]).upper()

    settings.default_source = _parse_source(os.getenv(ENV_SOURCE, "").strip(), settings.default_source)
    env_dir = os.getenv(ENV_EXPORT_DIR, "").strip()
    if env_dir:
        settings.export_dir = Path(env_dir)
    env_level = os.getenv(ENV_LOG_LEVEL, "").strip()
    if env_level:
        settings.log_level = env_level.upper()

    return settings


def save_settings(settings: Settings) -> None:
    """
    Save settings next to the exe.
    """
    data = asdict(settings)
    data["default_source"] = settings.default_source.value
    data["export_dir"] = str(settings.export_dir)
    _settings_path().write_text(json.dumps(data, indent=2), encoding="utf-8")


def delete_settings() -> None:
    p = _settings_path()
    if p.exists():
        p.unlink()


def resolve_export_dir(configured: Path) -> Path:
    """
    Relative export dirs live next to the exe (or this file in dev), not the cwd.
    """
    d = configured if configured.is_absolute() else _app_dir() / configured
    d.mkdir(exist_ok=True, parents=True)
    return d


def setup_logging(level: str = "INFO") -> None:
    numeric = logging.getLevelName(str(level).upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO
    logging.basicConfig(level=numeric, format=LOG_FORMAT)
