from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from hunter_system.constants import DEFAULT_ENGINE_TUNING
from hunter_system.progression import effective_tuning

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    database_path: Path
    tz: str
    save_debounce_seconds: float
    engine_tuning_path: Path
    engine_tuning: dict[str, int]
    admin_panel_token: str | None
    admin_host: str
    admin_port: int


def _load_env_file(path: Path) -> None:
    if not path.exists():
        return
    for line in path.read_text().splitlines():
        raw = line.strip()
        if not raw or raw.startswith("#") or "=" not in raw:
            continue
        key, value = raw.split("=", maxsplit=1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _parse_float(value: str | None, default: float) -> float:
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def _parse_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def load_engine_tuning(path: Path) -> dict[str, int]:
    """Merge integer overrides from a YAML mapping over the engine defaults."""
    if not path.exists():
        return effective_tuning()

    raw = yaml.safe_load(path.read_text()) or {}
    overrides: dict[str, int] = {}
    if isinstance(raw, dict):
        for key, value in raw.items():
            if key not in DEFAULT_ENGINE_TUNING:
                logger.warning("ignoring unknown engine tuning key %s", key)
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                logger.warning("ignoring invalid engine tuning %s=%r", key, value)
                continue
            overrides[str(key)] = value
    return effective_tuning(overrides)


def load_settings() -> Settings:
    _load_env_file(Path(".env"))

    tuning_path = Path(os.getenv("ENGINE_TUNING_CONFIG", "./engine_tuning.yaml"))
    return Settings(
        database_path=Path(os.getenv("DATABASE_PATH", "./data/hunter.db")),
        tz=os.getenv("TZ", "UTC"),
        save_debounce_seconds=_parse_float(os.getenv("SAVE_DEBOUNCE_SECONDS"), 2.0),
        engine_tuning_path=tuning_path,
        engine_tuning=load_engine_tuning(tuning_path),
        admin_panel_token=os.getenv("ADMIN_PANEL_TOKEN"),
        admin_host=os.getenv("ADMIN_HOST", "127.0.0.1"),
        admin_port=_parse_int(os.getenv("ADMIN_PORT"), 8080),
    )
