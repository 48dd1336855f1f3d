from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import logging
import math
import os
import sys

from pst.domain.errors import ValidationError


@dataclass(frozen=True)
class AppPaths:
    base_dir: Path
    db_path: Path
    logs_dir: Path


def _windows_appdata() -> Path:
    return Path(os.environ.get("APPDATA", str(Path.home() / "AppData" / "Roaming")))


def _mac_app_support() -> Path:
    return Path.home() / "Library" / "Application Support"


def get_app_paths(app_name: str = "PhoneStockTracker") -> AppPaths:
    if sys.platform.startswith("win"):
        base = _windows_appdata() / app_name
    elif sys.platform == "darwin":
        base = _mac_app_support() / app_name
    else:
        base = Path.home() / f".{app_name.lower()}"

    logs = base / "logs"
    db = base / "stock.db"

    base.mkdir(parents=True, exist_ok=True)
    logs.mkdir(parents=True, exist_ok=True)

    return AppPaths(base_dir=base, db_path=db, logs_dir=logs)


@dataclass(frozen=True)
class Settings:
    backend: str = "sqlite"
    db_path: Optional[Path] = None
    rest_url: Optional[str] = None
    rest_key: Optional[str] = None
    rest_timeout: float = 10.0
    log_level: int = logging.INFO
    strict_stock: bool = False


_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _flag(raw: str, name: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValidationError(f"{name} must be a boolean. Received: {raw}")


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Settings from PST_* environment variables."""
    env = os.environ if environ is None else environ

    backend = env.get("PST_BACKEND", "sqlite").strip().lower()
    if backend not in ("sqlite", "rest"):
        raise ValidationError(f"PST_BACKEND must be 'sqlite' or 'rest'. Received: {backend}")

    rest_url = env.get("PST_REST_URL") or None
    rest_key = env.get("PST_REST_KEY") or None
    if backend == "rest" and not (rest_url and rest_key):
        raise ValidationError("PST_REST_URL and PST_REST_KEY are required for the rest backend.")

    try:
        timeout = float(env.get("PST_REST_TIMEOUT", "10"))
    except ValueError:
        raise ValidationError("PST_REST_TIMEOUT must be a number of seconds.") from None
    if not math.isfinite(timeout) or timeout <= 0:
        raise ValidationError(f"PST_REST_TIMEOUT must be a positive number of seconds. Received: {timeout}")

    level_name = env.get("PST_LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ValidationError(f"Unknown PST_LOG_LEVEL: {level_name}")

    db_path = env.get("PST_DB_PATH")
    return Settings(
        backend=backend,
        db_path=Path(db_path) if db_path else None,
        rest_url=rest_url,
        rest_key=rest_key,
        rest_timeout=timeout,
        log_level=level,
        strict_stock=_flag(env.get("PST_STRICT_STOCK", ""), "PST_STRICT_STOCK"),
    )
