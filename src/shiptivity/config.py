"""Load optional Shiptivity configuration from ``shiptivity.yaml``."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from .constants import (
    CONFIG_ENV_VAR,
    CONFIG_FILE,
    DB_PATH_ENV_VAR,
    DEFAULT_BUSY_TIMEOUT_SECONDS,
    DEFAULT_DB_PATH,
    DEFAULT_HOST,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PORT,
    LOG_LEVEL_ENV_VAR,
)
from .io_utils import _load_data_with_error

VALID_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class Settings:
    db_path: Path
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = DEFAULT_LOG_LEVEL
    busy_timeout: float = DEFAULT_BUSY_TIMEOUT_SECONDS


def resolve_config_path(explicit: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> Path:
    """Pick the config file: ``--config``, then ``$SHIPTIVITY_CONFIG``, then ``./shiptivity.yaml``."""
    env = os.environ if env is None else env
    if explicit:
        return Path(explicit).expanduser()
    from_env = env.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env).expanduser()
    return Path.cwd() / CONFIG_FILE


def load_config(path: Path) -> tuple[dict[str, Any], str | None]:
    """Load the optional config file.

    Args:
        path: Config file location.

    Returns:
        A tuple of `(config, error_message)`. If the file is missing, returns `({}, None)`.
    """
    data, err = _load_data_with_error(path, {})
    if err:
        return {}, err
    return data, None


def _get_int(config: dict[str, Any], key: str, default: int) -> int:
    raw = config.get(key)
    if isinstance(raw, bool):
        return default
    try:
        return int(raw) if raw is not None else default
    except (TypeError, ValueError):
        return default


def _get_float(config: dict[str, Any], key: str, default: float) -> float:
    raw = config.get(key)
    try:
        value = float(raw) if raw is not None else default
    except (TypeError, ValueError):
        return default
    return value if value >= 0 else default


def _get_log_level(raw: Any) -> str | None:
    if isinstance(raw, str) and raw.upper() in VALID_LOG_LEVELS:
        return raw.upper()
    return None


def build_settings(
    config: dict[str, Any],
    *,
    env: Optional[Mapping[str, str]] = None,
    db_path: Optional[str] = None,
    log_level: Optional[str] = None,
    base_dir: Optional[Path] = None,
) -> Settings:
    """Merge defaults, the config mapping, environment and CLI overrides.

    Relative ``db_path`` values from the config file resolve against
    *base_dir* (the config file's directory); everything else is relative to
    the working directory.
    """
    env = os.environ if env is None else env

    raw_db = config.get("db_path")
    resolved_db = Path(raw_db).expanduser() if isinstance(raw_db, str) and raw_db else Path(DEFAULT_DB_PATH)
    if base_dir is not None and isinstance(raw_db, str) and raw_db and not resolved_db.is_absolute():
        resolved_db = base_dir / resolved_db
    if env.get(DB_PATH_ENV_VAR):
        resolved_db = Path(env[DB_PATH_ENV_VAR]).expanduser()
    if db_path:
        resolved_db = Path(db_path).expanduser()

    level = (
        _get_log_level(log_level)
        or _get_log_level(env.get(LOG_LEVEL_ENV_VAR))
        or _get_log_level(config.get("log_level"))
        or DEFAULT_LOG_LEVEL
    )

    host = config.get("host")
    return Settings(
        db_path=resolved_db,
        host=host if isinstance(host, str) and host else DEFAULT_HOST,
        port=_get_int(config, "port", DEFAULT_PORT),
        log_level=level,
        busy_timeout=_get_float(config, "busy_timeout", DEFAULT_BUSY_TIMEOUT_SECONDS),
    )
