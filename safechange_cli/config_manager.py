"""Configuration manager for SafeChange scans using TOML files.

Two files are consulted, later ones winning:

1. ``~/.safechange/config.toml`` (user-wide, written by ``sc config set``)
2. ``./safechange.toml`` in the current working directory (project-local)

Only the ``[scan]`` section is read.  Recognised keys are ``root``,
``extensions``, ``ignore_patterns`` and ``max_workers``.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import toml

from . import config

logger = logging.getLogger(__name__)

SCAN_KEYS = ("root", "extensions", "ignore_patterns", "max_workers")


@dataclass
class ScanConfig:
    """Effective scan settings."""
    root: str = config.DEFAULT_SRC_DIR
    extensions: List[str] = field(default_factory=lambda: list(config.SUPPORTED_EXTENSIONS))
    ignore_patterns: List[str] = field(default_factory=lambda: list(config.IGNORE_PATTERNS))
    max_workers: int = config.DEFAULT_MAX_WORKERS

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _read_toml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return {}


def load_full_config() -> Dict[str, Any]:
    """Load the entire user TOML config (all sections)."""
    return _read_toml(config.CONFIG_FILE)


def _save_full_config(data: Dict[str, Any]) -> bool:
    """Write entire config dict to TOML file, preserving all sections."""
    config.CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    try:
        with open(config.CONFIG_FILE, "w", encoding="utf-8") as f:
            toml.dump(data, f)
        return True
    except OSError as exc:
        logger.error("Could not write %s: %s", config.CONFIG_FILE, exc)
        return False


def _coerce(key: str, value: Any) -> Any:
    """Normalise a raw TOML or command-line value for *key*."""
    if key in ("extensions", "ignore_patterns"):
        if isinstance(value, str):
            value = [item.strip() for item in value.split(",") if item.strip()]
        items = [str(item) for item in value]
        if key == "extensions":
            items = [item if item.startswith(".") else f".{item}" for item in items]
        return items
    if key == "max_workers":
        workers = int(value)
        if workers < 1:
            raise ValueError("max_workers must be at least 1")
        return workers
    return str(value)


def load_scan_config(project_dir: Optional[Path] = None) -> ScanConfig:
    """Merge defaults, user config and project config into a ScanConfig."""
    merged: Dict[str, Any] = {}
    user_scan = load_full_config().get("scan", {})
    project_file = (project_dir or Path.cwd()) / config.PROJECT_CONFIG_NAME
    project_scan = _read_toml(project_file).get("scan", {})

    for source in (user_scan, project_scan):
        for key in SCAN_KEYS:
            if key in source:
                try:
                    merged[key] = _coerce(key, source[key])
                except (TypeError, ValueError) as exc:
                    logger.warning("Invalid value for scan.%s: %s", key, exc)

    return ScanConfig(**merged)


def set_scan_value(key: str, value: str) -> bool:
    """Persist a single ``[scan]`` key in the user config.

    Args:
        key: One of ``root``, ``extensions``, ``ignore_patterns``, ``max_workers``
        value: Raw value; list keys accept comma-separated strings

    Returns:
        True if saved successfully, False otherwise

    Raises:
        KeyError: If *key* is not a recognised scan option
        ValueError: If *value* cannot be coerced
    """
    if key not in SCAN_KEYS:
        raise KeyError(key)
    data = load_full_config()
    scan = data.setdefault("scan", {})
    scan[key] = _coerce(key, value)
    return _save_full_config(data)


def reset_scan_config() -> bool:
    """Drop the ``[scan]`` section, restoring defaults."""
    data = load_full_config()
    if "scan" not in data:
        return True
    del data["scan"]
    return _save_full_config(data)
