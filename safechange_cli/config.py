"""Configuration paths and scan defaults for SafeChange."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("SAFECHANGE_HOME", str(Path.home() / ".safechange"))).expanduser()
PLANS_DIR = BASE_DIR / "plans"
CONFIG_FILE = BASE_DIR / "config.toml"
PROJECT_CONFIG_NAME = "safechange.toml"

DEFAULT_SRC_DIR = "src"
SUPPORTED_EXTENSIONS = [".ts", ".js", ".svelte", ".vue", ".jsx", ".tsx"]
IGNORE_PATTERNS = ["node_modules", ".git", "dist", "build", ".svelte-kit"]
DEFAULT_MAX_WORKERS = 8
