"""Paths and default values used across the project."""

from pathlib import Path

# Base directory for all taskbridge data
TASKBRIDGE_HOME = Path.home() / ".taskbridge"

CONFIG_DIR = TASKBRIDGE_HOME
CONFIG_FILE = CONFIG_DIR / "config.json"
ENV_FILE = TASKBRIDGE_HOME / ".env"

# Executor defaults
OPENSERV_API_URL = "https://api.openserv.ai"

# Tracking defaults
DEFAULT_TIMEOUT_SECONDS = 120.0
DEFAULT_POLL_INTERVAL_SECONDS = 5.0

# Server defaults
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 7378
