"""Static configuration for botfly.

Everything user-editable (bots, preloaded rules, API bind address, logging)
lives in a single JSON file; bot tokens stay in the environment.
"""

import json
import os

from dotenv import load_dotenv

from core.config import DEFAULT_LOG_CAPACITY, build_bot_configs

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# BOTFLY_CONFIG points at an alternative file, e.g. one per deployment.
CONFIG_PATH = os.getenv("BOTFLY_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Control API bind address.
_api = _CONFIG.get("api", {})
API_HOST = _api.get("host", "127.0.0.1")
API_PORT = int(_api.get("port", 8080))

# Per-bot log buffer size; the oldest entry is dropped past this size.
_logs = _CONFIG.get("logs", {})
LOG_CAPACITY = int(_logs.get("capacity", DEFAULT_LOG_CAPACITY))

# Bots known at startup, with their preloaded rules and logging flag.
BOTS = build_bot_configs(_CONFIG.get("bots", []))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
