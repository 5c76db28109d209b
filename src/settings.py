"""Static configuration for tgreserve.

All user-editable settings (watch list, criteria, oracle, logging) live in a
single JSON file for quick edits without touching Python. Secrets stay in
the environment (.env).
"""

import json
import os

from dotenv import load_dotenv

from core.config import OracleSettings
from core.criteria import build_criteria
from core.identity import build_watch_config

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# The config path can be overridden to run several watchers side by side.
CONFIG_PATH = os.getenv("TGRESERVE_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


_CONFIG = _load_json_config()

# Watch list and self-suppression. outreach_enabled=false only logs matching
# items and never messages sellers.
WATCH = build_watch_config(
    _CONFIG.get("watch", {}),
    env_chat_ids=os.getenv("CHAT_IDS"),
    env_ignore_user_id=os.getenv("IGNORE_USER_ID"),
)

# Acceptance criteria are validated once here; a bad section stops startup.
CRITERIA = build_criteria(_CONFIG.get("criteria", {}))

_oracle = _CONFIG.get("oracle", {})
ORACLE = OracleSettings(
    model=_oracle.get("model", "openai/gpt-4o-mini"),
    base_url=_oracle.get("base_url", "https://openrouter.ai/api/v1"),
    extraction_temperature=float(_oracle.get("extraction_temperature", 0.1)),
    generation_temperature=float(_oracle.get("generation_temperature", 0.8)),
    timeout_seconds=float(_oracle.get("timeout_seconds", 30)),
)

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
