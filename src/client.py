"""Client factories for tgreserve.

We explicitly manage the Telegram client's lifecycle (start/run_until_disconnected)
so it is obvious when the session is created and when it ends. This avoids
implicit context-manager behavior for a long-running watcher.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from telethon import TelegramClient
from telethon.sessions import StringSession

from adapters.openai_oracle import OpenAIOracle
from core.config import OracleSettings


def build_client() -> TelegramClient:
    """Create a Telethon client from environment variables.

    We read API_ID/API_HASH via python-dotenv to keep secrets out of the repo.
    Setting SESSION (even to an empty value) selects a StringSession; otherwise
    SESSION_NAME (default "tgreserve") names a local .session file.
    """

    load_dotenv()

    api_id = os.getenv("API_ID")
    api_hash = os.getenv("API_HASH")
    session_string = os.getenv("SESSION")
    session_name = os.getenv("SESSION_NAME", "tgreserve")

    # Fail fast on missing credentials to avoid an ambiguous login prompt.
    if not api_id or not api_hash:
        raise RuntimeError("Missing API_ID or API_HASH in environment")

    logging.getLogger(__name__).info("Initializing Telegram client")

    session = StringSession(session_string or None) if session_string is not None else session_name
    return TelegramClient(session, int(api_id), api_hash, connection_retries=5)


def build_oracle(settings: OracleSettings) -> OpenAIOracle:
    """Create the oracle adapter from OPENAI_API_KEY."""

    load_dotenv()

    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise RuntimeError("Missing OPENAI_API_KEY in environment")

    logging.getLogger(__name__).info("Initializing oracle client for %s", settings.model)

    return OpenAIOracle(settings, api_key=api_key)
