"""Helpers for the unified conversation id space.

Telegram addresses broadcast channels, basic groups and users with separate
id counters. We fold them into one signed integer space so the watch list
can hold plain integers:

- channel / supergroup ``c`` -> ``-100<c>`` (``-(10**12 + c)``)
- basic group ``g`` -> ``-g``
- user ``u`` -> ``u``
"""

from __future__ import annotations

from typing import FrozenSet, Iterable, Optional, Union

from core.config import WatchConfig

CHANNEL_OFFSET = 1000000000000

PEER_CHANNEL = "channel"
PEER_CHAT = "chat"
PEER_USER = "user"


def conversation_id_for(peer_kind: str, raw_id: int) -> Optional[int]:
    """Return the unified id for a peer, or None for unknown peer kinds."""

    if raw_id is None or raw_id < 0:
        return None
    if peer_kind == PEER_CHANNEL:
        return -(CHANNEL_OFFSET + raw_id)
    if peer_kind == PEER_CHAT:
        return -raw_id
    if peer_kind == PEER_USER:
        return raw_id
    return None


def parse_conversation_id(raw: Union[int, str]) -> int:
    """Parse one configured conversation id (``-100123``, ``-42``, ``7``)."""

    if isinstance(raw, bool):
        raise ValueError(f"Invalid conversation id: {raw!r}")
    if isinstance(raw, int):
        return raw
    text = str(raw).strip()
    if text.startswith("chat_id:"):
        text = text.split("chat_id:", 1)[1]
    try:
        return int(text)
    except ValueError:
        raise ValueError(f"Invalid conversation id: {raw!r}") from None


def parse_conversation_ids(raw_values: Iterable[Union[int, str]]) -> FrozenSet[int]:
    ids = set()
    for raw in raw_values:
        if isinstance(raw, str) and not raw.strip():
            continue
        ids.add(parse_conversation_id(raw))
    return frozenset(ids)


def parse_id_list(raw: str) -> FrozenSet[int]:
    """Parse a comma-separated id list as found in the CHAT_IDS variable."""

    return parse_conversation_ids(raw.split(","))


def build_watch_config(
    watch_config: dict,
    env_chat_ids: Optional[str] = None,
    env_ignore_user_id: Optional[str] = None,
) -> WatchConfig:
    """Normalize the watch config section.

    Non-empty CHAT_IDS / IGNORE_USER_ID values from the environment win over
    config.json.
    """

    if env_chat_ids:
        conversation_ids = parse_id_list(env_chat_ids)
    else:
        conversation_ids = parse_conversation_ids(watch_config.get("chat_ids", []))

    raw_ignored = env_ignore_user_id or watch_config.get("ignore_user_id")
    if raw_ignored is None or raw_ignored == "":
        ignored_sender_id = None
    else:
        ignored_sender_id = parse_conversation_id(raw_ignored)

    outreach_enabled = watch_config.get("outreach_enabled", True)
    if not isinstance(outreach_enabled, bool):
        raise ValueError(f"watch.outreach_enabled must be true or false, got {outreach_enabled!r}")

    return WatchConfig(
        conversation_ids=conversation_ids,
        ignored_sender_id=ignored_sender_id,
        outreach_enabled=outreach_enabled,
    )
