"""Telegram-to-core message mapping adapter.

This keeps Telethon-specific details out of the core pipeline.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from telethon.tl.types import PeerChannel, PeerChat, PeerUser

from core.identity import PEER_CHANNEL, PEER_CHAT, PEER_USER, conversation_id_for
from core.models import IncomingMessage

LOGGER = logging.getLogger(__name__)


def conversation_id_from_peer(peer_id: Any) -> Optional[int]:
    """Return the unified conversation id for a Telethon peer."""

    if isinstance(peer_id, PeerChannel):
        return conversation_id_for(PEER_CHANNEL, peer_id.channel_id)
    if isinstance(peer_id, PeerChat):
        return conversation_id_for(PEER_CHAT, peer_id.chat_id)
    if isinstance(peer_id, PeerUser):
        return conversation_id_for(PEER_USER, peer_id.user_id)
    return None


def build_incoming_message(message: Any) -> Optional[IncomingMessage]:
    """Build a core IncomingMessage from a Telethon Message."""

    peer_id = getattr(message, "peer_id", None)
    conversation_id = conversation_id_from_peer(peer_id)
    if conversation_id is None:
        LOGGER.debug("Unrecognized peer %r", peer_id)
        return None

    sender_id = getattr(message, "sender_id", None)
    return IncomingMessage(
        conversation_id=conversation_id,
        sender_id=int(sender_id) if sender_id is not None else None,
        # Media-only messages have no raw_text.
        text=getattr(message, "raw_text", None) or "",
    )


class TelegramIdentityResolver:
    """Resolver port implementation for Telethon events and messages."""

    def resolve(self, event: Any) -> Optional[IncomingMessage]:
        # NewMessage events wrap the Message; Message.message is the text itself.
        message = event if hasattr(event, "peer_id") else getattr(event, "message", None)
        return build_incoming_message(message)
