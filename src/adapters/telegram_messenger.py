"""Telegram direct-message adapter.

Sends the reservation inquiry from the logged-in account to the seller.
"""

from __future__ import annotations

import logging

from telethon import errors

LOGGER = logging.getLogger(__name__)


class TelegramMessenger:
    """Messenger port implementation backed by a Telethon client."""

    def __init__(self, client) -> None:
        self._client = client

    async def send_direct_message(self, user_id: int, text: str) -> bool:
        """Send ``text`` to ``user_id``; report failures as False."""

        try:
            await self._client.send_message(user_id, text)
        except errors.FloodWaitError as e:
            LOGGER.warning("Flood wait of %ss while messaging %s", e.seconds, user_id)
            return False
        except errors.RPCError as e:
            LOGGER.warning("Telegram refused message to %s: %s", user_id, e)
            return False
        except (ValueError, ConnectionError) as e:
            # ValueError: Telethon could not resolve the entity from its cache.
            LOGGER.warning("Could not message %s: %s", user_id, e)
            return False
        return True
