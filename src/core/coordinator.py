"""Core dispatch pipeline.

This module is integration-agnostic. It only relies on ports for identity
resolution, oracle access, and messaging, enabling other transports or
models without changes here.

Every event runs through a strict order:
1) Resolve identity into the unified id space
2) Fast-exit for unwatched conversations and the ignored sender
3) Extract the offered item
4) Evaluate acceptance criteria
5) Per-sender dedup, compose, send, record
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from core.composer import OutreachComposer
from core.config import AcceptanceCriteria, WatchConfig
from core.criteria import explain_criteria, meets_criteria
from core.dispatch import DispatchRecord
from core.extractor import StructuredExtractor
from core.models import DispatchOutcome, DispatchResult, ExtractedItem
from core.ports import IdentityResolverPort, MessengerPort

LOGGER = logging.getLogger(__name__)


def _dropped(reason: str, item: Optional[ExtractedItem] = None) -> DispatchResult:
    return DispatchResult(outcome=DispatchOutcome.DROPPED, reason=reason, item=item)


class DispatchCoordinator:
    """Orchestrates extraction, criteria, dedup, and outreach for one event."""

    def __init__(
        self,
        resolver: IdentityResolverPort,
        extractor: StructuredExtractor,
        criteria: AcceptanceCriteria,
        composer: OutreachComposer,
        messenger: MessengerPort,
        watch: WatchConfig,
        record: Optional[DispatchRecord] = None,
    ) -> None:
        self._resolver = resolver
        self._extractor = extractor
        self._criteria = criteria
        self._composer = composer
        self._messenger = messenger
        self._watch = watch
        self._record = record if record is not None else DispatchRecord()

    async def handle(self, event: Any) -> DispatchResult:
        """Process one inbound event through the pipeline."""

        message = self._resolver.resolve(event)
        if message is None:
            LOGGER.debug("Dropping event with unrecognized peer")
            return _dropped("unresolved_identity")

        if message.conversation_id not in self._watch.conversation_ids:
            return _dropped("not_watched")

        if message.sender_id is None:
            LOGGER.debug("Dropping message without sender in %s", message.conversation_id)
            return _dropped("no_sender")

        LOGGER.info("New message from user %s in chat %s", message.sender_id, message.conversation_id)

        # Never react to the operator's own messages.
        if message.sender_id == self._watch.ignored_sender_id:
            LOGGER.info("Ignoring message from user %s", message.sender_id)
            return _dropped("ignored_sender")

        item = await self._extractor.extract(message.text)
        if item is None:
            return _dropped("no_item")

        if not meets_criteria(item, self._criteria):
            LOGGER.debug(
                "Item from %s rejected (failed: %s)",
                message.sender_id,
                ", ".join(explain_criteria(item, self._criteria)),
            )
            return _dropped("criteria", item)

        LOGGER.info("Item from %s matches criteria: %s", message.sender_id, item.describe())
        if not self._watch.outreach_enabled:
            return DispatchResult(outcome=DispatchOutcome.LOGGED, reason="outreach_disabled", item=item)

        return await self._dispatch(message.sender_id, item)

    async def _dispatch(self, sender_id: int, item: ExtractedItem) -> DispatchResult:
        # The lock is per sender, so other sellers' events keep flowing while
        # this one waits on the oracle or the send.
        async with self._record.claim(sender_id):
            if self._record.is_dispatched(sender_id):
                LOGGER.info("Already contacted user %s in this run, skipping", sender_id)
                return DispatchResult(
                    outcome=DispatchOutcome.SUPPRESSED, reason="already_dispatched", item=item
                )

            text = await self._composer.compose(item)
            try:
                sent = await self._messenger.send_direct_message(sender_id, text)
            except Exception:
                LOGGER.exception("Sending reservation message to %s failed", sender_id)
                sent = False

            # Failed sends are not recorded, so a later message from the same
            # seller may trigger one more attempt. There is no retry loop.
            if not sent:
                LOGGER.warning("Reservation message to %s was not delivered", sender_id)
                return _dropped("send_failed", item)

            self._record.mark_dispatched(sender_id)
            LOGGER.info("Reservation message sent to %s: %s", sender_id, text)
            return DispatchResult(outcome=DispatchOutcome.DISPATCHED, reason="sent", item=item)
