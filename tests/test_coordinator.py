from __future__ import annotations

import asyncio
from typing import Optional

from core.composer import OutreachComposer
from core.config import OracleSettings, WatchConfig
from core.coordinator import DispatchCoordinator
from core.criteria import build_criteria
from core.dispatch import DispatchRecord
from core.extractor import StructuredExtractor
from core.models import DispatchOutcome, IncomingMessage
from fakes import FakeGenerationOracle, FakeMessenger, FakeStructuredOracle, PassthroughResolver

CHAT_ID = -1001234567890
SELLER_ID = 555
OPERATOR_ID = 42

MATCHING_PAYLOAD = {
    "item_name": "Old TV Stand",
    "category": "furniture",
    "price": 20,
    "location": "Limassol, near the marina",
    "is_free": False,
}


def _criteria():
    return build_criteria(
        {
            "max_price": 40,
            "required_category": "furniture",
            "location_substrings": ["limassol", "лимассол"],
            "name_substrings": ["tv stand", "тумбочка", "телевизор"],
        }
    )


class Harness:
    def __init__(
        self,
        payload: Optional[dict] = None,
        messenger: Optional[FakeMessenger] = None,
        outreach_enabled: bool = True,
        record: Optional[DispatchRecord] = None,
    ) -> None:
        settings = OracleSettings(timeout_seconds=5)
        self.structured = FakeStructuredOracle(payload if payload is not None else MATCHING_PAYLOAD)
        self.generation = FakeGenerationOracle(text="Привет! Тумбочка еще актуальна?")
        self.messenger = messenger or FakeMessenger()
        self.record = record if record is not None else DispatchRecord()
        self.coordinator = DispatchCoordinator(
            resolver=PassthroughResolver(),
            extractor=StructuredExtractor(self.structured, settings),
            criteria=_criteria(),
            composer=OutreachComposer(self.generation, settings),
            messenger=self.messenger,
            watch=WatchConfig(
                conversation_ids=frozenset({CHAT_ID}),
                ignored_sender_id=OPERATOR_ID,
                outreach_enabled=outreach_enabled,
            ),
            record=self.record,
        )

    def handle(self, event):
        return asyncio.run(self.coordinator.handle(event))


def _message(
    sender_id: Optional[int] = SELLER_ID,
    conversation_id: int = CHAT_ID,
    text: str = "Продам тумбочку под ТВ, 20 евро, Лимассол",
) -> IncomingMessage:
    return IncomingMessage(conversation_id=conversation_id, sender_id=sender_id, text=text)


def test_matching_message_is_dispatched_once() -> None:
    harness = Harness()

    result = harness.handle(_message())

    assert result.outcome is DispatchOutcome.DISPATCHED
    assert harness.messenger.sent == [(SELLER_ID, "Привет! Тумбочка еще актуальна?")]
    assert harness.record.is_dispatched(SELLER_ID)


def test_second_match_from_same_sender_is_suppressed() -> None:
    harness = Harness()

    harness.handle(_message())
    result = harness.handle(_message(text="Еще одна тумбочка, 10 евро"))

    assert result.outcome is DispatchOutcome.SUPPRESSED
    assert result.reason == "already_dispatched"
    assert len(harness.messenger.sent) == 1


def test_concurrent_matches_from_same_sender_send_once() -> None:
    harness = Harness()

    async def _run():
        return await asyncio.gather(
            harness.coordinator.handle(_message()),
            harness.coordinator.handle(_message()),
        )

    results = asyncio.run(_run())

    outcomes = sorted(result.outcome.value for result in results)
    assert outcomes == ["dispatched", "suppressed"]
    assert len(harness.messenger.sent) == 1


def test_concurrent_matches_from_different_senders_both_send() -> None:
    harness = Harness()

    async def _run():
        return await asyncio.gather(
            harness.coordinator.handle(_message(sender_id=1)),
            harness.coordinator.handle(_message(sender_id=2)),
        )

    results = asyncio.run(_run())

    assert all(result.outcome is DispatchOutcome.DISPATCHED for result in results)
    assert sorted(user_id for user_id, _ in harness.messenger.sent) == [1, 2]


def test_ignored_sender_never_reaches_extractor() -> None:
    harness = Harness()

    result = harness.handle(_message(sender_id=OPERATOR_ID))

    assert result.reason == "ignored_sender"
    assert harness.structured.calls == []
    assert harness.messenger.sent == []


def test_unwatched_conversation_is_dropped() -> None:
    harness = Harness()

    result = harness.handle(_message(conversation_id=-100999))

    assert result.outcome is DispatchOutcome.DROPPED
    assert result.reason == "not_watched"
    assert harness.structured.calls == []


def test_missing_sender_is_dropped() -> None:
    harness = Harness()

    result = harness.handle(_message(sender_id=None))

    assert result.reason == "no_sender"
    assert harness.structured.calls == []


def test_unresolved_identity_is_dropped() -> None:
    harness = Harness()

    result = harness.handle(None)

    assert result.outcome is DispatchOutcome.DROPPED
    assert result.reason == "unresolved_identity"


def test_message_without_item_is_dropped() -> None:
    harness = Harness(
        payload={"item_name": None, "category": None, "price": None, "location": None, "is_free": False}
    )

    result = harness.handle(_message(text="Куплю тумбочку"))

    assert result.reason == "no_item"
    assert harness.generation.calls == []
    assert harness.messenger.sent == []


def test_empty_text_is_dropped_without_oracle_call() -> None:
    harness = Harness()

    result = harness.handle(_message(text="   "))

    assert result.reason == "no_item"
    assert harness.structured.calls == []


def test_non_matching_item_is_dropped() -> None:
    harness = Harness(payload=dict(MATCHING_PAYLOAD, price=50))

    result = harness.handle(_message())

    assert result.reason == "criteria"
    assert result.item is not None
    assert harness.messenger.sent == []


def test_failed_send_is_not_recorded() -> None:
    harness = Harness(messenger=FakeMessenger(result=False))

    first = harness.handle(_message())
    second = harness.handle(_message())

    assert first.reason == "send_failed"
    assert second.reason == "send_failed"
    # One attempt per event, no retries inside an event.
    assert len(harness.messenger.sent) == 2
    assert not harness.record.is_dispatched(SELLER_ID)


def test_send_exception_is_contained() -> None:
    harness = Harness(messenger=FakeMessenger(error=ConnectionError("offline")))

    result = harness.handle(_message())

    assert result.outcome is DispatchOutcome.DROPPED
    assert result.reason == "send_failed"
    assert len(harness.messenger.sent) == 1


def test_outreach_disabled_only_logs() -> None:
    harness = Harness(outreach_enabled=False)

    result = harness.handle(_message())

    assert result.outcome is DispatchOutcome.LOGGED
    assert harness.generation.calls == []
    assert harness.messenger.sent == []
    assert len(harness.record) == 0


def test_record_is_shared_between_coordinators() -> None:
    record = DispatchRecord()
    Harness(record=record).handle(_message())

    result = Harness(record=record).handle(_message())

    assert result.outcome is DispatchOutcome.SUPPRESSED
