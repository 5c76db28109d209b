"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

Price = Union[int, float, str]


class Category(str, Enum):
    """Closed set of item categories the extractor may report."""

    FURNITURE = "furniture"
    ELECTRONICS = "electronics"
    CLOTHING = "clothing"
    OTHER = "other"

    @classmethod
    def parse(cls, value: object) -> Optional["Category"]:
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class IncomingMessage:
    """One message with its identity already mapped to the unified id space."""

    conversation_id: int
    sender_id: Optional[int]
    text: str


@dataclass(frozen=True)
class ExtractedItem:
    """Best-effort item facts. Only ``is_free`` is guaranteed to be set."""

    item_name: Optional[str] = None
    category: Optional[Category] = None
    price: Optional[Price] = None
    location: Optional[str] = None
    is_free: bool = False

    @property
    def effective_price(self) -> Optional[Union[int, float]]:
        if self.is_free:
            return 0
        if isinstance(self.price, (int, float)) and not isinstance(self.price, bool):
            return self.price
        return None

    def describe(self) -> str:
        category = self.category.value if self.category else None
        return (
            f"item={self.item_name!r} category={category} price={self.price!r} "
            f"location={self.location!r} is_free={self.is_free}"
        )


class DispatchOutcome(str, Enum):
    DISPATCHED = "dispatched"
    SUPPRESSED = "suppressed"
    DROPPED = "dropped"
    # Matched, but outreach is disabled in config.
    LOGGED = "logged"


@dataclass(frozen=True)
class DispatchResult:
    """Terminal state of one event plus a short reason code."""

    outcome: DispatchOutcome
    reason: str
    item: Optional[ExtractedItem] = None
