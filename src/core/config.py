"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

from core.models import Category


@dataclass(frozen=True)
class AcceptanceCriteria:
    """Conjunctive filter applied to every extracted item.

    Substrings are stored lower-cased; ``build_criteria`` takes care of that.
    """

    max_price: float
    required_category: Category
    location_substrings: Tuple[str, ...]
    name_substrings: Tuple[str, ...]


@dataclass(frozen=True)
class WatchConfig:
    """Which conversations to watch and whose messages to skip."""

    conversation_ids: FrozenSet[int]
    ignored_sender_id: Optional[int]
    outreach_enabled: bool = True


@dataclass(frozen=True)
class OracleSettings:
    """Model and decoding settings for both oracle calls."""

    model: str = "openai/gpt-4o-mini"
    base_url: str = "https://openrouter.ai/api/v1"
    extraction_temperature: float = 0.1
    generation_temperature: float = 0.8
    timeout_seconds: float = 30.0
