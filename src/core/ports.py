"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for the oracle, messaging, and identity
adapters so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from core.models import IncomingMessage


class StructuredOraclePort(Protocol):
    """Schema-constrained completion returning the raw JSON text."""

    async def complete_structured(
        self, system: str, prompt: str, schema: dict, temperature: float
    ) -> str:
        ...


class GenerationOraclePort(Protocol):
    """Free-text completion."""

    async def complete_text(self, prompt: str, temperature: float) -> str:
        ...


class MessengerPort(Protocol):
    """Direct-message delivery. Returns False when the send failed."""

    async def send_direct_message(self, user_id: int, text: str) -> bool:
        ...


class IdentityResolverPort(Protocol):
    """Map a transport event onto an IncomingMessage, or None if unrecognized."""

    def resolve(self, event: Any) -> Optional[IncomingMessage]:
        ...
