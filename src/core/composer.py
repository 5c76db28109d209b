"""Reservation message composition.

The generation oracle gives each inquiry a slightly different wording; the
fixed fallback below guarantees there is always something to send.
"""

from __future__ import annotations

import asyncio
import logging

from core.config import OracleSettings
from core.models import ExtractedItem
from core.ports import GenerationOraclePort

LOGGER = logging.getLogger(__name__)

PROMPT_TEMPLATE = """
Generate a short, simple, and friendly message in Russian to inquire about an item for sale.
The user wants to reserve the item.
The message should sound like a real person wrote it, not a bot.
Write in the first person and keep it casual. Vary the phrasing each time.

Here are the item details: {details}

Examples of possible messages:
- "Привет! Ваше объявление про {details} еще актуально?"
- "Добрый день, увидел ваше объявление ({details}). Хотел бы забрать, если еще не отдали."
- "Здравствуйте, еще продаете {details}? Готов забрать."
- "Привет, заинтересовало ваше объявление ({details}). Оно в силе?"

Generate a new, similar message:
"""

FALLBACK_TEMPLATE = "Привет, увидел твое объявление ({details}), все еще актуально? Готов забрать."
FALLBACK_NO_DETAILS = "Привет, увидел твое объявление, все еще актуально? Готов забрать."


def _format_number(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_details(item: ExtractedItem) -> str:
    """Join whichever of name, price, and location are known."""

    details = []
    if item.item_name:
        details.append(f'"{item.item_name}"')
    if item.is_free:
        details.append("for free")
    elif isinstance(item.price, (int, float)) and not isinstance(item.price, bool):
        details.append(f"for {_format_number(item.price)}")
    if item.location:
        details.append(f"in {item.location}")
    return " ".join(details)


def fallback_message(details: str) -> str:
    if not details:
        return FALLBACK_NO_DETAILS
    return FALLBACK_TEMPLATE.format(details=details)


def _clean_generated(text: str) -> str:
    text = (text or "").strip()
    # Models like to wrap the answer in the same quotes the examples use.
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        text = text[1:-1].strip()
    elif text.startswith("«") and text.endswith("»"):
        text = text[1:-1].strip()
    return text


class OutreachComposer:
    """Builds the inquiry text sent to a seller."""

    def __init__(self, oracle: GenerationOraclePort, settings: OracleSettings) -> None:
        self._oracle = oracle
        self._settings = settings

    async def compose(self, item: ExtractedItem) -> str:
        details = build_details(item)
        prompt = PROMPT_TEMPLATE.format(details=details)
        try:
            generated = await asyncio.wait_for(
                self._oracle.complete_text(prompt, self._settings.generation_temperature),
                timeout=self._settings.timeout_seconds,
            )
        except asyncio.TimeoutError:
            LOGGER.warning("Generation oracle timed out, using fallback message")
            return fallback_message(details)
        except Exception:
            LOGGER.exception("Failed to generate reservation message, using fallback message")
            return fallback_message(details)

        message = _clean_generated(generated)
        if not message:
            LOGGER.warning("Generation oracle returned an empty message, using fallback message")
            return fallback_message(details)
        return message
