"""Structured item extraction from free-text messages.

The oracle response is schema-constrained at request time, but we still
re-validate every field here: anything out of shape is normalized to None,
and any failure makes the whole extraction come back empty.
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
import re
from typing import Optional

from core.config import OracleSettings
from core.models import Category, ExtractedItem, Price
from core.ports import StructuredOraclePort

LOGGER = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert assistant that extracts information and provides it "
    "in a structured JSON format based on the provided schema."
)

PROMPT_TEMPLATE = """
Analyze the following message and extract the details of the item being offered according to the provided JSON schema.
There is a chance that the message is a request to buy something; such requests must be ignored and every field returned as null (is_free false).
Messages that offer an item, including ones asking for offers on the price, must still be extracted.
If the price is "free", "отдам даром", or similar, the 'is_free' flag must be true and the price should be 0.
Use null for any detail the message does not mention.

Message: "{text}"
"""

ITEM_SCHEMA = {
    "name": "item_details",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {
            "item_name": {
                "type": ["string", "null"],
                "description": "The name or a brief description of the item being offered.",
            },
            "category": {
                "type": ["string", "null"],
                "enum": [category.value for category in Category] + [None],
                "description": "The category of the item.",
            },
            "price": {
                "type": ["number", "string", "null"],
                "description": (
                    "The price of the item. Should be a number if explicit. If negotiable or "
                    'not specified, can be a string like "negotiable" or null.'
                ),
            },
            "location": {
                "type": ["string", "null"],
                "description": "The city, district, or general location for pickup/delivery.",
            },
            "is_free": {
                "type": "boolean",
                "description": 'Set to true if the item is explicitly offered for free or "даром", otherwise false.',
            },
        },
        "required": ["item_name", "category", "price", "location", "is_free"],
        "additionalProperties": False,
    },
}

# Price qualifiers that mean the item costs nothing.
_FREE_PRICE_WORDS = {"free", "for free", "free of charge", "даром", "бесплатно", "отдам даром"}

# Phrases that give the item itself away. Wording about free delivery or a
# bare "free" does not count.
_FREE_TEXT_PATTERN = re.compile(
    r"(?<!\w)(?:"
    r"giv(?:e|ing) away"
    r"|free to (?:a )?good home"
    r"|free to (?:take|collect)"
    r"|отда(?:м|ю)(?:\s+\w+){0,3}?\s+(?:даром|бесплатно|безвозмездно)"
    r"|(?:даром|бесплатно|безвозмездно)\s+отда(?:м|ю)"
    r")(?!\w)",
    re.IGNORECASE,
)

_NUMERIC_PRICE = re.compile(r"^\d+(?:[.,]\d+)?$")


class ExtractionError(ValueError):
    """Raised when an oracle payload cannot be turned into an item."""


def text_indicates_free(text: str) -> bool:
    return bool(_FREE_TEXT_PATTERN.search(text or ""))


def _clean_text(value: object) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _clean_price(value: object) -> Optional[Price]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if not math.isfinite(value) or value < 0:
            return None
        return value
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        if _NUMERIC_PRICE.match(value):
            number = float(value.replace(",", "."))
            return int(number) if number.is_integer() else number
        return value
    return None


def parse_item(payload: object, source_text: str = "") -> Optional[ExtractedItem]:
    """Validate a decoded oracle payload.

    Returns None when the payload describes no item at all (every field
    empty and not free). Raises ExtractionError when the payload is not an
    object.
    """

    if not isinstance(payload, dict):
        raise ExtractionError(f"Expected a JSON object, got {type(payload).__name__}")

    item_name = _clean_text(payload.get("item_name"))
    category = Category.parse(payload.get("category"))
    price = _clean_price(payload.get("price"))
    location = _clean_text(payload.get("location"))
    is_free = payload.get("is_free") is True

    if isinstance(price, str) and price.lower() in _FREE_PRICE_WORDS:
        is_free = True

    if item_name is None and category is None and price is None and location is None and not is_free:
        return None

    # A giveaway phrase only upgrades an actual offer without a real price;
    # buy requests stay empty and priced items keep their price.
    has_positive_price = isinstance(price, (int, float)) and price > 0
    if not has_positive_price and text_indicates_free(source_text):
        is_free = True

    if is_free:
        price = 0

    return ExtractedItem(
        item_name=item_name,
        category=category,
        price=price,
        location=location,
        is_free=is_free,
    )


class StructuredExtractor:
    """Turns one message text into an ExtractedItem, or None."""

    def __init__(self, oracle: StructuredOraclePort, settings: OracleSettings) -> None:
        self._oracle = oracle
        self._settings = settings

    async def extract(self, text: str) -> Optional[ExtractedItem]:
        # Skip the oracle entirely for empty messages (media without captions).
        if not text or not text.strip():
            LOGGER.debug("Message is empty, skipping analysis")
            return None

        prompt = PROMPT_TEMPLATE.format(text=text)
        try:
            raw = await asyncio.wait_for(
                self._oracle.complete_structured(
                    SYSTEM_PROMPT,
                    prompt,
                    ITEM_SCHEMA,
                    self._settings.extraction_temperature,
                ),
                timeout=self._settings.timeout_seconds,
            )
        except asyncio.TimeoutError:
            LOGGER.warning("Extraction oracle timed out after %ss", self._settings.timeout_seconds)
            return None
        except Exception:
            LOGGER.exception("Extraction oracle call failed")
            return None

        LOGGER.debug("Extraction oracle raw response: %s", raw)
        try:
            payload = json.loads(raw)
            item = parse_item(payload, text)
        except (TypeError, ValueError) as exc:
            # json.JSONDecodeError and ExtractionError are both ValueErrors.
            LOGGER.warning("Discarding malformed extraction response: %s", exc)
            return None

        if item is None:
            LOGGER.info("No item offered in message")
        else:
            LOGGER.info("Parsed item: %s", item.describe())
        return item
