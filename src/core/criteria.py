"""Acceptance criteria building and evaluation (core domain)."""

from __future__ import annotations

import math
from typing import Iterable, List

from core.config import AcceptanceCriteria
from core.models import Category, ExtractedItem


def build_criteria(criteria_config: dict) -> AcceptanceCriteria:
    """Normalize the criteria config section.

    Substrings are lower-cased once here so per-message evaluation only has
    to lower-case the item fields.
    """

    raw_max_price = criteria_config.get("max_price")
    if isinstance(raw_max_price, bool) or not isinstance(raw_max_price, (int, float)):
        raise ValueError(f"criteria.max_price must be a number, got {raw_max_price!r}")
    if raw_max_price < 0 or not math.isfinite(raw_max_price):
        raise ValueError(f"criteria.max_price must be a non-negative number, got {raw_max_price!r}")

    category = Category.parse(criteria_config.get("required_category"))
    if category is None:
        allowed = ", ".join(c.value for c in Category)
        raise ValueError(f"criteria.required_category must be one of: {allowed}")

    location_substrings = _normalize_substrings(criteria_config.get("location_substrings", []))
    name_substrings = _normalize_substrings(criteria_config.get("name_substrings", []))
    if not location_substrings:
        raise ValueError("criteria.location_substrings must contain at least one value")
    if not name_substrings:
        raise ValueError("criteria.name_substrings must contain at least one value")

    return AcceptanceCriteria(
        max_price=raw_max_price,
        required_category=category,
        location_substrings=location_substrings,
        name_substrings=name_substrings,
    )


def _normalize_substrings(values: Iterable[str]) -> tuple:
    if isinstance(values, str):
        values = [values]
    normalized = []
    for value in values or []:
        if not isinstance(value, str):
            continue
        value = value.strip().lower()
        if value and value not in normalized:
            normalized.append(value)
    return tuple(normalized)


def _contains_any(value, substrings: Iterable[str]) -> bool:
    if not isinstance(value, str) or not value.strip():
        return False
    lowered = value.lower()
    return any(sub in lowered for sub in substrings)


def price_matches(item: ExtractedItem, criteria: AcceptanceCriteria) -> bool:
    # effective_price is 0 for free items whatever the price field says and
    # None for text qualifiers.
    price = item.effective_price
    if price is None:
        return False
    return item.is_free or price < criteria.max_price


def category_matches(item: ExtractedItem, criteria: AcceptanceCriteria) -> bool:
    return item.category is not None and item.category == criteria.required_category


def location_matches(item: ExtractedItem, criteria: AcceptanceCriteria) -> bool:
    return _contains_any(item.location, criteria.location_substrings)


def name_matches(item: ExtractedItem, criteria: AcceptanceCriteria) -> bool:
    return _contains_any(item.item_name, criteria.name_substrings)


_PREDICATES = (
    ("price", price_matches),
    ("category", category_matches),
    ("location", location_matches),
    ("name", name_matches),
)


def explain_criteria(item: ExtractedItem, criteria: AcceptanceCriteria) -> List[str]:
    """Return the names of the sub-predicates the item fails."""

    return [name for name, predicate in _PREDICATES if not predicate(item, criteria)]


def meets_criteria(item: ExtractedItem, criteria: AcceptanceCriteria) -> bool:
    """Return True only when all four sub-predicates hold.

    Evaluation rules:
    - price: free, or a numeric price strictly below ``max_price``.
    - category: exact enum match.
    - location / name: present and containing any configured substring,
      case-insensitively.
    A missing field fails its predicate; nothing defaults to True.
    """

    return all(predicate(item, criteria) for _, predicate in _PREDICATES)
