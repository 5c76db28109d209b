from __future__ import annotations

import asyncio

import pytest

from core.composer import FALLBACK_NO_DETAILS, OutreachComposer, build_details, fallback_message
from core.config import OracleSettings
from core.models import Category, ExtractedItem
from fakes import FakeGenerationOracle

ITEM = ExtractedItem(
    item_name="Old TV Stand",
    category=Category.FURNITURE,
    price=20.0,
    location="Limassol",
)


def _compose(oracle, item: ExtractedItem = ITEM, timeout: float = 5.0) -> str:
    composer = OutreachComposer(oracle, OracleSettings(timeout_seconds=timeout))
    return asyncio.run(composer.compose(item))


def test_build_details_with_all_fields() -> None:
    assert build_details(ITEM) == '"Old TV Stand" for 20 in Limassol'


def test_build_details_free_item() -> None:
    item = ExtractedItem(item_name="Crib", price=0, is_free=True)
    assert build_details(item) == '"Crib" for free'


def test_build_details_omits_missing_and_textual_fields() -> None:
    assert build_details(ExtractedItem(price="negotiable", location="Berlin")) == "in Berlin"
    assert build_details(ExtractedItem()) == ""


def test_build_details_keeps_fractional_prices() -> None:
    assert build_details(ExtractedItem(price=12.5)) == "for 12.5"


def test_returns_generated_text_with_high_temperature() -> None:
    oracle = FakeGenerationOracle(text="  Привет! Тумбочка еще продается?  ")
    assert _compose(oracle) == "Привет! Тумбочка еще продается?"
    call = oracle.calls[0]
    assert call["temperature"] == pytest.approx(0.8)
    assert '"Old TV Stand" for 20 in Limassol' in call["prompt"]
    assert call["prompt"].count("- \"") == 4


def test_strips_wrapping_quotes() -> None:
    oracle = FakeGenerationOracle(text='"Добрый день, еще актуально?"')
    assert _compose(oracle) == "Добрый день, еще актуально?"


def test_falls_back_on_oracle_error() -> None:
    oracle = FakeGenerationOracle(error=RuntimeError("unavailable"))
    message = _compose(oracle)
    assert message == fallback_message('"Old TV Stand" for 20 in Limassol')
    assert "(\"Old TV Stand\" for 20 in Limassol)" in message


@pytest.mark.parametrize("text", ["", "   ", '""'])
def test_falls_back_on_empty_text(text: str) -> None:
    message = _compose(FakeGenerationOracle(text=text))
    assert message == fallback_message(build_details(ITEM))


def test_falls_back_on_timeout() -> None:
    oracle = FakeGenerationOracle(text="late", delay=1.0)
    assert _compose(oracle, timeout=0.01) == fallback_message(build_details(ITEM))


def test_fallback_without_details_is_not_empty() -> None:
    message = _compose(FakeGenerationOracle(error=RuntimeError("x")), item=ExtractedItem())
    assert message == FALLBACK_NO_DETAILS
    assert message.strip()
