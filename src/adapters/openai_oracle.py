"""OpenAI-compatible oracle adapter.

Works against OpenAI directly or any compatible gateway (OpenRouter by
default) through the ``base_url`` setting.
"""

from __future__ import annotations

from typing import Optional

from openai import AsyncOpenAI

from core.config import OracleSettings


class OracleError(RuntimeError):
    """Raised when the oracle answers without usable content."""


def _content(response) -> str:
    choices = getattr(response, "choices", None) or []
    if not choices:
        raise OracleError("Oracle response has no choices")
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    if not content:
        raise OracleError("Oracle response has no content")
    return content


class OpenAIOracle:
    """Structured and free-text completions over the chat-completions API."""

    def __init__(
        self,
        settings: OracleSettings,
        client: Optional[AsyncOpenAI] = None,
        api_key: Optional[str] = None,
    ) -> None:
        self._settings = settings
        self._client = client or AsyncOpenAI(
            base_url=settings.base_url,
            api_key=api_key,
            timeout=settings.timeout_seconds,
            max_retries=0,
        )

    async def complete_structured(self, system: str, prompt: str, schema: dict, temperature: float) -> str:
        response = await self._client.chat.completions.create(
            model=self._settings.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_schema", "json_schema": schema},
            temperature=temperature,
        )
        return _content(response)

    async def complete_text(self, prompt: str, temperature: float) -> str:
        response = await self._client.chat.completions.create(
            model=self._settings.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
        )
        return _content(response)

    async def close(self) -> None:
        await self._client.close()
