"""Gemini generateContent client.

Sends one user message with a fixed system instruction and returns the
first candidate's text as a GenerationOutcome.
"""

from __future__ import annotations

import json
import logging

import httpx
from pydantic import ValidationError

from src.config import (
    DEFAULT_GEMINI_BASE_URL,
    DEFAULT_GEMINI_MODEL,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_SYSTEM_INSTRUCTION,
    BridgeConfig,
)
from src.generation.models import GeminiResponse, build_request
from src.models import FailureReason, GenerationOutcome

logger = logging.getLogger(__name__)


class GeminiClient:
    """Single-turn text generation against the Gemini REST API."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        model: str = DEFAULT_GEMINI_MODEL,
        base_url: str = DEFAULT_GEMINI_BASE_URL,
        system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
    ) -> None:
        self._client = http_client
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._system_instruction = system_instruction
        self._timeout = timeout

    @classmethod
    def from_config(cls, http_client: httpx.AsyncClient, config: BridgeConfig) -> GeminiClient:
        return cls(
            http_client,
            api_key=config.api_key,
            model=config.gemini_model,
            base_url=config.gemini_base_url,
            system_instruction=config.system_instruction,
            timeout=config.http_timeout,
        )

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/models/{self._model}:generateContent"

    async def generate(self, message: str | None) -> GenerationOutcome:
        """Generate a reply for ``message``.

        HTTP error responses from the provider are logged and turned into an
        empty SUCCESS so the webhook is still acknowledged; only transport
        exceptions and unreadable success bodies are FAILURE.
        """
        if not self._api_key:
            logger.error("Gemini API key is not configured")
            return GenerationOutcome.failure(
                FailureReason.NOT_CONFIGURED, "Gemini API key is not configured",
            )

        body = build_request(self._system_instruction, message)
        logger.info("Url: %s?key=***", self.endpoint)
        logger.info("Data: %s", json.dumps(body, ensure_ascii=False))

        try:
            resp = await self._client.post(
                self.endpoint,
                params={"key": self._api_key},
                json=body,
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            logger.error("Exception sending to Gemini: %s", exc)
            return GenerationOutcome.failure(FailureReason.TRANSPORT_ERROR, str(exc) or type(exc).__name__)

        if not resp.is_success:
            logger.error("Error sending to Gemini: %s - %s", resp.status_code, resp.text)
            return GenerationOutcome.success("")

        try:
            parsed = GeminiResponse.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            logger.error("Unreadable response from Gemini: %s", exc)
            return GenerationOutcome.failure(FailureReason.INVALID_RESPONSE, str(exc))

        logger.info("Response from Gemini: %s", resp.text)

        if not parsed.candidates:
            block_reason = parsed.prompt_feedback.block_reason if parsed.prompt_feedback else None
            logger.warning(
                "Gemini returned no candidates (block reason: %s)", block_reason or "none",
            )
            return GenerationOutcome.success("")

        candidate = parsed.candidates[0]
        return GenerationOutcome.success(candidate.first_text() if candidate is not None else "")
