"""Shared test fixtures for the WhatsApp-Gemini bridge."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from src.config import BridgeConfig

Handler = Callable[[httpx.Request], httpx.Response]


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Handler) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    def json_bodies(self) -> list[Any]:
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def bridge_config() -> BridgeConfig:
    return BridgeConfig(
        verify_token="SECRET",
        access_token="test-access-token",
        api_key="test-api-key",
        gemini_base_url="https://gemini.test/v1beta",
        gemini_model="test-model",
        system_instruction="Be brief.",
        graph_url="https://graph.test",
        graph_api_version="v22.0",
        http_timeout=5.0,
    )


@pytest.fixture
def recording_transport() -> Callable[[Handler], RecordingTransport]:
    """Factory for a RecordingTransport wrapping ``handler``."""

    def _create(handler: Handler) -> RecordingTransport:
        return RecordingTransport(handler)

    return _create


# --- Factory functions for test data ---


def gemini_body(text: str = "hello") -> dict[str, Any]:
    return {
        "candidates": [
            {
                "content": {"parts": [{"text": text}], "role": "model"},
                "finishReason": "STOP",
                "index": 0,
            }
        ]
    }


def text_message(
    body: str | None = "hi",
    sender: str | None = "222",
    msg_type: str = "text",
) -> dict[str, Any]:
    message: dict[str, Any] = {"id": "wamid.1", "timestamp": "1700000000", "type": msg_type}
    if sender is not None:
        message["from"] = sender
    if body is not None:
        message["text"] = {"body": body}
    return message


def make_notification(
    *messages: dict[str, Any],
    phone_number_id: str | None = "111",
) -> dict[str, Any]:
    """Single entry, single change notification carrying ``messages``."""
    metadata: dict[str, Any] = {"display_phone_number": "15550001111"}
    if phone_number_id is not None:
        metadata["phone_number_id"] = phone_number_id
    return {
        "object": "whatsapp_business_account",
        "entry": [
            {
                "id": "WABA_ID",
                "changes": [
                    {
                        "field": "messages",
                        "value": {
                            "messaging_product": "whatsapp",
                            "metadata": metadata,
                            "messages": list(messages),
                        },
                    }
                ],
            }
        ],
    }
