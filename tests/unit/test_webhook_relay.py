"""Tests for the webhook relay pipeline orchestration."""

from __future__ import annotations

import dataclasses
import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.config import BridgeConfig
from src.generation.gemini import GeminiClient
from src.models import FailureReason, GenerationOutcome
from src.webhook.relay import ChatRelayPipeline
from src.webhook.whatsapp import WhatsAppRelay
from tests.conftest import make_notification, text_message


def _make_pipeline(
    config: BridgeConfig,
    outcome: GenerationOutcome | None = None,
) -> tuple[ChatRelayPipeline, AsyncMock, AsyncMock]:
    generator = MagicMock(spec=GeminiClient)
    generator.generate = AsyncMock(return_value=outcome or GenerationOutcome.success("hello"))
    whatsapp = MagicMock(spec=WhatsAppRelay)
    whatsapp.send_reply = AsyncMock(return_value=None)
    return ChatRelayPipeline(config, generator, whatsapp), generator.generate, whatsapp.send_reply


def _encode(payload: Any) -> bytes:
    return json.dumps(payload).encode()


class TestCredentialCheck:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["access_token", "api_key"])
    async def test_missing_outbound_credential_returns_500(
        self, bridge_config: BridgeConfig, missing: str,
    ) -> None:
        config = dataclasses.replace(bridge_config, **{missing: ""})
        pipeline, generate, send_reply = _make_pipeline(config)

        status = await pipeline.handle_delivery(_encode(make_notification(text_message())))

        assert status == 500
        generate.assert_not_awaited()
        send_reply.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_body_not_parsed_when_unconfigured(
        self, bridge_config: BridgeConfig, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        parse = MagicMock()
        monkeypatch.setattr("src.webhook.relay.parse_notification", parse)
        config = dataclasses.replace(bridge_config, api_key="")
        pipeline, _, _ = _make_pipeline(config)

        assert await pipeline.handle_delivery(b"{}") == 500
        parse.assert_not_called()

    @pytest.mark.asyncio
    async def test_verify_token_not_required_for_delivery(
        self, bridge_config: BridgeConfig,
    ) -> None:
        config = dataclasses.replace(bridge_config, verify_token="")
        pipeline, generate, _ = _make_pipeline(config)

        status = await pipeline.handle_delivery(_encode(make_notification(text_message())))

        assert status == 200
        generate.assert_awaited_once()


class TestNothingToDo:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        b"",
        b"garbage",
        b"{}",
        b'{"entry": null}',
        b'{"entry": []}',
        b"[]",
    ])
    async def test_acknowledges_without_generating(
        self, bridge_config: BridgeConfig, body: bytes,
    ) -> None:
        pipeline, generate, send_reply = _make_pipeline(bridge_config)

        assert await pipeline.handle_delivery(body) == 200
        generate.assert_not_awaited()
        send_reply.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_text_message_acknowledged(self, bridge_config: BridgeConfig) -> None:
        pipeline, generate, _ = _make_pipeline(bridge_config)
        body = _encode(make_notification(text_message(msg_type="image")))

        assert await pipeline.handle_delivery(body) == 200
        generate.assert_not_awaited()


class TestRoundTrip:

    @pytest.mark.asyncio
    async def test_generates_then_replies(self, bridge_config: BridgeConfig) -> None:
        pipeline, generate, send_reply = _make_pipeline(bridge_config)
        body = _encode(make_notification(text_message(body="hi", sender="222")))

        status = await pipeline.handle_delivery(body)

        assert status == 200
        generate.assert_awaited_once_with("hi")
        send_reply.assert_awaited_once_with("111", "222", "hello")

    @pytest.mark.asyncio
    async def test_only_first_message_processed(self, bridge_config: BridgeConfig) -> None:
        pipeline, generate, send_reply = _make_pipeline(bridge_config)
        body = _encode(make_notification(
            text_message(body="first", sender="A"),
            text_message(body="second", sender="B"),
        ))

        assert await pipeline.handle_delivery(body) == 200
        generate.assert_awaited_once_with("first")
        send_reply.assert_awaited_once_with("111", "A", "hello")

    @pytest.mark.asyncio
    async def test_empty_generation_still_replies(self, bridge_config: BridgeConfig) -> None:
        pipeline, _, send_reply = _make_pipeline(bridge_config, GenerationOutcome.success(""))

        status = await pipeline.handle_delivery(_encode(make_notification(text_message())))

        assert status == 200
        send_reply.assert_awaited_once_with("111", "222", "")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reason", list(FailureReason))
    async def test_generation_failure_returns_500_without_reply(
        self, bridge_config: BridgeConfig, reason: FailureReason,
    ) -> None:
        pipeline, _, send_reply = _make_pipeline(
            bridge_config, GenerationOutcome.failure(reason, "boom"),
        )

        status = await pipeline.handle_delivery(_encode(make_notification(text_message())))

        assert status == 500
        send_reply.assert_not_awaited()
