"""WhatsApp Cloud API webhook relay.

Handles the Meta verification challenge, walks webhook notifications for
actionable text messages, and delivers replies through the Graph API
send-message endpoint.
"""

from __future__ import annotations

import hmac
import json
import logging
from collections.abc import Iterator
from typing import Any

import httpx
from pydantic import ValidationError

from src.config import DEFAULT_GRAPH_API_VERSION, DEFAULT_GRAPH_URL, DEFAULT_HTTP_TIMEOUT, BridgeConfig
from src.webhook.models import ExtractedMessage, WebhookNotification

logger = logging.getLogger(__name__)


def parse_notification(body: bytes) -> WebhookNotification | None:
    """Parse a webhook body; None when it is not a JSON object of the expected shape."""
    try:
        return WebhookNotification.model_validate_json(body)
    except ValidationError as exc:
        logger.warning("Ignoring unparseable webhook body: %s", exc.errors()[:1])
        return None


def extract_messages(
    notification: WebhookNotification | None,
) -> Iterator[ExtractedMessage]:
    """Yield text messages in document order (entries, changes, messages).

    Anything that is not a text message, or lacks the sender, the receiving
    phone-line id or the body, is skipped.
    """
    if notification is None or notification.entry is None:
        return

    for entry in notification.entry:
        if entry is None or entry.changes is None:
            continue
        for change in entry.changes:
            if change is None or change.value is None:
                continue
            value = change.value
            phone_number_id = value.metadata.phone_number_id if value.metadata else None
            if value.messages is None:
                continue
            for message in value.messages:
                if message is None or message.type != "text":
                    continue
                body = message.text.body if message.text else None
                logger.debug(
                    "Phone number id: %s From: %s Body: %s",
                    phone_number_id, message.sender, body,
                )
                if body is None or phone_number_id is None or message.sender is None:
                    continue
                yield ExtractedMessage(
                    text=body,
                    phone_number_id=phone_number_id,
                    sender=message.sender,
                )


class WhatsAppRelay:
    """Handles WhatsApp Cloud API verification and reply delivery."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        verify_token: str,
        access_token: str,
        graph_url: str = DEFAULT_GRAPH_URL,
        api_version: str = DEFAULT_GRAPH_API_VERSION,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
    ) -> None:
        self._client = http_client
        self._verify_token = verify_token
        self._access_token = access_token
        self._graph_url = graph_url.rstrip("/")
        self._api_version = api_version
        self._timeout = timeout

    @classmethod
    def from_config(cls, http_client: httpx.AsyncClient, config: BridgeConfig) -> WhatsAppRelay:
        return cls(
            http_client,
            verify_token=config.verify_token,
            access_token=config.access_token,
            graph_url=config.graph_url,
            api_version=config.graph_api_version,
            timeout=config.http_timeout,
        )

    def handle_verification(
        self,
        mode: str | None,
        verify_token: str | None,
        challenge: str | None,
    ) -> dict[str, Any]:
        """Handle the Meta webhook verification challenge (GET).

        Returns the challenge as an integer on a valid subscribe, 403 on a
        wrong or unset token or a missing challenge, and 500 when the
        access token is not configured.
        """
        if not self._access_token:
            logger.error("WhatsApp access token is not configured")
            return {"status_code": 500, "error": "WhatsApp is not configured"}

        if mode != "subscribe" or challenge is None:
            return {"status_code": 403, "error": "Verification failed"}
        if not self._verify_token:
            logger.error("WhatsApp verify token is not configured")
            return {"status_code": 403, "error": "Invalid verify token"}
        if not hmac.compare_digest((verify_token or "").encode(), self._verify_token.encode()):
            return {"status_code": 403, "error": "Invalid verify token"}

        try:
            return {"status_code": 200, "content": int(challenge)}
        except ValueError:
            return {"status_code": 400, "error": "Challenge must be an integer"}

    def message_url(self, phone_number_id: str) -> str:
        return f"{self._graph_url}/{self._api_version}/{phone_number_id}/messages"

    async def send_reply(self, phone_number_id: str, to: str, text: str) -> None:
        """Send a text reply from ``phone_number_id`` to ``to``.

        Best effort: provider errors and transport exceptions are logged and
        never raised.
        """
        url = self.message_url(phone_number_id)
        payload = {
            "messaging_product": "whatsapp",
            "to": to,
            "text": {"body": text},
        }
        logger.info("Url: %s?access_token=***", url)
        logger.info("Data: %s", json.dumps(payload, ensure_ascii=False))

        try:
            resp = await self._client.post(
                url,
                params={"access_token": self._access_token},
                json=payload,
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            logger.error("Exception sending reply: %s", exc)
            return

        if not resp.is_success:
            logger.error("Error sending reply: %s - %s", resp.status_code, resp.text)
