"""Webhook relay pipeline.

Orchestrates one webhook delivery using direct calls to the relay
components:

1. Credential check (ACCESS_TOKEN and API_KEY)
2. Parse the notification
3. Extract the first text message
4. Generate a reply via Gemini
5. Deliver the reply via WhatsApp
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from src.webhook.whatsapp import extract_messages, parse_notification

if TYPE_CHECKING:
    from src.config import BridgeConfig
    from src.generation.gemini import GeminiClient
    from src.webhook.whatsapp import WhatsAppRelay

logger = logging.getLogger(__name__)


class ChatRelayPipeline:
    """Extract, generate, reply for a single webhook delivery.

    Only the first actionable message of a delivery is processed. Every
    outcome acknowledges with 200 except missing credentials and a failed
    generation round-trip, which return 500.
    """

    def __init__(
        self,
        config: BridgeConfig,
        generator: GeminiClient,
        whatsapp: WhatsAppRelay,
    ) -> None:
        self._config = config
        self._generator = generator
        self._whatsapp = whatsapp

    async def handle_delivery(self, body: bytes) -> int:
        """Process one webhook delivery and return the HTTP status to answer with."""
        if not self._config.outbound_configured:
            logger.error(
                "Outbound credentials missing: %s",
                ", ".join(self._config.missing_credentials()),
            )
            return 500

        notification = parse_notification(body)
        if notification is None or notification.entry is None:
            return 200

        message = next(extract_messages(notification), None)
        if message is None:
            logger.info("No text message to process")
            return 200

        outcome = await self._generator.generate(message.text)
        if not outcome.ok:
            logger.error(
                "Generation failed (%s): %s",
                outcome.reason.value if outcome.reason else "unknown",
                outcome.error,
            )
            return 500

        await self._whatsapp.send_reply(message.phone_number_id, message.sender, outcome.text)
        return 200
