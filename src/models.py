"""Shared Pydantic data models for the WhatsApp-Gemini bridge."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

# --- Enums ---


class GenerationStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class FailureReason(str, Enum):
    NOT_CONFIGURED = "not_configured"
    TRANSPORT_ERROR = "transport_error"
    INVALID_RESPONSE = "invalid_response"


# --- Generation Models ---


class GenerationOutcome(BaseModel):
    """Result of one round-trip to the generation backend.

    A provider that answers with an HTTP error or with no candidates still
    produces a SUCCESS outcome carrying empty text; only a missing API key,
    a transport exception or an unreadable success body is a FAILURE.
    """

    model_config = ConfigDict(frozen=True)

    status: GenerationStatus
    text: str = ""
    reason: FailureReason | None = None
    error: str | None = None

    @classmethod
    def success(cls, text: str) -> GenerationOutcome:
        return cls(status=GenerationStatus.SUCCESS, text=text)

    @classmethod
    def failure(cls, reason: FailureReason, error: str | None = None) -> GenerationOutcome:
        return cls(status=GenerationStatus.FAILURE, reason=reason, error=error)

    @property
    def ok(self) -> bool:
        return self.status == GenerationStatus.SUCCESS
