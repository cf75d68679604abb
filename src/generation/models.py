"""Wire models for the Gemini generateContent API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _Wire(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Part(_Wire):
    text: str | None = None


class Content(_Wire):
    parts: list[Part | None] | None = None
    role: str | None = None


class SafetyRating(_Wire):
    category: str | None = None
    probability: str | None = None


class Candidate(_Wire):
    content: Content | None = None
    finish_reason: str | None = Field(default=None, alias="finishReason")
    index: int | None = None
    safety_ratings: list[SafetyRating] | None = Field(default=None, alias="safetyRatings")

    def first_text(self) -> str:
        """Text of the first part, or empty string when any level is missing."""
        if self.content is None or not self.content.parts:
            return ""
        part = self.content.parts[0]
        if part is None:
            return ""
        return part.text or ""


class PromptFeedback(_Wire):
    block_reason: str | None = Field(default=None, alias="blockReason")
    safety_ratings: list[SafetyRating] | None = Field(default=None, alias="safetyRatings")


class GeminiResponse(_Wire):
    candidates: list[Candidate | None] | None = None
    prompt_feedback: PromptFeedback | None = Field(default=None, alias="promptFeedback")


def build_request(system_instruction: str, message: str | None) -> dict[str, object]:
    """Single-turn generateContent body with a fixed system instruction."""
    return {
        "system_instruction": {"parts": [{"text": system_instruction}]},
        "contents": [{"parts": [{"text": message or ""}]}],
    }
