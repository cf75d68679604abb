"""Data models for the WhatsApp Cloud API webhook payload.

Every level of the notification tree is optional: the provider omits
blocks freely (status updates carry no ``messages``, some changes carry no
``value``), and an absent block means "nothing to do here", never an error.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TextBody(_Payload):
    body: str | None = None


class Message(_Payload):
    sender: str | None = Field(default=None, alias="from")
    id: str | None = None
    timestamp: str | None = None
    type: str | None = None
    text: TextBody | None = None


class Metadata(_Payload):
    display_phone_number: str | None = None
    phone_number_id: str | None = None


class Profile(_Payload):
    name: str | None = None


class Contact(_Payload):
    wa_id: str | None = None
    profile: Profile | None = None


class Status(_Payload):
    id: str | None = None
    status: str | None = None
    timestamp: str | None = None
    recipient_id: str | None = None


class Value(_Payload):
    messaging_product: str | None = None
    metadata: Metadata | None = None
    contacts: list[Contact | None] | None = None
    messages: list[Message | None] | None = None
    statuses: list[Status | None] | None = None


class Change(_Payload):
    field: str | None = None
    value: Value | None = None


class Entry(_Payload):
    id: str | None = None
    time: int | None = None
    changes: list[Change | None] | None = None


class WebhookNotification(_Payload):
    """Top-level body of a webhook delivery (POST /Chat)."""

    object: str | None = None
    entry: list[Entry | None] | None = None


@dataclass(frozen=True)
class ExtractedMessage:
    """A text message with everything needed to reply to it."""

    text: str
    phone_number_id: str
    sender: str
