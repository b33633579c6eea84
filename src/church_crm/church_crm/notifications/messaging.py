from __future__ import annotations

from typing import Protocol

from ..core.enums import MessageChannel
from .model import SendResult


class MessagingChannel(Protocol):
    """Opaque outbound message transport (WhatsApp/SMS/email provider)."""

    def send(self, person_id: str, channel: MessageChannel, body: str) -> SendResult:
        raise NotImplementedError


class UnconfiguredChannel(MessagingChannel):
    def send(self, person_id: str, channel: MessageChannel, body: str) -> SendResult:
        return SendResult(success=False, error_message=f"No provider configured for channel {channel.value}")
