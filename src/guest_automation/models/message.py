"""
Message model for sandbox conversations.

Inbound messages arrive from outside the pipeline; outbound messages are
written only by the responder.
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class MessageDirection(str, Enum):
    """Direction of a message relative to the host."""

    INBOUND = 'Inbound'
    OUTBOUND = 'Outbound'


class Message(BaseModel):
    """A single inbound or outbound message in a sandbox session."""

    message_uuid: str = Field(..., description='Immutable message identity')
    session_id: UUID = Field(..., description='Owning sandbox session')
    direction: MessageDirection = Field(..., description='Inbound or Outbound')
    body: str = Field(default='', description='Message text')
    from_number: str | None = Field(default=None, description='Sender identifier')
    to_number: str | None = Field(default=None, description='Recipient identifier')
    timestamp: datetime = Field(..., description='Ordering key within the session')
    requestor_role: str | None = Field(default=None)
    metadata: dict[str, Any] = Field(default_factory=dict)
