"""
Conversation context handed to the summarizer prompt.

Serialised with camelCase keys so stored input snapshots keep the shape the
rest of the platform reads.
"""

from datetime import datetime

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

_CAMEL = {'populate_by_name': True, 'alias_generator': to_camel}


class PropertyContext(BaseModel):
    id: int | None = None
    name: str | None = None
    address: str | None = None
    check_in: str | None = None
    check_out: str | None = None

    model_config = _CAMEL


class BookingDates(BaseModel):
    check_in: str | None = None
    check_out: str | None = None

    model_config = _CAMEL


class GuestContext(BaseModel):
    name: str = 'Guest'
    phone: str | None = None
    booking_dates: BookingDates = Field(default_factory=BookingDates)

    model_config = _CAMEL


class HistoryEntry(BaseModel):
    """One earlier message, as presented to the model."""

    text: str = ''
    type: str
    timestamp: datetime

    model_config = _CAMEL


class MessageContext(BaseModel):
    """Bounded context for one inbound message."""

    property: PropertyContext = Field(default_factory=PropertyContext)
    guest: GuestContext = Field(default_factory=GuestContext)
    conversation_history: list[HistoryEntry] = Field(default_factory=list)

    model_config = _CAMEL
