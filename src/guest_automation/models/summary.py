"""
Summary model: the structured interpretation of one inbound message.

The same model validates completion output (camelCase keys, as requested in
the prompt) and is what gets persisted as the summarization record output.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class Category(str, Enum):
    """What a guest message is about."""

    BOOKING = 'booking'
    MAINTENANCE = 'maintenance'
    CHECK_IN = 'check-in'
    CHECK_OUT = 'check-out'
    AMENITIES = 'amenities'
    COMPLAINT = 'complaint'
    CLEANING = 'cleaning'
    GENERAL = 'general'


class Priority(str, Enum):
    """How quickly a message needs handling."""

    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'
    URGENT = 'urgent'


class Summary(BaseModel):
    """Structured interpretation of a guest message."""

    language: str = Field(default='en', description='Detected language code')
    sentiment: str = Field(
        default='neutral', description='positive / neutral / negative / urgent'
    )
    tone: str = Field(default='friendly', description='friendly / formal / frustrated / confused')
    action_required: bool = Field(..., description='Whether the host needs to act')
    action_title: str = Field(default='', description='Brief description of what needs doing')
    category: Category = Field(...)
    priority: Priority = Field(...)
    key_information: list[str] = Field(default_factory=list)
    suggested_response: str = Field(default='')

    model_config = {
        'populate_by_name': True,
        'alias_generator': to_camel,
        'frozen': True,
    }

    @field_validator('category', 'priority', 'sentiment', 'tone', mode='before')
    @classmethod
    def _normalise_label(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator('key_information', mode='before')
    @classmethod
    def _coerce_key_information(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @property
    def is_urgent(self) -> bool:
        return self.priority == Priority.URGENT or self.sentiment == 'urgent'

    def to_output(self) -> dict[str, Any]:
        """Serialise with the camelCase keys used in stored snapshots."""
        return self.model_dump(mode='json', by_alias=True)
