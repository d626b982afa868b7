"""
Processing records: the idempotency ledger of the automation pipeline.

A record is keyed by (session, message, processing type). At most one record
per key may reach ``completed``; an existing completed record means the stage
has already run for that message.
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class ProcessingType(str, Enum):
    """Pipeline stage a record belongs to."""

    SUMMARIZATION = 'summarization'
    RESPONSE_GENERATION = 'response_generation'


class ProcessingStatus(str, Enum):
    """Lifecycle of a processing record."""

    PENDING = 'pending'
    COMPLETED = 'completed'
    FAILED = 'failed'


class ProcessingRecord(BaseModel):
    """Ledger row in sandbox_ai_processing."""

    session_id: UUID
    message_uuid: str
    processing_type: ProcessingType
    input_data: dict[str, Any] = Field(default_factory=dict)
    output_data: dict[str, Any] = Field(default_factory=dict)
    ai_model: str = Field(..., description='Model id, or the fallback marker')
    processing_status: ProcessingStatus = Field(default=ProcessingStatus.COMPLETED)
    processed_at: datetime | None = None

    @property
    def key(self) -> tuple[UUID, str, str]:
        return (self.session_id, self.message_uuid, self.processing_type.value)
