"""
Per-stage outputs of one pipeline run.

None of these are persisted as such; they are returned to the caller.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

from .reply import Reply
from .summary import Summary


class SummarizedMessage(BaseModel):
    """A newly produced summary together with the message it describes."""

    message_uuid: str
    original_message: str = ''
    from_number: str | None = None
    summary: Summary

    def to_dict(self) -> dict[str, Any]:
        return {
            'message_uuid': self.message_uuid,
            'original_message': self.original_message,
            'from_number': self.from_number,
            'summary': self.summary.to_output(),
        }


class GeneratedResponse(BaseModel):
    """An outbound reply written by the responder."""

    message_uuid: str = Field(..., description='Identity of the new outbound message')
    generated_from: str = Field(..., description='Inbound message the reply answers')
    response: str
    metadata: Reply

    def to_dict(self) -> dict[str, Any]:
        return {
            'message_uuid': self.message_uuid,
            'generated_from': self.generated_from,
            'response': self.response,
            'metadata': self.metadata.to_output(),
        }


class FollowUp(BaseModel):
    """Reminder for a task that has been pending too long."""

    task_uuid: str
    message: str
    type: Literal['reminder'] = 'reminder'


class Escalation(BaseModel):
    """Notice flagging a summary for immediate human attention."""

    message_uuid: str
    reason: str
    summary: Summary
    recommended_action: str

    def to_dict(self) -> dict[str, Any]:
        return {
            'message_uuid': self.message_uuid,
            'reason': self.reason,
            'summary': self.summary.to_output(),
            'recommended_action': self.recommended_action,
        }
