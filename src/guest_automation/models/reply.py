"""
Reply model: the guest-facing answer produced from a summary.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class Reply(BaseModel):
    """Reply text plus the follow-up and escalation flags."""

    message: str = Field(..., min_length=1, description='Text sent to the guest')
    requires_follow_up: bool = Field(default=False)
    escalation_needed: bool = Field(default=False)
    task_type: str = Field(default='none', description='cleaning / maintenance / none')

    model_config = {
        'populate_by_name': True,
        'alias_generator': to_camel,
    }

    @field_validator('message')
    @classmethod
    def _strip_message(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError('reply message must not be blank')
        return value

    @field_validator('task_type', mode='before')
    @classmethod
    def _normalise_task_type(cls, value: Any) -> Any:
        if value is None:
            return 'none'
        if isinstance(value, str):
            return value.strip().lower() or 'none'
        return value

    def to_output(self) -> dict[str, Any]:
        return self.model_dump(mode='json', by_alias=True)
