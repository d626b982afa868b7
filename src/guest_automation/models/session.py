"""
Sandbox session model.

A session is a bounded automation run scoped to one guest conversation
scenario. Sessions are created outside the pipeline and are read-only here.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class ScenarioData(BaseModel):
    """
    Scenario payload attached to a sandbox session.

    Only the keys the pipeline reads are declared; anything else the session
    setup stored is preserved as extra attributes.
    """

    property_id: int | None = Field(default=None, description='Referenced property row')
    guest_name: str | None = Field(default=None, description='Synthetic guest name')
    check_in_date: str | None = Field(default=None, description='Synthetic booking check-in date')
    check_out_date: str | None = Field(default=None, description='Synthetic booking check-out date')

    model_config = {'extra': 'allow'}

    @field_validator('property_id', mode='before')
    @classmethod
    def _parse_property_id(cls, value: Any) -> int | None:
        # Scenario payloads are free-form JSON; unusable references become None
        if value is None or isinstance(value, bool):
            return None
        try:
            return int(str(value).strip())
        except ValueError:
            return None


class Session(BaseModel):
    """A sandbox automation session owned by an account."""

    id: UUID = Field(..., description='Session identifier')
    account_id: int = Field(..., description='Owning account')
    scenario_data: ScenarioData = Field(default_factory=ScenarioData)
    is_active: bool = Field(default=True)

    created_at: datetime | None = Field(default=None)
    updated_at: datetime | None = Field(default=None)

    @property
    def property_id(self) -> int | None:
        return self.scenario_data.property_id

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> 'Session':
        """Build a Session from a sandbox_sessions row mapping."""
        scenario = row.get('scenario_data') or {}
        return cls(
            id=row['id'],
            account_id=row['account_id'],
            scenario_data=ScenarioData.model_validate(scenario),
            is_active=row['is_active'] if row.get('is_active') is not None else True,
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at'),
        )
