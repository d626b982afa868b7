"""
Property reference data used to ground guest replies.
"""

import json
from typing import Any

from pydantic import BaseModel, Field, ValidationInfo, field_validator


class Faq(BaseModel):
    """A property FAQ entry."""

    question: str | None = None
    answer: str | None = None

    @property
    def is_valid(self) -> bool:
        """FAQs are only usable with both a question and an answer."""
        return bool((self.question or '').strip()) and bool((self.answer or '').strip())


# Fields holding structured data rather than a rendered column value
_STRUCTURED_FIELDS = frozenset({'id', 'extra_attributes', 'faqs'})


class Property(BaseModel):
    """
    Property record with the fields replies draw from.

    Columns without a declared field land in ``extra_attributes`` and are
    rendered after the known fields.
    """

    id: int

    property_title: str | None = None
    property_location: str | None = None
    check_in_time: str | None = None
    check_out_time: str | None = None
    wifi_network_name: str | None = None
    wifi_password: str | None = None
    bedrooms: str | None = None
    bathrooms: str | None = None
    max_guests: str | None = None
    property_type: str | None = None
    description: str | None = None
    house_rules: str | None = None
    amenities: str | None = None
    parking_info: str | None = None
    emergency_contact: str | None = None
    host_phone: str | None = None
    host_email: str | None = None
    local_area_info: str | None = None
    transportation_info: str | None = None
    nearby_attractions: str | None = None
    restaurant_recommendations: str | None = None
    grocery_stores: str | None = None
    medical_facilities: str | None = None
    pet_policy: str | None = None
    smoking_policy: str | None = None
    noise_policy: str | None = None
    party_policy: str | None = None
    additional_instructions: str | None = None
    cleaning_instructions: str | None = None
    appliance_instructions: str | None = None
    hvac_instructions: str | None = None
    security_system_info: str | None = None
    key_access_info: str | None = None

    extra_attributes: dict[str, Any] = Field(default_factory=dict)
    faqs: list[Faq] = Field(default_factory=list)

    @field_validator('*', mode='before')
    @classmethod
    def _stringify_column(cls, value: Any, info: ValidationInfo) -> Any:
        # Columns may be TIME, numeric, array or JSONB; they are shown as text
        if info.field_name in _STRUCTURED_FIELDS or value is None or isinstance(value, str):
            return value
        if isinstance(value, (list, tuple)):
            return ', '.join(str(item) for item in value)
        if isinstance(value, dict):
            return json.dumps(value, default=str)
        return str(value)

    @property
    def valid_faqs(self) -> list[Faq]:
        return [f for f in self.faqs if f.is_valid]


# Row columns never rendered into property information
EXCLUDED_PROPERTY_COLUMNS = frozenset({
    'id', 'account_id', 'created_at', 'updated_at', 'is_active', 'faqs', 'scenario_data',
})


def property_from_row(row: dict[str, Any], faqs: list[dict[str, Any]] | None = None) -> Property:
    """
    Build a Property from a properties row mapping.

    Declared columns map onto fields; the remaining non-excluded columns are
    kept as extra attributes in column order.
    """
    declared = set(Property.model_fields) - {'extra_attributes', 'faqs'}
    known: dict[str, Any] = {}
    extra: dict[str, Any] = {}
    for key, value in row.items():
        if key in declared:
            known[key] = value
        elif key not in EXCLUDED_PROPERTY_COLUMNS:
            extra[key] = value

    return Property(
        **known,
        extra_attributes=extra,
        faqs=[Faq(question=f.get('question'), answer=f.get('answer')) for f in faqs or []],
    )
