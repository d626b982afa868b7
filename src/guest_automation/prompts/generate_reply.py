"""
Guest reply prompt and the property information block it embeds.

The response is requested as a JSON object and validated against
``models.reply.Reply``.
"""

import json
import re
from typing import Any

from ..models.property import Faq, Property
from ..models.summary import Summary

REPLY_SYSTEM_PROMPT = (
    'You are a helpful property management assistant. Respond with valid JSON.'
)

# (label, Property attribute), rendered in this order
PROPERTY_INFO_FIELDS: tuple[tuple[str, str], ...] = (
    ('Property Name', 'property_title'),
    ('Address', 'property_location'),
    ('Check-in Time', 'check_in_time'),
    ('Check-out Time', 'check_out_time'),
    ('WiFi Network', 'wifi_network_name'),
    ('WiFi Password', 'wifi_password'),
    ('Number of Bedrooms', 'bedrooms'),
    ('Number of Bathrooms', 'bathrooms'),
    ('Max Guests', 'max_guests'),
    ('Property Type', 'property_type'),
    ('Description', 'description'),
    ('House Rules', 'house_rules'),
    ('Amenities', 'amenities'),
    ('Parking Information', 'parking_info'),
    ('Emergency Contact', 'emergency_contact'),
    ('Host Phone', 'host_phone'),
    ('Host Email', 'host_email'),
    ('Local Area Information', 'local_area_info'),
    ('Transportation', 'transportation_info'),
    ('Nearby Attractions', 'nearby_attractions'),
    ('Restaurant Recommendations', 'restaurant_recommendations'),
    ('Grocery Stores', 'grocery_stores'),
    ('Medical Facilities', 'medical_facilities'),
    ('Pet Policy', 'pet_policy'),
    ('Smoking Policy', 'smoking_policy'),
    ('Noise Policy', 'noise_policy'),
    ('Party Policy', 'party_policy'),
    ('Additional Instructions', 'additional_instructions'),
    ('Cleaning Instructions', 'cleaning_instructions'),
    ('Appliance Instructions', 'appliance_instructions'),
    ('Heating/Cooling', 'hvac_instructions'),
    ('Security System', 'security_system_info'),
    ('Key/Access Information', 'key_access_info'),
)

# Alternate column names read when the primary attribute is empty
PROPERTY_INFO_ALIASES = {
    'property_title': 'name',
    'property_location': 'address',
}

PROPERTY_INFO_UNAVAILABLE = 'Property Information: Not available'

REPLY_USER_PROMPT_TEMPLATE = """
You are a helpful property host assistant. Generate a friendly, professional response to the guest.

Guest Message Summary:
{summary}

{property_info}

Available FAQs:
{faqs}

Generate a response that:
1. Addresses the guest's concern
2. Provides helpful information
3. Maintains a {tone} tone
4. Is concise and clear
5. If the issue requires human intervention, mention that the host will follow up

Respond with JSON:
{{
  "message": "the response message to send",
  "requiresFollowUp": true/false,
  "escalationNeeded": true/false,
  "taskType": "cleaning/maintenance/none"
}}"""


def field_label(name: str) -> str:
    """``local_area_info`` -> ``Local Area Info``; ``wifi_SSID`` -> ``Wifi SSID``."""
    return re.sub(r'\b\w', lambda m: m.group().upper(), name.replace('_', ' '))


def _present(value: Any) -> bool:
    if value is None:
        return False
    rendered = str(value).strip()
    return bool(rendered) and rendered != 'null'


def build_property_info(prop: Property | None) -> str:
    """
    Render the property information block.

    Known fields come first in PROPERTY_INFO_FIELDS order, followed by any
    extra columns carried on the record whose value was not already shown.
    Blank values and the literal text ``null`` are skipped.
    """
    if prop is None:
        return PROPERTY_INFO_UNAVAILABLE

    lines = ['Property Information:']
    mapped: list[Any] = []
    for label, attr in PROPERTY_INFO_FIELDS:
        value = getattr(prop, attr)
        if not _present(value) and attr in PROPERTY_INFO_ALIASES:
            value = prop.extra_attributes.get(PROPERTY_INFO_ALIASES[attr])
        mapped.append(value)
        if _present(value):
            lines.append(f'- {label}: {value}')

    for name, value in prop.extra_attributes.items():
        if value in mapped:
            continue
        if _present(value):
            lines.append(f'- {field_label(name)}: {value}')

    return '\n'.join(lines)


def format_faqs(faqs: list[Faq]) -> str:
    valid = [f for f in faqs if f.is_valid]
    if not valid:
        return 'None'
    return '\n\n'.join(f'Q: {f.question}\nA: {f.answer}' for f in valid)


def reply_tone(summary: Summary) -> str:
    """Tone instruction for the reply, softened for frustrated guests."""
    if summary.tone == 'frustrated':
        return 'empathetic and apologetic'
    return 'friendly and professional'


def build_reply_prompt(summary: Summary, prop: Property | None) -> list[dict[str, str]]:
    """
    Build the messages for generating a guest reply.

    Args:
        summary: Summary of the guest message being answered
        prop: Property record with FAQs, if the session references one

    Returns:
        List of message dicts for the completion call
    """
    user_prompt = REPLY_USER_PROMPT_TEMPLATE.format(
        summary=json.dumps(summary.to_output(), indent=2),
        property_info=build_property_info(prop),
        faqs=format_faqs(prop.faqs if prop else []),
        tone=reply_tone(summary),
    )
    return [
        {'role': 'system', 'content': REPLY_SYSTEM_PROMPT},
        {'role': 'user', 'content': user_prompt},
    ]
