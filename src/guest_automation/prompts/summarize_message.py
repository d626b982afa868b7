"""
Guest message summarization prompt.

The response is requested as a JSON object and validated against
``models.summary.Summary``.
"""

from ..models.context import MessageContext

SUMMARY_SYSTEM_PROMPT = (
    'You are a helpful property management assistant. Always respond with valid JSON.'
)

SUMMARY_USER_PROMPT_TEMPLATE = """
You are an AI assistant for a property management system. Analyze this guest message and provide a structured summary.

Property: {property_name}
Guest: {guest_name}
Current Message: "{message_body}"

Recent Conversation History:
{history}

Please provide a JSON response with:
{{
  "language": "detected language (en, es, fr, etc.)",
  "sentiment": "positive/neutral/negative/urgent",
  "tone": "friendly/formal/frustrated/confused",
  "actionRequired": true/false,
  "actionTitle": "brief description of what needs to be done",
  "category": "booking/maintenance/check-in/check-out/amenities/complaint/cleaning/general",
  "priority": "low/medium/high/urgent",
  "keyInformation": ["list of important details extracted"],
  "suggestedResponse": "brief suggested response to the guest"
}}"""


def format_history(context: MessageContext) -> str:
    """Render history as ``<type>: <text>`` lines, oldest first."""
    return '\n'.join(f'{h.type}: {h.text}' for h in context.conversation_history)


def build_summary_prompt(context: MessageContext, message_body: str) -> list[dict[str, str]]:
    """
    Build the messages for summarizing one guest message.

    Args:
        context: Property, guest and history context for the message
        message_body: Text of the message being summarized

    Returns:
        List of message dicts for the completion call
    """
    user_prompt = SUMMARY_USER_PROMPT_TEMPLATE.format(
        property_name=context.property.name or '',
        guest_name=context.guest.name,
        message_body=message_body,
        history=format_history(context),
    )
    return [
        {'role': 'system', 'content': SUMMARY_SYSTEM_PROMPT},
        {'role': 'user', 'content': user_prompt},
    ]
