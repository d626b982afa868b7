"""
Conversation context for summarizing a guest message.
"""

from ..models.context import (
    BookingDates,
    GuestContext,
    HistoryEntry,
    MessageContext,
    PropertyContext,
)
from ..models.message import Message
from ..models.property import Property
from ..models.session import Session

DEFAULT_HISTORY_LIMIT = 10
DEFAULT_GUEST_NAME = 'Guest'


def build_message_context(
    message: Message,
    history: list[Message],
    session: Session,
    prop: Property | None = None,
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> MessageContext:
    """
    Assemble bounded context for one inbound message.

    Only messages strictly earlier than ``message`` are kept: the ``limit``
    most recent of them, presented oldest first. Property fields stay empty
    when the scenario has no property reference or the property is missing.

    Args:
        message: The message being summarized
        history: Earlier messages of the session, in any order
        session: Session whose scenario supplies guest and property references
        prop: Resolved property record, if any
        limit: Maximum number of history entries

    Returns:
        MessageContext; never raises for missing optional data
    """
    scenario = session.scenario_data

    property_context = PropertyContext(id=scenario.property_id)
    if prop is not None and scenario.property_id is not None:
        property_context = PropertyContext(
            id=scenario.property_id,
            name=prop.property_title,
            address=prop.property_location,
            check_in=prop.check_in_time,
            check_out=prop.check_out_time,
        )

    guest = GuestContext(
        name=scenario.guest_name or DEFAULT_GUEST_NAME,
        phone=message.from_number,
        booking_dates=BookingDates(
            check_in=scenario.check_in_date,
            check_out=scenario.check_out_date,
        ),
    )

    earlier = [h for h in history if h.timestamp < message.timestamp]
    earlier.sort(key=lambda h: h.timestamp, reverse=True)
    recent = list(reversed(earlier[:limit]))

    return MessageContext(
        property=property_context,
        guest=guest,
        conversation_history=[
            HistoryEntry(text=h.body, type=h.direction.value, timestamp=h.timestamp)
            for h in recent
        ],
    )
