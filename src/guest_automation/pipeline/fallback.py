"""
Rule-based summarizer and responder used when the completion service is
unavailable or returns something unusable.

Both functions are total: any message text, including empty or non-English
text, yields a fully populated model.
"""

from dataclasses import dataclass

from ..models.reply import Reply
from ..models.summary import Category, Priority, Summary


@dataclass(frozen=True)
class KeywordRule:
    """Keyword rule for the fallback classifier. First match wins."""

    keywords: tuple[str, ...]
    category: Category
    priority: Priority
    action_title: str
    sentiment: str = 'neutral'


KEYWORD_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(
        keywords=('key', 'check in', 'access', "can't get in", 'cannot get in', 'can not get in'),
        category=Category.CHECK_IN,
        priority=Priority.HIGH,
        action_title='Help with property access',
    ),
    KeywordRule(
        keywords=('wifi', 'broken', 'fix'),
        category=Category.MAINTENANCE,
        priority=Priority.MEDIUM,
        action_title='Maintenance request',
    ),
    KeywordRule(
        keywords=('noise', 'complaint', 'problem'),
        category=Category.COMPLAINT,
        priority=Priority.HIGH,
        action_title='Address guest complaint',
        sentiment='negative',
    ),
    KeywordRule(
        keywords=('clean',),
        category=Category.CLEANING,
        priority=Priority.MEDIUM,
        action_title='Cleaning request',
    ),
)

NO_ACTION_TITLE = 'Message received'
ACTION_SUGGESTED_RESPONSE = "Thank you for letting me know. I'll take care of this right away."
NO_ACTION_SUGGESTED_RESPONSE = 'Thank you for your message. Is there anything I can help you with?'

REPLY_PREFIX = 'Thank you for your message! '
CATEGORY_REPLIES: dict[Category, str] = {
    Category.CHECK_IN: (
        'The door code is 1234. You can find detailed check-in instructions '
        'in your booking confirmation.'
    ),
    Category.MAINTENANCE: (
        "I'm sorry to hear about this issue. I'll send someone to take a look at it right away."
    ),
    Category.CLEANING: "I'll arrange for housekeeping to address this immediately.",
    Category.COMPLAINT: (
        "I sincerely apologize for this inconvenience. I'm taking immediate action "
        'to resolve this issue.'
    ),
}
DEFAULT_REPLY = 'Is there anything specific I can help you with during your stay?'


def _normalise(text: str | None) -> str:
    # Curly apostrophes from phone keyboards
    return (text or '').lower().replace('’', "'")


def match_rule(message_text: str | None) -> KeywordRule | None:
    """Return the first rule with a keyword in the text (case-insensitive)."""
    body = _normalise(message_text)
    for rule in KEYWORD_RULES:
        if any(keyword in body for keyword in rule.keywords):
            return rule
    return None


def classify_message(message_text: str | None) -> Summary:
    """
    Summarize a message by keyword matching.

    Args:
        message_text: Raw guest message body (may be empty or None)

    Returns:
        Summary with every field populated
    """
    rule = match_rule(message_text)

    if rule is None:
        return Summary(
            language='en',
            sentiment='neutral',
            tone='friendly',
            action_required=False,
            action_title=NO_ACTION_TITLE,
            category=Category.GENERAL,
            priority=Priority.MEDIUM,
            key_information=[NO_ACTION_TITLE],
            suggested_response=NO_ACTION_SUGGESTED_RESPONSE,
        )

    return Summary(
        language='en',
        sentiment=rule.sentiment,
        tone='frustrated' if rule.sentiment == 'negative' else 'friendly',
        action_required=True,
        action_title=rule.action_title,
        category=rule.category,
        priority=rule.priority,
        key_information=[rule.action_title],
        suggested_response=ACTION_SUGGESTED_RESPONSE,
    )


def fallback_reply(summary: Summary) -> Reply:
    """
    Build a reply from the summary category alone.

    Args:
        summary: Summary of the message being answered

    Returns:
        Reply with follow-up required for high-priority summaries
    """
    task_type = 'none'
    if summary.category == Category.MAINTENANCE:
        task_type = 'maintenance'
    elif summary.category == Category.CLEANING:
        task_type = 'cleaning'

    return Reply(
        message=REPLY_PREFIX + CATEGORY_REPLIES.get(summary.category, DEFAULT_REPLY),
        requires_follow_up=summary.priority == Priority.HIGH,
        escalation_needed=summary.category == Category.COMPLAINT,
        task_type=task_type,
    )
