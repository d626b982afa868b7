"""
Escalation detection for urgent guest messages.
"""

from ..models.results import Escalation, SummarizedMessage

ESCALATION_REASON = 'Urgent guest request'
ESCALATION_RECOMMENDED_ACTION = 'Immediate host attention required'


def detect_escalations(summaries: list[SummarizedMessage]) -> list[Escalation]:
    """One escalation per summary whose priority or sentiment is urgent."""
    return [
        Escalation(
            message_uuid=s.message_uuid,
            reason=ESCALATION_REASON,
            summary=s.summary,
            recommended_action=ESCALATION_RECOMMENDED_ACTION,
        )
        for s in summaries
        if s.summary.is_urgent
    ]
