"""
Data models for the guest automation pipeline.
"""

from .context import BookingDates, GuestContext, HistoryEntry, MessageContext, PropertyContext
from .message import Message, MessageDirection
from .processing import ProcessingRecord, ProcessingStatus, ProcessingType
from .property import Faq, Property, property_from_row
from .reply import Reply
from .results import Escalation, FollowUp, GeneratedResponse, SummarizedMessage
from .session import ScenarioData, Session
from .summary import Category, Priority, Summary
from .task import OPEN_TASK_STATUSES, Task, TaskStatus, TaskType

__all__ = [
    'BookingDates',
    'GuestContext',
    'HistoryEntry',
    'MessageContext',
    'PropertyContext',
    'Message',
    'MessageDirection',
    'ProcessingRecord',
    'ProcessingStatus',
    'ProcessingType',
    'Faq',
    'Property',
    'property_from_row',
    'Reply',
    'Escalation',
    'FollowUp',
    'GeneratedResponse',
    'SummarizedMessage',
    'ScenarioData',
    'Session',
    'Category',
    'Priority',
    'Summary',
    'OPEN_TASK_STATUSES',
    'Task',
    'TaskStatus',
    'TaskType',
]
