"""
Pipeline stages for summarizing, answering and actioning guest messages.
"""

from .context_builder import build_message_context
from .escalation import detect_escalations
from .fallback import KEYWORD_RULES, classify_message, fallback_reply
from .follow_up import FollowUpEvaluator, follow_ups_for
from .pipeline import AutomationPipeline, PipelineResult
from .responder import GuestResponder
from .summarizer import MessageSummarizer
from .task_generator import TaskGenerator, assignment_for, needs_task

__all__ = [
    # Main Pipeline
    'AutomationPipeline',
    'PipelineResult',
    # Stages
    'MessageSummarizer',
    'GuestResponder',
    'TaskGenerator',
    'FollowUpEvaluator',
    'detect_escalations',
    # Helpers
    'build_message_context',
    'KEYWORD_RULES',
    'classify_message',
    'fallback_reply',
    'follow_ups_for',
    'assignment_for',
    'needs_task',
]
