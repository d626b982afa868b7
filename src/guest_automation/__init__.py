"""
Guest Automation Pipeline

Turns inbound guest messages of a property-management sandbox session into
summaries, replies, staff tasks, follow-up reminders and escalations, with
OpenAI-powered generation and rule-based fallbacks over Postgres storage.
"""

__version__ = '0.1.0'

# Re-export key classes for convenience
from .pipeline import (
    AutomationPipeline,
    PipelineResult,
    MessageSummarizer,
    GuestResponder,
    TaskGenerator,
    FollowUpEvaluator,
    detect_escalations,
)
from .repository import AutomationRepository
from .clients import NullCompletionClient, OpenAIClient, PostgresClient, create_completion_client
from .logging import (
    configure_logging,
    get_logger,
    logging_context,
    PipelineTimer,
)
from .errors import (
    GuestAutomationError,
    PipelineError,
    ValidationError,
    CompletionError,
    CompletionUnavailableError,
    StoreError,
)

__all__ = [
    # Version
    '__version__',
    # Main Pipeline
    'AutomationPipeline',
    'PipelineResult',
    # Components
    'MessageSummarizer',
    'GuestResponder',
    'TaskGenerator',
    'FollowUpEvaluator',
    'detect_escalations',
    # Store and clients
    'AutomationRepository',
    'PostgresClient',
    'OpenAIClient',
    'NullCompletionClient',
    'create_completion_client',
    # Logging
    'configure_logging',
    'get_logger',
    'logging_context',
    'PipelineTimer',
    # Errors
    'GuestAutomationError',
    'PipelineError',
    'ValidationError',
    'CompletionError',
    'CompletionUnavailableError',
    'StoreError',
]
