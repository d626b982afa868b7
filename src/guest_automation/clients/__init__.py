"""
External service clients for the guest automation pipeline.
"""

from .completion import (
    FALLBACK_MODEL,
    CompletionClient,
    NullCompletionClient,
    create_completion_client,
)
from .openai_client import OpenAIClient
from .postgres_client import PostgresClient

__all__ = [
    'FALLBACK_MODEL',
    'CompletionClient',
    'NullCompletionClient',
    'create_completion_client',
    'OpenAIClient',
    'PostgresClient',
]
