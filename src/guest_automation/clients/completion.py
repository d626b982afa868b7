"""
Completion capability shared by the summarizer and responder.

The pipeline receives a completion client by injection. When no OpenAI key
is configured it gets a NullCompletionClient, which always fails with
CompletionUnavailableError so every caller drops straight to its rule-based
fallback.
"""

from typing import Protocol, TypeVar

from pydantic import BaseModel

from ..config import PLACEHOLDER_API_KEY, config
from ..errors import CompletionUnavailableError

T = TypeVar('T', bound=BaseModel)

# Recorded as ai_model when a rule-based fallback produced the output
FALLBACK_MODEL = 'rule-based-fallback'


class CompletionClient(Protocol):
    """Anything that can turn role-tagged messages into a validated JSON object."""

    model: str

    async def complete_json(
        self,
        messages: list[dict[str, str]],
        response_model: type[T],
        temperature: float | None = None,
    ) -> T: ...

    async def close(self) -> None: ...


class NullCompletionClient:
    """Completion client for deployments without a configured service."""

    model = FALLBACK_MODEL

    async def complete_json(
        self,
        messages: list[dict[str, str]],
        response_model: type[T],
        temperature: float | None = None,
    ) -> T:
        raise CompletionUnavailableError(
            'No completion service configured',
            context={'response_model': response_model.__name__},
        )

    async def close(self) -> None:
        return None


def create_completion_client(
    api_key: str | None = None,
    chat_model: str | None = None,
    temperature: float | None = None,
    timeout: float | None = None,
) -> CompletionClient:
    """
    Build the completion client for the current configuration.

    Args:
        api_key: OpenAI key override (defaults to config.OPENAI_API_KEY)
        chat_model: Chat model override (defaults to config.OPENAI_CHAT_MODEL)
        temperature: Sampling temperature override (defaults to config.OPENAI_TEMPERATURE)
        timeout: Request timeout override in seconds (defaults to config.OPENAI_TIMEOUT_SECONDS)

    Returns:
        An OpenAIClient when a usable key is available, otherwise a
        NullCompletionClient
    """
    from .openai_client import OpenAIClient

    key = api_key if api_key is not None else config.OPENAI_API_KEY
    if not key or not key.strip() or key.strip() == PLACEHOLDER_API_KEY:
        return NullCompletionClient()
    return OpenAIClient(
        api_key=key,
        chat_model=chat_model or config.OPENAI_CHAT_MODEL,
        temperature=temperature if temperature is not None else config.OPENAI_TEMPERATURE,
        timeout=timeout or config.OPENAI_TIMEOUT_SECONDS,
    )
