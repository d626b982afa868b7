"""
OpenAI client wrapper for the guest automation pipeline.

Handles:
- Chat completions in JSON-object mode
- Validation of the returned JSON against a Pydantic model
- Bounded request timeout

Requests are not retried: any failure is reported as a
CompletionError and the caller switches to its rule-based fallback.
"""

import os
from typing import TypeVar

from openai import AsyncOpenAI
from pydantic import BaseModel

from ..errors import wrap_completion_error
from ..logging import get_logger

T = TypeVar('T', bound=BaseModel)

logger = get_logger(__name__)


class OpenAIClient:
    """
    Async OpenAI client returning validated JSON objects.

    Configuration via environment variables:
    - OPENAI_API_KEY: Required API key
    - OPENAI_CHAT_MODEL: Chat model (default: gpt-4o-mini)
    - OPENAI_TEMPERATURE: Sampling temperature (default: 0.7)
    - OPENAI_TIMEOUT_SECONDS: Per-request timeout (default: 30)
    """

    def __init__(
        self,
        api_key: str | None = None,
        chat_model: str | None = None,
        temperature: float | None = None,
        timeout: float | None = None,
    ):
        """
        Initialize the OpenAI client.

        Args:
            api_key: OpenAI API key (defaults to OPENAI_API_KEY env var)
            chat_model: Model for chat completions (defaults to OPENAI_CHAT_MODEL or gpt-4o-mini)
            temperature: Default sampling temperature (defaults to OPENAI_TEMPERATURE or 0.7)
            timeout: Request timeout in seconds (defaults to OPENAI_TIMEOUT_SECONDS or 30)
        """
        self.api_key = api_key or os.getenv('OPENAI_API_KEY')
        if not self.api_key:
            raise ValueError('OPENAI_API_KEY environment variable is required')

        self.model = chat_model or os.getenv('OPENAI_CHAT_MODEL', 'gpt-4o-mini')
        self.temperature = (
            temperature
            if temperature is not None
            else float(os.getenv('OPENAI_TEMPERATURE', '0.7'))
        )
        self.timeout = timeout or float(os.getenv('OPENAI_TIMEOUT_SECONDS', '30'))

        self._client = AsyncOpenAI(
            api_key=self.api_key,
            timeout=self.timeout,
            max_retries=0,
        )

    async def chat_completion(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        temperature: float | None = None,
    ) -> str:
        """
        Get a chat completion constrained to a JSON object.

        Args:
            messages: List of message dicts with 'role' and 'content'
            model: Override the default chat model
            temperature: Override the default sampling temperature

        Returns:
            The assistant's raw response text
        """
        response = await self._client.chat.completions.create(
            model=model or self.model,
            messages=messages,  # type: ignore
            temperature=self.temperature if temperature is None else temperature,
            response_format={'type': 'json_object'},
        )
        return response.choices[0].message.content or ''

    async def complete_json(
        self,
        messages: list[dict[str, str]],
        response_model: type[T],
        temperature: float | None = None,
    ) -> T:
        """
        Get a completion and validate it against a Pydantic model.

        Transport failures, timeouts, invalid JSON and schema mismatches all
        surface as CompletionError subclasses.

        Args:
            messages: List of message dicts with 'role' and 'content'
            response_model: Pydantic model class for the response
            temperature: Override the default sampling temperature

        Returns:
            Parsed Pydantic model instance
        """
        try:
            content = await self.chat_completion(messages, temperature=temperature)
            return response_model.model_validate_json(content)
        except Exception as e:
            error = wrap_completion_error(
                e,
                context={'model': self.model, 'response_model': response_model.__name__},
            )
            logger.warning(
                'openai_client.completion_failed',
                error_type=type(error).__name__,
                error=error.message,
            )
            raise error from e

    async def health_check(self) -> dict[str, bool | str]:
        """
        Verify API connectivity with a minimal request.

        Returns:
            Dict with 'healthy' bool and optional 'error' message
        """
        try:
            await self._client.models.retrieve(self.model)
            return {'healthy': True, 'chat_model': self.model}
        except Exception as e:
            return {'healthy': False, 'error': str(e)}

    async def close(self):
        """Close the client connection."""
        await self._client.close()
