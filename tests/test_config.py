"""
Tests for configuration and completion-client selection.
"""

import pytest

from guest_automation.clients.completion import (
    FALLBACK_MODEL,
    NullCompletionClient,
    create_completion_client,
)
from guest_automation.clients.openai_client import OpenAIClient
from guest_automation.config import PLACEHOLDER_API_KEY, Config
from guest_automation.errors import CompletionUnavailableError
from guest_automation.models.summary import Summary


class TestConfig:
    """Test Config helpers."""

    def test_completion_disabled_without_key(self, monkeypatch):
        monkeypatch.setattr(Config, 'OPENAI_API_KEY', '')
        assert Config.completion_enabled() is False

    def test_completion_disabled_with_placeholder_key(self, monkeypatch):
        monkeypatch.setattr(Config, 'OPENAI_API_KEY', PLACEHOLDER_API_KEY)
        assert Config.completion_enabled() is False

    def test_completion_enabled_with_real_key(self, monkeypatch):
        monkeypatch.setattr(Config, 'OPENAI_API_KEY', 'sk-test-123')
        assert Config.completion_enabled() is True

    def test_validate_requires_database_url(self, monkeypatch):
        monkeypatch.setattr(Config, 'DATABASE_URL', '')
        assert Config.validate() == ['DATABASE_URL']

    def test_validate_passes_without_openai_key(self, monkeypatch):
        monkeypatch.setattr(Config, 'DATABASE_URL', 'postgresql://localhost/sandbox')
        monkeypatch.setattr(Config, 'OPENAI_API_KEY', '')
        assert Config.validate() == []


class TestCreateCompletionClient:
    """Test selection between the OpenAI and null clients."""

    @pytest.mark.parametrize('key', ['', '   ', PLACEHOLDER_API_KEY])
    def test_unusable_key_gives_null_client(self, key):
        client = create_completion_client(api_key=key)
        assert isinstance(client, NullCompletionClient)
        assert client.model == FALLBACK_MODEL

    def test_real_key_gives_openai_client(self):
        client = create_completion_client(api_key='sk-test-123', chat_model='gpt-4o')
        assert isinstance(client, OpenAIClient)
        assert client.model == 'gpt-4o'

    def test_openai_settings_come_from_config(self, monkeypatch):
        monkeypatch.setattr(Config, 'OPENAI_CHAT_MODEL', 'gpt-4.1-mini')
        monkeypatch.setattr(Config, 'OPENAI_TEMPERATURE', 0.2)
        monkeypatch.setattr(Config, 'OPENAI_TIMEOUT_SECONDS', 12.0)
        monkeypatch.delenv('OPENAI_CHAT_MODEL', raising=False)
        monkeypatch.delenv('OPENAI_TEMPERATURE', raising=False)
        monkeypatch.delenv('OPENAI_TIMEOUT_SECONDS', raising=False)

        client = create_completion_client(api_key='sk-test-123')

        assert client.model == 'gpt-4.1-mini'
        assert client.temperature == 0.2
        assert client.timeout == 12.0

    @pytest.mark.asyncio
    async def test_null_client_always_unavailable(self):
        client = NullCompletionClient()
        with pytest.raises(CompletionUnavailableError) as exc_info:
            await client.complete_json([{'role': 'user', 'content': 'hi'}], Summary)

        assert exc_info.value.context['response_model'] == 'Summary'
        await client.close()
