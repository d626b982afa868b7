"""
Configuration management for the guest automation pipeline.

Loads settings from environment variables with sensible defaults.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from project root
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / '.env'
if _env_file.exists():
    load_dotenv(_env_file)

# Value shipped in example .env files; treated as "not configured"
PLACEHOLDER_API_KEY = 'your-openai-api-key-here'


class Config:
    """Configuration settings loaded from environment."""

    # OpenAI
    OPENAI_API_KEY: str = os.getenv('OPENAI_API_KEY', '')
    OPENAI_CHAT_MODEL: str = os.getenv('OPENAI_CHAT_MODEL', 'gpt-4o-mini')
    OPENAI_TEMPERATURE: float = float(os.getenv('OPENAI_TEMPERATURE', '0.7'))
    OPENAI_TIMEOUT_SECONDS: float = float(os.getenv('OPENAI_TIMEOUT_SECONDS', '30'))

    # Postgres
    DATABASE_URL: str = os.getenv('DATABASE_URL', '')

    # Pipeline
    HISTORY_LIMIT: int = int(os.getenv('HISTORY_LIMIT', '10'))
    FOLLOW_UP_THRESHOLD_HOURS: float = float(os.getenv('FOLLOW_UP_THRESHOLD_HOURS', '2'))
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')

    @classmethod
    def completion_enabled(cls) -> bool:
        """True when a usable OpenAI key is configured."""
        key = cls.OPENAI_API_KEY.strip()
        return bool(key) and key != PLACEHOLDER_API_KEY

    @classmethod
    def validate(cls) -> list[str]:
        """
        Validate that required configuration is present.

        The OpenAI key is optional: without it the pipeline runs on the
        rule-based fallbacks.

        Returns:
            List of missing required configuration keys
        """
        missing = []
        if not cls.DATABASE_URL:
            missing.append('DATABASE_URL')
        return missing


# Singleton config instance
config = Config()
