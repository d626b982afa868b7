"""
LLM prompts for the guest automation pipeline.
"""

from .generate_reply import (
    PROPERTY_INFO_FIELDS,
    PROPERTY_INFO_UNAVAILABLE,
    REPLY_SYSTEM_PROMPT,
    build_property_info,
    build_reply_prompt,
    field_label,
    format_faqs,
    reply_tone,
)
from .summarize_message import (
    SUMMARY_SYSTEM_PROMPT,
    build_summary_prompt,
    format_history,
)

__all__ = [
    # Reply generation
    'PROPERTY_INFO_FIELDS',
    'PROPERTY_INFO_UNAVAILABLE',
    'REPLY_SYSTEM_PROMPT',
    'build_property_info',
    'build_reply_prompt',
    'field_label',
    'format_faqs',
    'reply_tone',
    # Summarization
    'SUMMARY_SYSTEM_PROMPT',
    'build_summary_prompt',
    'format_history',
]
