"""LLM Provider abstraction layer.

Supports multiple LLM backends (Google Gemini, Anthropic Claude, OpenAI)
with a unified JSON interface and an output guard.
"""

from .base import LLMProvider, LLMResponse, LLMConfig, LLMError, LLMJSONError
from .guards import JSONOutputGuard
from .registry import get_provider, get_available_provider

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "LLMConfig",
    "LLMError",
    "LLMJSONError",
    "JSONOutputGuard",
    "get_provider",
    "get_available_provider",
]
