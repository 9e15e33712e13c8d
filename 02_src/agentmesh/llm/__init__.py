"""LLM module."""

from .client import LLMClient, LLMConfig
from .llm_provider import (
    AnthropicProvider,
    ILLMProvider,
    LLMResponse,
    LLMUsage,
    MockLLMProvider,
    create_llm_provider,
)
from .retry import RetryOutcome, retry_operation

__all__ = [
    "AnthropicProvider",
    "ILLMProvider",
    "LLMClient",
    "LLMConfig",
    "LLMResponse",
    "LLMUsage",
    "MockLLMProvider",
    "RetryOutcome",
    "create_llm_provider",
    "retry_operation",
]
