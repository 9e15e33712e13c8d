"""Processing module."""

from .executor import LLMTaskExecutor
from .fallbacks import FALLBACK_MARKER, is_fallback
from .router import (
    ForwardIntent,
    LlmTaskIntent,
    MessageIntent,
    MessageRouter,
    RegularIntent,
    StateActionIntent,
    UnclassifiedIntent,
    classify,
)

__all__ = [
    "FALLBACK_MARKER",
    "ForwardIntent",
    "LLMTaskExecutor",
    "LlmTaskIntent",
    "MessageIntent",
    "MessageRouter",
    "RegularIntent",
    "StateActionIntent",
    "UnclassifiedIntent",
    "classify",
    "is_fallback",
]
