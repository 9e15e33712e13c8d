"""LLM providers: Anthropic Claude API and a canned mock."""

import json
import os
from dataclasses import dataclass, field
from typing import Any, Protocol

import anthropic

from ..errors import (
    LLMProviderError,
    LLMRateLimitError,
    LLMResponseFormatError,
    LLMTimeoutError,
    TransportError,
)
from ..logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class LLMUsage:
    """Token accounting for one completion."""

    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


@dataclass
class LLMResponse:
    """Result of a completion."""

    content: str
    usage: LLMUsage = field(default_factory=LLMUsage)
    provider: str = ""
    model: str = ""


class ILLMProvider(Protocol):
    """Abstraction for LLM access."""

    @property
    def provider_name(self) -> str:
        """Short provider identifier."""
        ...

    async def complete(
        self,
        prompt: str,
        context: dict[str, Any] | None = None,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """Generate completion."""
        ...


class AnthropicProvider:
    """Anthropic Claude API provider."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "claude-3-5-sonnet-20241022",
        timeout_seconds: float = 30.0,
    ):
        self._api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self._api_key:
            raise ValueError("ANTHROPIC_API_KEY environment variable not set")

        self._model = model
        self._timeout = timeout_seconds
        # Retries are owned by the task executor, not the SDK
        self._client = anthropic.AsyncAnthropic(
            api_key=self._api_key,
            timeout=timeout_seconds,
            max_retries=0,
        )

    @property
    def provider_name(self) -> str:
        return "anthropic"

    async def complete(
        self,
        prompt: str,
        context: dict[str, Any] | None = None,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """Generate completion using Claude API."""
        content = prompt
        if context:
            content = f"{prompt}\n\nContext: {json.dumps(context, default=str)}"

        try:
            response = await self._client.messages.create(
                model=self._model,
                messages=[{"role": "user", "content": content}],
                max_tokens=max_tokens,
                temperature=temperature,
            )
        # APITimeoutError subclasses APIConnectionError, so it goes first
        except anthropic.APITimeoutError as e:
            raise LLMTimeoutError(self._timeout) from e
        except anthropic.RateLimitError as e:
            raise LLMRateLimitError(f"LLM rate limit exceeded: {e}") from e
        except anthropic.APIConnectionError as e:
            raise TransportError(f"LLM connection failed: {e}") from e
        except anthropic.APIError as e:
            raise LLMProviderError(f"LLM API error: {e}") from e

        texts = [block.text for block in response.content if getattr(block, "text", None)]
        if not texts:
            raise LLMResponseFormatError("No content in Anthropic response")

        usage = getattr(response, "usage", None)
        return LLMResponse(
            content="".join(texts),
            usage=LLMUsage(
                prompt_tokens=getattr(usage, "input_tokens", 0) or 0,
                completion_tokens=getattr(usage, "output_tokens", 0) or 0,
            ),
            provider=self.provider_name,
            model=self._model,
        )


DEFAULT_MOCK_RESPONSES = {
    "summarize": "Mock summary: Data analyzed successfully.",
    "plan_workflow": json.dumps(
        [
            {
                "step_id": "1",
                "agent_type": "mock",
                "action": "process",
                "inputs": ["data"],
                "outputs": ["result"],
            }
        ]
    ),
    "reason": "Mock reasoning: Task completed with mock logic.",
}

# LLMClient context "task" -> response key
MOCK_TASK_KEYS = {
    "summarization": "summarize",
    "workflow_planning": "plan_workflow",
    "reasoning": "reason",
}


class MockLLMProvider:
    """Deterministic provider for development and tests."""

    def __init__(self, responses: dict[str, str] | None = None):
        self.responses = dict(DEFAULT_MOCK_RESPONSES)
        if responses:
            self.responses.update(responses)
        self.calls: list[str] = []

    @property
    def provider_name(self) -> str:
        return "mock"

    def with_response(self, key: str, response: str) -> "MockLLMProvider":
        self.responses[key] = response
        return self

    async def complete(
        self,
        prompt: str,
        context: dict[str, Any] | None = None,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> LLMResponse:
        key = MOCK_TASK_KEYS.get((context or {}).get("task"))
        if key is None:
            # No task hint: fall back to the prompt text
            if "summarize" in prompt:
                key = "summarize"
            elif "workflow" in prompt:
                key = "plan_workflow"
            else:
                key = "reason"
        self.calls.append(key)

        return LLMResponse(
            content=self.responses.get(key, "Mock response: Task processed."),
            usage=LLMUsage(prompt_tokens=10, completion_tokens=20),
            provider=self.provider_name,
            model="mock-model",
        )


def create_llm_provider(
    model: str = "claude-3-5-sonnet-20241022",
    timeout_seconds: float = 30.0,
) -> ILLMProvider:
    """Anthropic when ANTHROPIC_API_KEY is set, otherwise the mock provider."""
    if os.getenv("ANTHROPIC_API_KEY"):
        return AnthropicProvider(model=model, timeout_seconds=timeout_seconds)

    logger.info("ANTHROPIC_API_KEY not set - using mock LLM provider")
    return MockLLMProvider()
