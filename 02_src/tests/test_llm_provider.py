"""Tests for LLM providers."""

from unittest.mock import AsyncMock, Mock, patch

import anthropic
import httpx
import pytest

from agentmesh.errors import (
    LLMProviderError,
    LLMRateLimitError,
    LLMResponseFormatError,
    LLMTimeoutError,
    TransportError,
)
from agentmesh.llm import AnthropicProvider, MockLLMProvider, create_llm_provider

REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def make_client(response=None, error=None):
    """Build a fake AsyncAnthropic client."""
    mock_client = Mock()
    mock_client.messages.create = AsyncMock(return_value=response, side_effect=error)
    return mock_client


def make_response(*texts, input_tokens=12, output_tokens=34):
    mock_response = Mock()
    mock_response.content = [Mock(text=text) for text in texts]
    mock_response.usage = Mock(input_tokens=input_tokens, output_tokens=output_tokens)
    return mock_response


class TestAnthropicProviderInit:
    """Tests for AnthropicProvider initialization."""

    def test_init_with_api_key(self, monkeypatch):
        """Test initialization with API key."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test_key")

        with patch("agentmesh.llm.llm_provider.anthropic.AsyncAnthropic") as mock_cls:
            provider = AnthropicProvider(timeout_seconds=5.0)

            assert provider.provider_name == "anthropic"
            mock_cls.assert_called_once_with(api_key="test_key", timeout=5.0, max_retries=0)

    def test_init_without_api_key(self, monkeypatch):
        """Test initialization without API key raises error."""
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        with patch("agentmesh.llm.llm_provider.anthropic.AsyncAnthropic"):
            with pytest.raises(ValueError):
                AnthropicProvider()


class TestAnthropicProviderComplete:
    """Tests for AnthropicProvider.complete() method."""

    async def test_complete_returns_response(self, monkeypatch):
        """Test that complete() returns content and usage."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test_key")
        mock_client = make_client(make_response("Test ", "response"))

        with patch(
            "agentmesh.llm.llm_provider.anthropic.AsyncAnthropic",
            return_value=mock_client,
        ):
            provider = AnthropicProvider(model="claude-test")
            response = await provider.complete("Hello")

        assert response.content == "Test response"
        assert response.usage.total_tokens == 46
        assert response.provider == "anthropic"
        assert response.model == "claude-test"

    async def test_complete_sends_prompt_with_context(self, monkeypatch):
        """Test that context is appended to the user prompt."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test_key")
        mock_client = make_client(make_response("ok"))

        with patch(
            "agentmesh.llm.llm_provider.anthropic.AsyncAnthropic",
            return_value=mock_client,
        ):
            provider = AnthropicProvider()
            await provider.complete(
                "Hello", context={"task": "reasoning"}, max_tokens=64, temperature=0.1
            )

        call_kwargs = mock_client.messages.create.call_args.kwargs
        assert call_kwargs["max_tokens"] == 64
        assert call_kwargs["temperature"] == 0.1
        content = call_kwargs["messages"][0]["content"]
        assert content.startswith("Hello")
        assert '"task": "reasoning"' in content

    async def test_empty_content_raises(self, monkeypatch):
        """Test that a response without text raises LLMResponseFormatError."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test_key")
        mock_client = make_client(make_response())

        with patch(
            "agentmesh.llm.llm_provider.anthropic.AsyncAnthropic",
            return_value=mock_client,
        ):
            provider = AnthropicProvider()
            with pytest.raises(LLMResponseFormatError):
                await provider.complete("Hello")

    @pytest.mark.parametrize(
        "sdk_error, expected",
        [
            (anthropic.APITimeoutError(request=REQUEST), LLMTimeoutError),
            (
                anthropic.RateLimitError(
                    "slow down",
                    response=httpx.Response(429, request=REQUEST),
                    body=None,
                ),
                LLMRateLimitError,
            ),
            (anthropic.APIConnectionError(request=REQUEST), TransportError),
            (
                anthropic.InternalServerError(
                    "boom",
                    response=httpx.Response(500, request=REQUEST),
                    body=None,
                ),
                LLMProviderError,
            ),
        ],
    )
    async def test_sdk_errors_are_mapped(self, monkeypatch, sdk_error, expected):
        """Test that SDK exceptions map onto the runtime error taxonomy."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test_key")
        mock_client = make_client(error=sdk_error)

        with patch(
            "agentmesh.llm.llm_provider.anthropic.AsyncAnthropic",
            return_value=mock_client,
        ):
            provider = AnthropicProvider()
            with pytest.raises(expected):
                await provider.complete("Hello")


class TestMockLLMProvider:
    """Tests for MockLLMProvider."""

    async def test_responses_keyed_by_task(self, mock_provider):
        """Test that the mock answers by task context."""
        summary = await mock_provider.complete("x", context={"task": "summarization"})
        plan = await mock_provider.complete("x", context={"task": "workflow_planning"})
        reasoning = await mock_provider.complete("x")

        assert summary.content.startswith("Mock summary")
        assert plan.content.startswith("[")
        assert reasoning.content.startswith("Mock reasoning")
        assert mock_provider.calls == ["summarize", "plan_workflow", "reason"]

    async def test_task_context_wins_over_prompt_text(self, mock_provider):
        """Test that a planning prompt mentioning summarizers still gets a plan."""
        prompt = "Plan a workflow to summarize the news. Available agents: summarizer"

        plan = await mock_provider.complete(prompt, context={"task": "workflow_planning"})
        reasoning = await mock_provider.complete("summarize why", context={"task": "reasoning"})
        untagged = await mock_provider.complete("please summarize this")

        assert plan.content.startswith("[")
        assert reasoning.content.startswith("Mock reasoning")
        assert untagged.content.startswith("Mock summary")
        assert mock_provider.calls == ["plan_workflow", "reason", "summarize"]

    async def test_custom_response(self):
        """Test overriding a canned response."""
        provider = MockLLMProvider().with_response("reason", "custom")

        response = await provider.complete("why?")

        assert response.content == "custom"


class TestCreateLLMProvider:
    """Tests for create_llm_provider()."""

    def test_without_key_uses_mock(self, monkeypatch):
        """Test fallback to the mock provider."""
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        assert isinstance(create_llm_provider(), MockLLMProvider)

    def test_with_key_uses_anthropic(self, monkeypatch):
        """Test Anthropic provider selection."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test_key")

        with patch("agentmesh.llm.llm_provider.anthropic.AsyncAnthropic"):
            assert isinstance(create_llm_provider(), AnthropicProvider)
