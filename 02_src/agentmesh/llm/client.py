"""Task-level LLM client: prompts for summarize / plan_workflow / reason."""

import asyncio
import json
from dataclasses import dataclass
from typing import Any

from ..errors import LLMResponseFormatError, LLMTimeoutError, WorkflowValidationError
from ..logging_config import get_logger
from ..models import WorkflowStep
from .llm_provider import ILLMProvider

logger = get_logger(__name__)


@dataclass(frozen=True)
class LLMConfig:
    """Per-call defaults for the client."""

    max_tokens: int = 1000
    temperature: float = 0.7
    timeout_seconds: float = 30.0
    max_retries: int = 3


class LLMClient:
    """Builds task prompts and bounds every provider call by a timeout."""

    def __init__(self, provider: ILLMProvider, config: LLMConfig | None = None):
        self._provider = provider
        self._config = config or LLMConfig()

    @property
    def provider_name(self) -> str:
        return self._provider.provider_name

    @property
    def config(self) -> LLMConfig:
        return self._config

    async def reasoning_request(self, prompt: str, context: dict[str, Any]) -> str:
        """Send one prompt and return the completion text."""
        try:
            response = await asyncio.wait_for(
                self._provider.complete(
                    prompt=prompt,
                    context=context,
                    max_tokens=self._config.max_tokens,
                    temperature=self._config.temperature,
                ),
                timeout=self._config.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise LLMTimeoutError(self._config.timeout_seconds) from e

        logger.debug(
            "LLM %s used %s tokens", response.provider, response.usage.total_tokens
        )
        return response.content

    async def summarize_data(self, data: list[Any]) -> str:
        context = {"task": "summarization", "data_count": len(data)}
        prompt = (
            f"Please analyze and summarize the following {len(data)} data items:\n\n"
            f"{json.dumps(data, indent=2, default=str)}\n\n"
            "Provide a comprehensive summary highlighting key insights and patterns."
        )
        return await self.reasoning_request(prompt, context)

    async def plan_workflow(
        self, task_description: str, available_agents: list[str]
    ) -> list[WorkflowStep]:
        """Ask for a workflow plan and validate it into WorkflowSteps."""
        context = {"task": "workflow_planning", "available_agents": available_agents}
        prompt = (
            f"Given the task: '{task_description}' and available agents: "
            f"{available_agents}, create a detailed workflow plan. "
            "Respond with a JSON array of workflow steps, each containing: "
            '{"step_id": "string", "agent_type": "string", "action": "string", '
            '"inputs": ["string"], "outputs": ["string"]}'
        )

        response = await self.reasoning_request(prompt, context)
        try:
            raw_steps = json.loads(response)
        except ValueError as e:
            raise LLMResponseFormatError(f"Failed to parse workflow plan: {e}") from e

        if not isinstance(raw_steps, list) or not raw_steps:
            raise WorkflowValidationError("Workflow plan must be a non-empty JSON array")
        return [WorkflowStep.from_dict(step) for step in raw_steps]

    async def reason(self, prompt: str, context: dict[str, Any] | None = None) -> str:
        return await self.reasoning_request(
            prompt, {"task": "reasoning", **(context or {})}
        )
