"""LLM task execution with retry and fallback synthesis."""

import asyncio
import uuid
from typing import Any, Awaitable, Callable, TypeVar

from ..llm import LLMClient, RetryOutcome, retry_operation
from ..llm.retry import Sleeper
from ..logging_config import get_logger
from ..models import AgentId, OperationKind, OperationRecord, OperationStatus
from ..storage import StateStore
from ..tracker import ITracker
from .fallbacks import fallback_reasoning, fallback_summary, fallback_workflow

logger = get_logger(__name__)

T = TypeVar("T")

SUMMARY_KEY = "last_summary"
WORKFLOW_PLAN_KEY = "workflow_plan"
REASONING_KEY = "last_reasoning"
OPERATION_KEY_PREFIX = "operation_"

DEFAULT_AVAILABLE_AGENTS = ["data_collector", "data_processor", "summarizer", "validator"]


class LLMTaskExecutor:
    """Runs LLM tasks for one agent and writes results into its State Store.

    Each invocation gets one OperationRecord, appended to ``records`` when the
    task starts and inserted once under ``operation_{operation_id}`` when it
    reaches its terminal status. Provider failures never escape: after the
    retries run out the task's fallback is stored and the record ends as
    ``completed_fallback``. Missing required fields end it as ``failed``.
    """

    def __init__(
        self,
        agent_id: AgentId,
        store: StateStore,
        client: LLMClient | None,
        tracker: ITracker | None = None,
        sleep: Sleeper = asyncio.sleep,
    ):
        self._agent_id = agent_id
        self._store = store
        self._client = client
        self._tracker = tracker
        self._sleep = sleep
        self._records: list[OperationRecord] = []

    @property
    def records(self) -> list[OperationRecord]:
        return list(self._records)

    async def execute(self, kind: OperationKind, payload: dict) -> OperationRecord:
        """Run one task to a terminal status and return its record."""
        record = OperationRecord(operation_id=str(uuid.uuid4()), kind=kind)
        self._records.append(record)

        logger.info(
            "Agent %s started %s operation %s",
            self._agent_id,
            kind.value,
            record.operation_id,
            extra={"operation_id": record.operation_id},
        )

        try:
            if kind is OperationKind.SUMMARIZE:
                await self._summarize(record, payload)
            elif kind is OperationKind.PLAN_WORKFLOW:
                await self._plan_workflow(record, payload)
            else:
                await self._reason(record, payload)
        except Exception as e:
            # Result write failed: the record still has to reach a terminal status
            if not record.status.is_terminal:
                record.finish(OperationStatus.FAILED, error=str(e))
            try:
                await self._save_record(record)
            except Exception as save_error:
                logger.error(
                    "Agent %s could not persist failed operation %s: %s",
                    self._agent_id,
                    record.operation_id,
                    save_error,
                    extra={"operation_id": record.operation_id},
                )
            raise

        await self._save_record(record)

        logger.info(
            "Agent %s finished %s operation %s: %s after %s attempt(s)",
            self._agent_id,
            kind.value,
            record.operation_id,
            record.status.value,
            record.attempts,
            extra={"operation_id": record.operation_id},
        )
        if self._tracker:
            await self._tracker.track(
                "llm_task_finished",
                f"agent:{self._agent_id}",
                {
                    "operation_id": record.operation_id,
                    "kind": kind.value,
                    "status": record.status.value,
                    "attempts": record.attempts,
                },
            )
        return record

    async def _save_record(self, record: OperationRecord) -> None:
        await self._store.store(
            f"{OPERATION_KEY_PREFIX}{record.operation_id}", record.to_dict()
        )

    async def _call(
        self, operation: Callable[[], Awaitable[T]]
    ) -> tuple[T | None, int, str | None]:
        """Run a provider call with retries. Returns (result, attempts, error)."""
        if self._client is None:
            return None, 0, "no LLM client configured"

        outcome = RetryOutcome()
        try:
            result = await retry_operation(
                operation,
                max_retries=self._client.config.max_retries,
                outcome=outcome,
                sleep=self._sleep,
            )
        except Exception as e:
            logger.error(
                "Agent %s LLM call failed after %s attempt(s): %s",
                self._agent_id,
                outcome.attempts,
                e,
                exc_info=True,
            )
            return None, outcome.attempts, str(e)
        return result, outcome.attempts, None

    def _fail(self, record: OperationRecord, reason: str) -> None:
        logger.warning(
            "Agent %s rejected %s operation %s: %s",
            self._agent_id,
            record.kind.value,
            record.operation_id,
            reason,
        )
        record.finish(OperationStatus.FAILED, error=reason)

    async def _summarize(self, record: OperationRecord, payload: dict) -> None:
        data = payload.get("data")
        if not isinstance(data, list):
            self._fail(record, "summarize requires a 'data' list")
            return

        client = self._client
        summary, attempts, error = await self._call(lambda: client.summarize_data(data))
        if summary is None:
            summary = fallback_summary(len(data))
            status = OperationStatus.COMPLETED_FALLBACK
        else:
            status = OperationStatus.COMPLETED

        await self._store.store(SUMMARY_KEY, summary)
        record.finish(status, attempts, error)

    async def _plan_workflow(self, record: OperationRecord, payload: dict) -> None:
        task_description = payload.get("task_description")
        if not isinstance(task_description, str) or not task_description:
            self._fail(record, "plan_workflow requires a 'task_description'")
            return

        available_agents = payload.get("available_agents")
        if not isinstance(available_agents, list):
            available_agents = DEFAULT_AVAILABLE_AGENTS

        client = self._client
        steps, attempts, error = await self._call(
            lambda: client.plan_workflow(task_description, available_agents)
        )
        if steps is None:
            steps = fallback_workflow()
            status = OperationStatus.COMPLETED_FALLBACK
        else:
            status = OperationStatus.COMPLETED

        await self._store.store(WORKFLOW_PLAN_KEY, [step.to_dict() for step in steps])
        record.finish(status, attempts, error)

    async def _reason(self, record: OperationRecord, payload: dict) -> None:
        prompt = payload.get("prompt")
        if not isinstance(prompt, str) or not prompt:
            self._fail(record, "reason requires a 'prompt'")
            return

        context: Any = payload.get("context")
        if not isinstance(context, dict):
            context = None

        client = self._client
        reasoning, attempts, error = await self._call(
            lambda: client.reason(prompt, context)
        )
        if reasoning is None:
            reasoning = fallback_reasoning(prompt)
            status = OperationStatus.COMPLETED_FALLBACK
        else:
            status = OperationStatus.COMPLETED

        await self._store.store(REASONING_KEY, reasoning)
        record.finish(status, attempts, error)
