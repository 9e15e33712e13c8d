"""Message classification and dispatch for one agent."""

import asyncio
from dataclasses import dataclass
from typing import Any, Union

from ..errors import AgentMeshError, TransportError
from ..llm import retry_operation
from ..llm.retry import Sleeper
from ..logging_config import get_logger
from ..models import (
    AgentId,
    ClearAction,
    DeleteAction,
    GetAction,
    ListAction,
    Message,
    OperationKind,
    Priority,
    StateAction,
    StoreAction,
    parse_state_action,
)
from ..storage import StateStore
from ..tracker import ITracker
from ..transport import ITransport, agent_subject
from .executor import LLMTaskExecutor

logger = get_logger(__name__)


@dataclass(frozen=True)
class StateActionIntent:
    action: StateAction


@dataclass(frozen=True)
class ForwardIntent:
    recipient: AgentId


@dataclass(frozen=True)
class LlmTaskIntent:
    task: str
    kind: OperationKind | None  # None for task names we do not support


@dataclass(frozen=True)
class RegularIntent:
    message_type: str


@dataclass(frozen=True)
class UnclassifiedIntent:
    pass


MessageIntent = Union[
    StateActionIntent, ForwardIntent, LlmTaskIntent, RegularIntent, UnclassifiedIntent
]


def classify(message: Message, self_id: AgentId) -> MessageIntent:
    """Translate a loosely-typed payload into a MessageIntent."""
    payload = message.payload

    action = parse_state_action(payload)
    if action is not None:
        return StateActionIntent(action)

    if message.recipient != self_id:
        return ForwardIntent(message.recipient)

    if not isinstance(payload, dict):
        return UnclassifiedIntent()

    if "llm_task" in payload:
        task = str(payload["llm_task"])
        try:
            kind = OperationKind(task)
        except ValueError:
            kind = None
        return LlmTaskIntent(task=task, kind=kind)

    message_type = payload.get("message_type")
    if isinstance(message_type, str):
        return RegularIntent(message_type)
    return UnclassifiedIntent()


class MessageRouter:
    """Dispatches classified messages to the State Store, executor or transport."""

    def __init__(
        self,
        agent_id: AgentId,
        store: StateStore,
        executor: LLMTaskExecutor | None = None,
        transport: ITransport | None = None,
        tracker: ITracker | None = None,
        max_transport_retries: int = 3,
        sleep: Sleeper = asyncio.sleep,
    ):
        self._agent_id = agent_id
        self._store = store
        self._executor = executor
        self._transport = transport
        self._tracker = tracker
        self._max_transport_retries = max_transport_retries
        self._sleep = sleep

    async def route(self, message: Message) -> MessageIntent:
        """Classify and handle one message. Returns the intent it was routed as."""
        intent = classify(message, self._agent_id)
        priority = Priority.NORMAL
        if isinstance(message.payload, dict):
            priority = Priority.parse(message.payload.get("priority"))

        if priority.is_urgent:
            logger.info(
                "Agent %s processing %s priority message %s from %s",
                self._agent_id,
                priority.value,
                message.id,
                message.sender,
                extra={"message_id": message.id},
            )
        else:
            logger.debug(
                "Agent %s processing message %s from %s",
                self._agent_id,
                message.id,
                message.sender,
                extra={"message_id": message.id},
            )

        if isinstance(intent, StateActionIntent):
            await self.apply_state_action(intent.action)
        elif isinstance(intent, ForwardIntent):
            await self._forward(message, intent.recipient)
        elif isinstance(intent, LlmTaskIntent):
            await self._handle_llm_task(message, intent)
        elif isinstance(intent, RegularIntent):
            await self._handle_regular(message, intent.message_type)
        else:
            await self._store_last_message(message)

        return intent

    async def apply_state_action(self, action: StateAction) -> Any:
        """Apply a StateAction. Get returns the value, List the keys."""
        if isinstance(action, StoreAction):
            await self._store.store(action.key, action.value)
            return None
        if isinstance(action, GetAction):
            value = await self._store.get(action.key)
            if value is None:
                logger.debug("Agent %s state key not found: %s", self._agent_id, action.key)
            else:
                logger.debug("Agent %s retrieved state: %s", self._agent_id, action.key)
            return value
        if isinstance(action, DeleteAction):
            await self._store.delete(action.key)
            return None
        if isinstance(action, ClearAction):
            await self._store.clear()
            return None
        if isinstance(action, ListAction):
            keys = self._store.keys()
            logger.info("Agent %s state keys: %s", self._agent_id, keys)
            return keys
        raise TypeError(f"Unknown state action: {action!r}")

    async def _forward(self, message: Message, recipient: AgentId) -> None:
        if self._transport is None:
            logger.warning(
                "Agent %s dropped message %s for %s: no transport configured",
                self._agent_id,
                message.id,
                recipient,
                extra={"message_id": message.id},
            )
            return

        subject = agent_subject(recipient)
        data = message.to_bytes()
        transport = self._transport

        async def publish() -> None:
            try:
                await transport.publish(subject, data)
            except AgentMeshError:
                raise
            except Exception as e:
                raise TransportError(f"Publish to {subject} failed: {e}") from e

        try:
            await retry_operation(
                publish, max_retries=self._max_transport_retries, sleep=self._sleep
            )
        except AgentMeshError as e:
            logger.error(
                "Agent %s failed to forward message %s to %s: %s",
                self._agent_id,
                message.id,
                recipient,
                e,
                extra={"message_id": message.id, "subject": subject},
            )
            return

        logger.debug(
            "Agent %s forwarded message %s via %s",
            self._agent_id,
            message.id,
            subject,
            extra={"message_id": message.id, "subject": subject},
        )
        if self._tracker:
            await self._tracker.track(
                "message_forwarded",
                f"agent:{self._agent_id}",
                {"message_id": message.id, "recipient": recipient, "subject": subject},
            )

    async def _handle_llm_task(self, message: Message, intent: LlmTaskIntent) -> None:
        if self._executor is None:
            key = f"pending_llm_task_{message.id}"
            await self._store.store(key, message.payload)
            logger.info(
                "Agent %s has LLM disabled; stored %s task as %s",
                self._agent_id,
                intent.task,
                key,
            )
            return

        if intent.kind is None:
            key = f"unsupported_llm_task_{message.id}"
            await self._store.store(key, message.payload)
            logger.warning(
                "Agent %s received unsupported LLM task %r", self._agent_id, intent.task
            )
            return

        await self._executor.execute(intent.kind, message.payload)

    async def _handle_regular(self, message: Message, message_type: str) -> None:
        payload = message.payload

        if message_type == "state_update":
            updates = payload.get("updates")
            if not isinstance(updates, dict):
                logger.warning(
                    "Agent %s ignored state_update %s without 'updates' object",
                    self._agent_id,
                    message.id,
                )
                return
            for key, value in updates.items():
                await self._store.store(str(key), value)

        elif message_type == "coordination":
            key = f"coordination_{message.timestamp_ms}_{message.id}"
            await self._store.store(key, payload)

        elif message_type == "data_transfer":
            if "data" not in payload:
                logger.warning(
                    "Agent %s ignored data_transfer %s without 'data'",
                    self._agent_id,
                    message.id,
                )
                return
            transfer_id = payload.get("transfer_id")
            if transfer_id is None:
                transfer_id = message.id
            await self._store.store(f"transfer_{transfer_id}", payload["data"])

        elif message_type == "scraping_task":
            target = payload.get("target")
            target_id = message.id
            if isinstance(target, dict) and target.get("id") is not None:
                target_id = target["id"]
            await self._store.store(
                f"scraping_task_{target_id}",
                {"status": "queued", "target": target, "from": message.sender},
            )

        else:
            await self._store_last_message(message)

    async def _store_last_message(self, message: Message) -> None:
        await self._store.store(f"last_message_from_{message.sender}", message.payload)
