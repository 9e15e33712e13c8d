"""Tests for message classification and routing."""

import logging
from unittest.mock import AsyncMock, Mock

import pytest

from agentmesh.models import (
    GetAction,
    ListAction,
    Message,
    OperationKind,
    OperationStatus,
    StoreAction,
)
from agentmesh.processing import (
    ForwardIntent,
    LLMTaskExecutor,
    LlmTaskIntent,
    MessageRouter,
    RegularIntent,
    StateActionIntent,
    UnclassifiedIntent,
    classify,
)


def message(payload, sender="alice", recipient="agent1"):
    return Message.create(sender=sender, recipient=recipient, payload=payload)


@pytest.fixture
def transport():
    """Create transport mock."""
    mock_transport = Mock()
    mock_transport.publish = AsyncMock()
    return mock_transport


@pytest.fixture
def router(state_store, transport, tracker, sleeper):
    """Create router with transport and no LLM."""
    return MessageRouter(
        agent_id="agent1",
        store=state_store,
        transport=transport,
        tracker=tracker,
        sleep=sleeper,
    )


class TestClassify:
    """Tests for classify()."""

    def test_state_action_wins_over_recipient(self):
        """Test that state actions apply locally even when addressed elsewhere."""
        intent = classify(
            message({"state_action": "store", "key": "k", "value": 1}, recipient="bob"),
            "agent1",
        )

        assert intent == StateActionIntent(StoreAction("k", 1))

    def test_foreign_recipient_is_forwarded(self):
        """Test forwarding classification."""
        intent = classify(message({"llm_task": "summarize"}, recipient="bob"), "agent1")

        assert intent == ForwardIntent("bob")

    def test_llm_task(self):
        """Test LLM task classification."""
        assert classify(message({"llm_task": "plan_workflow"}), "agent1") == LlmTaskIntent(
            "plan_workflow", OperationKind.PLAN_WORKFLOW
        )
        assert classify(message({"llm_task": "translate"}), "agent1") == LlmTaskIntent(
            "translate", None
        )

    def test_message_type(self):
        """Test regular message classification."""
        intent = classify(message({"message_type": "coordination"}), "agent1")

        assert intent == RegularIntent("coordination")

    @pytest.mark.parametrize("payload", ["hello", 42, None, {"other": True}])
    def test_unclassified(self, payload):
        """Test payloads without a recognizable shape."""
        assert classify(message(payload), "agent1") == UnclassifiedIntent()


class TestRegularMessages:
    """Tests for regular message handlers."""

    async def test_state_update(self, router, state_store):
        """Test that each update becomes a stored key."""
        await router.route(
            message({"message_type": "state_update", "updates": {"a": 1, "b": [2]}})
        )

        assert state_store.snapshot() == {"a": 1, "b": [2]}

    async def test_coordination(self, router, state_store):
        """Test that coordination payloads are kept under a timestamped key."""
        msg = message({"message_type": "coordination", "plan": "split work"})

        await router.route(msg)

        key = f"coordination_{msg.timestamp_ms}_{msg.id}"
        assert await state_store.get(key) == msg.payload

    async def test_data_transfer(self, router, state_store):
        """Test that transferred data lands under its transfer id."""
        await router.route(
            message({"message_type": "data_transfer", "transfer_id": "t1", "data": [1, 2]})
        )

        assert await state_store.get("transfer_t1") == [1, 2]

    @pytest.mark.parametrize("transfer_id", [0, ""])
    async def test_data_transfer_with_falsy_id(self, router, state_store, transfer_id):
        """Test that a zero or empty transfer id is used as given."""
        msg = message({"message_type": "data_transfer", "transfer_id": transfer_id, "data": "x"})

        await router.route(msg)

        assert await state_store.get(f"transfer_{transfer_id}") == "x"
        assert await state_store.get(f"transfer_{msg.id}") is None

    async def test_scraping_task(self, router, state_store):
        """Test that scraping tasks are queued."""
        target = {"id": "site1", "url": "https://example.com"}

        await router.route(message({"message_type": "scraping_task", "target": target}))

        assert await state_store.get("scraping_task_site1") == {
            "status": "queued",
            "target": target,
            "from": "alice",
        }

    async def test_unknown_type_stores_last_message(self, router, state_store):
        """Test the default handler."""
        await router.route(message({"message_type": "gossip", "text": "hi"}))
        await router.route(message("plain text", sender="carol"))

        assert await state_store.get("last_message_from_alice") == {
            "message_type": "gossip",
            "text": "hi",
        }
        assert await state_store.get("last_message_from_carol") == "plain text"

    async def test_messages_apply_in_order(self, router, state_store):
        """Test that sequential stores keep the later value."""
        await router.route(message({"state_action": "store", "key": "k", "value": 1}))
        await router.route(message({"state_action": "store", "key": "k", "value": 2}))

        assert await state_store.get("k") == 2


class TestStateActions:
    """Tests for apply_state_action()."""

    async def test_get_and_list_return_values(self, router):
        """Test that get returns the value and list returns keys."""
        await router.apply_state_action(StoreAction("k", "v"))

        assert await router.apply_state_action(GetAction("k")) == "v"
        assert await router.apply_state_action(GetAction("missing")) is None
        assert await router.apply_state_action(ListAction()) == ["k"]


class TestForwarding:
    """Tests for forwarding to other agents."""

    async def test_forward_publishes_on_recipient_subject(
        self, router, transport, state_store, tracker
    ):
        """Test that forwarded messages are published, never handled locally."""
        msg = message({"message_type": "state_update", "updates": {"a": 1}}, recipient="bob")

        await router.route(msg)

        transport.publish.assert_called_once()
        subject, data = transport.publish.call_args.args
        assert subject == "agent.bob"
        assert Message.from_bytes(data) == msg
        assert len(state_store) == 0
        assert tracker.get_events(event_types=["message_forwarded"])

    async def test_forward_logs_carry_message_context(self, router, caplog):
        """Test that routing and forwarding logs carry message_id and subject."""
        msg = message({"x": 1}, recipient="bob")

        with caplog.at_level(logging.DEBUG, logger="agentmesh.processing.router"):
            await router.route(msg)

        records = [r for r in caplog.records if r.name == "agentmesh.processing.router"]
        assert records
        assert all(r.message_id == msg.id for r in records)
        forwarded = [r for r in records if "forwarded" in r.getMessage()]
        assert len(forwarded) == 1
        assert forwarded[0].subject == "agent.bob"

    async def test_forward_without_transport_drops(self, state_store):
        """Test that forwarding without a transport is dropped."""
        router = MessageRouter(agent_id="agent1", store=state_store)

        await router.route(message({"message_type": "coordination"}, recipient="bob"))

        assert len(state_store) == 0

    async def test_forward_failure_is_retried_then_dropped(
        self, router, transport, state_store, sleeper
    ):
        """Test that publish errors are retried and then dropped."""
        transport.publish.side_effect = ConnectionError("nats down")

        await router.route(message({"x": 1}, recipient="bob"))

        assert transport.publish.call_count == 4
        assert sleeper.delays == [0.5, 0.5, 0.5]
        assert len(state_store) == 0


class TestLlmTasks:
    """Tests for LLM task dispatch."""

    async def test_llm_disabled_stores_pending_task(self, router, state_store):
        """Test that LLM tasks are parked when the agent has no executor."""
        msg = message({"llm_task": "summarize", "data": [1]})

        await router.route(msg)

        assert await state_store.get(f"pending_llm_task_{msg.id}") == msg.payload

    async def test_llm_task_runs_executor(self, state_store, llm_client, sleeper):
        """Test that supported tasks reach the executor."""
        executor = LLMTaskExecutor("agent1", state_store, llm_client, sleep=sleeper)
        router = MessageRouter("agent1", state_store, executor=executor, sleep=sleeper)

        await router.route(message({"llm_task": "summarize", "data": [1, 2]}))

        assert await state_store.get("last_summary") is not None
        assert len(executor.records) == 1

    async def test_unsupported_llm_task(self, state_store, llm_client, sleeper):
        """Test that unknown task names are stored without an operation."""
        executor = LLMTaskExecutor("agent1", state_store, llm_client, sleep=sleeper)
        router = MessageRouter("agent1", state_store, executor=executor, sleep=sleeper)
        msg = message({"llm_task": "translate"})

        await router.route(msg)

        assert await state_store.get(f"unsupported_llm_task_{msg.id}") == msg.payload
        assert executor.records == []

    async def test_summarize_without_data_fails_once(
        self, state_store, llm_client, mock_provider, sleeper
    ):
        """Test that a summarize task with no data ends in one failed record."""
        executor = LLMTaskExecutor("agent1", state_store, llm_client, sleep=sleeper)
        router = MessageRouter("agent1", state_store, executor=executor, sleep=sleeper)

        await router.route(message({"llm_task": "summarize"}))

        [record] = executor.records
        assert record.kind is OperationKind.SUMMARIZE
        assert record.status is OperationStatus.FAILED
        assert await state_store.get("last_summary") is None
        stored = await state_store.get(f"operation_{record.operation_id}")
        assert stored["status"] == "failed"
        assert mock_provider.calls == []
