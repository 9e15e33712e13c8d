"""Tests for Tracker."""

from datetime import datetime, timedelta, timezone

import pytest

from agentmesh.tracker import Tracker


class TestTrackerTrack:
    """Tests for Tracker.track() method."""

    @pytest.mark.asyncio
    async def test_track_creates_event(self, tracker):
        """Test that track() creates a TraceEvent."""
        await tracker.track(
            event_type="agent_started",
            actor="supervisor",
            data={"agent_id": "agent1"},
        )

        events = tracker.get_events()
        assert len(events) == 1
        assert events[0].event_type == "agent_started"
        assert events[0].actor == "supervisor"
        assert events[0].data == {"agent_id": "agent1"}
        assert events[0].id
        assert events[0].timestamp.tzinfo is not None

    @pytest.mark.asyncio
    async def test_buffer_is_bounded(self):
        """Test that only the newest events are kept."""
        tracker = Tracker(max_events=3)
        for i in range(5):
            await tracker.track("tick", "test", {"i": i})

        assert [e.data["i"] for e in tracker.get_events()] == [4, 3, 2]


class TestTrackerGetEvents:
    """Tests for Tracker.get_events() filters."""

    @pytest.mark.asyncio
    async def test_filters(self, tracker):
        """Test filtering by type and actor."""
        await tracker.track("agent_started", "supervisor", {})
        await tracker.track("llm_task_finished", "agent:a1", {})
        await tracker.track("agent_failed", "supervisor", {})

        started = tracker.get_events(event_types=["agent_started", "agent_failed"])
        assert [e.event_type for e in started] == ["agent_failed", "agent_started"]
        assert len(tracker.get_events(actor="agent:a1")) == 1
        assert len(tracker.get_events(limit=1)) == 1

    @pytest.mark.asyncio
    async def test_after_filter(self, tracker):
        """Test filtering by timestamp."""
        await tracker.track("old", "test", {})
        cutoff = datetime.now(timezone.utc) + timedelta(seconds=1)

        assert tracker.get_events(after=cutoff) == []

    @pytest.mark.asyncio
    async def test_clear(self, tracker):
        """Test that clear() drops all events."""
        await tracker.track("tick", "test", {})
        tracker.clear()

        assert tracker.get_events() == []
