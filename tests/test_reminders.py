"""Tests for the due-event scanner and reminder fan-out."""

import logging
from datetime import UTC, datetime, timedelta

import pytest

from chime.errors import NotInitializedError, PersistenceQueryError
from chime.events import Event
from chime.reminders import DueEventScanner, ReminderBroadcaster
from chime.scheduling import ManualClock, TimerRegistry, TimerSpec
from chime.server.connections import ConnectionHub

T0 = datetime(2026, 1, 12, 9, 0, 0, tzinfo=UTC)


class FakeStore:
    """Scripted find_events_at results, one per call."""

    def __init__(self, *results):
        self._results = list(results)
        self.queries: list[datetime] = []

    async def find_events_at(self, instant: datetime) -> list[Event]:
        self.queries.append(instant)
        result = self._results.pop(0) if self._results else []
        if isinstance(result, BaseException):
            raise result
        return result


class RecordingBroadcaster:
    def __init__(self):
        self.calls: list[list[Event]] = []

    async def notify_all(self, events) -> None:
        self.calls.append(list(events))


class TestDueEventScanner:
    """Tests for DueEventScanner.scan()."""

    @pytest.mark.asyncio
    async def test_queries_truncated_current_minute(self, make_event):
        clock = ManualClock(T0 + timedelta(seconds=42, microseconds=1234))
        store = FakeStore([])
        scanner = DueEventScanner(store, RecordingBroadcaster(), clock)

        await scanner.scan()

        assert store.queries == [T0]
        assert store.queries[0].second == 0
        assert store.queries[0].microsecond == 0

    @pytest.mark.asyncio
    async def test_found_events_passed_in_single_call(self, make_event, caplog):
        events = [make_event("a"), make_event("b")]
        broadcaster = RecordingBroadcaster()
        scanner = DueEventScanner(FakeStore(events), broadcaster, ManualClock(T0))

        with caplog.at_level(logging.INFO, logger="chime.reminders.scanner"):
            found = await scanner.scan()

        assert found == 2
        assert broadcaster.calls == [events]
        found_logs = [r for r in caplog.records if r.getMessage() == "due_events_found"]
        assert len(found_logs) == 1
        assert found_logs[0].__dict__["scan.found"] == 2

    @pytest.mark.asyncio
    async def test_no_events_no_action(self, caplog):
        broadcaster = RecordingBroadcaster()
        scanner = DueEventScanner(FakeStore([]), broadcaster, ManualClock(T0))

        with caplog.at_level(logging.INFO, logger="chime.reminders.scanner"):
            assert await scanner.scan() == 0

        assert broadcaster.calls == []
        assert caplog.records == []

    @pytest.mark.asyncio
    async def test_query_failure_logged_and_swallowed(self, caplog):
        broadcaster = RecordingBroadcaster()
        store = FakeStore(PersistenceQueryError("DB error"))
        scanner = DueEventScanner(store, broadcaster, ManualClock(T0))

        with caplog.at_level(logging.ERROR, logger="chime.reminders.scanner"):
            assert await scanner.scan() == 0

        assert broadcaster.calls == []
        assert len(store.queries) == 1
        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert errors[0].getMessage() == "due_event_query_failed"
        assert "DB error" in errors[0].__dict__["error.message"]

    @pytest.mark.asyncio
    async def test_exact_minute_match_against_real_store(self, store):
        due = await store.save("due now", T0)
        await store.save("one second later", T0 + timedelta(seconds=1))
        await store.save("next minute", T0 + timedelta(minutes=1))

        broadcaster = RecordingBroadcaster()
        scanner = DueEventScanner(store, broadcaster, ManualClock(T0))
        await scanner.scan()

        assert len(broadcaster.calls) == 1
        assert [e.id for e in broadcaster.calls[0]] == [due.id]


class TestScannerOnRegistry:
    """Scanner driven by real ticks."""

    @pytest.mark.asyncio
    async def test_tick_triggers_scan(self, clock, registry, make_event):
        registry.register(TimerSpec("eventReminder", "0 * * * * *"))
        events = [make_event("x", time=T0 + timedelta(minutes=1))]
        store = FakeStore(events)
        broadcaster = RecordingBroadcaster()
        DueEventScanner(store, broadcaster, clock).listen(registry)
        registry.start()

        await clock.advance(seconds=60)
        await registry.drain()

        assert store.queries == [T0 + timedelta(minutes=1)]
        assert broadcaster.calls == [events]

    @pytest.mark.asyncio
    async def test_failure_never_reaches_registry(self, clock, registry, caplog):
        registry.register(TimerSpec("eventReminder", "0 * * * * *"))
        store = FakeStore(PersistenceQueryError("DB error"), [])
        broadcaster = RecordingBroadcaster()
        DueEventScanner(store, broadcaster, clock).listen(registry)
        registry.start()

        with caplog.at_level(logging.ERROR):
            await clock.advance(seconds=60)
            await clock.advance(seconds=60)
            await registry.drain()

        messages = [r.getMessage() for r in caplog.records]
        assert "due_event_query_failed" in messages
        assert "tick_handler_failed" not in messages
        assert len(store.queries) == 2
        assert broadcaster.calls == []
        assert registry.running

    @pytest.mark.asyncio
    async def test_listen_to_custom_timer(self, clock, registry):
        registry.register(TimerSpec("minuteBoundary", "* * * * *"))
        store = FakeStore([])
        DueEventScanner(store, RecordingBroadcaster(), clock).listen(
            registry, "minuteBoundary"
        )
        registry.start()

        await clock.advance(seconds=60)
        await registry.drain()
        assert len(store.queries) == 1

    @pytest.mark.asyncio
    async def test_unattached_transport_is_logged_loudly(
        self, clock, registry, make_event, caplog
    ):
        registry.register(TimerSpec("eventReminder", "0 * * * * *"))
        store = FakeStore([make_event("x")])
        broadcaster = ReminderBroadcaster(ConnectionHub())
        DueEventScanner(store, broadcaster, clock).listen(registry)
        registry.start()

        with caplog.at_level(logging.ERROR):
            await clock.advance(seconds=60)
            await registry.drain()

        failures = [r for r in caplog.records if r.getMessage() == "tick_handler_failed"]
        assert len(failures) == 1
        assert failures[0].__dict__["error.type"] == "NotInitializedError"


class TestReminderBroadcaster:
    """Tests for fan-out to live connections."""

    @pytest.mark.asyncio
    async def test_not_initialized_before_attach(self, make_event):
        broadcaster = ReminderBroadcaster(ConnectionHub())
        with pytest.raises(NotInitializedError):
            await broadcaster.notify_all([make_event("a")])

    @pytest.mark.asyncio
    async def test_zero_connections_is_noop(self, hub, make_event):
        await ReminderBroadcaster(hub).notify_all([make_event("a")])

    @pytest.mark.asyncio
    async def test_each_connection_receives_events_in_order(
        self, hub, make_connection, make_event
    ):
        connections = [make_connection(str(i)) for i in range(3)]
        for connection in connections:
            hub.add(connection)

        await ReminderBroadcaster(hub).notify_all([make_event("e1"), make_event("e2")])

        for connection in connections:
            assert connection.payload_ids == ["e1", "e2"]
            assert {frame["channel"] for frame in connection.sent} == {"eventReminder"}

    @pytest.mark.asyncio
    async def test_payload_shape(self, hub, make_connection, make_event):
        connection = make_connection()
        hub.add(connection)

        await ReminderBroadcaster(hub).notify_all([make_event("e1", name="Standup")])

        assert connection.sent == [
            {
                "channel": "eventReminder",
                "payload": {
                    "id": "e1",
                    "name": "Standup",
                    "time": "2026-01-12T09:00:00+00:00",
                },
            }
        ]

    @pytest.mark.asyncio
    async def test_disconnect_mid_enumeration(self, hub, make_connection, make_event):
        connections = [make_connection(str(i)) for i in range(1, 6)]
        for connection in connections:
            hub.add(connection)
        third = connections[2]
        # Connection #1 sending is when #3 goes away.
        connections[0].on_send = lambda _conn: hub.discard(third)

        await ReminderBroadcaster(hub).notify_all([make_event("e1"), make_event("e2")])

        assert third.sent == []
        for connection in connections:
            if connection is not third:
                assert connection.payload_ids == ["e1", "e2"]
        assert len(hub) == 4

    @pytest.mark.asyncio
    async def test_failed_push_does_not_abort_fan_out(
        self, hub, make_connection, make_event
    ):
        healthy = make_connection("ok")
        broken = make_connection("broken", fail_with=ConnectionResetError("gone"))
        late = make_connection("late")
        for connection in (healthy, broken, late):
            hub.add(connection)

        await ReminderBroadcaster(hub).notify_all([make_event("e1"), make_event("e2")])

        assert healthy.payload_ids == ["e1", "e2"]
        assert late.payload_ids == ["e1", "e2"]
        assert broken.sent == []
        assert broken not in hub

    @pytest.mark.asyncio
    async def test_empty_event_list(self, hub, make_connection):
        connection = make_connection()
        hub.add(connection)
        await ReminderBroadcaster(hub).notify_all([])
        assert connection.sent == []


class TestConnectionHub:
    """Tests for connection enumeration and single pushes."""

    def test_for_each_connection_with_none(self, hub):
        visited = []
        hub.for_each_connection(visited.append)
        assert visited == []

    def test_for_each_connection_skips_departed(self, hub, make_connection):
        first, second, third = (make_connection(str(i)) for i in range(3))
        for connection in (first, second, third):
            hub.add(connection)
        visited = []

        def visit(connection):
            visited.append(connection)
            if connection is first:
                hub.discard(second)

        hub.for_each_connection(visit)

        assert visited == [first, third]
        assert len(hub) == 2

    @pytest.mark.asyncio
    async def test_push_to_unknown_connection(self, hub, make_connection):
        stranger = make_connection()
        assert await hub.push(stranger, "eventReminder", {}) is False
        assert stranger.sent == []


class TestEndToEnd:
    """Clock -> registry -> scanner -> store -> broadcaster -> connections."""

    @pytest.mark.asyncio
    async def test_reminder_reaches_all_connections(
        self, clock, registry, store, hub, make_connection
    ):
        target = T0 + timedelta(minutes=2)
        first = await store.save("Standup", target)
        second = await store.save("Lunch", target)
        await store.save("Later", target + timedelta(minutes=1))

        connections = [make_connection(str(i)) for i in range(5)]
        for connection in connections:
            hub.add(connection)

        registry.register(TimerSpec("eventReminder", "0 * * * * *"))
        DueEventScanner(store, ReminderBroadcaster(hub), clock).listen(registry)
        registry.start()

        await clock.advance(seconds=60)
        await registry.drain()
        assert all(c.sent == [] for c in connections)

        await clock.advance(seconds=60)
        await registry.drain()
        for connection in connections:
            assert connection.payload_ids == [first.id, second.id]
