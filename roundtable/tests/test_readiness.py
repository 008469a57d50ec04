"""
Unit tests for the host ReadinessDetector.

Tests cover:
- Stable, forced and degraded outcomes
- Save-in-progress and failing probes
- Message count changes resetting the stability counter
- Re-arming cancels the previous cycle
- Sync and async ready callbacks
"""

import asyncio

import pytest

from roundtable.config import ReadinessSettings
from roundtable.core.readiness import ReadinessDetector, ReadinessOutcome
from roundtable.models import ChatMessage, StorageIdentity

IDENTITY = StorageIdentity(character_id="mira", conversation_id="conv-1")


def fast_settings(**overrides):
    values = dict(
        poll_interval_seconds=0.01,
        max_poll_attempts=5,
        stability_interval_seconds=0.01,
        stable_checks_required=3,
        stability_timeout_seconds=0.5,
    )
    values.update(overrides)
    return ReadinessSettings(**values)


class ScriptedHost:
    """Host whose message count follows a script, then repeats its last value."""

    def __init__(self, counts, identity=IDENTITY):
        self.counts = list(counts)
        self.identity = identity
        self.saving = False
        self.samples = 0

    def get_active_identity(self):
        return self.identity

    def is_saving(self):
        return self.saving

    def get_message_count(self):
        self.samples += 1
        if len(self.counts) > 1:
            return self.counts.pop(0)
        return self.counts[0]


class BrokenHost(ScriptedHost):
    def get_active_identity(self):
        raise RuntimeError("host not mounted")


class TestWaitUntilReady:
    """Tests for a single readiness cycle."""

    @pytest.mark.asyncio
    async def test_stable_host_fires_once(self, pushed_host):
        calls = []
        detector = ReadinessDetector(pushed_host, fast_settings())

        outcome = await detector.wait_until_ready(lambda identity, result: calls.append((identity, result)))

        assert outcome == ReadinessOutcome.STABLE
        assert calls == [(IDENTITY, ReadinessOutcome.STABLE)]
        assert detector.last_outcome == ReadinessOutcome.STABLE

    @pytest.mark.asyncio
    async def test_missing_identity_degrades(self):
        calls = []
        detector = ReadinessDetector(ScriptedHost([3], identity=None), fast_settings())

        outcome = await detector.wait_until_ready(lambda identity, result: calls.append((identity, result)))

        assert outcome == ReadinessOutcome.DEGRADED
        assert calls == [(None, ReadinessOutcome.DEGRADED)]

    @pytest.mark.asyncio
    async def test_message_list_not_loaded_degrades(self, pushed_host):
        pushed_host.messages = None
        detector = ReadinessDetector(pushed_host, fast_settings())

        assert await detector.wait_until_ready() == ReadinessOutcome.DEGRADED

    @pytest.mark.asyncio
    async def test_host_errors_count_as_not_ready(self):
        detector = ReadinessDetector(BrokenHost([3]), fast_settings())
        assert await detector.wait_until_ready() == ReadinessOutcome.DEGRADED

    @pytest.mark.asyncio
    async def test_waits_for_save_to_finish(self):
        host = ScriptedHost([4])
        host.saving = True
        detector = ReadinessDetector(host, fast_settings(max_poll_attempts=100))

        task = asyncio.create_task(detector.wait_until_ready())
        await asyncio.sleep(0.05)
        assert not task.done()

        host.saving = False
        assert await task == ReadinessOutcome.STABLE

    @pytest.mark.asyncio
    async def test_growing_count_resets_stability(self):
        host = ScriptedHost([1, 2, 3, 5, 8, 8])
        detector = ReadinessDetector(host, fast_settings())

        assert await detector.wait_until_ready() == ReadinessOutcome.STABLE
        # One readiness probe, four changing samples, then three equal ones
        assert host.samples >= 8

    @pytest.mark.asyncio
    async def test_empty_conversation_is_forced_after_cap(self):
        detector = ReadinessDetector(ScriptedHost([0]), fast_settings(stability_timeout_seconds=0.1))
        assert await detector.wait_until_ready() == ReadinessOutcome.FORCED

    @pytest.mark.asyncio
    async def test_async_callback_is_awaited(self, pushed_host):
        done = []

        async def on_ready(identity, outcome):
            await asyncio.sleep(0)
            done.append(identity)

        detector = ReadinessDetector(pushed_host, fast_settings())
        await detector.wait_until_ready(on_ready)

        assert done == [IDENTITY]

    @pytest.mark.asyncio
    async def test_callback_errors_are_contained(self, pushed_host):
        def on_ready(identity, outcome):
            raise ValueError("ui not mounted")

        detector = ReadinessDetector(pushed_host, fast_settings())
        assert await detector.wait_until_ready(on_ready) == ReadinessOutcome.STABLE


class TestArm:
    """Tests for background cycles."""

    @pytest.mark.asyncio
    async def test_rearm_cancels_previous_cycle(self, pushed_host):
        calls = []
        detector = ReadinessDetector(pushed_host, fast_settings())

        first = detector.arm(lambda identity, outcome: calls.append("first"))
        second = detector.rearm(lambda identity, outcome: calls.append("second"))
        assert detector.is_waiting

        await second
        await asyncio.sleep(0)

        assert first.cancelled()
        assert calls == ["second"]
        assert not detector.is_waiting

    @pytest.mark.asyncio
    async def test_cancel(self, pushed_host):
        calls = []
        detector = ReadinessDetector(pushed_host, fast_settings())

        task = detector.arm(lambda identity, outcome: calls.append(outcome))
        detector.cancel()
        await asyncio.sleep(0.2)

        assert task.cancelled()
        assert calls == []
        assert not detector.is_waiting

    @pytest.mark.asyncio
    async def test_messages_arriving_late(self, pushed_host):
        pushed_host.messages = []
        detector = ReadinessDetector(pushed_host, fast_settings())

        task = detector.arm()
        await asyncio.sleep(0.05)
        pushed_host.messages = [ChatMessage(speaker="Mira", text="Hello")]

        assert await task == ReadinessOutcome.STABLE
