"""Tests for batch orchestration and auto-continuation."""

import asyncio
from typing import List

import pytest

from affiliate_scout.adapters.record_store import InMemoryRecordStore
from affiliate_scout.adapters.search_oracle import NullSearchOracle
from affiliate_scout.errors import RecordStoreError
from affiliate_scout.layers.orchestrator import BatchOrchestrator
from affiliate_scout.layers.prober import SubjectProber
from affiliate_scout.models.subject import (
    DiscoveryOutcome,
    DiscoveryStage,
    OutreachStatus,
    PendingSubject,
    SubjectStatus,
)


class RecordingSink:
    def __init__(self):
        self.events: List[str] = []

    def report(self, event, message, **data):
        self.events.append(event)


class FakeProber:
    """Marks subjects Found in the store; ids listed in ``failing`` raise instead."""

    def __init__(self, store, failing=()):
        self.store = store
        self.failing = set(failing)
        self.active = 0
        self.max_active = 0
        self.seen: List[str] = []

    async def process(self, subject: PendingSubject) -> DiscoveryOutcome:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(0)
            self.seen.append(subject.id)
            if subject.id in self.failing:
                raise RuntimeError("boom")
            await self.store.update_subject(subject.id, {"status": SubjectStatus.FOUND.value})
            return DiscoveryOutcome(
                subject_id=subject.id,
                stage=DiscoveryStage.HOMEPAGE_SCAN,
                status=SubjectStatus.FOUND,
                outreach_status=OutreachStatus.AFFILIATE_FOUND,
                notes="Found on website",
            )
        finally:
            self.active -= 1


class FailingWritesStore(InMemoryRecordStore):
    async def update_subject(self, subject_id, fields):
        raise RecordStoreError("write rejected")


class RecordingSleep:
    def __init__(self, on_sleep=None):
        self.calls: List[float] = []
        self.on_sleep = on_sleep

    async def __call__(self, seconds):
        self.calls.append(seconds)
        if self.on_sleep:
            self.on_sleep()


def _seed(store, count):
    for i in range(count):
        store.add({"id": f"s{i}", "tool_name": f"Tool {i}", "website_url": f"tool{i}.test"})


@pytest.mark.asyncio
async def test_batch_accounting_with_failures(store):
    _seed(store, 7)
    prober = FakeProber(store, failing={"s1", "s5"})
    orchestrator = BatchOrchestrator(store, prober=prober, progress=RecordingSink())

    result = await orchestrator.run_batch(10)

    assert result.total == 7
    assert result.successful == 5
    assert result.failed == 2
    assert result.successful + result.failed == result.total
    assert {r.subject_id for r in result.results if not r.success} == {"s1", "s5"}

    failed_row = store.row("s1")
    assert failed_row["status"] == "Not Found"
    assert failed_row["notes"] == "Error: boom"
    assert store.row("s0")["status"] == "Found"


@pytest.mark.asyncio
async def test_sub_batches_bound_concurrency(store):
    _seed(store, 12)
    prober = FakeProber(store)
    sink = RecordingSink()
    orchestrator = BatchOrchestrator(store, prober=prober, progress=sink, concurrency=5)

    result = await orchestrator.run_batch(12)

    assert result.total == 12
    assert prober.max_active == 5
    assert sink.events.count("sub_batch_started") == 3


@pytest.mark.asyncio
async def test_batch_size_is_clamped(store):
    _seed(store, 8)
    orchestrator = BatchOrchestrator(store, prober=FakeProber(store), progress=RecordingSink())

    result = await orchestrator.run_batch(1)

    assert result.total == 5


@pytest.mark.asyncio
async def test_empty_queue(store):
    orchestrator = BatchOrchestrator(store, prober=FakeProber(store), progress=RecordingSink())

    result = await orchestrator.run_batch(25)

    assert result.total == 0
    assert result.results == []


@pytest.mark.asyncio
async def test_defensive_write_failure_is_contained():
    store = FailingWritesStore()
    _seed(store, 2)
    orchestrator = BatchOrchestrator(store, prober=FakeProber(store), progress=RecordingSink())

    result = await orchestrator.run_batch(5)

    assert result.total == 2
    assert result.failed == 2
    assert all("write rejected" in r.error for r in result.results)


@pytest.mark.asyncio
async def test_pending_read_failure_propagates():
    class BrokenStore(InMemoryRecordStore):
        async def fetch_pending(self, limit):
            raise RecordStoreError("store offline")

    store = BrokenStore()
    orchestrator = BatchOrchestrator(store, prober=FakeProber(store), progress=RecordingSink())

    with pytest.raises(RecordStoreError):
        await orchestrator.run_batch(5)


@pytest.mark.asyncio
async def test_auto_continue_drains_queue(store):
    _seed(store, 12)
    sleep = RecordingSleep()
    orchestrator = BatchOrchestrator(store, prober=FakeProber(store), progress=RecordingSink(), sleep=sleep)

    summary = await orchestrator.auto_continue(batch_size=5, pause_seconds=25)

    assert summary.batches == 3
    assert summary.total_processed == 12
    assert summary.total_successful == 12
    assert summary.total_failed == 0
    assert summary.stopped_reason == "no_pending"
    # Two pauses, each counted down in 10 second steps
    assert sleep.calls == [10, 10, 5, 10, 10, 5]
    assert not orchestrator.is_running


@pytest.mark.asyncio
async def test_auto_continue_stops_on_request(store):
    _seed(store, 12)
    orchestrator = None

    def stop():
        orchestrator.request_stop()

    sleep = RecordingSleep(on_sleep=stop)
    orchestrator = BatchOrchestrator(store, prober=FakeProber(store), progress=RecordingSink(), sleep=sleep)

    summary = await orchestrator.auto_continue(batch_size=5, pause_seconds=60)

    assert summary.batches == 1
    assert summary.total_processed == 5
    assert summary.stopped_reason == "stop_requested"
    assert sleep.calls == [10]
    assert await store.count_pending() == 7


@pytest.mark.asyncio
async def test_auto_continue_stops_on_store_error():
    class CountFailsStore(InMemoryRecordStore):
        async def count_pending(self):
            raise RecordStoreError("count failed")

    store = CountFailsStore()
    _seed(store, 8)
    sleep = RecordingSleep()
    orchestrator = BatchOrchestrator(store, prober=FakeProber(store), progress=RecordingSink(), sleep=sleep)

    summary = await orchestrator.auto_continue(batch_size=5, pause_seconds=10)

    assert summary.batches == 1
    assert summary.stopped_reason == "store_error"
    assert sleep.calls == []


@pytest.mark.asyncio
async def test_auto_continue_with_empty_queue(store):
    sleep = RecordingSleep()
    orchestrator = BatchOrchestrator(store, prober=FakeProber(store), progress=RecordingSink(), sleep=sleep)

    summary = await orchestrator.auto_continue(batch_size=5, pause_seconds=10)

    assert summary.batches == 0
    assert summary.stopped_reason == "no_pending"
    assert sleep.calls == []


@pytest.mark.asyncio
async def test_batch_through_real_prober(web, store):
    web.pages.update({
        "https://acme.test": '<html><body><a href="/affiliates">Affiliate Program</a></body></html>',
        "https://acme.test/affiliates": "<p>Get 15% commission per sale.</p>",
    })
    store.add({"id": "acme-1", "tool_name": "Acme", "website_url": "acme.test"})
    prober = SubjectProber(store, fetch_client=web.client(), search_oracle=NullSearchOracle())
    orchestrator = BatchOrchestrator(store, prober=prober, progress=RecordingSink())

    result = await orchestrator.run_batch(5)

    assert result.total == 1
    assert result.successful == 1
    assert result.failed == 0
    row = store.row("acme-1")
    assert row["status"] == "Found"
    assert row["affiliate_url"] == "https://acme.test/affiliates"


@pytest.mark.asyncio
async def test_auto_continue_stops_on_unexpected_error():
    class GarbledStore(InMemoryRecordStore):
        async def fetch_pending(self, limit):
            raise ValueError("unexpected payload")

    store = GarbledStore()
    sleep = RecordingSleep()
    orchestrator = BatchOrchestrator(store, prober=FakeProber(store), progress=RecordingSink(), sleep=sleep)

    summary = await orchestrator.auto_continue(batch_size=5, pause_seconds=10)

    assert summary.batches == 0
    assert summary.stopped_reason == "error"
    assert sleep.calls == []
    assert not orchestrator.is_running
