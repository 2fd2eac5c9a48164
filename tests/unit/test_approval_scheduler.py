"""Tests for ApprovalJobScheduler: schedule, cancel, job processing and worker lifecycle."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from app.infrastructure.exceptions import JobQueueUnavailableError
from app.infrastructure.messaging import ApprovalJobScheduler
from app.shared.enums import ApprovalJobType, JobState

REMINDER = ApprovalJobType.REMINDER
ESCALATION = ApprovalJobType.ESCALATION


@pytest.fixture
def handler() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def scheduler(job_queue, handler) -> ApprovalJobScheduler:
    return ApprovalJobScheduler(job_queue, handler, poll_interval=0.01)


async def test_schedule_enqueues_reminder_and_escalation(scheduler, job_queue, clock) -> None:
    await scheduler.schedule("ver-1", "doc-1")
    [reminder] = await job_queue.list_pending(REMINDER.value)
    [escalation] = await job_queue.list_pending(ESCALATION.value)
    assert reminder.payload == {"version_id": "ver-1", "document_id": "doc-1"}
    assert reminder.run_at == clock.now + timedelta(hours=48)
    assert escalation.run_at == clock.now + timedelta(hours=72)


async def test_schedule_propagates_queue_errors(job_queue, handler, monkeypatch) -> None:
    monkeypatch.setattr(
        job_queue, "enqueue", AsyncMock(side_effect=JobQueueUnavailableError("enqueue", "down"))
    )
    with pytest.raises(JobQueueUnavailableError):
        await ApprovalJobScheduler(job_queue, handler).schedule("ver-1", "doc-1")


async def test_partial_schedule_is_removed(scheduler, job_queue, monkeypatch) -> None:
    enqueue = job_queue.enqueue

    async def _enqueue(job_type, payload, delay):
        if job_type == ESCALATION.value:
            raise JobQueueUnavailableError("enqueue", "down")
        return await enqueue(job_type, payload, delay)

    monkeypatch.setattr(job_queue, "enqueue", _enqueue)
    with pytest.raises(JobQueueUnavailableError):
        await scheduler.schedule("ver-1", "doc-1")
    assert await job_queue.list_pending(REMINDER.value) == []
    assert await job_queue.list_pending(ESCALATION.value) == []


async def test_partial_schedule_cleanup_failure_is_logged(
    scheduler, job_queue, monkeypatch, caplog
) -> None:
    enqueue = job_queue.enqueue

    async def _enqueue(job_type, payload, delay):
        if job_type == ESCALATION.value:
            raise JobQueueUnavailableError("enqueue", "down")
        return await enqueue(job_type, payload, delay)

    monkeypatch.setattr(job_queue, "enqueue", _enqueue)
    monkeypatch.setattr(
        job_queue, "remove", AsyncMock(side_effect=JobQueueUnavailableError("remove", "down"))
    )
    with pytest.raises(JobQueueUnavailableError) as exc_info:
        await scheduler.schedule("ver-1", "doc-1")
    assert exc_info.value.details["operation"] == "enqueue"
    assert "after partial schedule" in caplog.text


async def test_cancel_removes_only_that_version(scheduler, job_queue) -> None:
    await scheduler.schedule("ver-1", "doc-1")
    await scheduler.schedule("ver-2", "doc-1")
    await scheduler.cancel("ver-1")
    for job_type in ApprovalJobType:
        remaining = await job_queue.list_pending(job_type.value)
        assert [j.payload["version_id"] for j in remaining] == ["ver-2"]


async def test_cancel_does_not_touch_claimed_jobs(scheduler, job_queue, clock) -> None:
    await scheduler.schedule("ver-1", "doc-1")
    clock.advance(hours=48)
    [claimed] = await job_queue.claim_due(REMINDER.value, 5)
    await scheduler.cancel("ver-1")
    assert job_queue.state_of(claimed) is JobState.ACTIVE
    assert await job_queue.list_pending(ESCALATION.value) == []


async def test_cancel_logs_queue_errors(scheduler, job_queue, monkeypatch, caplog) -> None:
    monkeypatch.setattr(
        job_queue,
        "list_pending",
        AsyncMock(side_effect=JobQueueUnavailableError("list_pending", "down")),
    )
    await scheduler.cancel("ver-1")
    assert "Failed to cancel" in caplog.text


async def test_run_due_acks_success_and_records_failures(scheduler, job_queue, handler, clock) -> None:
    await scheduler.schedule("ver-ok", "doc-1")
    await scheduler.schedule("ver-bad", "doc-1")

    async def _handle(job_type, payload):
        if payload["version_id"] == "ver-bad":
            raise RuntimeError("boom")
        return True

    handler.handle.side_effect = _handle
    clock.advance(hours=48)
    assert await scheduler.run_due(REMINDER) == 2
    assert [j.payload["version_id"] for j in job_queue.completed] == ["ver-ok"]
    [(failed_job, error)] = job_queue.failed
    assert failed_job.payload["version_id"] == "ver-bad"
    assert failed_job.attempts == 1
    assert error == "RuntimeError: boom"


async def test_run_due_respects_concurrency_limit(job_queue, handler, clock) -> None:
    scheduler = ApprovalJobScheduler(job_queue, handler, concurrency=2)
    for i in range(3):
        await scheduler.schedule(f"ver-{i}", "doc-1")
    clock.advance(hours=48)
    assert await scheduler.run_due(REMINDER) == 2
    assert await scheduler.run_due(REMINDER) == 1
    assert await scheduler.run_due(REMINDER) == 0


def test_invalid_configuration(job_queue) -> None:
    with pytest.raises(ValueError, match="concurrency"):
        ApprovalJobScheduler(job_queue, concurrency=0)
    with pytest.raises(RuntimeError, match="no handler"):
        ApprovalJobScheduler(job_queue).start()


async def test_run_due_without_handler_raises(job_queue) -> None:
    with pytest.raises(RuntimeError, match="no handler"):
        await ApprovalJobScheduler(job_queue).run_due(REMINDER)


async def test_process_without_handler_raises(job_queue) -> None:
    job = await job_queue.enqueue(REMINDER.value, {"version_id": "ver-1"}, timedelta(0))
    with pytest.raises(RuntimeError, match="no handler"):
        await ApprovalJobScheduler(job_queue)._process(job)


async def test_workers_process_due_jobs_until_shutdown(scheduler, job_queue, handler, clock) -> None:
    await scheduler.schedule("ver-1", "doc-1")
    clock.advance(hours=72)
    scheduler.start()
    scheduler.start()  # idempotent
    assert scheduler.running is True

    for _ in range(200):
        if len(job_queue.completed) == 2:
            break
        await asyncio.sleep(0.01)

    await scheduler.shutdown(timeout=1.0)
    assert scheduler.running is False
    assert sorted(j.job_type for j in job_queue.completed) == [
        ESCALATION.value,
        REMINDER.value,
    ]
    assert handler.handle.await_count == 2
