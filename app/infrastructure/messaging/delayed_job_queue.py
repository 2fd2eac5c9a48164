"""Delayed job queues: Redis-backed (durable) and in-memory (dev/tests).

A job moves delayed -> waiting (once due) -> active (claimed by a worker)
-> removed on ack, or recorded in the failed list on fail. Only delayed
and waiting jobs can be removed. Active jobs whose claim is older than the
visibility timeout are put back on the waiting list, so a worker crash
leads to redelivery (at-least-once).
"""

from __future__ import annotations

import json
from collections import deque
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

import redis.asyncio as redis

from app.application.dtos.jobs import Job
from app.core.config import get_settings
from app.infrastructure.exceptions import JobQueueUnavailableError
from app.infrastructure.messaging.keys import job_queue_keys
from app.shared.enums import JobState
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import ensure_utc, utc_now
from app.shared.utils.generators import generate_cuid

logger = get_logger(__name__)

FAILED_HISTORY_LIMIT = 1000

# KEYS: delayed, waiting, active. ARGV: now, limit, stale_before.
_CLAIM_DUE_LUA = """
local stale = redis.call('ZRANGEBYSCORE', KEYS[3], '-inf', ARGV[3], 'LIMIT', 0, 1000)
for _, id in ipairs(stale) do
  redis.call('ZREM', KEYS[3], id)
  redis.call('RPUSH', KEYS[2], id)
end
local due = redis.call('ZRANGEBYSCORE', KEYS[1], '-inf', ARGV[1], 'LIMIT', 0, 1000)
for _, id in ipairs(due) do
  redis.call('ZREM', KEYS[1], id)
  redis.call('RPUSH', KEYS[2], id)
end
local claimed = {}
for i = 1, tonumber(ARGV[2]) do
  local id = redis.call('LPOP', KEYS[2])
  if not id then break end
  redis.call('ZADD', KEYS[3], ARGV[1], id)
  table.insert(claimed, id)
end
return claimed
"""

# KEYS: delayed, waiting, jobs. ARGV: job_id.
_REMOVE_PENDING_LUA = """
local removed = redis.call('ZREM', KEYS[1], ARGV[1]) + redis.call('LREM', KEYS[2], 0, ARGV[1])
if removed > 0 then
  redis.call('HDEL', KEYS[3], ARGV[1])
end
return removed
"""


def _job_to_json(job: Job) -> str:
    return json.dumps(
        {
            "id": job.id,
            "job_type": job.job_type,
            "payload": job.payload,
            "run_at": job.run_at.isoformat(),
            "attempts": job.attempts,
            "created_at": job.created_at.isoformat() if job.created_at else None,
        }
    )


def _job_from_json(raw: str) -> Job:
    data = json.loads(raw)
    created_at = data.get("created_at")
    return Job(
        id=data["id"],
        job_type=data["job_type"],
        payload=data.get("payload") or {},
        run_at=ensure_utc(datetime.fromisoformat(data["run_at"])),
        attempts=int(data.get("attempts", 0)),
        created_at=ensure_utc(datetime.fromisoformat(created_at)) if created_at else None,
    )


class RedisDelayedJobQueue:
    """IDelayedJobQueue over Redis sorted sets and lists.

    Uses app.core.config for connection settings. Call connect() at startup
    and close() at shutdown. Redis errors raise JobQueueUnavailableError.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        visibility_timeout: timedelta = timedelta(minutes=5),
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize queue.

        Args:
            redis_client: Optional Redis client for testing or DI.
            visibility_timeout: Age after which an unacknowledged claim is redelivered.
            clock: Source of the current UTC time.
        """
        self.redis = redis_client
        self.visibility_timeout = visibility_timeout
        self._clock = clock
        self._claim_script: Any = None
        self._remove_script: Any = None
        if redis_client is not None:
            self._register_scripts()

    def _register_scripts(self) -> None:
        assert self.redis is not None
        self._claim_script = self.redis.register_script(_CLAIM_DUE_LUA)
        self._remove_script = self.redis.register_script(_REMOVE_PENDING_LUA)

    async def connect(self) -> None:
        """Establish Redis connection. Call on app startup."""
        if self.redis is not None:
            return
        settings = get_settings()
        client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            password=(
                settings.redis_password.get_secret_value()
                if settings.redis_password
                else None
            ),
            decode_responses=True,
            socket_connect_timeout=5,
            socket_keepalive=True,
            max_connections=settings.redis_max_connections,
        )
        try:
            await client.ping()
        except redis.RedisError as e:
            await client.aclose()
            raise JobQueueUnavailableError("connect", str(e)) from e
        self.redis = client
        self._register_scripts()
        logger.info(
            "Job queue connected: %s:%s", settings.redis_host, settings.redis_port
        )

    def _client(self, operation: str) -> redis.Redis:
        if self.redis is None:
            raise JobQueueUnavailableError(operation, "not connected")
        return self.redis

    async def enqueue(
        self, job_type: str, payload: dict[str, Any], delay: timedelta
    ) -> Job:
        """Store the job and add it to the delayed set scored by run_at."""
        client = self._client("enqueue")
        keys = job_queue_keys(job_type)
        now = self._clock()
        job = Job(
            id=generate_cuid(),
            job_type=job_type,
            payload=dict(payload),
            run_at=now + delay,
            created_at=now,
        )
        try:
            async with client.pipeline(transaction=True) as pipe:
                pipe.hset(keys.jobs, job.id, _job_to_json(job))
                pipe.zadd(keys.delayed, {job.id: job.run_at.timestamp()})
                await pipe.execute()
        except redis.RedisError as e:
            raise JobQueueUnavailableError("enqueue", str(e)) from e
        return job

    async def _load_jobs(self, client: redis.Redis, jobs_key: str, ids: list[str]) -> list[Job]:
        if not ids:
            return []
        raws = await client.hmget(jobs_key, ids)
        return [_job_from_json(raw) for raw in raws if raw is not None]

    async def list_pending(self, job_type: str) -> list[Job]:
        """Return delayed and waiting jobs (claimed jobs are excluded)."""
        client = self._client("list_pending")
        keys = job_queue_keys(job_type)
        try:
            delayed_ids = await client.zrange(keys.delayed, 0, -1)
            waiting_ids = await client.lrange(keys.waiting, 0, -1)
            return await self._load_jobs(client, keys.jobs, [*delayed_ids, *waiting_ids])
        except redis.RedisError as e:
            raise JobQueueUnavailableError("list_pending", str(e)) from e

    async def remove(self, job: Job) -> bool:
        """Remove a delayed or waiting job. False when already claimed or gone."""
        self._client("remove")
        keys = job_queue_keys(job.job_type)
        try:
            removed = await self._remove_script(
                keys=[keys.delayed, keys.waiting, keys.jobs], args=[job.id]
            )
        except redis.RedisError as e:
            raise JobQueueUnavailableError("remove", str(e)) from e
        return int(removed) > 0

    async def claim_due(self, job_type: str, limit: int) -> list[Job]:
        """Move due (and stale active) jobs to waiting, then claim up to limit."""
        client = self._client("claim_due")
        keys = job_queue_keys(job_type)
        now = self._clock()
        stale_before = now - self.visibility_timeout
        try:
            ids = await self._claim_script(
                keys=[keys.delayed, keys.waiting, keys.active],
                args=[now.timestamp(), limit, stale_before.timestamp()],
            )
            jobs = await self._load_jobs(client, keys.jobs, list(ids))
            claimed = [
                Job(
                    id=j.id,
                    job_type=j.job_type,
                    payload=j.payload,
                    run_at=j.run_at,
                    attempts=j.attempts + 1,
                    created_at=j.created_at,
                )
                for j in jobs
            ]
            if claimed:
                await client.hset(
                    keys.jobs, mapping={j.id: _job_to_json(j) for j in claimed}
                )
            return claimed
        except redis.RedisError as e:
            raise JobQueueUnavailableError("claim_due", str(e)) from e

    async def ack(self, job: Job) -> None:
        """Drop a completed job."""
        client = self._client("ack")
        keys = job_queue_keys(job.job_type)
        try:
            async with client.pipeline(transaction=True) as pipe:
                pipe.zrem(keys.active, job.id)
                pipe.hdel(keys.jobs, job.id)
                await pipe.execute()
        except redis.RedisError as e:
            raise JobQueueUnavailableError("ack", str(e)) from e

    async def fail(self, job: Job, error: str) -> None:
        """Drop a failed job and keep a capped failure record."""
        client = self._client("fail")
        keys = job_queue_keys(job.job_type)
        record = json.dumps(
            {
                "id": job.id,
                "payload": job.payload,
                "attempts": job.attempts,
                "error": error[:1000],
                "failed_at": self._clock().isoformat(),
            }
        )
        try:
            async with client.pipeline(transaction=True) as pipe:
                pipe.zrem(keys.active, job.id)
                pipe.hdel(keys.jobs, job.id)
                pipe.lpush(keys.failed, record)
                pipe.ltrim(keys.failed, 0, FAILED_HISTORY_LIMIT - 1)
                await pipe.execute()
        except redis.RedisError as e:
            raise JobQueueUnavailableError("fail", str(e)) from e

    async def close(self) -> None:
        """Close Redis connection. Call on app shutdown."""
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None
            logger.info("Job queue disconnected")


class InMemoryDelayedJobQueue:
    """IDelayedJobQueue kept in process memory. Jobs are lost on restart.

    Every method runs without awaiting, so each operation is atomic with
    respect to other coroutines. Completed and failed history keep only the
    last FAILED_HISTORY_LIMIT entries. clock is injectable so tests can
    advance time.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock
        self._delayed: dict[str, dict[str, Job]] = {}
        self._waiting: dict[str, deque[str]] = {}
        self._active: dict[str, dict[str, Job]] = {}
        self._jobs: dict[str, Job] = {}
        self.completed: deque[Job] = deque(maxlen=FAILED_HISTORY_LIMIT)
        self.failed: deque[tuple[Job, str]] = deque(maxlen=FAILED_HISTORY_LIMIT)

    def _promote_due(self, job_type: str) -> None:
        now = self._clock()
        delayed = self._delayed.setdefault(job_type, {})
        waiting = self._waiting.setdefault(job_type, deque())
        due = sorted(
            (j for j in delayed.values() if j.run_at <= now), key=lambda j: j.run_at
        )
        for job in due:
            del delayed[job.id]
            waiting.append(job.id)

    def state_of(self, job: Job) -> JobState | None:
        """Return where the job currently is, or None if it is gone."""
        if job.id in self._delayed.get(job.job_type, {}):
            return JobState.DELAYED
        if job.id in self._waiting.get(job.job_type, ()):
            return JobState.WAITING
        if job.id in self._active.get(job.job_type, {}):
            return JobState.ACTIVE
        return None

    async def enqueue(
        self, job_type: str, payload: dict[str, Any], delay: timedelta
    ) -> Job:
        now = self._clock()
        job = Job(
            id=generate_cuid(),
            job_type=job_type,
            payload=dict(payload),
            run_at=now + delay,
            created_at=now,
        )
        self._jobs[job.id] = job
        self._delayed.setdefault(job_type, {})[job.id] = job
        return job

    async def list_pending(self, job_type: str) -> list[Job]:
        self._promote_due(job_type)
        delayed = list(self._delayed.get(job_type, {}).values())
        waiting = [self._jobs[i] for i in self._waiting.get(job_type, ())]
        return delayed + waiting

    async def remove(self, job: Job) -> bool:
        delayed = self._delayed.get(job.job_type, {})
        waiting = self._waiting.get(job.job_type, deque())
        if job.id in delayed:
            del delayed[job.id]
        elif job.id in waiting:
            waiting.remove(job.id)
        else:
            return False
        self._jobs.pop(job.id, None)
        return True

    async def claim_due(self, job_type: str, limit: int) -> list[Job]:
        self._promote_due(job_type)
        waiting = self._waiting.setdefault(job_type, deque())
        active = self._active.setdefault(job_type, {})
        claimed: list[Job] = []
        while waiting and len(claimed) < limit:
            job_id = waiting.popleft()
            job = self._jobs[job_id]
            job = Job(
                id=job.id,
                job_type=job.job_type,
                payload=job.payload,
                run_at=job.run_at,
                attempts=job.attempts + 1,
                created_at=job.created_at,
            )
            self._jobs[job_id] = job
            active[job_id] = job
            claimed.append(job)
        return claimed

    async def ack(self, job: Job) -> None:
        self._active.get(job.job_type, {}).pop(job.id, None)
        self._jobs.pop(job.id, None)
        self.completed.append(job)

    async def fail(self, job: Job, error: str) -> None:
        self._active.get(job.job_type, {}).pop(job.id, None)
        self._jobs.pop(job.id, None)
        self.failed.append((job, error))

    async def close(self) -> None:
        """Nothing to release."""