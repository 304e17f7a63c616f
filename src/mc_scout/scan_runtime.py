"""Asynchronous job runtime for background area scans."""

from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from itertools import islice
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Protocol
from uuid import uuid4

from mc_scout.models import BlockPos, CellCoordinate, utcnow
from mc_scout.service import ScoutService


class ScanJobStatus(str, Enum):
    """Lifecycle states for submitted scan jobs."""

    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(slots=True)
class ScanJob:
    """Represents one queued area scan and its outcome."""

    id: str
    center: BlockPos
    radius: int
    submitted_at: datetime
    status: ScanJobStatus
    cell: CellCoordinate | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    summary: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "center": self.center.to_list(),
            "radius": self.radius,
            "submitted_at": self.submitted_at.isoformat(),
            "status": self.status.value,
            "cell": self.cell.key() if self.cell else None,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "summary": dict(self.summary),
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> ScanJob:
        return cls(
            id=payload["id"],
            center=BlockPos.from_list(payload["center"]),
            radius=int(payload["radius"]),
            submitted_at=datetime.fromisoformat(payload["submitted_at"]),
            status=ScanJobStatus(payload["status"]),
            cell=CellCoordinate.parse(payload["cell"]) if payload.get("cell") else None,
            started_at=datetime.fromisoformat(payload["started_at"]) if payload.get("started_at") else None,
            finished_at=datetime.fromisoformat(payload["finished_at"]) if payload.get("finished_at") else None,
            summary=payload.get("summary") or {},
            error=payload.get("error"),
        )

    @property
    def is_finished(self) -> bool:
        return self.status in (ScanJobStatus.SUCCEEDED, ScanJobStatus.FAILED)


class ScanHistoryStore(Protocol):
    """Persistence contract for finished scan jobs."""

    def append(self, job: ScanJob) -> None:
        """Persist a finished job record."""

    def list_recent(self, limit: int) -> list[ScanJob]:
        """Return up to ``limit`` newest jobs."""


class InMemoryHistoryStore:
    """Keeps the last ``max_jobs`` finished jobs in memory."""

    def __init__(self, max_jobs: int = 1_000) -> None:
        self._jobs: deque[ScanJob] = deque(maxlen=max_jobs)

    def append(self, job: ScanJob) -> None:
        self._jobs.append(job)

    def list_recent(self, limit: int) -> list[ScanJob]:
        return list(islice(reversed(self._jobs), limit))


class JsonlHistoryStore:
    """Append-only JSONL file of finished scan jobs."""

    def __init__(self, file_path: str | Path) -> None:
        self._path = Path(file_path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, job: ScanJob) -> None:
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(job.to_dict()) + "\n")

    def list_recent(self, limit: int) -> list[ScanJob]:
        if not self._path.exists():
            return []

        jobs: list[ScanJob] = []
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                if line.strip():
                    jobs.append(ScanJob.from_dict(json.loads(line)))

        jobs.reverse()
        return jobs[:limit]


class ScanRuntime:
    """Queue-backed runtime that runs area scans on a pool of asyncio workers.

    Failed scans are recorded, never retried; resubmitting is safe because
    cells that were already scanned are skipped. At most ``max_tracked_jobs``
    finished jobs stay addressable by id; older ones live only in the history
    store.
    """

    def __init__(
        self,
        service: ScoutService,
        *,
        workers: int = 2,
        history_store: ScanHistoryStore | None = None,
        max_queue_size: int = 1_000,
        max_tracked_jobs: int = 1_000,
        logger: logging.Logger | None = None,
    ) -> None:
        self._service = service
        self._workers = max(1, workers)
        self._max_tracked_jobs = max(1, max_tracked_jobs)
        self._history_store = history_store or InMemoryHistoryStore(max_jobs=max_queue_size)
        self._logger = logger or logging.getLogger("mc_scout.scan_runtime")

        self._jobs: dict[str, ScanJob] = {}
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=max_queue_size)
        self._worker_tasks: list[asyncio.Task[None]] = []

    @property
    def is_running(self) -> bool:
        return any(not task.done() for task in self._worker_tasks)

    async def start(self) -> None:
        """Start the worker pool once for this runtime."""
        if self.is_running:
            return

        self._worker_tasks = [
            asyncio.create_task(self._worker_loop(), name=f"scan-runtime-worker-{index}")
            for index in range(self._workers)
        ]
        self._logger.info("scan_runtime_started", extra={"workers": self._workers})

    async def stop(self) -> None:
        """Cancel the workers and wait for them to finish."""
        if not self._worker_tasks:
            return

        for task in self._worker_tasks:
            task.cancel()
        await asyncio.gather(*self._worker_tasks, return_exceptions=True)
        self._worker_tasks = []
        self._logger.info("scan_runtime_stopped")

    async def join(self) -> None:
        """Wait until every queued job has finished."""
        await self._queue.join()

    def submit_scan(self, center: BlockPos, radius: int, *, cell: CellCoordinate | None = None) -> str:
        """Queue an area scan and return the job id."""
        job = ScanJob(
            id=uuid4().hex,
            center=BlockPos(*center),
            radius=radius,
            submitted_at=utcnow(),
            status=ScanJobStatus.QUEUED,
            cell=cell,
        )
        self._jobs[job.id] = job
        self._queue.put_nowait(job.id)
        self._logger.info(
            "scan_submitted",
            extra={"job_id": job.id, "center": str(job.center), "radius": radius, "queue_size": self._queue.qsize()},
        )
        return job.id

    def submit_next_frontier_task(self) -> str | None:
        """Queue a scan of the best pending frontier cell, if any."""
        task = self._service.next_task()
        if task is None:
            return None
        return self.submit_scan(task.coordinate.center(), 0, cell=task.coordinate)

    def get_job(self, job_id: str) -> ScanJob:
        if job_id not in self._jobs:
            raise KeyError(f"Unknown scan job id: {job_id}")
        return self._jobs[job_id]

    def list_recent_jobs(self, limit: int = 20) -> list[ScanJob]:
        """Newest first; tracked jobs take precedence over their history records."""
        jobs = {job.id: job for job in self._history_store.list_recent(limit)}
        jobs.update(self._jobs)
        return sorted(jobs.values(), key=lambda job: job.submitted_at, reverse=True)[:limit]

    async def _worker_loop(self) -> None:
        while True:
            job_id = await self._queue.get()
            try:
                await self._execute_job(job_id)
            finally:
                self._queue.task_done()

    async def _execute_job(self, job_id: str) -> None:
        job = self._jobs[job_id]
        job.status = ScanJobStatus.RUNNING
        job.started_at = utcnow()
        self._logger.info("scan_started", extra={"job_id": job.id, "center": str(job.center)})

        try:
            result = await self._service.request_area_scan(job.center, job.radius)
        except Exception as exc:  # noqa: BLE001 - runtime records unexpected failures on the job.
            job.status = ScanJobStatus.FAILED
            job.error = f"{type(exc).__name__}: {exc}"
            self._logger.exception("scan_crashed", extra={"job_id": job.id})
        else:
            job.summary = result.summary()
            if result.success:
                job.status = ScanJobStatus.SUCCEEDED
                self._logger.info("scan_succeeded", extra={"job_id": job.id, **job.summary})
            else:
                job.status = ScanJobStatus.FAILED
                job.error = result.error_message
                self._logger.warning("scan_failed", extra={"job_id": job.id, "error": job.error})

        job.finished_at = utcnow()
        self._history_store.append(job)
        self._forget_finished_jobs()

    def _forget_finished_jobs(self) -> None:
        finished = [job for job in self._jobs.values() if job.is_finished]
        excess = len(self._jobs) - self._max_tracked_jobs
        if excess <= 0:
            return
        finished.sort(key=lambda job: job.finished_at)
        for job in finished[:excess]:
            del self._jobs[job.id]
