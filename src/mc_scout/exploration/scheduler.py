"""Frontier scheduling and idempotent area scans."""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
import threading
from datetime import datetime, timedelta
from typing import Callable

from mc_scout.exploration.danger import DangerScorer
from mc_scout.exploration.scanner import CellScanner
from mc_scout.exploration.store import ExplorationStore
from mc_scout.models import TASK_EXPIRY, AreaScanResult, BlockPos, CellCoordinate, ExplorationTask, utcnow
from mc_scout.telemetry.logging import NullTelemetry, Telemetry

BASE_PRIORITY = 1000
RESOURCE_NEIGHBOR_BONUS = 100


def area_cells(center: BlockPos, radius: int) -> list[CellCoordinate]:
    """Cells covering ``[x - r, x + r] x [z - r, z + r]``, bounds inclusive."""
    return [
        CellCoordinate(cx, cz)
        for cx in range((center.x - radius) >> 4, ((center.x + radius) >> 4) + 1)
        for cz in range((center.z - radius) >> 4, ((center.z + radius) >> 4) + 1)
    ]


def frontier_cells(center: BlockPos, max_radius: int) -> list[CellCoordinate]:
    """Cells covering ``[x - r, x + r)`` on both axes, always at least the center cell."""

    def _span(origin: int) -> range:
        low = (origin - max_radius) >> 4
        high = max(low, (origin + max_radius - 1) >> 4)
        return range(low, high + 1)

    return [CellCoordinate(cx, cz) for cx in _span(center.x) for cz in _span(center.z)]


class FrontierScheduler:
    """Owns the pending-task queue and drives cell scans through the shared store."""

    def __init__(
        self,
        store: ExplorationStore,
        scanner: CellScanner,
        scorer: DangerScorer,
        *,
        task_ttl: timedelta = TASK_EXPIRY,
        clock: Callable[[], datetime] = utcnow,
        telemetry: Telemetry | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._scanner = scanner
        self._scorer = scorer
        self._task_ttl = task_ttl
        self._clock = clock
        self._telemetry = telemetry or NullTelemetry()
        self._logger = logger or logging.getLogger("mc_scout.scheduler")

        self._queue_lock = threading.Lock()
        self._heap: list[tuple[int, datetime, int, ExplorationTask]] = []
        self._pending: set[CellCoordinate] = set()
        self._sequence = itertools.count()

    @property
    def store(self) -> ExplorationStore:
        return self._store

    async def request_area_scan(self, center: BlockPos, radius: int) -> AreaScanResult:
        """Scan every unscanned cell covering the square around ``center``.

        Cells already scanned (or being scanned by another request) are skipped.
        A sampler failure stops the request with ``success=False``; cells
        committed before the failure stay committed and the failed cell stays
        eligible for a later scan.
        """
        result = AreaScanResult(center=center, radius=radius)
        self._logger.info("area_scan_started", extra={"center": str(center), "radius": radius})

        for coordinate in area_cells(center, radius):
            if not self._store.claim(coordinate):
                result.skipped_cells.append(coordinate)
                continue

            try:
                area = await asyncio.to_thread(self._scanner.scan, coordinate)
                danger = self._scorer.assess(area)
            except asyncio.CancelledError:
                self._store.release(coordinate)
                raise
            except Exception as exc:  # noqa: BLE001 - sampler failures are reported in the result.
                self._store.release(coordinate)
                result.success = False
                result.error_message = f"Scan of cell {coordinate.key()} failed: {type(exc).__name__}: {exc}"
                self._logger.exception(
                    "area_scan_failed",
                    extra={"cell": coordinate.key(), "committed": len(result.explored_areas)},
                )
                self._telemetry.emit("area_scan_failed", result.summary())
                return result

            self._store.commit(area, danger)
            result.explored_areas.append(area)
            if danger is not None:
                result.danger_zones.append(danger)

        self._logger.info("area_scan_completed", extra=result.summary())
        self._telemetry.emit("area_scan_completed", result.summary())
        return result

    def priority_for(self, center: BlockPos, coordinate: CellCoordinate) -> int:
        priority = int(BASE_PRIORITY - coordinate.distance_from(center.x, center.z))
        if any(self._store.has_resources(neighbor) for neighbor in coordinate.neighbors()):
            priority += RESOURCE_NEIGHBOR_BONUS
        return max(1, priority)

    def schedule_frontier(self, center: BlockPos, max_radius: int) -> list[ExplorationTask]:
        """Queue every unscanned, not yet pending cell within ``max_radius``."""
        now = self._clock()
        candidates = sorted(
            frontier_cells(center, max_radius),
            key=lambda cell: cell.distance_from(center.x, center.z),
        )
        pushed: list[ExplorationTask] = []
        with self._queue_lock:
            for coordinate in candidates:
                if coordinate in self._pending or self._store.is_scanned(coordinate):
                    continue
                task = ExplorationTask(coordinate, self.priority_for(center, coordinate), now)
                heapq.heappush(self._heap, (*task.sort_key(), next(self._sequence), task))
                self._pending.add(coordinate)
                pushed.append(task)
            pending = len(self._pending)

        self._logger.info(
            "frontier_scheduled",
            extra={"center": str(center), "max_radius": max_radius, "pushed": len(pushed), "pending": pending},
        )
        return pushed

    def next_task(self) -> ExplorationTask | None:
        """Pop the best pending task, dropping stale or already-scanned ones."""
        with self._queue_lock:
            now = self._clock()
            while self._heap:
                *_, task = heapq.heappop(self._heap)
                self._pending.discard(task.coordinate)
                if task.is_expired(now, self._task_ttl):
                    self._logger.debug("exploration_task_expired", extra={"cell": task.coordinate.key()})
                    continue
                if self._store.is_scanned(task.coordinate):
                    continue
                return task
            return None

    def is_pending(self, coordinate: CellCoordinate) -> bool:
        with self._queue_lock:
            return coordinate in self._pending

    @property
    def pending_count(self) -> int:
        with self._queue_lock:
            return len(self._pending)
