from __future__ import annotations

import asyncio
import threading
from datetime import datetime, timedelta, timezone

from mc_scout.adapters import InMemoryWorldSampler
from mc_scout.exploration import (
    CellScanner,
    DangerScorer,
    ExplorationStore,
    FrontierScheduler,
    area_cells,
    frontier_cells,
)
from mc_scout.models import BlockPos, CellCoordinate, ExploredArea, ResourceLocation


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


class CountingScanner:
    def __init__(self, sampler) -> None:
        self._inner = CellScanner(sampler)
        self._lock = threading.Lock()
        self.calls: list[CellCoordinate] = []

    def scan(self, coordinate: CellCoordinate) -> ExploredArea:
        with self._lock:
            self.calls.append(coordinate)
        return self._inner.scan(coordinate)


class FlakySampler:
    """Fails for every column with ``x >= 16`` while ``broken`` is set."""

    def __init__(self) -> None:
        self.broken = True

    def block_at(self, x: int, y: int, z: int) -> str:
        if self.broken and x >= 16:
            raise RuntimeError("sampler offline")
        return "minecraft:stone"

    def biome_at(self, x: int, y: int, z: int) -> str:
        return "minecraft:plains"

    def build_height_range(self) -> tuple[int, int]:
        return (0, 2)


class RecordingTelemetry:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict]] = []

    def emit(self, event_name: str, payload: dict) -> None:
        self.events.append((event_name, payload))


def _scheduler(sampler=None, clock=None, telemetry=None) -> tuple[FrontierScheduler, CountingScanner]:
    scanner = CountingScanner(sampler or InMemoryWorldSampler(height_range=(0, 2)))
    kwargs = {"telemetry": telemetry}
    if clock is not None:
        kwargs["clock"] = clock
    return FrontierScheduler(ExplorationStore(), scanner, DangerScorer(), **kwargs), scanner


def test_area_cells_include_both_bounds() -> None:
    assert area_cells(BlockPos(0, 64, 0), 0) == [CellCoordinate(0, 0)]
    cells = area_cells(BlockPos(8, 64, 8), 16)
    assert len(cells) == 9
    assert CellCoordinate(-1, -1) in cells
    assert CellCoordinate(1, 1) in cells


def test_frontier_cells_for_radius_32_cover_sixteen_cells() -> None:
    cells = frontier_cells(BlockPos(0, 64, 0), 32)

    assert len(cells) == 16
    assert {cell.cx for cell in cells} == {-2, -1, 0, 1}
    assert {cell.cz for cell in cells} == {-2, -1, 0, 1}
    assert frontier_cells(BlockPos(5, 64, 5), 0) == [CellCoordinate(0, 0)]


def test_repeated_scan_is_skipped() -> None:
    scheduler, scanner = _scheduler()

    async def _run():
        first = await scheduler.request_area_scan(BlockPos(8, 64, 8), 0)
        second = await scheduler.request_area_scan(BlockPos(8, 64, 8), 0)
        return first, second

    first, second = asyncio.run(_run())

    assert [area.coordinate for area in first.explored_areas] == [CellCoordinate(0, 0)]
    assert second.success is True
    assert second.explored_areas == []
    assert second.skipped_cells == [CellCoordinate(0, 0)]
    assert scanner.calls == [CellCoordinate(0, 0)]


def test_overlapping_concurrent_scans_scan_each_cell_once() -> None:
    scheduler, scanner = _scheduler()

    async def _run():
        return await asyncio.gather(
            scheduler.request_area_scan(BlockPos(8, 64, 8), 16),
            scheduler.request_area_scan(BlockPos(24, 64, 8), 16),
        )

    first, second = asyncio.run(_run())

    assert len(scanner.calls) == 12
    assert len(set(scanner.calls)) == 12
    assert len(first.explored_areas) + len(second.explored_areas) == 12
    assert len(scheduler.store.scanned_cells()) == 12


def test_sampler_failure_keeps_committed_cells_and_allows_retry() -> None:
    sampler = FlakySampler()
    telemetry = RecordingTelemetry()
    scheduler, _ = _scheduler(sampler=sampler, telemetry=telemetry)

    failed = asyncio.run(scheduler.request_area_scan(BlockPos(8, 64, 8), 16))

    assert failed.success is False
    assert "RuntimeError" in (failed.error_message or "")
    assert "1,-1" in (failed.error_message or "")
    assert len(failed.explored_areas) == 6
    assert not scheduler.store.is_scanned(CellCoordinate(1, -1))
    assert telemetry.events[-1][0] == "area_scan_failed"

    sampler.broken = False
    retried = asyncio.run(scheduler.request_area_scan(BlockPos(8, 64, 8), 16))

    assert retried.success is True
    assert sorted((area.coordinate.cx, area.coordinate.cz) for area in retried.explored_areas) == [
        (1, -1),
        (1, 0),
        (1, 1),
    ]
    assert len(retried.skipped_cells) == 6
    assert telemetry.events[-1][0] == "area_scan_completed"


def test_schedule_frontier_queues_each_cell_once() -> None:
    scheduler, _ = _scheduler()

    tasks = scheduler.schedule_frontier(BlockPos(0, 64, 0), 32)

    assert len(tasks) == 16
    assert len({task.coordinate for task in tasks}) == 16
    assert scheduler.pending_count == 16
    assert scheduler.schedule_frontier(BlockPos(0, 64, 0), 32) == []
    assert scheduler.pending_count == 16


def test_next_task_returns_highest_priority_first() -> None:
    scheduler, _ = _scheduler()
    scheduler.schedule_frontier(BlockPos(0, 64, 0), 32)

    popped = []
    while (task := scheduler.next_task()) is not None:
        popped.append(task)

    assert len(popped) == 16
    assert popped[0].priority == 988
    assert popped[0].coordinate in {
        CellCoordinate(0, 0),
        CellCoordinate(-1, 0),
        CellCoordinate(0, -1),
        CellCoordinate(-1, -1),
    }
    priorities = [task.priority for task in popped]
    assert priorities == sorted(priorities, reverse=True)
    assert scheduler.pending_count == 0


def test_resource_neighbor_bonus_is_applied_once() -> None:
    scheduler, _ = _scheduler()
    rich_cell = CellCoordinate(0, 0)
    assert scheduler.store.claim(rich_cell)
    scheduler.store.commit(
        ExploredArea(
            coordinate=rich_cell,
            resources=[ResourceLocation(BlockPos(3, 5, 3), "minecraft:iron_ore", 40)],
        )
    )
    assert scheduler.store.claim(CellCoordinate(1, 0))
    scheduler.store.commit(
        ExploredArea(
            coordinate=CellCoordinate(1, 0),
            resources=[ResourceLocation(BlockPos(20, 5, 3), "minecraft:coal_ore", 10)],
        )
    )

    tasks = {task.coordinate: task for task in scheduler.schedule_frontier(BlockPos(0, 64, 0), 32)}

    assert rich_cell not in tasks
    assert len(tasks) == 14
    # (1, 1) borders both rich cells, center (24, 24) is ~33.9 blocks away
    assert tasks[CellCoordinate(1, 1)].priority == 1066
    assert tasks[CellCoordinate(-2, -2)].priority == 966


def test_stale_tasks_are_dropped() -> None:
    clock = FakeClock()
    scheduler, _ = _scheduler(clock=clock)
    scheduler.schedule_frontier(BlockPos(0, 64, 0), 16)

    clock.now += timedelta(hours=1)

    assert scheduler.next_task() is None
    assert scheduler.pending_count == 0


def test_tasks_for_cells_scanned_meanwhile_are_dropped() -> None:
    scheduler, _ = _scheduler()
    scheduler.schedule_frontier(BlockPos(0, 64, 0), 32)
    asyncio.run(scheduler.request_area_scan(BlockPos(8, 64, 8), 0))

    seen = []
    while (task := scheduler.next_task()) is not None:
        seen.append(task.coordinate)

    assert CellCoordinate(0, 0) not in seen
    assert len(seen) == 15


def test_failed_cell_can_be_rescheduled() -> None:
    scheduler, _ = _scheduler(sampler=FlakySampler())
    asyncio.run(scheduler.request_area_scan(BlockPos(24, 64, 8), 0))

    tasks = scheduler.schedule_frontier(BlockPos(24, 64, 8), 0)

    assert [task.coordinate for task in tasks] == [CellCoordinate(1, 0)]


def test_equal_priority_tasks_pop_oldest_first() -> None:
    clock = FakeClock()
    start = clock.now
    scheduler, _ = _scheduler(clock=clock)

    clock.now = start + timedelta(seconds=1)
    newer = scheduler.schedule_frontier(BlockPos(24, 64, 8), 0)
    clock.now = start
    older = scheduler.schedule_frontier(BlockPos(8, 64, 8), 0)

    assert newer[0].priority == older[0].priority == 1000
    assert scheduler.next_task().coordinate == CellCoordinate(0, 0)
    assert scheduler.next_task().coordinate == CellCoordinate(1, 0)
    assert scheduler.next_task() is None
