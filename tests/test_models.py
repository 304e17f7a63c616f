from __future__ import annotations

from datetime import datetime, timedelta, timezone

from mc_scout.models import (
    AreaScanResult,
    BlockPos,
    CellCoordinate,
    DangerZone,
    ExplorationStats,
    ExplorationTask,
    ExploredArea,
    ResourceLocation,
    polyline_length,
)


def test_cell_coordinate_uses_floor_division_for_negative_positions() -> None:
    assert CellCoordinate.containing(-1, -16) == CellCoordinate(-1, -1)
    assert CellCoordinate.containing(-17, 15) == CellCoordinate(-2, 0)
    assert BlockPos(31, 70, 0).cell() == CellCoordinate(1, 0)


def test_cell_coordinate_key_roundtrip_and_center() -> None:
    cell = CellCoordinate(-3, 7)

    assert cell.key() == "-3,7"
    assert CellCoordinate.parse(cell.key()) == cell
    assert cell.center() == BlockPos(-40, 64, 120)
    assert len(set(cell.neighbors())) == 8
    assert cell not in cell.neighbors()


def test_explored_area_metrics_and_serialization() -> None:
    found = datetime(2024, 5, 1, tzinfo=timezone.utc)
    area = ExploredArea(
        coordinate=CellCoordinate(0, 1),
        biome="minecraft:plains",
        block_histogram={"minecraft:stone": 10, "minecraft:diamond_ore": 2},
        resources=[
            ResourceLocation(BlockPos(1, 10, 17), "minecraft:diamond_ore", 100, found),
            ResourceLocation(BlockPos(2, 11, 17), "minecraft:diamond_ore", 100, found),
        ],
        structure_hints={"dungeon": BlockPos(3, 20, 18)},
        explored_at=found,
    )

    assert area.total_value == 200
    assert area.resource_density == 2 / 256
    assert area.block_count("minecraft:air") == 0

    restored = ExploredArea.from_dict(area.to_dict())
    assert restored == area


def test_danger_zone_level_is_clamped() -> None:
    assert DangerZone(CellCoordinate(0, 0), level=42, primary_threat="lava").level == 10
    zone = DangerZone(CellCoordinate(0, 0), level=-1, primary_threat="lava")
    assert zone.level == 1

    zone.deactivate()
    zone.update(7, "spawner", 140)
    assert zone.active is True
    assert (zone.level, zone.primary_threat, zone.score) == (7, "spawner", 140)


def test_exploration_task_ordering_and_expiry() -> None:
    created = datetime(2024, 1, 1, tzinfo=timezone.utc)
    high = ExplorationTask(CellCoordinate(0, 0), 900, created)
    low = ExplorationTask(CellCoordinate(1, 0), 800, created - timedelta(minutes=5))

    assert sorted([low, high], key=ExplorationTask.sort_key) == [high, low]
    assert not high.is_expired(created + timedelta(minutes=59))
    assert high.is_expired(created + timedelta(hours=1))
    assert "[0, 0]" in high.description


def test_area_scan_result_summary_counts() -> None:
    area = ExploredArea(
        coordinate=CellCoordinate(0, 0),
        resources=[ResourceLocation(BlockPos(0, 5, 0), "minecraft:coal_ore", 10)],
    )
    result = AreaScanResult(center=BlockPos(0, 64, 0), radius=0, explored_areas=[area])

    assert result.summary() == {
        "success": True,
        "error": None,
        "explored_cells": 1,
        "skipped_cells": 0,
        "new_resources": 1,
        "danger_zones": 0,
    }


def test_exploration_stats_derived_values() -> None:
    stats = ExplorationStats(
        explored_cells=4,
        total_resources=6,
        danger_zones=1,
        resource_counts={"minecraft:coal_ore": 5, "minecraft:iron_ore": 1},
        biome_counts={"minecraft:plains": 3, "minecraft:desert": 1},
    )

    assert stats.danger_percentage == 25.0
    assert stats.resources_per_cell == 1.5
    assert stats.most_common_resource == "minecraft:coal_ore"
    assert stats.most_common_biome == "minecraft:plains"
    assert ExplorationStats(0, 0, 0, {}).danger_percentage == 0.0


def test_polyline_length_sums_segments() -> None:
    assert polyline_length([BlockPos(0, 0, 0), BlockPos(3, 0, 4), BlockPos(3, 0, 10)]) == 11.0
    assert polyline_length([BlockPos(1, 2, 3)]) == 0
