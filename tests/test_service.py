from __future__ import annotations

import asyncio
import logging

import pytest

from mc_scout.adapters import InMemoryWorldSampler
from mc_scout.errors import DuplicateIdentityError
from mc_scout.models import BlockPos, CellCoordinate
from mc_scout.navigation import RoadType, WaypointType
from mc_scout.persistence import InMemoryStore
from mc_scout.service import ScoutService


class BrokenStore:
    def __init__(self) -> None:
        self.saves = 0

    def load(self, key: str):
        raise OSError("disk unplugged")

    def save(self, key: str, document: dict) -> None:
        self.saves += 1
        raise OSError("disk unplugged")


def _sampler() -> InMemoryWorldSampler:
    sampler = InMemoryWorldSampler(biome="minecraft:nether_wastes", height_range=(0, 4))
    sampler.fill(
        {
            (2, 1, 2): "minecraft:diamond_ore",
            (3, 1, 2): "minecraft:coal_ore",
            (20, 2, 4): "minecraft:iron_ore",
        }
    )
    return sampler


def test_scan_results_are_queryable_and_persisted() -> None:
    persistence = InMemoryStore()
    service = ScoutService(_sampler(), persistence=persistence)

    result = asyncio.run(service.request_area_scan(BlockPos(8, 64, 8), 7))

    assert result.success is True
    assert service.is_scanned(CellCoordinate(0, 0))
    assert service.explored_area(CellCoordinate(0, 0)).total_value == 110
    assert [r.position for r in service.resource_locations("minecraft:diamond_ore")] == [BlockPos(2, 1, 2)]
    assert service.is_dangerous(BlockPos(1, 64, 1)) is False
    assert service.danger_zone_at(BlockPos(1, 64, 1)).primary_threat == "hazardous biome"
    assert set(persistence.keys()) == {"explored_areas", "resource_locations", "danger_zones"}

    reloaded = ScoutService(_sampler(), persistence=persistence)
    assert reloaded.is_scanned(CellCoordinate(0, 0))
    assert len(reloaded.danger_zones()) == 1
    assert reloaded.exploration_stats().resource_counts == {"minecraft:diamond_ore": 1, "minecraft:coal_ore": 1}


def test_is_dangerous_requires_level_above_five() -> None:
    sampler = InMemoryWorldSampler(biome="minecraft:nether_wastes", height_range=(0, 2))
    sampler.set_block(4, 0, 4, "minecraft:spawner")
    service = ScoutService(sampler)

    asyncio.run(service.request_area_scan(BlockPos(0, 64, 0), 0))

    zone = service.danger_zone_at(BlockPos(0, 64, 0))
    assert zone.level == 8
    assert service.is_dangerous(BlockPos(15, 0, 15)) is True
    assert service.is_dangerous(BlockPos(16, 0, 15)) is False


def test_navigation_changes_are_persisted() -> None:
    persistence = InMemoryStore()
    service = ScoutService(InMemoryWorldSampler(), persistence=persistence)
    service.create_waypoint("Home", BlockPos(0, 64, 0), WaypointType.BASE)
    service.create_waypoint("Mine", BlockPos(0, 64, 40), WaypointType.MINE)
    service.create_road("home-mine", "Home", "Mine", RoadType.STONE_ROAD)

    with pytest.raises(DuplicateIdentityError):
        service.create_waypoint("Home", BlockPos(5, 64, 5))

    reloaded = ScoutService(InMemoryWorldSampler(), persistence=persistence)
    assert reloaded.graph.waypoint("Home").position == BlockPos(0, 64, 0)
    assert reloaded.graph.connected_road_ids("Mine") == ["home-mine"]
    assert reloaded.find_path(BlockPos(0, 64, 0), BlockPos(0, 64, 40)).total_distance == 40.0
    assert reloaded.navigation_stats().total_roads == 1


def test_persistence_failures_are_logged_and_state_kept(caplog) -> None:
    store = BrokenStore()
    logger = logging.getLogger("test.service")

    with caplog.at_level(logging.WARNING, logger="test.service"):
        service = ScoutService(InMemoryWorldSampler(height_range=(0, 1)), persistence=store, logger=logger)
        waypoint = service.create_waypoint("Home", BlockPos(0, 64, 0), WaypointType.BASE)
        result = asyncio.run(service.request_area_scan(BlockPos(0, 64, 0), 0))

    assert waypoint.name == "Home"
    assert result.success is True
    assert service.graph.waypoint("Home") is not None
    assert service.is_scanned(CellCoordinate(0, 0))
    assert store.saves == 2
    messages = [record.getMessage() for record in caplog.records]
    assert "exploration_state_load_failed" in messages
    assert "navigation_state_load_failed" in messages
    assert messages.count("persistence_save_failed") == 2


def test_valuable_resources_are_promoted_to_waypoints() -> None:
    service = ScoutService(_sampler(), auto_waypoint_min_value=50)

    asyncio.run(service.request_area_scan(BlockPos(8, 64, 8), 16))

    sites = service.graph.waypoints_by_type(WaypointType.RESOURCE_SITE)
    assert [site.position for site in sites] == [BlockPos(2, 1, 2)]
    assert service.nearest_waypoint(BlockPos(0, 0, 0), WaypointType.RESOURCE_SITE) is sites[0]


def test_scan_task_scans_only_the_task_cell() -> None:
    service = ScoutService(_sampler())
    service.schedule_frontier(BlockPos(0, 64, 0), 32)

    task = service.next_task()
    result = asyncio.run(service.scan_task(task))

    assert [area.coordinate for area in result.explored_areas] == [task.coordinate]


def test_waypoints_within_radius_through_service() -> None:
    service = ScoutService(InMemoryWorldSampler())
    service.create_waypoint("Far", BlockPos(100, 64, 0))
    service.create_waypoint("Near", BlockPos(3, 64, 4))

    assert [waypoint.name for waypoint in service.waypoints_within_radius(BlockPos(0, 64, 0), 50)] == ["Near"]


def test_find_nearest_resource_routes_to_closest_deposit() -> None:
    sampler = InMemoryWorldSampler(height_range=(0, 4))
    sampler.fill({(2, 1, 2): "minecraft:diamond_ore", (40, 1, 2): "minecraft:diamond_ore"})
    service = ScoutService(sampler)
    asyncio.run(service.request_area_scan(BlockPos(24, 64, 8), 16))

    path = service.find_nearest_resource(BlockPos(45, 64, 2), "minecraft:diamond_ore")

    assert path.start == BlockPos(45, 64, 2)
    assert path.goal == BlockPos(40, 1, 2)
    assert service.find_nearest_resource(BlockPos(45, 64, 2), "minecraft:emerald_ore") is None


def test_teleport_hubs_are_persisted_with_their_waypoint() -> None:
    persistence = InMemoryStore()
    service = ScoutService(InMemoryWorldSampler(), persistence=persistence)
    service.create_teleport_hub("spawn", BlockPos(0, 64, 0), "Spawn")

    with pytest.raises(DuplicateIdentityError):
        service.create_teleport_hub("spawn", BlockPos(9, 64, 9), "Again")

    reloaded = ScoutService(InMemoryWorldSampler(), persistence=persistence)
    assert [hub.id for hub in reloaded.available_teleport_hubs()] == ["spawn"]
    assert reloaded.nearest_teleport_hub(BlockPos(50, 64, 50)).name == "Spawn"
    assert reloaded.nearest_waypoint(BlockPos(1, 64, 1), WaypointType.TELEPORT_HUB).name == "hub_spawn"
    assert reloaded.navigation_stats().total_hubs == 1
