"""Scouting service: exploration, waypoints and routing behind one facade."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Callable, Iterable

from mc_scout.adapters.world_sampler import WorldSampler
from mc_scout.exploration import CellScanner, DangerScorer, ExplorationStore, FrontierScheduler
from mc_scout.models import (
    TASK_EXPIRY,
    AreaScanResult,
    BlockPos,
    CellCoordinate,
    DangerZone,
    ExplorationStats,
    ExplorationTask,
    ExploredArea,
    ResourceLocation,
    utcnow,
)
from mc_scout.navigation import (
    NavigationPath,
    NavigationStats,
    Road,
    RoadType,
    Router,
    TeleportHub,
    Waypoint,
    WaypointGraph,
    WaypointType,
)
from mc_scout.navigation.path import BASE_TRAVEL_SPEED
from mc_scout.navigation.router import PRUNE_TOLERANCE
from mc_scout.persistence import (
    DANGER_ZONES,
    EXPLORED_AREAS,
    RESOURCE_LOCATIONS,
    ROADS,
    TELEPORT_HUBS,
    WAYPOINTS,
    InMemoryStore,
    PersistenceAdapter,
)
from mc_scout.telemetry import Telemetry

DANGEROUS_LEVEL = 5


class ScoutService:
    """Owns the exploration store and waypoint graph and keeps them persisted.

    State is loaded once at construction. A failed load leaves that part of the
    state empty; a failed save is logged and the in-memory state stays
    authoritative until the next successful save.
    """

    def __init__(
        self,
        sampler: WorldSampler,
        *,
        persistence: PersistenceAdapter | None = None,
        travel_speed: float = BASE_TRAVEL_SPEED,
        prune_tolerance: float = PRUNE_TOLERANCE,
        task_ttl: timedelta = TASK_EXPIRY,
        danger_report_level: int = 3,
        auto_waypoint_min_value: int = 0,
        telemetry: Telemetry | None = None,
        clock: Callable[[], datetime] = utcnow,
        logger: logging.Logger | None = None,
    ) -> None:
        self._persistence = persistence or InMemoryStore()
        self._auto_waypoint_min_value = auto_waypoint_min_value
        self._logger = logger or logging.getLogger("mc_scout.service")

        self.store = ExplorationStore()
        self.scheduler = FrontierScheduler(
            self.store,
            CellScanner(sampler, clock=clock),
            DangerScorer(report_level=danger_report_level),
            task_ttl=task_ttl,
            clock=clock,
            telemetry=telemetry,
        )
        self.graph = WaypointGraph()
        self.router = Router(self.graph, travel_speed=travel_speed, prune_tolerance=prune_tolerance)

        self.load()

    def load(self) -> None:
        try:
            self.store.load_documents(
                explored_areas=self._persistence.load(EXPLORED_AREAS),
                resource_locations=self._persistence.load(RESOURCE_LOCATIONS),
                danger_zones=self._persistence.load(DANGER_ZONES),
            )
        except Exception as exc:  # noqa: BLE001 - unreadable state starts empty.
            self.store.load_documents()
            self._logger.warning("exploration_state_load_failed", extra={"error": f"{type(exc).__name__}: {exc}"})

        try:
            self.graph.load_documents(
                waypoints=self._persistence.load(WAYPOINTS),
                roads=self._persistence.load(ROADS),
                teleport_hubs=self._persistence.load(TELEPORT_HUBS),
            )
        except Exception as exc:  # noqa: BLE001 - unreadable state starts empty.
            self.graph.load_documents()
            self._logger.warning("navigation_state_load_failed", extra={"error": f"{type(exc).__name__}: {exc}"})

        self._logger.info(
            "state_loaded",
            extra={"explored_cells": len(self.store.scanned_cells()), "waypoints": len(self.graph.waypoints())},
        )

    def save_exploration(self) -> bool:
        return self._save(self.store.to_documents())

    def save_navigation(self) -> bool:
        return self._save(self.graph.to_documents())

    def _save(self, documents: dict[str, dict]) -> bool:
        try:
            for key, document in documents.items():
                self._persistence.save(key, document)
        except Exception:  # noqa: BLE001 - keep running in memory until the next save.
            self._logger.exception("persistence_save_failed", extra={"keys": sorted(documents)})
            return False
        return True

    async def request_area_scan(self, center: BlockPos, radius: int) -> AreaScanResult:
        result = await self.scheduler.request_area_scan(BlockPos(*center), radius)
        if result.explored_areas:
            self.save_exploration()
            if self._promote_resources(result.new_resources):
                self.save_navigation()
        return result

    async def scan_task(self, task: ExplorationTask) -> AreaScanResult:
        """Scan exactly the cell of a frontier task."""
        return await self.request_area_scan(task.coordinate.center(), 0)

    def schedule_frontier(self, center: BlockPos, max_radius: int) -> list[ExplorationTask]:
        return self.scheduler.schedule_frontier(BlockPos(*center), max_radius)

    def next_task(self) -> ExplorationTask | None:
        return self.scheduler.next_task()

    def is_scanned(self, coordinate: CellCoordinate) -> bool:
        return self.store.is_scanned(coordinate)

    def explored_area(self, coordinate: CellCoordinate) -> ExploredArea | None:
        return self.store.area(coordinate)

    def resource_locations(self, resource_type: str) -> list[ResourceLocation]:
        return self.store.resources(resource_type)

    def danger_zone_at(self, position: BlockPos) -> DangerZone | None:
        return self.store.danger_zone_at(BlockPos(*position))

    def is_dangerous(self, position: BlockPos) -> bool:
        zone = self.danger_zone_at(position)
        return zone is not None and zone.active and zone.level > DANGEROUS_LEVEL

    def danger_zones(self) -> list[DangerZone]:
        return self.store.danger_zones()

    def exploration_stats(self) -> ExplorationStats:
        return self.store.stats()

    def _promote_resources(self, resources: Iterable[ResourceLocation]) -> list[Waypoint]:
        if self._auto_waypoint_min_value <= 0:
            return []

        promoted: list[Waypoint] = []
        for resource in resources:
            if resource.value < self._auto_waypoint_min_value:
                continue
            name = f"{resource.resource_type} {resource.position.x},{resource.position.y},{resource.position.z}"
            if self.graph.waypoint(name) is not None:
                continue
            promoted.append(
                self.graph.create_waypoint(
                    name,
                    resource.position,
                    WaypointType.RESOURCE_SITE,
                    description=f"{resource.resource_type} worth {resource.value}",
                )
            )
        if promoted:
            self._logger.info("resources_promoted", extra={"waypoints": [waypoint.name for waypoint in promoted]})
        return promoted

    def create_waypoint(
        self,
        name: str,
        position: BlockPos,
        waypoint_type: WaypointType = WaypointType.LANDMARK,
        description: str | None = None,
    ) -> Waypoint:
        waypoint = self.graph.create_waypoint(name, position, waypoint_type, description)
        self.save_navigation()
        return waypoint

    def remove_waypoint(self, name: str) -> bool:
        removed = self.graph.remove_waypoint(name)
        if removed:
            self.save_navigation()
        return removed

    def create_road(
        self,
        road_id: str,
        start_waypoint: str,
        end_waypoint: str,
        road_type: RoadType = RoadType.DIRT_PATH,
        *,
        control_points: Iterable[BlockPos] = (),
        bidirectional: bool = True,
    ) -> Road:
        road = self.graph.create_road(
            road_id,
            start_waypoint,
            end_waypoint,
            road_type,
            control_points=control_points,
            bidirectional=bidirectional,
        )
        self.save_navigation()
        return road

    def find_path(self, start: BlockPos, goal: BlockPos) -> NavigationPath:
        return self.router.find_path(start, goal)

    def nearest_waypoint(self, position: BlockPos, waypoint_type: WaypointType | None = None) -> Waypoint | None:
        return self.graph.nearest_waypoint(BlockPos(*position), waypoint_type)

    def waypoints_within_radius(self, center: BlockPos, radius: float) -> list[Waypoint]:
        return self.graph.waypoints_within_radius(BlockPos(*center), radius)

    def navigation_stats(self) -> NavigationStats:
        return self.graph.stats()

    def find_nearest_resource(self, start: BlockPos, resource_type: str) -> NavigationPath | None:
        """Route to the closest discovered resource of a type, or ``None`` if none is known."""
        start = BlockPos(*start)
        nearest = min(
            self.store.resources(resource_type),
            key=lambda resource: math.dist(start, resource.position),
            default=None,
        )
        if nearest is None:
            return None
        return self.router.find_path(start, nearest.position)

    def create_teleport_hub(self, hub_id: str, position: BlockPos, name: str) -> TeleportHub:
        hub = self.graph.create_teleport_hub(hub_id, position, name)
        self.save_navigation()
        return hub

    def available_teleport_hubs(self) -> list[TeleportHub]:
        return self.graph.available_teleport_hubs()

    def nearest_teleport_hub(self, position: BlockPos) -> TeleportHub | None:
        return self.graph.nearest_teleport_hub(BlockPos(*position))
