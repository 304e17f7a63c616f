"""CLI-side handler wrapping the scouting service."""

from __future__ import annotations

import asyncio

from mc_scout.models import AreaScanResult, BlockPos, ExplorationTask
from mc_scout.navigation import NavigationPath, Road, RoadType, TeleportHub, Waypoint, WaypointType
from mc_scout.scan_runtime import ScanJob, ScanRuntime
from mc_scout.service import ScoutService


class CliScoutHandler:
    """Sync-friendly facade over the async scan paths of ``ScoutService``."""

    def __init__(self, service: ScoutService, runtime: ScanRuntime | None = None) -> None:
        self._service = service
        self._runtime = runtime or ScanRuntime(service)

    @property
    def service(self) -> ScoutService:
        return self._service

    def explore(self, center: BlockPos, radius: int) -> AreaScanResult:
        return asyncio.run(self._service.request_area_scan(center, radius))

    def schedule_frontier(self, center: BlockPos, max_radius: int) -> list[ExplorationTask]:
        return self._service.schedule_frontier(center, max_radius)

    def run_frontier(self, limit: int, timeout_seconds: float = 60.0) -> list[ScanJob]:
        """Scan up to ``limit`` pending frontier cells through the scan runtime."""

        async def _run() -> list[ScanJob]:
            await self._runtime.start()
            try:
                job_ids: list[str] = []
                for _ in range(limit):
                    job_id = self._runtime.submit_next_frontier_task()
                    if job_id is None:
                        break
                    job_ids.append(job_id)
                await asyncio.wait_for(self._runtime.join(), timeout=timeout_seconds)
                return [self._runtime.get_job(job_id) for job_id in job_ids]
            finally:
                await self._runtime.stop()

        return asyncio.run(_run())

    def create_waypoint(
        self,
        name: str,
        position: BlockPos,
        waypoint_type: WaypointType,
        description: str | None = None,
    ) -> Waypoint:
        return self._service.create_waypoint(name, position, waypoint_type, description)

    def list_waypoints(self, waypoint_type: WaypointType | None = None) -> list[Waypoint]:
        if waypoint_type is None:
            return self._service.graph.waypoints()
        return self._service.graph.waypoints_by_type(waypoint_type)

    def create_road(self, road_id: str, start: str, end: str, road_type: RoadType) -> Road:
        return self._service.create_road(road_id, start, end, road_type)

    def route(self, start: BlockPos, goal: BlockPos) -> NavigationPath:
        return self._service.find_path(start, goal)

    def route_to_resource(self, start: BlockPos, resource_type: str) -> NavigationPath | None:
        return self._service.find_nearest_resource(start, resource_type)

    def create_hub(self, hub_id: str, position: BlockPos, name: str) -> TeleportHub:
        return self._service.create_teleport_hub(hub_id, position, name)

    def list_hubs(self) -> list[TeleportHub]:
        return self._service.available_teleport_hubs()

    def stats(self) -> dict:
        return {
            "exploration": self._service.exploration_stats().to_dict(),
            "navigation": self._service.navigation_stats().to_dict(),
        }
