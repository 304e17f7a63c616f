"""Shortest-path routing over the waypoint graph."""

from __future__ import annotations

import heapq
import logging
import math
from dataclasses import dataclass
from typing import Sequence

from mc_scout.models import BlockPos
from mc_scout.navigation.graph import WaypointGraph
from mc_scout.navigation.path import BASE_TRAVEL_SPEED, NavigationPath

PRUNE_TOLERANCE = 0.10


@dataclass(slots=True)
class WaypointRoute:
    """Waypoint names from source to target and the summed road distance."""

    waypoints: list[str]
    distance: float


def prune_points(points: Sequence[BlockPos], tolerance: float = PRUNE_TOLERANCE) -> list[BlockPos]:
    """Single left-to-right pass dropping interior stops that barely bend the path.

    Each interior point is compared against the last point kept and the next
    original point; it is dropped when the detour through it adds less than
    ``tolerance`` (relative) to the straight segment. Endpoints always stay.
    """
    if len(points) <= 2:
        return list(points)

    kept = [points[0]]
    for index in range(1, len(points) - 1):
        previous, current, following = kept[-1], points[index], points[index + 1]
        direct = math.dist(previous, following)
        via = math.dist(previous, current) + math.dist(current, following)
        if direct == 0:
            if via == 0:
                continue
        elif (via - direct) / direct < tolerance:
            continue
        kept.append(current)
    kept.append(points[-1])
    return kept


class Router:
    """Routes between arbitrary positions through the nearest known waypoints."""

    def __init__(
        self,
        graph: WaypointGraph,
        *,
        travel_speed: float = BASE_TRAVEL_SPEED,
        prune_tolerance: float = PRUNE_TOLERANCE,
        logger: logging.Logger | None = None,
    ) -> None:
        self._graph = graph
        self._travel_speed = travel_speed
        self._prune_tolerance = prune_tolerance
        self._logger = logger or logging.getLogger("mc_scout.router")

    def find_path(self, start: BlockPos, goal: BlockPos) -> NavigationPath:
        """Always returns a path; falls back to a straight line when the graph cannot help."""
        start, goal = BlockPos(*start), BlockPos(*goal)
        origin = self._graph.nearest_waypoint(start)
        destination = self._graph.nearest_waypoint(goal)
        if origin is None or destination is None:
            return self._direct(start, goal, reason="no_waypoints")

        route = self.shortest_route(origin.name, destination.name)
        if route is None:
            return self._direct(start, goal, reason="unreachable")

        points = [start, *(self._graph.waypoint(name).position for name in route.waypoints), goal]
        path = NavigationPath.from_points(
            prune_points(points, self._prune_tolerance),
            travel_speed=self._travel_speed,
        )
        self._logger.debug(
            "path_found",
            extra={
                "waypoints": route.waypoints,
                "graph_distance": round(route.distance, 1),
                "points": len(path.points),
            },
        )
        return path

    def shortest_route(self, source: str, target: str) -> WaypointRoute | None:
        """Dijkstra over active roads; ``None`` when ``target`` is unreachable."""
        distances: dict[str, float] = {source: 0.0}
        previous: dict[str, str] = {}
        settled: set[str] = set()
        queue: list[tuple[float, str]] = [(0.0, source)]

        while queue:
            distance, current = heapq.heappop(queue)
            if current in settled:
                continue
            settled.add(current)
            if current == target:
                break

            for road, neighbor in self._graph.outgoing(current):
                if not road.active or neighbor in settled:
                    continue
                candidate = distance + road.distance
                if candidate < distances.get(neighbor, math.inf):
                    distances[neighbor] = candidate
                    previous[neighbor] = current
                    heapq.heappush(queue, (candidate, neighbor))

        if target not in distances:
            return None
        return WaypointRoute(waypoints=_reconstruct(previous, source, target), distance=distances[target])

    def _direct(self, start: BlockPos, goal: BlockPos, *, reason: str) -> NavigationPath:
        self._logger.debug("path_fallback", extra={"reason": reason})
        return NavigationPath.from_points([start, goal], travel_speed=self._travel_speed, fallback=True)


def _reconstruct(previous: dict[str, str], source: str, target: str) -> list[str]:
    chain = [target]
    while chain[-1] != source:
        chain.append(previous[chain[-1]])
    chain.reverse()
    return chain
