"""Named waypoints connected by weighted roads."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable

from mc_scout.errors import DuplicateIdentityError, UnknownReferenceError
from mc_scout.models import BlockPos, polyline_length, utcnow
from mc_scout.navigation.path import BASE_TRAVEL_SPEED


class WaypointType(str, Enum):
    BASE = "base"
    RESOURCE_SITE = "resource_site"
    TELEPORT_HUB = "teleport_hub"
    LANDMARK = "landmark"
    DANGER_ZONE = "danger_zone"
    TRADING_POST = "trading_post"
    FARM = "farm"
    MINE = "mine"
    PORTAL = "portal"


class RoadType(str, Enum):
    """Road surfaces with their speed multiplier and build priority."""

    DIRT_PATH = "dirt_path"
    STONE_ROAD = "stone_road"
    NETHER_HIGHWAY = "nether_highway"
    WATER_CANAL = "water_canal"
    RAIL_TRACK = "rail_track"
    ICE_ROAD = "ice_road"

    @property
    def speed_multiplier(self) -> float:
        return _ROAD_TRAITS[self][0]

    @property
    def build_priority(self) -> int:
        return _ROAD_TRAITS[self][1]


_ROAD_TRAITS: dict[RoadType, tuple[float, int]] = {
    RoadType.DIRT_PATH: (1.0, 30),
    RoadType.STONE_ROAD: (1.2, 60),
    RoadType.NETHER_HIGHWAY: (8.0, 120),
    RoadType.WATER_CANAL: (0.8, 25),
    RoadType.RAIL_TRACK: (2.0, 100),
    RoadType.ICE_ROAD: (1.5, 80),
}


class RoadCondition(str, Enum):
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    BLOCKED = "blocked"

    @property
    def speed_factor(self) -> float:
        return {"good": 1.0, "fair": 0.9, "poor": 0.7, "blocked": 0.3}[self.value]


@dataclass(slots=True)
class Waypoint:
    name: str
    position: BlockPos
    type: WaypointType
    description: str | None = None
    visit_count: int = 0
    active: bool = True
    created_at: datetime = field(default_factory=utcnow)
    last_visited: datetime | None = None

    def distance_from(self, position: BlockPos) -> float:
        return math.dist(self.position, position)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "position": self.position.to_list(),
            "type": self.type.value,
            "description": self.description,
            "visit_count": self.visit_count,
            "active": self.active,
            "created_at": self.created_at.isoformat(),
            "last_visited": self.last_visited.isoformat() if self.last_visited else None,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Waypoint:
        last_visited = payload.get("last_visited")
        return cls(
            name=payload["name"],
            position=BlockPos.from_list(payload["position"]),
            type=WaypointType(payload["type"]),
            description=payload.get("description"),
            visit_count=int(payload.get("visit_count", 0)),
            active=bool(payload.get("active", True)),
            created_at=datetime.fromisoformat(payload["created_at"]) if "created_at" in payload else utcnow(),
            last_visited=datetime.fromisoformat(last_visited) if last_visited else None,
        )


@dataclass(slots=True)
class Road:
    """Edge between two waypoints; ``distance`` is fixed when the road is created."""

    id: str
    start_waypoint: str
    end_waypoint: str
    type: RoadType
    distance: float
    control_points: list[BlockPos] = field(default_factory=list)
    condition: RoadCondition = RoadCondition.GOOD
    bidirectional: bool = True
    active: bool = True
    usage_count: int = 0
    created_at: datetime = field(default_factory=utcnow)
    last_used: datetime | None = None

    def other_end(self, waypoint_name: str) -> str | None:
        """Waypoint reachable from ``waypoint_name`` along this road."""
        if waypoint_name == self.start_waypoint:
            return self.end_waypoint
        if waypoint_name == self.end_waypoint and self.bidirectional:
            return self.start_waypoint
        return None

    @property
    def travel_speed(self) -> float:
        return BASE_TRAVEL_SPEED * self.type.speed_multiplier * self.condition.speed_factor

    @property
    def travel_seconds(self) -> int:
        return int(self.distance / self.travel_speed)

    @property
    def needs_maintenance(self) -> bool:
        return self.condition in (RoadCondition.POOR, RoadCondition.BLOCKED)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "start_waypoint": self.start_waypoint,
            "end_waypoint": self.end_waypoint,
            "type": self.type.value,
            "distance": self.distance,
            "control_points": [point.to_list() for point in self.control_points],
            "condition": self.condition.value,
            "bidirectional": self.bidirectional,
            "active": self.active,
            "usage_count": self.usage_count,
            "created_at": self.created_at.isoformat(),
            "last_used": self.last_used.isoformat() if self.last_used else None,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Road:
        last_used = payload.get("last_used")
        return cls(
            id=payload["id"],
            start_waypoint=payload["start_waypoint"],
            end_waypoint=payload["end_waypoint"],
            type=RoadType(payload["type"]),
            distance=float(payload["distance"]),
            control_points=[BlockPos.from_list(point) for point in payload.get("control_points", [])],
            condition=RoadCondition(payload.get("condition", RoadCondition.GOOD.value)),
            bidirectional=bool(payload.get("bidirectional", True)),
            active=bool(payload.get("active", True)),
            usage_count=int(payload.get("usage_count", 0)),
            created_at=datetime.fromisoformat(payload["created_at"]) if "created_at" in payload else utcnow(),
            last_used=datetime.fromisoformat(last_used) if last_used else None,
        )


class HubTier(str, Enum):
    """Teleport hub tiers with their connection limit and cost factor."""

    BASIC = "basic"
    ADVANCED = "advanced"
    MASTER = "master"

    @property
    def max_connections(self) -> int:
        return {"basic": 5, "advanced": 10, "master": 20}[self.value]

    @property
    def cost_factor(self) -> float:
        return {"basic": 1.0, "advanced": 0.8, "master": 0.6}[self.value]


HUB_BASE_COST = 10
HUB_WAYPOINT_PREFIX = "hub_"


@dataclass(slots=True)
class TeleportHub:
    id: str
    name: str
    position: BlockPos
    tier: HubTier = HubTier.BASIC
    connected_hubs: list[str] = field(default_factory=list)
    active: bool = True
    usage_count: int = 0
    created_at: datetime = field(default_factory=utcnow)
    last_used: datetime | None = None

    @property
    def waypoint_name(self) -> str:
        return f"{HUB_WAYPOINT_PREFIX}{self.id}"

    def distance_from(self, position: BlockPos) -> float:
        return math.dist(self.position, position)

    def connect(self, other_id: str) -> bool:
        """Link another hub; ``False`` when already linked or at the tier limit."""
        if other_id in self.connected_hubs or len(self.connected_hubs) >= self.tier.max_connections:
            return False
        self.connected_hubs.append(other_id)
        return True

    def disconnect(self, other_id: str) -> bool:
        if other_id not in self.connected_hubs:
            return False
        self.connected_hubs.remove(other_id)
        return True

    def upgrade(self) -> bool:
        tiers = list(HubTier)
        index = tiers.index(self.tier)
        if index + 1 >= len(tiers):
            return False
        self.tier = tiers[index + 1]
        return True

    def teleport_cost(self, destination: BlockPos) -> int:
        distance_cost = int(self.distance_from(destination) / 100)
        return int((HUB_BASE_COST + distance_cost) * self.tier.cost_factor)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "position": self.position.to_list(),
            "tier": self.tier.value,
            "connected_hubs": list(self.connected_hubs),
            "active": self.active,
            "usage_count": self.usage_count,
            "created_at": self.created_at.isoformat(),
            "last_used": self.last_used.isoformat() if self.last_used else None,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> TeleportHub:
        last_used = payload.get("last_used")
        return cls(
            id=payload["id"],
            name=payload["name"],
            position=BlockPos.from_list(payload["position"]),
            tier=HubTier(payload.get("tier", HubTier.BASIC.value)),
            connected_hubs=list(payload.get("connected_hubs", [])),
            active=bool(payload.get("active", True)),
            usage_count=int(payload.get("usage_count", 0)),
            created_at=datetime.fromisoformat(payload["created_at"]) if "created_at" in payload else utcnow(),
            last_used=datetime.fromisoformat(last_used) if last_used else None,
        )


@dataclass(slots=True)
class NavigationStats:
    total_waypoints: int
    active_waypoints: int
    total_roads: int
    active_roads: int
    waypoint_type_counts: dict[str, int]
    total_road_distance: float
    total_hubs: int = 0

    @property
    def average_road_length(self) -> float:
        if self.active_roads == 0:
            return 0.0
        return self.total_road_distance / self.active_roads

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_waypoints": self.total_waypoints,
            "active_waypoints": self.active_waypoints,
            "total_roads": self.total_roads,
            "active_roads": self.active_roads,
            "waypoint_type_counts": dict(self.waypoint_type_counts),
            "total_road_distance": round(self.total_road_distance, 1),
            "average_road_length": round(self.average_road_length, 1),
            "total_hubs": self.total_hubs,
        }


class WaypointGraph:
    """Waypoint and road tables plus the adjacency index between them.

    Waypoints only carry identifiers; which roads touch a waypoint is tracked
    here so there is a single structure to keep consistent.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._waypoints: dict[str, Waypoint] = {}
        self._roads: dict[str, Road] = {}
        self._adjacency: dict[str, list[str]] = {}
        self._hubs: dict[str, TeleportHub] = {}
        self._logger = logger or logging.getLogger("mc_scout.waypoints")

    def create_waypoint(
        self,
        name: str,
        position: BlockPos,
        waypoint_type: WaypointType,
        description: str | None = None,
    ) -> Waypoint:
        if name in self._waypoints:
            raise DuplicateIdentityError(f"Waypoint '{name}' already exists")

        waypoint = Waypoint(
            name=name,
            position=BlockPos(*position),
            type=WaypointType(waypoint_type),
            description=description,
        )
        self._waypoints[name] = waypoint
        self._adjacency[name] = []
        self._logger.info("waypoint_created", extra={"waypoint": name, "waypoint_type": waypoint.type.value})
        return waypoint

    def remove_waypoint(self, name: str) -> bool:
        """Remove a waypoint together with every road attached to it."""
        if name not in self._waypoints:
            return False

        for road_id in list(self._adjacency.get(name, [])):
            self._drop_road(road_id)
        del self._waypoints[name]
        self._adjacency.pop(name, None)
        self._logger.info("waypoint_removed", extra={"waypoint": name})
        return True

    def waypoint(self, name: str) -> Waypoint | None:
        return self._waypoints.get(name)

    def waypoints(self) -> list[Waypoint]:
        return list(self._waypoints.values())

    def waypoints_by_type(self, waypoint_type: WaypointType) -> list[Waypoint]:
        return [waypoint for waypoint in self._waypoints.values() if waypoint.type == waypoint_type]

    def mark_visited(self, name: str) -> Waypoint:
        waypoint = self._require_waypoint(name)
        waypoint.visit_count += 1
        waypoint.last_visited = utcnow()
        return waypoint

    def create_road(
        self,
        road_id: str,
        start_waypoint: str,
        end_waypoint: str,
        road_type: RoadType,
        *,
        control_points: Iterable[BlockPos] = (),
        bidirectional: bool = True,
    ) -> Road:
        if road_id in self._roads:
            raise DuplicateIdentityError(f"Road '{road_id}' already exists")
        start = self._require_waypoint(start_waypoint)
        end = self._require_waypoint(end_waypoint)

        points = [BlockPos(*point) for point in control_points]
        road = Road(
            id=road_id,
            start_waypoint=start.name,
            end_waypoint=end.name,
            type=RoadType(road_type),
            distance=polyline_length([start.position, *points, end.position]),
            control_points=points,
            bidirectional=bidirectional,
        )
        self._roads[road_id] = road
        self._adjacency[start.name].append(road_id)
        if end.name != start.name:
            self._adjacency[end.name].append(road_id)
        self._logger.info(
            "road_created",
            extra={"road": road_id, "from": start.name, "to": end.name, "distance": round(road.distance, 1)},
        )
        return road

    def road(self, road_id: str) -> Road | None:
        return self._roads.get(road_id)

    def roads(self) -> list[Road]:
        return list(self._roads.values())

    def connected_road_ids(self, name: str) -> list[str]:
        return list(self._adjacency.get(name, []))

    def outgoing(self, name: str) -> list[tuple[Road, str]]:
        """Roads leaving ``name`` paired with the waypoint they lead to."""
        edges: list[tuple[Road, str]] = []
        for road_id in self._adjacency.get(name, []):
            road = self._roads[road_id]
            neighbor = road.other_end(name)
            if neighbor is not None:
                edges.append((road, neighbor))
        return edges

    def set_road_condition(self, road_id: str, condition: RoadCondition) -> Road:
        road = self._require_road(road_id)
        road.condition = RoadCondition(condition)
        return road

    def set_road_active(self, road_id: str, active: bool) -> Road:
        road = self._require_road(road_id)
        road.active = active
        return road

    def mark_road_used(self, road_id: str) -> Road:
        road = self._require_road(road_id)
        road.usage_count += 1
        road.last_used = utcnow()
        return road

    def create_teleport_hub(self, hub_id: str, position: BlockPos, name: str) -> TeleportHub:
        """Register a hub and its ``hub_<id>`` teleport waypoint."""
        hub = TeleportHub(id=hub_id, name=name, position=BlockPos(*position))
        if hub_id in self._hubs:
            raise DuplicateIdentityError(f"Teleport hub '{hub_id}' already exists")
        if hub.waypoint_name in self._waypoints:
            raise DuplicateIdentityError(f"Waypoint '{hub.waypoint_name}' already exists")

        self.create_waypoint(hub.waypoint_name, hub.position, WaypointType.TELEPORT_HUB, f"Teleport hub: {name}")
        self._hubs[hub_id] = hub
        self._logger.info("teleport_hub_created", extra={"hub": hub_id, "position": str(hub.position)})
        return hub

    def teleport_hub(self, hub_id: str) -> TeleportHub | None:
        return self._hubs.get(hub_id)

    def available_teleport_hubs(self) -> list[TeleportHub]:
        """Active hubs sorted by display name."""
        return sorted((hub for hub in self._hubs.values() if hub.active), key=lambda hub: hub.name)

    def nearest_teleport_hub(self, position: BlockPos) -> TeleportHub | None:
        active = [hub for hub in self._hubs.values() if hub.active]
        return min(active, key=lambda hub: hub.distance_from(position), default=None)

    def connect_hubs(self, first_id: str, second_id: str) -> bool:
        """Link two hubs both ways; nothing changes when either side is full."""
        first = self._require_hub(first_id)
        second = self._require_hub(second_id)
        if first.id == second.id or not first.connect(second.id):
            return False
        if not second.connect(first.id):
            first.disconnect(second.id)
            return False
        return True

    def mark_hub_used(self, hub_id: str) -> TeleportHub:
        hub = self._require_hub(hub_id)
        hub.usage_count += 1
        hub.last_used = utcnow()
        return hub

    def nearest_waypoint(self, position: BlockPos, waypoint_type: WaypointType | None = None) -> Waypoint | None:
        """Closest active waypoint; the first inserted wins ties."""
        best: Waypoint | None = None
        best_distance = math.inf
        for waypoint in self._waypoints.values():
            if not waypoint.active or (waypoint_type is not None and waypoint.type != waypoint_type):
                continue
            distance = waypoint.distance_from(position)
            if distance < best_distance:
                best, best_distance = waypoint, distance
        return best

    def waypoints_within_radius(self, center: BlockPos, radius: float) -> list[Waypoint]:
        found = [
            waypoint
            for waypoint in self._waypoints.values()
            if waypoint.active and waypoint.distance_from(center) <= radius
        ]
        return sorted(found, key=lambda waypoint: waypoint.distance_from(center))

    def stats(self) -> NavigationStats:
        active_roads = [road for road in self._roads.values() if road.active]
        return NavigationStats(
            total_waypoints=len(self._waypoints),
            active_waypoints=sum(1 for waypoint in self._waypoints.values() if waypoint.active),
            total_roads=len(self._roads),
            active_roads=len(active_roads),
            waypoint_type_counts={kind.value: len(self.waypoints_by_type(kind)) for kind in WaypointType},
            total_road_distance=sum(road.distance for road in active_roads),
            total_hubs=len(self._hubs),
        )

    def to_documents(self) -> dict[str, dict[str, Any]]:
        return {
            "waypoints": {name: waypoint.to_dict() for name, waypoint in self._waypoints.items()},
            "roads": {road_id: road.to_dict() for road_id, road in self._roads.items()},
            "teleport_hubs": {hub_id: hub.to_dict() for hub_id, hub in self._hubs.items()},
        }

    def load_documents(
        self,
        *,
        waypoints: dict[str, Any] | None = None,
        roads: dict[str, Any] | None = None,
        teleport_hubs: dict[str, Any] | None = None,
    ) -> None:
        """Replace the graph with saved documents, skipping roads with missing endpoints."""
        loaded_waypoints = {name: Waypoint.from_dict(payload) for name, payload in (waypoints or {}).items()}
        loaded_roads: dict[str, Road] = {}
        adjacency: dict[str, list[str]] = {name: [] for name in loaded_waypoints}
        for road_id, payload in (roads or {}).items():
            road = Road.from_dict(payload)
            if road.start_waypoint not in loaded_waypoints or road.end_waypoint not in loaded_waypoints:
                self._logger.warning("road_skipped_missing_waypoint", extra={"road": road_id})
                continue
            loaded_roads[road_id] = road
            adjacency[road.start_waypoint].append(road_id)
            if road.end_waypoint != road.start_waypoint:
                adjacency[road.end_waypoint].append(road_id)

        self._waypoints = loaded_waypoints
        self._roads = loaded_roads
        self._adjacency = adjacency
        self._hubs = {hub_id: TeleportHub.from_dict(payload) for hub_id, payload in (teleport_hubs or {}).items()}

    def _drop_road(self, road_id: str) -> None:
        road = self._roads.pop(road_id, None)
        if road is None:
            return
        for name in (road.start_waypoint, road.end_waypoint):
            ids = self._adjacency.get(name)
            if ids and road_id in ids:
                ids.remove(road_id)

    def _require_waypoint(self, name: str) -> Waypoint:
        waypoint = self._waypoints.get(name)
        if waypoint is None:
            raise UnknownReferenceError(f"Unknown waypoint: {name}")
        return waypoint

    def _require_road(self, road_id: str) -> Road:
        road = self._roads.get(road_id)
        if road is None:
            raise UnknownReferenceError(f"Unknown road: {road_id}")
        return road

    def _require_hub(self, hub_id: str) -> TeleportHub:
        hub = self._hubs.get(hub_id)
        if hub is None:
            raise UnknownReferenceError(f"Unknown teleport hub: {hub_id}")
        return hub
