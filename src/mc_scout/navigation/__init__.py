"""Waypoint graph, routing and navigation paths."""

from .graph import (
    HubTier,
    NavigationStats,
    Road,
    RoadCondition,
    RoadType,
    TeleportHub,
    Waypoint,
    WaypointGraph,
    WaypointType,
)
from .path import NavigationPath
from .router import Router, WaypointRoute, prune_points

__all__ = [
    "HubTier",
    "NavigationPath",
    "NavigationStats",
    "Road",
    "RoadCondition",
    "RoadType",
    "Router",
    "TeleportHub",
    "Waypoint",
    "WaypointGraph",
    "WaypointRoute",
    "WaypointType",
    "prune_points",
]
