"""Immutable navigation paths with derived metrics and instructions."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from mc_scout.models import BlockPos, polyline_length

BASE_TRAVEL_SPEED = 4.3
ARRIVAL_RADIUS = 5.0
VERTICAL_HINT_THRESHOLD = 5


def compass_direction(origin: BlockPos, target: BlockPos) -> str:
    dx = target.x - origin.x
    dy = target.y - origin.y
    dz = target.z - origin.z

    if abs(dx) > abs(dz):
        heading = "east" if dx > 0 else "west"
    elif abs(dz) > abs(dx):
        heading = "south" if dz > 0 else "north"
    elif dx != 0:
        heading = f"{'south' if dz > 0 else 'north'}-{'east' if dx > 0 else 'west'}"
    else:
        heading = "straight"

    if dy > VERTICAL_HINT_THRESHOLD:
        return f"{heading} (up)"
    if dy < -VERTICAL_HINT_THRESHOLD:
        return f"{heading} (down)"
    return heading


def format_duration(seconds: int) -> str:
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m {seconds % 60}s"
    return f"{seconds // 3600}h {(seconds % 3600) // 60}m"


def build_instructions(points: tuple[BlockPos, ...]) -> tuple[str, ...]:
    steps = [f"Start at {points[0]}"]
    for index, (origin, target) in enumerate(zip(points, points[1:]), start=1):
        label = "destination" if index == len(points) - 1 else "waypoint"
        steps.append(
            f"Head {compass_direction(origin, target)} for {math.dist(origin, target):.1f} blocks to {label} {target}"
        )
    steps.append("Arrive at destination")
    return tuple(steps)


@dataclass(frozen=True, slots=True)
class NavigationPath:
    """Ordered positions from start to goal; build new instances with ``from_points``."""

    points: tuple[BlockPos, ...]
    total_distance: float
    estimated_seconds: int
    instructions: tuple[str, ...]
    fallback: bool = False

    @classmethod
    def from_points(
        cls,
        points: Iterable[BlockPos],
        *,
        travel_speed: float = BASE_TRAVEL_SPEED,
        fallback: bool = False,
    ) -> NavigationPath:
        ordered = tuple(BlockPos(*point) for point in points)
        if len(ordered) < 2:
            raise ValueError("A navigation path needs at least a start and an end point")

        total = polyline_length(ordered)
        return cls(
            points=ordered,
            total_distance=total,
            estimated_seconds=int(total / travel_speed),
            instructions=build_instructions(ordered),
            fallback=fallback,
        )

    @property
    def start(self) -> BlockPos:
        return self.points[0]

    @property
    def goal(self) -> BlockPos:
        return self.points[-1]

    def next_point(self, current: BlockPos) -> BlockPos | None:
        """Point after the one closest to ``current``; ``None`` once at the goal."""
        closest = min(range(len(self.points)), key=lambda index: math.dist(current, self.points[index]))
        if closest < len(self.points) - 1:
            return self.points[closest + 1]
        return None

    def is_completed(self, current: BlockPos) -> bool:
        return math.dist(current, self.goal) < ARRIVAL_RADIUS

    def progress(self, current: BlockPos) -> float:
        straight = math.dist(self.start, self.goal)
        if straight == 0:
            return 1.0
        return max(0.0, min(1.0, 1.0 - math.dist(current, self.goal) / straight))

    def summary(self) -> dict:
        return {
            "points": [point.to_list() for point in self.points],
            "total_distance": round(self.total_distance, 1),
            "estimated_time": format_duration(self.estimated_seconds),
            "fallback": self.fallback,
            "instructions": list(self.instructions),
        }
