"""Shared data model for exploration and navigation records."""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, NamedTuple

CELL_SIZE = 16
TASK_EXPIRY = timedelta(hours=1)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BlockPos(NamedTuple):
    """Integer world position."""

    x: int
    y: int
    z: int

    def distance_to(self, other: BlockPos) -> float:
        return math.dist(self, other)

    def cell(self) -> CellCoordinate:
        return CellCoordinate.containing(self.x, self.z)

    def to_list(self) -> list[int]:
        return [self.x, self.y, self.z]

    @classmethod
    def from_list(cls, raw: list[int] | tuple[int, int, int]) -> BlockPos:
        x, y, z = raw
        return cls(int(x), int(y), int(z))

    def __str__(self) -> str:
        return f"({self.x}, {self.y}, {self.z})"


@dataclass(frozen=True, slots=True)
class CellCoordinate:
    """A 16x16 horizontal cell, ``cx = x >> 4`` and ``cz = z >> 4``."""

    cx: int
    cz: int

    @classmethod
    def containing(cls, x: int, z: int) -> CellCoordinate:
        return cls(x >> 4, z >> 4)

    @classmethod
    def parse(cls, key: str) -> CellCoordinate:
        raw_x, raw_z = key.split(",")
        return cls(int(raw_x), int(raw_z))

    def key(self) -> str:
        return f"{self.cx},{self.cz}"

    @property
    def min_x(self) -> int:
        return self.cx << 4

    @property
    def min_z(self) -> int:
        return self.cz << 4

    def center(self, y: int = 64) -> BlockPos:
        return BlockPos(self.min_x + CELL_SIZE // 2, y, self.min_z + CELL_SIZE // 2)

    def distance_from(self, x: float, z: float) -> float:
        """Horizontal distance from a world position to this cell's center."""
        center = self.center()
        return math.dist((x, z), (center.x, center.z))

    def neighbors(self) -> list[CellCoordinate]:
        """The eight surrounding cells."""
        return [
            CellCoordinate(self.cx + dx, self.cz + dz)
            for dx in (-1, 0, 1)
            for dz in (-1, 0, 1)
            if dx or dz
        ]

    def __str__(self) -> str:
        return f"[{self.cx}, {self.cz}]"


@dataclass(slots=True)
class ResourceLocation:
    position: BlockPos
    resource_type: str
    value: int
    discovered: datetime = field(default_factory=utcnow)
    extracted: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "position": self.position.to_list(),
            "resource_type": self.resource_type,
            "value": self.value,
            "discovered": self.discovered.isoformat(),
            "extracted": self.extracted,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> ResourceLocation:
        return cls(
            position=BlockPos.from_list(payload["position"]),
            resource_type=payload["resource_type"],
            value=int(payload["value"]),
            discovered=datetime.fromisoformat(payload["discovered"]),
            extracted=bool(payload.get("extracted", False)),
        )


@dataclass(slots=True)
class ExploredArea:
    """Aggregate record of one scanned cell."""

    coordinate: CellCoordinate
    biome: str = "unknown"
    block_histogram: dict[str, int] = field(default_factory=dict)
    resources: list[ResourceLocation] = field(default_factory=list)
    has_water: bool = False
    has_lava: bool = False
    structure_hints: dict[str, BlockPos] = field(default_factory=dict)
    explored_at: datetime = field(default_factory=utcnow)

    @property
    def total_value(self) -> int:
        return sum(resource.value for resource in self.resources)

    @property
    def resource_density(self) -> float:
        """Resources per column of the cell."""
        return len(self.resources) / (CELL_SIZE * CELL_SIZE)

    def block_count(self, block_id: str) -> int:
        return self.block_histogram.get(block_id, 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "coordinate": self.coordinate.key(),
            "biome": self.biome,
            "block_histogram": dict(self.block_histogram),
            "resources": [resource.to_dict() for resource in self.resources],
            "has_water": self.has_water,
            "has_lava": self.has_lava,
            "structure_hints": {name: pos.to_list() for name, pos in self.structure_hints.items()},
            "explored_at": self.explored_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> ExploredArea:
        return cls(
            coordinate=CellCoordinate.parse(payload["coordinate"]),
            biome=payload.get("biome", "unknown"),
            block_histogram={name: int(count) for name, count in payload.get("block_histogram", {}).items()},
            resources=[ResourceLocation.from_dict(item) for item in payload.get("resources", [])],
            has_water=bool(payload.get("has_water", False)),
            has_lava=bool(payload.get("has_lava", False)),
            structure_hints={
                name: BlockPos.from_list(pos) for name, pos in payload.get("structure_hints", {}).items()
            },
            explored_at=datetime.fromisoformat(payload["explored_at"]) if "explored_at" in payload else utcnow(),
        )


@dataclass(slots=True)
class DangerZone:
    coordinate: CellCoordinate
    level: int
    primary_threat: str
    score: int = 0
    active: bool = True
    detected_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        self.level = min(10, max(1, int(self.level)))

    def update(self, level: int, primary_threat: str, score: int) -> None:
        self.level = min(10, max(1, int(level)))
        self.primary_threat = primary_threat
        self.score = score
        self.active = True
        self.detected_at = utcnow()

    def deactivate(self) -> None:
        self.active = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "coordinate": self.coordinate.key(),
            "level": self.level,
            "primary_threat": self.primary_threat,
            "score": self.score,
            "active": self.active,
            "detected_at": self.detected_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> DangerZone:
        return cls(
            coordinate=CellCoordinate.parse(payload["coordinate"]),
            level=int(payload["level"]),
            primary_threat=payload.get("primary_threat", "unknown"),
            score=int(payload.get("score", 0)),
            active=bool(payload.get("active", True)),
            detected_at=datetime.fromisoformat(payload["detected_at"]) if "detected_at" in payload else utcnow(),
        )


@dataclass(slots=True)
class ExplorationTask:
    """Pending scan of one cell; higher priority first, then oldest first."""

    coordinate: CellCoordinate
    priority: int
    created_at: datetime = field(default_factory=utcnow)

    def sort_key(self) -> tuple[int, datetime]:
        return (-self.priority, self.created_at)

    def is_expired(self, now: datetime | None = None, ttl: timedelta = TASK_EXPIRY) -> bool:
        return (now or utcnow()) - self.created_at >= ttl

    @property
    def description(self) -> str:
        return f"Explore cell {self.coordinate} (priority {self.priority})"


@dataclass(slots=True)
class AreaScanResult:
    """Outcome of one area scan request."""

    center: BlockPos
    radius: int
    success: bool = True
    error_message: str | None = None
    explored_areas: list[ExploredArea] = field(default_factory=list)
    danger_zones: list[DangerZone] = field(default_factory=list)
    skipped_cells: list[CellCoordinate] = field(default_factory=list)

    @property
    def new_resources(self) -> list[ResourceLocation]:
        return [resource for area in self.explored_areas for resource in area.resources]

    def summary(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "error": self.error_message,
            "explored_cells": len(self.explored_areas),
            "skipped_cells": len(self.skipped_cells),
            "new_resources": len(self.new_resources),
            "danger_zones": len(self.danger_zones),
        }


@dataclass(slots=True)
class ExplorationStats:
    explored_cells: int
    total_resources: int
    danger_zones: int
    resource_counts: dict[str, int]
    biome_counts: dict[str, int] = field(default_factory=dict)

    @property
    def danger_percentage(self) -> float:
        if self.explored_cells == 0:
            return 0.0
        return self.danger_zones / self.explored_cells * 100.0

    @property
    def resources_per_cell(self) -> float:
        if self.explored_cells == 0:
            return 0.0
        return self.total_resources / self.explored_cells

    @property
    def most_common_resource(self) -> str | None:
        if not self.resource_counts:
            return None
        return Counter(self.resource_counts).most_common(1)[0][0]

    @property
    def most_common_biome(self) -> str | None:
        if not self.biome_counts:
            return None
        return Counter(self.biome_counts).most_common(1)[0][0]

    def to_dict(self) -> dict[str, Any]:
        return {
            "explored_cells": self.explored_cells,
            "total_resources": self.total_resources,
            "danger_zones": self.danger_zones,
            "danger_percentage": round(self.danger_percentage, 1),
            "resources_per_cell": round(self.resources_per_cell, 2),
            "most_common_resource": self.most_common_resource,
            "most_common_biome": self.most_common_biome,
            "resource_counts": dict(self.resource_counts),
        }


def polyline_length(points: Iterable[BlockPos]) -> float:
    """Sum of straight-line distances between consecutive points."""
    points = list(points)
    return sum(math.dist(a, b) for a, b in zip(points, points[1:]))
