"""Thread-safe ownership of explored cells, resources and danger zones."""

from __future__ import annotations

import threading
from collections import Counter
from typing import Any

from mc_scout.models import (
    BlockPos,
    CellCoordinate,
    DangerZone,
    ExplorationStats,
    ExploredArea,
    ResourceLocation,
)


class ExplorationStore:
    """Scanned-cell map plus the indexes derived from it.

    A cell moves through ``claim`` -> ``commit`` (or ``release`` on failure).
    ``claim`` is the single check-and-insert step: once a cell is claimed or
    committed no other caller can claim it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._areas: dict[CellCoordinate, ExploredArea] = {}
        self._in_flight: set[CellCoordinate] = set()
        self._resources: dict[str, list[ResourceLocation]] = {}
        self._danger_zones: dict[CellCoordinate, DangerZone] = {}

    def claim(self, coordinate: CellCoordinate) -> bool:
        with self._lock:
            if coordinate in self._areas or coordinate in self._in_flight:
                return False
            self._in_flight.add(coordinate)
            return True

    def release(self, coordinate: CellCoordinate) -> None:
        with self._lock:
            self._in_flight.discard(coordinate)

    def commit(self, area: ExploredArea, danger: DangerZone | None = None) -> None:
        with self._lock:
            if area.coordinate in self._areas:
                raise ValueError(f"Cell already committed: {area.coordinate.key()}")
            self._in_flight.discard(area.coordinate)
            self._areas[area.coordinate] = area
            for resource in area.resources:
                self._resources.setdefault(resource.resource_type, []).append(resource)
            if danger is not None:
                existing = self._danger_zones.get(danger.coordinate)
                if existing is None:
                    self._danger_zones[danger.coordinate] = danger
                else:
                    existing.update(danger.level, danger.primary_threat, danger.score)

    def is_scanned(self, coordinate: CellCoordinate) -> bool:
        with self._lock:
            return coordinate in self._areas

    def area(self, coordinate: CellCoordinate) -> ExploredArea | None:
        with self._lock:
            return self._areas.get(coordinate)

    def has_resources(self, coordinate: CellCoordinate) -> bool:
        with self._lock:
            area = self._areas.get(coordinate)
            return bool(area and area.resources)

    def scanned_cells(self) -> list[CellCoordinate]:
        with self._lock:
            return list(self._areas)

    def resources(self, resource_type: str) -> list[ResourceLocation]:
        with self._lock:
            return list(self._resources.get(resource_type, []))

    def resource_types(self) -> list[str]:
        with self._lock:
            return sorted(self._resources)

    def danger_zone(self, coordinate: CellCoordinate) -> DangerZone | None:
        with self._lock:
            return self._danger_zones.get(coordinate)

    def danger_zone_at(self, position: BlockPos) -> DangerZone | None:
        return self.danger_zone(position.cell())

    def danger_zones(self) -> list[DangerZone]:
        with self._lock:
            return list(self._danger_zones.values())

    def stats(self) -> ExplorationStats:
        with self._lock:
            resource_counts = {name: len(items) for name, items in self._resources.items()}
            return ExplorationStats(
                explored_cells=len(self._areas),
                total_resources=sum(resource_counts.values()),
                danger_zones=len(self._danger_zones),
                resource_counts=resource_counts,
                biome_counts=dict(Counter(area.biome for area in self._areas.values())),
            )

    def to_documents(self) -> dict[str, dict[str, Any]]:
        with self._lock:
            return {
                "explored_areas": {coord.key(): area.to_dict() for coord, area in self._areas.items()},
                "resource_locations": {
                    name: [resource.to_dict() for resource in items] for name, items in self._resources.items()
                },
                "danger_zones": {coord.key(): zone.to_dict() for coord, zone in self._danger_zones.items()},
            }

    def load_documents(
        self,
        *,
        explored_areas: dict[str, Any] | None = None,
        resource_locations: dict[str, Any] | None = None,
        danger_zones: dict[str, Any] | None = None,
    ) -> None:
        """Replace the store contents with previously saved documents."""
        areas = {
            CellCoordinate.parse(key): ExploredArea.from_dict(payload)
            for key, payload in (explored_areas or {}).items()
        }
        if resource_locations is not None:
            resources = {
                name: [ResourceLocation.from_dict(item) for item in items]
                for name, items in resource_locations.items()
            }
        else:
            resources = {}
            for area in areas.values():
                for resource in area.resources:
                    resources.setdefault(resource.resource_type, []).append(resource)
        zones = {
            CellCoordinate.parse(key): DangerZone.from_dict(payload) for key, payload in (danger_zones or {}).items()
        }

        with self._lock:
            self._areas = areas
            self._resources = resources
            self._danger_zones = zones
            self._in_flight.clear()
