"""Per-cell block scanning."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from mc_scout.adapters.world_sampler import AIR_BLOCKS, WorldSampler
from mc_scout.models import CELL_SIZE, BlockPos, CellCoordinate, ExploredArea, ResourceLocation, utcnow


@dataclass(frozen=True, slots=True)
class BlockInfo:
    is_resource: bool
    value: int = 0


_ORE_VALUES = {
    "diamond_ore": 100,
    "emerald_ore": 90,
    "gold_ore": 60,
    "iron_ore": 40,
    "redstone_ore": 30,
    "lapis_ore": 25,
    "copper_ore": 20,
    "coal_ore": 10,
}

BLOCK_TABLE: dict[str, BlockInfo] = {
    **{f"minecraft:{ore}": BlockInfo(True, value) for ore, value in _ORE_VALUES.items()},
    **{f"minecraft:deepslate_{ore}": BlockInfo(True, value) for ore, value in _ORE_VALUES.items()},
    "minecraft:ancient_debris": BlockInfo(True, 150),
    "minecraft:obsidian": BlockInfo(True, 15),
    "minecraft:spawner": BlockInfo(True, 200),
}

STRUCTURE_MARKERS: dict[str, str] = {
    "minecraft:spawner": "dungeon",
    "minecraft:end_portal_frame": "stronghold",
    "minecraft:bell": "village",
    "minecraft:suspicious_sand": "desert_pyramid",
    "minecraft:chiseled_stone_bricks": "stronghold",
    "minecraft:prismarine_bricks": "ocean_monument",
    "minecraft:sculk_shrieker": "ancient_city",
    "minecraft:crying_obsidian": "ruined_portal",
}

WATER_BLOCK = "minecraft:water"
LAVA_BLOCK = "minecraft:lava"
BIOME_SAMPLE_Y = 64


def block_info(block_id: str) -> BlockInfo:
    return BLOCK_TABLE.get(block_id, BlockInfo(False))


class CellScanner:
    """Scans every column of a 16x16 cell between the world's build limits."""

    def __init__(
        self,
        sampler: WorldSampler,
        *,
        clock: Callable[[], datetime] = utcnow,
        logger: logging.Logger | None = None,
    ) -> None:
        self._sampler = sampler
        self._clock = clock
        self._logger = logger or logging.getLogger("mc_scout.scanner")

    def scan(self, coordinate: CellCoordinate) -> ExploredArea:
        min_y, max_y = self._sampler.build_height_range()
        histogram: dict[str, int] = {}
        resources: list[ResourceLocation] = []
        hints: dict[str, BlockPos] = {}
        now = self._clock()

        for x in range(coordinate.min_x, coordinate.min_x + CELL_SIZE):
            for z in range(coordinate.min_z, coordinate.min_z + CELL_SIZE):
                for y in range(min_y, max_y):
                    block_id = self._sampler.block_at(x, y, z)
                    if block_id in AIR_BLOCKS:
                        continue

                    histogram[block_id] = histogram.get(block_id, 0) + 1
                    info = block_info(block_id)
                    if info.is_resource:
                        resources.append(ResourceLocation(BlockPos(x, y, z), block_id, info.value, now))
                    marker = STRUCTURE_MARKERS.get(block_id)
                    if marker and marker not in hints:
                        hints[marker] = BlockPos(x, y, z)

        sample = coordinate.center(BIOME_SAMPLE_Y)
        area = ExploredArea(
            coordinate=coordinate,
            biome=self._sampler.biome_at(sample.x, sample.y, sample.z),
            block_histogram=histogram,
            resources=resources,
            has_water=WATER_BLOCK in histogram,
            has_lava=LAVA_BLOCK in histogram,
            structure_hints=hints,
            explored_at=now,
        )
        self._logger.debug(
            "cell_scanned",
            extra={"cell": coordinate.key(), "biome": area.biome, "resources": len(resources)},
        )
        return area
