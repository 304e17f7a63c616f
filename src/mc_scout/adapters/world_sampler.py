"""Boundary for read-only world sampling integrations."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Protocol

AIR_BLOCKS = frozenset({"minecraft:air", "minecraft:cave_air", "minecraft:void_air"})


class WorldSampler(Protocol):
    """Answers block and biome queries about the running world."""

    def block_at(self, x: int, y: int, z: int) -> str:
        """Return the namespaced block id at the given position."""

    def biome_at(self, x: int, y: int, z: int) -> str:
        """Return the namespaced biome id at the given position."""

    def build_height_range(self) -> tuple[int, int]:
        """Return ``(min_y, max_y)``, ``max_y`` exclusive."""


@dataclass(slots=True)
class InMemoryWorldSampler:
    """Sparse block map; every unset position is air."""

    blocks: dict[tuple[int, int, int], str] = field(default_factory=dict)
    biome: str | Callable[[int, int, int], str] = "minecraft:plains"
    height_range: tuple[int, int] = (0, 16)

    def set_block(self, x: int, y: int, z: int, block_id: str) -> None:
        self.blocks[(x, y, z)] = block_id

    def fill(self, blocks: Mapping[tuple[int, int, int], str]) -> None:
        self.blocks.update(blocks)

    def block_at(self, x: int, y: int, z: int) -> str:
        return self.blocks.get((x, y, z), "minecraft:air")

    def biome_at(self, x: int, y: int, z: int) -> str:
        if callable(self.biome):
            return self.biome(x, y, z)
        return self.biome

    def build_height_range(self) -> tuple[int, int]:
        return self.height_range


_DEMO_BIOMES = (
    "minecraft:plains",
    "minecraft:forest",
    "minecraft:desert",
    "minecraft:taiga",
    "minecraft:jungle",
    "minecraft:savanna",
    "minecraft:swamp",
    "minecraft:badlands",
)

# (block id, lowest y, highest y, chance per stone block)
_DEMO_ORES = (
    ("minecraft:coal_ore", 0, 128, 0.012),
    ("minecraft:iron_ore", -16, 72, 0.008),
    ("minecraft:copper_ore", 0, 96, 0.006),
    ("minecraft:lapis_ore", -32, 32, 0.002),
    ("minecraft:redstone_ore", -64, 16, 0.004),
    ("minecraft:gold_ore", -64, 32, 0.002),
    ("minecraft:diamond_ore", -64, 16, 0.0008),
    ("minecraft:emerald_ore", 32, 96, 0.0003),
)


def _mix(seed: int, *values: int) -> float:
    """Deterministic hash of integer inputs into ``[0, 1)``."""
    h = seed & 0xFFFFFFFF
    for value in values:
        h = ((h ^ (value & 0xFFFFFFFF)) * 0x9E3779B1) & 0xFFFFFFFF
        h ^= h >> 15
        h = (h * 0x85EBCA77) & 0xFFFFFFFF
        h ^= h >> 13
    return h / 0x100000000


@dataclass(slots=True)
class DemoWorldSampler:
    """Deterministic demo terrain (not accurate to Minecraft generation)."""

    seed: int = 0
    height_range: tuple[int, int] = (-64, 320)
    sea_level: int = 62

    def surface_height(self, x: int, z: int) -> int:
        return self.sea_level - 4 + int(_mix(self.seed, x >> 3, z >> 3) * 14)

    def block_at(self, x: int, y: int, z: int) -> str:
        min_y, _ = self.height_range
        surface = self.surface_height(x, z)
        if y == min_y:
            return "minecraft:bedrock"
        if y > surface:
            return "minecraft:water" if y <= self.sea_level else "minecraft:air"
        if y == surface:
            return "minecraft:sand" if surface <= self.sea_level else "minecraft:grass_block"
        if y > surface - 4:
            return "minecraft:dirt"

        roll = _mix(self.seed, x, y, z)
        if y < -40 and roll < 0.01:
            return "minecraft:lava"
        threshold = 0.0
        for block_id, low, high, chance in _DEMO_ORES:
            if low <= y <= high:
                threshold += chance
                if roll < threshold:
                    return block_id if y >= 0 else block_id.replace("minecraft:", "minecraft:deepslate_")
        if _mix(self.seed, x >> 4, z >> 4, 7) < 0.02 and y == 20 and roll < 0.05:
            return "minecraft:spawner"
        return "minecraft:stone" if y >= 0 else "minecraft:deepslate"

    def biome_at(self, x: int, y: int, z: int) -> str:
        index = int(_mix(self.seed, x >> 6, z >> 6, 1) * len(_DEMO_BIOMES))
        return _DEMO_BIOMES[index]

    def build_height_range(self) -> tuple[int, int]:
        return self.height_range
