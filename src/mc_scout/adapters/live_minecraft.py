"""Live Minecraft world sampler.

The sampler reads blocks from a real game instance through minescript, while
still being testable in CI where the mod is not available.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass, field
from typing import Any, Callable

from mc_scout.adapters.world_sampler import WorldSampler
from mc_scout.errors import CollaboratorFailure


class MinescriptUnavailableError(CollaboratorFailure):
    """Raised when minescript is not installed or has no supported block API."""


@dataclass(slots=True)
class MinescriptWorldSampler(WorldSampler):
    """Sampler that queries blocks through a locally-imported `minescript` module."""

    height_range: tuple[int, int] = (-64, 320)
    unknown_biome: str = "minecraft:unknown"
    _get_block: Callable[[int, int, int], Any] | None = field(init=False, repr=False, default=None)
    _get_biome: Callable[[int, int, int], Any] | None = field(init=False, repr=False, default=None)

    def __post_init__(self) -> None:
        module = self._import_module()
        self._get_block = self._resolve(module, ("getblock", "get_block", "block_at"))
        try:
            self._get_biome = self._resolve(module, ("getbiome", "get_biome", "biome_at"))
        except MinescriptUnavailableError:
            self._get_biome = None

    def block_at(self, x: int, y: int, z: int) -> str:
        result = self._get_block(x, y, z)
        if not result:
            return "minecraft:air"
        # minescript reports block states, e.g. "minecraft:water[level=0]"
        return str(result).split("[", 1)[0]

    def biome_at(self, x: int, y: int, z: int) -> str:
        if self._get_biome is None:
            return self.unknown_biome
        result = self._get_biome(x, y, z)
        return str(result) if result else self.unknown_biome

    def build_height_range(self) -> tuple[int, int]:
        return self.height_range

    @staticmethod
    def _import_module():
        try:
            return importlib.import_module("minescript")
        except Exception as exc:  # noqa: BLE001
            raise MinescriptUnavailableError(
                "Unable to import minescript. Install it and ensure Minecraft + the mod are running."
            ) from exc

    @staticmethod
    def _resolve(module, names: tuple[str, ...]) -> Callable[[int, int, int], Any]:
        for attr in names:
            fn = getattr(module, attr, None)
            if callable(fn):
                return fn

        raise MinescriptUnavailableError(
            f"Imported minescript but found no supported API (expected {'/'.join(names)})."
        )
