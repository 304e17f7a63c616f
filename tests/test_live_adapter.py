from __future__ import annotations

import sys
import types

import pytest

from mc_scout.adapters.live_minecraft import MinescriptUnavailableError, MinescriptWorldSampler
from mc_scout.errors import CollaboratorFailure
from mc_scout.exploration import CellScanner
from mc_scout.models import CellCoordinate


class _FakeMinescriptModule(types.SimpleNamespace):
    def __init__(self):
        super().__init__()
        self.calls: list[tuple[int, int, int]] = []

    def getblock(self, x: int, y: int, z: int) -> str:
        self.calls.append((x, y, z))
        if (x, y, z) == (1, 0, 1):
            return "minecraft:water[level=0]"
        if (x, y, z) == (2, 1, 2):
            return "minecraft:diamond_ore"
        return "minecraft:air"


def test_minescript_sampler_reads_blocks(monkeypatch) -> None:
    fake = _FakeMinescriptModule()
    monkeypatch.setitem(sys.modules, "minescript", fake)

    sampler = MinescriptWorldSampler(height_range=(0, 2))
    area = CellScanner(sampler).scan(CellCoordinate(0, 0))

    assert sampler.block_at(1, 0, 1) == "minecraft:water"
    assert area.has_water is True
    assert [resource.resource_type for resource in area.resources] == ["minecraft:diamond_ore"]
    assert area.biome == "minecraft:unknown"
    assert len(fake.calls) == 16 * 16 * 2 + 1


def test_minescript_sampler_uses_biome_api_when_present(monkeypatch) -> None:
    fake = _FakeMinescriptModule()
    fake.getbiome = lambda x, y, z: "minecraft:jungle"
    monkeypatch.setitem(sys.modules, "minescript", fake)

    assert MinescriptWorldSampler().biome_at(0, 64, 0) == "minecraft:jungle"


def test_minescript_sampler_without_block_api(monkeypatch) -> None:
    monkeypatch.setitem(sys.modules, "minescript", types.SimpleNamespace())

    with pytest.raises(MinescriptUnavailableError) as excinfo:
        MinescriptWorldSampler()

    assert isinstance(excinfo.value, CollaboratorFailure)
