"""Additive hazard scoring for explored cells.

Rules are evaluated in a fixed order and their contributions summed:

1. spawners: ``+50`` per spawner, labels the threat ``spawner``
2. hazardous biome (nether/end): ``+100``, labels ``hazardous biome``
3. moderate biome (desert/jungle): ``+20``, no label
4. more than ten lava blocks: ``+2`` per lava block, labels ``lava``

A labelling rule takes the label when its contribution is at least as large as
the contribution behind the current label, so on ties the later rule wins.
The final level is ``round(score / 20)`` clamped to ``[1, 10]``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from mc_scout.exploration.scanner import LAVA_BLOCK
from mc_scout.models import DangerZone, ExploredArea

SPAWNER_WEIGHT = 50
HAZARDOUS_BIOME_WEIGHT = 100
MODERATE_BIOME_WEIGHT = 20
LAVA_THRESHOLD = 10
LAVA_WEIGHT = 2
SCORE_PER_LEVEL = 20

HAZARDOUS_BIOME_MARKERS = ("nether", "end")
MODERATE_BIOME_MARKERS = ("desert", "jungle")

UNKNOWN_THREAT = "unknown"
SPAWNER_THREAT = "spawner"
HAZARDOUS_BIOME_THREAT = "hazardous biome"
LAVA_THREAT = "lava"


@dataclass(slots=True)
class DangerAssessment:
    score: int = 0
    primary_threat: str = UNKNOWN_THREAT
    label_weight: int = 0

    def add(self, contribution: int, threat: str | None = None) -> None:
        self.score += contribution
        if threat is not None and contribution >= self.label_weight:
            self.primary_threat = threat
            self.label_weight = contribution

    @property
    def level(self) -> int:
        return min(10, max(1, math.floor(self.score / SCORE_PER_LEVEL + 0.5)))


def _biome_path(biome: str) -> str:
    return biome.lower().rsplit(":", 1)[-1]


class DangerScorer:
    """Derives a 1-10 hazard level and threat label from an explored cell."""

    def __init__(self, report_level: int = 3) -> None:
        self.report_level = report_level

    def evaluate(self, area: ExploredArea) -> DangerAssessment:
        assessment = DangerAssessment()

        spawners = sum(1 for resource in area.resources if "spawner" in resource.resource_type)
        if spawners:
            assessment.add(SPAWNER_WEIGHT * spawners, SPAWNER_THREAT)

        biome = _biome_path(area.biome)
        if any(marker in biome for marker in HAZARDOUS_BIOME_MARKERS):
            assessment.add(HAZARDOUS_BIOME_WEIGHT, HAZARDOUS_BIOME_THREAT)
        elif any(marker in biome for marker in MODERATE_BIOME_MARKERS):
            assessment.add(MODERATE_BIOME_WEIGHT)

        lava = area.block_count(LAVA_BLOCK)
        if lava > LAVA_THRESHOLD:
            assessment.add(LAVA_WEIGHT * lava, LAVA_THREAT)

        return assessment

    def score(self, area: ExploredArea) -> DangerZone:
        assessment = self.evaluate(area)
        return DangerZone(
            coordinate=area.coordinate,
            level=assessment.level,
            primary_threat=assessment.primary_threat,
            score=assessment.score,
        )

    def assess(self, area: ExploredArea) -> DangerZone | None:
        """Score the cell, keeping the zone only above the reporting level."""
        zone = self.score(area)
        if zone.level > self.report_level:
            return zone
        return None
