"""SmartScore result models."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, computed_field

from .base import EngineModel, Severity
from .operation import MissingDataItem

VerdictLevel = Literal["GO", "GO_SOUS_CONDITIONS", "NO_GO", "DONNEES_INSUFFISANTES"]


class Pillar(EngineModel):
    """One weighted scoring dimension.

    A pillar without usable inputs keeps its weight in ``max_points`` but
    scores 0 and is left out of the aggregate.
    """

    key: str
    label: str
    points: int = Field(..., ge=0, description="Weighted contribution")
    max_points: int = Field(..., ge=0, description="Weight of the pillar for the profile")
    raw_score: float = Field(..., ge=0, le=100, description="Unweighted 0-100 score")
    has_data: bool
    reasons: list[str] = Field(default_factory=list, description="Top contributions, largest first")
    actions: list[str] = Field(default_factory=list, description="Suggested follow-ups")


class MissingPenalty(EngineModel):
    key: str
    label: str
    severity: Severity
    points: int = Field(..., ge=0)


class ScoreDriver(EngineModel):
    pillar: str
    label: str
    direction: Literal["up", "down"]
    raw_score: float


class SmartScoreResult(EngineModel):
    """Aggregate committee score for one operation."""

    score: int = Field(..., ge=0, le=100)
    grade: str
    grade_label: str
    verdict: str
    verdict_level: VerdictLevel
    rationale: str
    profile: str
    pillar_set: str
    pillars: list[Pillar]
    missing: list[MissingDataItem] = Field(default_factory=list)
    missing_penalties: list[MissingPenalty] = Field(default_factory=list)
    total_missing_penalty: int = Field(..., ge=0)
    blockers: list[str] = Field(default_factory=list)
    drivers: list[ScoreDriver] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    engine_version: str

    @computed_field
    @property
    def blocker_count(self) -> int:
        """Number of missing items with blocker severity."""
        return sum(1 for item in self.missing if item.severity == "blocker")

    def pillar(self, key: str) -> Pillar | None:
        for p in self.pillars:
            if p.key == key:
                return p
        return None
