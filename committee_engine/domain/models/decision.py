"""Committee decision models: lenses, acceptance, matrix, stress tests, presentation."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from .base import EngineModel
from .operation import OperationSummary
from .scoring import SmartScoreResult

Decision = Literal[
    "GO",
    "GO_SOUS_CONDITIONS",
    "GO_SOUS_CONDITIONS_STRICT",
    "GO_PATRIMONIAL",
    "NO_GO",
]
ScenarioKey = Literal["conservative", "balanced", "opportunistic"]
Quadrant = Literal["favorable", "prudent", "vigilance", "critical", "intermediate"]


class DecisionScenario(EngineModel):
    """Decision reached under one risk tolerance."""

    key: ScenarioKey
    label: str
    decision: Decision
    risk_reading: str
    favorable: list[str] = Field(default_factory=list)
    unfavorable: list[str] = Field(default_factory=list)
    motivation: str = Field(..., min_length=1)
    conditions: list[str] = Field(default_factory=list)
    targets: list[str] = Field(default_factory=list)
    confidence: int = Field(..., ge=0, le=100)


class AcceptanceDriver(EngineModel):
    label: str
    detail: str
    impact: int


class AcceptanceProbability(EngineModel):
    score: int = Field(..., ge=0, le=100)
    baseline: int
    drivers: list[AcceptanceDriver] = Field(default_factory=list)


class RiskReturnMatrix(EngineModel):
    risk_score: int = Field(..., ge=0, le=100)
    return_score: int = Field(..., ge=0, le=100)
    quadrant: Quadrant
    quadrant_label: str
    dominant_risk: str
    dominant_risk_label: str
    commentary: list[str] = Field(default_factory=list, max_length=5)


class StressTestCase(EngineModel):
    key: str
    label: str
    dscr: float | None = None
    ltv: float | None = None
    ltc: float | None = None
    yield_pct: float | None = None
    acceptance_score: int = Field(..., ge=0, le=100)
    notes: list[str] = Field(default_factory=list)


class StressTestSummary(EngineModel):
    worst_case_key: str
    worst_dscr: float | None = None
    worst_acceptance: int
    key_findings: list[str] = Field(default_factory=list, max_length=3)


class StressTestPack(EngineModel):
    base: StressTestCase
    cases: list[StressTestCase]
    summary: StressTestSummary


class OperationAlert(EngineModel):
    id: str
    severity: Literal["info", "warn", "critical"]
    title: str
    message: str
    pillar: str | None = None


class PresentationSection(EngineModel):
    title: str
    paragraphs: list[str] = Field(..., min_length=1)


class CommitteePresentation(EngineModel):
    """Narrative support read out in committee."""

    executive_summary: str
    sections: list[PresentationSection]
    decision_line: str
    conditions: list[str] = Field(default_factory=list)


class CommitteeReport(EngineModel):
    """Everything the committee needs for one operation."""

    operation: OperationSummary
    smart_score: SmartScoreResult
    scenarios: list[DecisionScenario] = Field(..., min_length=3, max_length=3)
    acceptance: AcceptanceProbability
    matrix: RiskReturnMatrix
    stress_tests: StressTestPack
    alerts: list[OperationAlert] = Field(default_factory=list)
    presentation: CommitteePresentation
