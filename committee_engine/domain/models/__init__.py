"""Domain models for the committee engine."""

from .base import EngineModel, Profile, RiskLevel, Severity
from .decision import (
    AcceptanceDriver,
    AcceptanceProbability,
    CommitteePresentation,
    CommitteeReport,
    Decision,
    DecisionScenario,
    OperationAlert,
    PresentationSection,
    RiskReturnMatrix,
    StressTestCase,
    StressTestPack,
    StressTestSummary,
)
from .operation import (
    DocumentItem,
    GeoRiskFlags,
    GuaranteeItem,
    MarketInsight,
    MissingDataItem,
    OperationBudget,
    OperationCalendar,
    OperationDocuments,
    OperationFinancing,
    OperationGuarantees,
    OperationKpis,
    OperationMarket,
    OperationMeta,
    OperationProject,
    OperationRevenues,
    OperationRisks,
    OperationSummary,
    RevenueScenarios,
    RiskItem,
    ScenarioValues,
)
from .scoring import MissingPenalty, Pillar, ScoreDriver, SmartScoreResult, VerdictLevel

__all__ = [
    "EngineModel",
    "Profile",
    "RiskLevel",
    "Severity",
    # Operation
    "OperationSummary",
    "OperationMeta",
    "OperationProject",
    "OperationBudget",
    "OperationFinancing",
    "OperationRevenues",
    "RevenueScenarios",
    "ScenarioValues",
    "OperationMarket",
    "MarketInsight",
    "OperationRisks",
    "RiskItem",
    "GeoRiskFlags",
    "OperationKpis",
    "OperationGuarantees",
    "GuaranteeItem",
    "OperationDocuments",
    "DocumentItem",
    "OperationCalendar",
    "MissingDataItem",
    # Scoring
    "Pillar",
    "MissingPenalty",
    "ScoreDriver",
    "SmartScoreResult",
    "VerdictLevel",
    # Decision
    "Decision",
    "DecisionScenario",
    "AcceptanceDriver",
    "AcceptanceProbability",
    "RiskReturnMatrix",
    "StressTestCase",
    "StressTestSummary",
    "StressTestPack",
    "OperationAlert",
    "PresentationSection",
    "CommitteePresentation",
    "CommitteeReport",
]
