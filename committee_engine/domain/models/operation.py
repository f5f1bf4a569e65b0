"""Canonical operation summary.

The normalizer is the only producer of these models: every block is present,
every numeric leaf is a finite float or None, strings are trimmed.
"""

from __future__ import annotations

from pydantic import Field

from .base import EngineModel, Profile, RiskLevel, Severity


class OperationMeta(EngineModel):
    profile: Profile = Field(default="particulier", description="Borrower profile driving pillar weights")
    dossier_label: str | None = Field(None, description="Free-form dossier name")
    source: str | None = Field(None, description="Upstream producer of the summary")


class OperationProject(EngineModel):
    label: str | None = None
    operation_type: str | None = Field(None, description="Acquisition, rénovation, promotion...")
    asset_type: str | None = None
    address: str | None = None
    commune_insee: str | None = Field(None, description="INSEE commune code")
    departement: str | None = None
    surface_m2: float | None = Field(None, ge=0)
    lots: float | None = Field(None, ge=0)
    dpe: str | None = Field(None, description="Energy rating (A-G)")
    age_category: str | None = Field(None, description="neuf, recent, ancien...")
    condition: str | None = Field(None, description="bon, a_renover, lourd...")
    estimated_value: float | None = Field(None, description="Current market value in €")


class OperationBudget(EngineModel):
    purchase_price: float | None = None
    notary_fees: float | None = None
    works_budget: float | None = None
    soft_costs: float | None = None
    holding_costs: float | None = None
    contingency: float | None = None
    total_cost: float | None = None
    equity: float | None = None
    cost_per_sqm: float | None = None


class OperationFinancing(EngineModel):
    loan_amount: float | None = None
    loan_duration_months: float | None = None
    loan_type: str | None = None
    interest_rate: float | None = Field(None, description="Annual nominal rate in %")
    equity: float | None = None
    monthly_payment: float | None = None


class ScenarioValues(EngineModel):
    exit_value: float | None = None
    margin: float | None = None
    roi: float | None = None
    cashflow: float | None = None


class RevenueScenarios(EngineModel):
    base: ScenarioValues | None = None
    upside: ScenarioValues | None = None
    stress: ScenarioValues | None = None


class OperationRevenues(EngineModel):
    strategy: str | None = Field(None, description="revente, location, mixte...")
    exit_value: float | None = None
    rent_annual: float | None = None
    occupancy_rate: float | None = Field(None, description="Occupancy in %")
    revenue_total: float | None = None
    scenarios: RevenueScenarios = Field(default_factory=RevenueScenarios)


class MarketInsight(EngineModel):
    label: str
    value: str | None = None
    sentiment: str = Field(default="neutral", description="positive, negative or neutral")


class OperationMarket(EngineModel):
    price_per_sqm: float | None = Field(None, description="Median market price per m² (DVF)")
    comps_count: float | None = Field(None, description="Number of comparable transactions")
    demand_index: float | None = Field(None, description="Demand index 0-100")
    absorption_months: float | None = None
    evolution_pct: float | None = Field(None, description="Yearly price evolution in %")
    population_commune: float | None = None
    revenue_median: float | None = Field(None, description="INSEE median disposable income in €")
    unemployment_rate: float | None = None
    equipment_count: float | None = Field(None, description="BPE equipment count nearby")
    transport_stations: float | None = None
    sources: list[str] = Field(default_factory=list)
    insights: list[MarketInsight] = Field(default_factory=list)


class RiskItem(EngineModel):
    label: str
    category: str | None = None
    level: RiskLevel = "inconnu"


class GeoRiskFlags(EngineModel):
    """Synthetic geo-risk summary; score is 0-100, higher is safer."""

    score: float | None = None
    risk_count: float | None = None
    has_flood: bool = False
    has_seismic: bool = False
    label: str | None = None


class OperationRisks(EngineModel):
    geo: list[RiskItem] | GeoRiskFlags | None = None
    urbanism: list[RiskItem] = Field(default_factory=list)
    execution: list[RiskItem] = Field(default_factory=list)
    environmental: list[RiskItem] = Field(default_factory=list)
    global_level: RiskLevel | None = None
    sources: list[str] = Field(default_factory=list)


class OperationKpis(EngineModel):
    """Ratios in % except dscr and icr, which are coverage multiples."""

    ltv: float | None = None
    ltc: float | None = None
    margin: float | None = None
    margin_net: float | None = None
    roi: float | None = None
    irr: float | None = None
    dscr: float | None = None
    icr: float | None = None
    yield_gross: float | None = None
    yield_net: float | None = None
    dsti: float | None = None
    monthly_payment: float | None = None


class GuaranteeItem(EngineModel):
    type: str | None = Field(None, description="hypotheque, caution, nantissement...")
    label: str
    amount: float | None = None


class OperationGuarantees(EngineModel):
    coverage_total: float | None = None
    items: list[GuaranteeItem] = Field(default_factory=list)


class DocumentItem(EngineModel):
    label: str
    status: str = Field(default="pending", description="received, validated, pending, refused")


class OperationDocuments(EngineModel):
    completeness_pct: float | None = None
    items: list[DocumentItem] = Field(default_factory=list)


class OperationCalendar(EngineModel):
    acquisition_date: str | None = None
    start_works_date: str | None = None
    works_duration_months: float | None = None


class MissingDataItem(EngineModel):
    key: str
    label: str
    severity: Severity = "warn"


class OperationSummary(EngineModel):
    """Normalized, immutable description of one financing operation."""

    meta: OperationMeta = Field(default_factory=OperationMeta)
    project: OperationProject = Field(default_factory=OperationProject)
    budget: OperationBudget = Field(default_factory=OperationBudget)
    financing: OperationFinancing = Field(default_factory=OperationFinancing)
    revenues: OperationRevenues = Field(default_factory=OperationRevenues)
    market: OperationMarket = Field(default_factory=OperationMarket)
    risks: OperationRisks = Field(default_factory=OperationRisks)
    kpis: OperationKpis = Field(default_factory=OperationKpis)
    guarantees: OperationGuarantees = Field(default_factory=OperationGuarantees)
    documents: OperationDocuments = Field(default_factory=OperationDocuments)
    calendar: OperationCalendar = Field(default_factory=OperationCalendar)
    missing: list[MissingDataItem] = Field(default_factory=list)
