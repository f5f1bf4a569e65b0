"""Decision inputs shared by the scenario, acceptance, matrix and stress builders."""

from __future__ import annotations

from dataclasses import dataclass

from committee_engine.core.thresholds import STRONG_PILLAR_MIN, WEAK_PILLAR_MAX
from committee_engine.domain.models import GeoRiskFlags, OperationSummary, Pillar, SmartScoreResult
from committee_engine.domain.profiles import get_score_profile

MARKET_PILLARS = ("value", "location", "liquidity")


def market_score(op: OperationSummary, pillars: list[Pillar]) -> int | None:
    """0-100 reading of the local market.

    Uses the sentiment balance of market insights when there are any,
    otherwise the mean of the market pillars that have data.
    """
    insights = op.market.insights
    if insights:
        positive = sum(1 for i in insights if i.sentiment == "positive")
        negative = sum(1 for i in insights if i.sentiment == "negative")
        raw = (positive - 0.7 * negative) / len(insights) * 100 + 50
        return int(max(0, min(100, round(raw))))

    scores = [p.raw_score for p in pillars if p.key in MARKET_PILLARS and p.has_data]
    if not scores:
        return None
    return int(round(sum(scores) / len(scores)))


def geo_risk_level(op: OperationSummary) -> str:
    """faible, moyen, élevé or inconnu for the site's natural risks."""
    geo = op.risks.geo
    if isinstance(geo, GeoRiskFlags):
        if geo.score is not None:
            if geo.score >= 70 and not geo.has_flood:
                return "faible"
            return "moyen" if geo.score >= 40 else "élevé"
        if geo.risk_count is not None:
            if geo.risk_count == 0 and not geo.has_flood:
                return "faible"
            return "moyen" if geo.risk_count <= 2 else "élevé"
        return "moyen" if geo.has_flood or geo.has_seismic else "inconnu"

    if geo:
        levels = {item.level for item in geo}
        if "élevé" in levels:
            return "élevé"
        if "moyen" in levels:
            return "moyen"
        if "faible" in levels:
            return "faible"
        return "inconnu"

    return op.risks.global_level or "inconnu"


def fmt_pct(value: float | None) -> str:
    return "n.d." if value is None else f"{value:.0f} %"


def fmt_ratio(value: float | None) -> str:
    return "n.d." if value is None else f"{value:.2f}"


@dataclass(frozen=True)
class CommitteeFacts:
    """Flat view of the figures a committee decision reads."""
    score: int
    blockers: int = 0
    blocker_labels: tuple[str, ...] = ()
    warning_labels: tuple[str, ...] = ()
    missing_pillars: tuple[str, ...] = ()
    weak_pillars: tuple[str, ...] = ()
    strong_pillars: tuple[str, ...] = ()
    guarantees_documented: bool = True
    mandatory_guarantees: bool = False
    dscr: float | None = None
    ltv: float | None = None
    ltc: float | None = None
    margin: float | None = None
    yield_gross: float | None = None
    dsti: float | None = None
    market: int | None = None
    geo_level: str = "inconnu"
    comps_count: float | None = None
    rent_annual: float | None = None
    occupancy_rate: float | None = None
    total_cost: float | None = None
    loan_amount: float | None = None
    loan_duration_months: float | None = None
    interest_rate: float | None = None
    monthly_payment: float | None = None
    asset_value: float | None = None

    @property
    def missing_count(self) -> int:
        return len(self.blocker_labels) + len(self.warning_labels)

    @classmethod
    def from_operation(cls, op: OperationSummary, result: SmartScoreResult) -> CommitteeFacts:
        present = [p for p in result.pillars if p.has_data]
        profile = get_score_profile(result.profile, result.pillar_set)
        guarantees = result.pillar("guarantees")
        return cls(
            score=result.score,
            blockers=result.blocker_count,
            blocker_labels=tuple(i.label for i in result.missing if i.severity == "blocker"),
            warning_labels=tuple(i.label for i in result.missing if i.severity == "warn"),
            missing_pillars=tuple(p.label for p in result.pillars if not p.has_data),
            weak_pillars=tuple(p.label for p in present if p.raw_score < WEAK_PILLAR_MAX),
            strong_pillars=tuple(p.label for p in present if p.raw_score >= STRONG_PILLAR_MIN),
            guarantees_documented=guarantees is None or guarantees.has_data,
            mandatory_guarantees=guarantees is not None and profile.mandatory_guarantees,
            dscr=op.kpis.dscr,
            ltv=op.kpis.ltv,
            ltc=op.kpis.ltc,
            margin=op.kpis.margin,
            yield_gross=op.kpis.yield_gross,
            dsti=op.kpis.dsti,
            market=market_score(op, result.pillars),
            geo_level=geo_risk_level(op),
            comps_count=op.market.comps_count,
            rent_annual=op.revenues.rent_annual,
            occupancy_rate=op.revenues.occupancy_rate,
            total_cost=op.budget.total_cost,
            loan_amount=op.financing.loan_amount,
            loan_duration_months=op.financing.loan_duration_months,
            interest_rate=op.financing.interest_rate,
            monthly_payment=op.financing.monthly_payment,
            asset_value=op.revenues.exit_value or op.project.estimated_value,
        )
