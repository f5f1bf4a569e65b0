"""Acceptance probability model.

A baseline of 50 moved by signed drivers. The score is exactly the clamped
sum of the drivers, so every point of it can be traced back to one of them.
"""

from __future__ import annotations

from committee_engine.core.settings import get_settings
from committee_engine.core.thresholds import ACCEPTANCE_BASELINE
from committee_engine.domain.models import AcceptanceDriver, AcceptanceProbability
from committee_engine.services.facts import CommitteeFacts, fmt_pct, fmt_ratio


def _dscr_impact(dscr: float) -> int:
    if dscr >= 1.5:
        return 18
    if dscr >= 1.3:
        return 14
    if dscr >= 1.2:
        return 10
    if dscr >= 1.0:
        return 2
    if dscr >= 0.9:
        return -12
    return -25


def _ltv_impact(ltv: float) -> int:
    if ltv <= 40:
        return 15
    if ltv <= 50:
        return 10
    if ltv <= 60:
        return 5
    if ltv <= 70:
        return -2
    if ltv <= 80:
        return -8
    return -18


def _score_impact(score: int) -> int:
    if score >= 75:
        return 12
    if score >= 60:
        return 7
    if score >= 45:
        return 0
    if score >= 30:
        return -6
    return -14


def _market_impact(market: int) -> int:
    if market >= 70:
        return 8
    if market >= 50:
        return 3
    if market >= 30:
        return -3
    return -10


GEO_IMPACTS = {"faible": 5, "moyen": -3, "élevé": -10}


def acceptance_drivers(f: CommitteeFacts) -> list[AcceptanceDriver]:
    """Signed drivers in evaluation order."""
    drivers = []
    if f.dscr is not None:
        drivers.append(AcceptanceDriver(
            label="DSCR", detail=f"Couverture de la dette à {fmt_ratio(f.dscr)}", impact=_dscr_impact(f.dscr),
        ))
    if f.ltv is not None:
        drivers.append(AcceptanceDriver(
            label="LTV", detail=f"Levier à {fmt_pct(f.ltv)} de la valeur", impact=_ltv_impact(f.ltv),
        ))
    drivers.append(AcceptanceDriver(
        label="SmartScore", detail=f"Score global {f.score}/100", impact=_score_impact(f.score),
    ))
    if f.market is not None:
        drivers.append(AcceptanceDriver(
            label="Marché", detail=f"Marché local {f.market}/100", impact=_market_impact(f.market),
        ))
    if f.geo_level in GEO_IMPACTS:
        drivers.append(AcceptanceDriver(
            label="Risque géographique", detail=f"Risque du site {f.geo_level}", impact=GEO_IMPACTS[f.geo_level],
        ))
    if f.margin is not None and (f.margin > 15 or f.margin < 5):
        drivers.append(AcceptanceDriver(
            label="Marge", detail=f"Marge de {f.margin:.1f} %", impact=5 if f.margin > 15 else -5,
        ))
    if f.yield_gross is not None and (f.yield_gross >= 7 or f.yield_gross < 4):
        drivers.append(AcceptanceDriver(
            label="Rendement", detail=f"Rendement brut de {f.yield_gross:.1f} %", impact=4 if f.yield_gross >= 7 else -4,
        ))
    if f.missing_count:
        drivers.append(AcceptanceDriver(
            label="Données manquantes",
            detail=f"{f.missing_count} donnée(s) attendue(s) non fournie(s)",
            impact=-min(3 * f.missing_count, 20),
        ))
    return drivers


def build_acceptance_probability(f: CommitteeFacts, top_n: int | None = None) -> AcceptanceProbability:
    """Estimate the committee's propensity to accept.

    Args:
        f: Decision inputs
        top_n: Keep only the N drivers with the largest absolute impact
            (defaults to settings.acceptance_top_n; None keeps all)

    Returns:
        AcceptanceProbability with drivers sorted by absolute impact
    """
    drivers = acceptance_drivers(f)
    score = max(0, min(100, ACCEPTANCE_BASELINE + sum(d.impact for d in drivers)))

    drivers.sort(key=lambda d: -abs(d.impact))
    top_n = top_n if top_n is not None else get_settings().acceptance_top_n
    if top_n is not None:
        drivers = drivers[:top_n]

    return AcceptanceProbability(score=score, baseline=ACCEPTANCE_BASELINE, drivers=drivers)
