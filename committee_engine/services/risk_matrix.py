"""Risk/return matrix classifier."""

from __future__ import annotations

from committee_engine.core.thresholds import MATRIX_THRESHOLDS, MatrixThresholds
from committee_engine.domain.models import RiskReturnMatrix
from committee_engine.services.facts import CommitteeFacts, fmt_pct, fmt_ratio

QUADRANT_LABELS = {
    "favorable": "Optimal : rendement élevé pour un risque maîtrisé",
    "prudent": "Prudent : risque faible, rendement modéré",
    "vigilance": "Vigilance : rendement à mettre en regard d'un risque élevé",
    "critical": "Défavorable : risque élevé mal rémunéré",
    "intermediate": "Zone intermédiaire",
}

DOMINANT_RISK_LABELS = {
    "dscr_deficit": "Déficit de couverture (DSCR < 1)",
    "ltv_critical": "Levier critique (LTV > 80 %)",
    "liquidity_low": "Liquidité faible (moins de 20 transactions)",
    "guarantees_missing": "Garanties non documentées",
    "data_missing": "Données manquantes",
    "geo_risk": "Risque géographique élevé",
    "none": "Aucun risque dominant",
}

MAX_COMMENTARY = 5


def risk_score(f: CommitteeFacts) -> int:
    """0-100, higher is riskier."""
    score = 50
    if f.ltv is not None:
        score += 20 if f.ltv > 80 else 10 if f.ltv > 70 else -10 if f.ltv <= 50 else 0
    if f.dscr is not None:
        score += 20 if f.dscr < 1.0 else 10 if f.dscr < 1.2 else -10 if f.dscr >= 1.5 else 0
    score += 10 if f.score < 40 else -10 if f.score >= 70 else 0
    if f.market is not None:
        score += 10 if f.market < 40 else -5 if f.market >= 70 else 0
    if f.missing_count:
        score += 10 if f.missing_count > 3 else 5
    score += {"élevé": 10, "faible": -5}.get(f.geo_level, 0)
    # Gross yield after a 10 % rent haircut
    if f.yield_gross is not None and f.yield_gross * 0.9 < 4:
        score += 5
    return max(0, min(100, score))


def return_score(f: CommitteeFacts) -> int:
    """0-100, higher is more rewarding."""
    score = 40
    if f.yield_gross is not None:
        score += 20 if f.yield_gross >= 7 else 10 if f.yield_gross >= 5 else -10 if f.yield_gross < 3 else 0
    if f.margin is not None:
        if f.margin < 0:
            score -= 20
        elif f.margin < 5:
            score -= 5
        elif f.margin >= 20:
            score += 20
        elif f.margin >= 10:
            score += 10
    if f.dscr is not None and f.dscr >= 1.5:
        score += 10
    if f.market is not None:
        score += 10 if f.market >= 70 else -10 if f.market < 40 else 0
    if f.score >= 70:
        score += 10
    return max(0, min(100, score))


def classify_quadrant(risk: int, ret: int, t: MatrixThresholds = MATRIX_THRESHOLDS) -> str:
    if risk <= t["low_risk"] and ret >= t["high_return"]:
        return "favorable"
    if risk > t["high_risk"] and ret < t["low_return"]:
        return "critical"
    if risk <= t["low_risk"]:
        return "prudent"
    if risk > t["high_risk"]:
        return "vigilance"
    return "intermediate"


def dominant_risk(f: CommitteeFacts) -> str:
    """First matching risk of the waterfall, most severe first."""
    if f.dscr is not None and f.dscr < 1.0:
        return "dscr_deficit"
    if f.ltv is not None and f.ltv > 80:
        return "ltv_critical"
    if f.comps_count is not None and f.comps_count < 20:
        return "liquidity_low"
    if not f.guarantees_documented:
        return "guarantees_missing"
    if f.missing_count > 2:
        return "data_missing"
    if f.geo_level == "élevé":
        return "geo_risk"
    return "none"


def build_risk_return_matrix(f: CommitteeFacts, thresholds: MatrixThresholds | None = None) -> RiskReturnMatrix:
    """Place the operation on the risk/return grid.

    Args:
        f: Decision inputs
        thresholds: Quadrant breakpoints (defaults to MATRIX_THRESHOLDS)

    Returns:
        RiskReturnMatrix with at most five commentary sentences
    """
    t = thresholds or MATRIX_THRESHOLDS
    risk, ret = risk_score(f), return_score(f)
    quadrant = classify_quadrant(risk, ret, t)
    dominant = dominant_risk(f)

    commentary = [f"Risque {risk}/100 pour un rendement {ret}/100 : {QUADRANT_LABELS[quadrant].lower()}."]
    if dominant != "none":
        commentary.append(f"Risque dominant : {DOMINANT_RISK_LABELS[dominant].lower()}.")
    if f.ltv is not None or f.dscr is not None:
        commentary.append(f"Structure de dette : LTV {fmt_pct(f.ltv)}, DSCR {fmt_ratio(f.dscr)}.")
    if f.yield_gross is not None or f.margin is not None:
        parts = []
        if f.yield_gross is not None:
            parts.append(f"rendement brut {f.yield_gross:.1f} %")
        if f.margin is not None:
            parts.append(f"marge {f.margin:.1f} %")
        commentary.append(f"Rémunération : {', '.join(parts)}.")
    if f.market is not None:
        commentary.append(f"Marché local évalué à {f.market}/100.")
    if f.missing_count:
        commentary.append(f"{f.missing_count} donnée(s) attendue(s) restent à fournir.")

    return RiskReturnMatrix(
        risk_score=risk,
        return_score=ret,
        quadrant=quadrant,
        quadrant_label=QUADRANT_LABELS[quadrant],
        dominant_risk=dominant,
        dominant_risk_label=DOMINANT_RISK_LABELS[dominant],
        commentary=commentary[:MAX_COMMENTARY],
    )
