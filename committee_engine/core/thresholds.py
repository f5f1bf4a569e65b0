"""Scoring constants - single source of truth for weights and breakpoints.

Every business breakpoint used by the scorer and the decision builders lives
here so a credit policy change is a one-line edit.
"""

from __future__ import annotations

from typing import TypedDict

from .exceptions import InvalidWeightsError

PILLAR_KEYS: tuple[str, ...] = (
    "documents",
    "guarantees",
    "budget",
    "revenues",
    "value",
    "location",
    "liquidity",
    "risk",
    "legal_urbanism",
    "planning",
    "ratios",
)

# Market and ratio pillars only, for callers that have no dossier
MINIMAL_PILLAR_KEYS: tuple[str, ...] = ("value", "location", "liquidity", "risk", "ratios")

PILLAR_LABELS: dict[str, str] = {
    "documents": "Documentation",
    "guarantees": "Garanties",
    "budget": "Budget & coûts",
    "revenues": "Revenus & sortie",
    "value": "Valeur vs marché",
    "location": "Localisation",
    "liquidity": "Liquidité",
    "risk": "Risques",
    "legal_urbanism": "Faisabilité & urbanisme",
    "planning": "Planning & exécution",
    "ratios": "Ratios financiers",
}

WEIGHT_TOTAL = 100

# Points per pillar for each borrower profile (sum to 100)
PROFILE_WEIGHTS: dict[str, dict[str, int]] = {
    "particulier": {
        "documents": 15, "guarantees": 18, "budget": 15, "revenues": 12,
        "value": 5, "location": 3, "liquidity": 2, "risk": 8,
        "legal_urbanism": 5, "planning": 2, "ratios": 15,
    },
    "marchand": {
        "documents": 10, "guarantees": 12, "budget": 20, "revenues": 18,
        "value": 7, "location": 3, "liquidity": 5, "risk": 10,
        "legal_urbanism": 5, "planning": 3, "ratios": 7,
    },
    "promoteur": {
        "documents": 10, "guarantees": 10, "budget": 18, "revenues": 15,
        "value": 6, "location": 4, "liquidity": 5, "risk": 10,
        "legal_urbanism": 8, "planning": 4, "ratios": 10,
    },
    "entreprise": {
        "documents": 12, "guarantees": 15, "budget": 15, "revenues": 15,
        "value": 5, "location": 4, "liquidity": 3, "risk": 8,
        "legal_urbanism": 5, "planning": 3, "ratios": 15,
    },
}

PROFILE_LABELS: dict[str, str] = {
    "particulier": "Particulier",
    "marchand": "Marchand de biens",
    "promoteur": "Promoteur",
    "entreprise": "Entreprise",
}


class MissingPenaltyConfig(TypedDict):
    """Points removed per missing item, by severity."""
    blocker: int
    warn: int


MISSING_PENALTIES: dict[str, MissingPenaltyConfig] = {
    "particulier": {"blocker": 6, "warn": 2},
    "marchand": {"blocker": 8, "warn": 3},
    "promoteur": {"blocker": 8, "warn": 3},
    "entreprise": {"blocker": 7, "warn": 3},
}

# (min score, grade, label), highest first
GRADE_SCALE: tuple[tuple[int, str, str], ...] = (
    (80, "A+", "Excellent"),
    (72, "A", "Très bon"),
    (65, "B", "Bon"),
    (50, "C", "Moyen"),
    (42, "D+", "Passable"),
    (35, "D", "Faible"),
    (20, "E", "Insuffisant"),
    (0, "F", "Critique"),
)

GRADES: tuple[str, ...] = tuple(grade for _, grade, _ in GRADE_SCALE)


class VerdictThresholds(TypedDict):
    go: int
    conditions: int


VERDICT_THRESHOLDS: VerdictThresholds = {
    "go": 65,          # >= go: favorable
    "conditions": 40,  # [conditions, go): favorable sous conditions
}


class ScenarioThresholds(TypedDict):
    """Breakpoints of the three decision lenses."""
    conservative_dscr_min: float
    conservative_nogo_blockers: int
    conservative_ltv_max: float
    conservative_score_min: int
    balanced_ltv_max: float
    balanced_market_min: int
    balanced_dscr_min: float
    balanced_nogo_dscr: float
    balanced_nogo_blockers: int
    opportunistic_ltv_max: float


SCENARIO_THRESHOLDS: ScenarioThresholds = {
    "conservative_dscr_min": 1.0,
    "conservative_nogo_blockers": 2,
    "conservative_ltv_max": 60.0,
    "conservative_score_min": 70,
    "balanced_ltv_max": 40.0,
    "balanced_market_min": 60,
    "balanced_dscr_min": 1.2,
    "balanced_nogo_dscr": 1.0,
    "balanced_nogo_blockers": 2,
    "opportunistic_ltv_max": 50.0,
}


class MatrixThresholds(TypedDict):
    low_risk: int
    high_risk: int
    low_return: int
    high_return: int


MATRIX_THRESHOLDS: MatrixThresholds = {
    "low_risk": 35,
    "high_risk": 65,
    "low_return": 35,
    "high_return": 65,
}


class StressShocks(TypedDict):
    vacancy_pts: float
    rate_bp: float
    cost_overrun_pct: float
    value_drop_pct: float
    rate_fallback_factor: float


STRESS_SHOCKS: StressShocks = {
    "vacancy_pts": 10.0,
    "rate_bp": 150.0,
    "cost_overrun_pct": 15.0,
    "value_drop_pct": 10.0,
    "rate_fallback_factor": 0.85,  # DSCR haircut when the loan cannot be repriced
}

ACCEPTANCE_BASELINE = 50

# Pillars scoring below / above these raw scores are reported as weak / strong
WEAK_PILLAR_MAX = 40
STRONG_PILLAR_MIN = 70


def validate_weights(profile: str, weights: dict[str, int], keys: tuple[str, ...] = PILLAR_KEYS) -> bool:
    """Validate that weights cover every pillar and sum to WEIGHT_TOTAL.

    Args:
        profile: Profile name, used in the error message
        weights: Points per pillar
        keys: Pillars the weights must cover

    Returns:
        True if valid, raises InvalidWeightsError otherwise
    """
    missing = set(keys) - set(weights)
    if missing:
        raise InvalidWeightsError(profile, f"missing pillars {sorted(missing)}")

    if any(w < 0 for w in weights.values()):
        raise InvalidWeightsError(profile, "negative weight")

    total = sum(weights[k] for k in keys)
    if total != WEIGHT_TOTAL:
        raise InvalidWeightsError(profile, f"weights must sum to {WEIGHT_TOTAL}, got {total}")

    return True


def normalize_points(weights: dict[str, int], keys: tuple[str, ...]) -> dict[str, int]:
    """Rescale a subset of weights to integer points summing to WEIGHT_TOTAL.

    Largest-remainder rounding; ties go to the pillar listed first in `keys`.

    Args:
        weights: Points per pillar for the full set
        keys: Pillars to keep

    Returns:
        Integer points for `keys`, summing to WEIGHT_TOTAL
    """
    subtotal = sum(weights[k] for k in keys)
    if subtotal <= 0:
        share, rest = divmod(WEIGHT_TOTAL, len(keys))
        return {k: share + (1 if i < rest else 0) for i, k in enumerate(keys)}

    exact = {k: weights[k] * WEIGHT_TOTAL / subtotal for k in keys}
    points = {k: int(exact[k]) for k in keys}
    remainder = WEIGHT_TOTAL - sum(points.values())
    order = sorted(keys, key=lambda k: (-(exact[k] - points[k]), keys.index(k)))
    for k in order[:remainder]:
        points[k] += 1
    return points
