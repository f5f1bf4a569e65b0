"""Per-profile pillar configuration.

A score profile fixes, for one borrower type, the weight of each pillar, the
fields a committee expects to see for it and how severe their absence is.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from committee_engine.core.exceptions import ConfigurationError, InvalidParameterError
from committee_engine.core.thresholds import (
    MINIMAL_PILLAR_KEYS,
    MISSING_PENALTIES,
    PILLAR_KEYS,
    PILLAR_LABELS,
    PROFILE_LABELS,
    PROFILE_WEIGHTS,
    normalize_points,
    validate_weights,
)

# Human labels of the required fields
FIELD_LABELS: dict[str, str] = {
    "documents.completenessPct": "Complétude du dossier documentaire",
    "guarantees.coverageTotal": "Montant des garanties",
    "budget.purchasePrice": "Prix d'acquisition",
    "budget.worksBudget": "Budget travaux",
    "budget.totalCost": "Coût total de l'opération",
    "revenues.strategy": "Stratégie de sortie",
    "revenues.exitValue": "Prix de sortie",
    "revenues.rentAnnual": "Loyers annuels",
    "revenues.revenueTotal": "Chiffre d'affaires prévisionnel",
    "market.pricePerSqm": "Prix de marché au m² (DVF)",
    "market.populationCommune": "Données INSEE de la commune",
    "market.compsCount": "Transactions comparables",
    "risks.geo": "Risques géographiques (Géorisques)",
    "risks.urbanism": "Analyse urbanisme / PLU",
    "risks.execution": "Risques d'exécution",
    "kpis.ltv": "LTV",
    "kpis.margin": "Marge prévisionnelle",
    "kpis.dscr": "DSCR",
}


@dataclass(frozen=True)
class PillarConfig:
    """Configuration of one pillar for one profile."""
    key: str
    label: str
    max_points: int
    required_fields: tuple[str, ...] = ()
    missing_severity: str = "warn"


@dataclass(frozen=True)
class ScoreProfile:
    """Pillar weights and missing-data policy for a borrower profile."""
    name: str
    label: str
    pillar_set: str
    pillars: tuple[PillarConfig, ...]
    blocker_penalty: int
    warn_penalty: int

    def pillar(self, key: str) -> PillarConfig | None:
        for p in self.pillars:
            if p.key == key:
                return p
        return None

    @property
    def mandatory_guarantees(self) -> bool:
        """Guarantees are mandatory when their absence is a blocker."""
        cfg = self.pillar("guarantees")
        return cfg is not None and cfg.missing_severity == "blocker"


# (required fields, severity) per profile and pillar
_REQUIREMENTS: dict[str, dict[str, tuple[tuple[str, ...], str]]] = {
    "particulier": {
        "documents": (("documents.completenessPct",), "warn"),
        "guarantees": (("guarantees.coverageTotal",), "blocker"),
        "budget": (("budget.purchasePrice",), "blocker"),
        "revenues": (("revenues.rentAnnual",), "warn"),
        "value": (("market.pricePerSqm",), "info"),
        "location": (("market.populationCommune",), "info"),
        "liquidity": (("market.compsCount",), "info"),
        "risk": (("risks.geo",), "info"),
        "legal_urbanism": ((), "info"),
        "planning": ((), "info"),
        "ratios": (("kpis.ltv",), "warn"),
    },
    "marchand": {
        "documents": (("documents.completenessPct",), "warn"),
        "guarantees": (("guarantees.coverageTotal",), "warn"),
        "budget": (("budget.purchasePrice", "budget.worksBudget", "budget.totalCost"), "blocker"),
        "revenues": (("revenues.exitValue", "revenues.strategy"), "blocker"),
        "value": (("market.pricePerSqm",), "warn"),
        "location": (("market.populationCommune",), "info"),
        "liquidity": (("market.compsCount",), "warn"),
        "risk": (("risks.geo",), "warn"),
        "legal_urbanism": (("risks.urbanism",), "info"),
        "planning": ((), "info"),
        "ratios": (("kpis.ltv", "kpis.margin"), "warn"),
    },
    "promoteur": {
        "documents": (("documents.completenessPct",), "warn"),
        "guarantees": (("guarantees.coverageTotal",), "warn"),
        "budget": (("budget.purchasePrice", "budget.worksBudget", "budget.totalCost"), "blocker"),
        "revenues": (("revenues.exitValue", "revenues.strategy"), "blocker"),
        "value": (("market.pricePerSqm",), "warn"),
        "location": (("market.populationCommune",), "info"),
        "liquidity": (("market.compsCount",), "warn"),
        "risk": (("risks.geo",), "warn"),
        "legal_urbanism": (("risks.urbanism",), "warn"),
        "planning": (("risks.execution",), "info"),
        "ratios": (("kpis.ltv", "kpis.margin"), "warn"),
    },
    "entreprise": {
        "documents": (("documents.completenessPct",), "warn"),
        "guarantees": (("guarantees.coverageTotal",), "warn"),
        "budget": (("budget.purchasePrice", "budget.totalCost"), "blocker"),
        "revenues": (("revenues.revenueTotal",), "blocker"),
        "value": (("market.pricePerSqm",), "warn"),
        "location": (("market.populationCommune",), "info"),
        "liquidity": (("market.compsCount",), "info"),
        "risk": (("risks.geo",), "warn"),
        "legal_urbanism": ((), "info"),
        "planning": ((), "info"),
        "ratios": (("kpis.ltv", "kpis.dscr"), "warn"),
    },
}


@lru_cache(maxsize=None)
def get_score_profile(name: str = "particulier", pillar_set: str = "full") -> ScoreProfile:
    """Build the score profile for a borrower type and pillar set.

    Args:
        name: particulier, marchand, promoteur or entreprise
        pillar_set: "full" for the committee pillars, "minimal" for the
            market and ratio pillars only (weights rescaled to 100)

    Returns:
        Validated ScoreProfile

    Raises:
        InvalidParameterError: Unknown profile
        ConfigurationError: Unknown pillar set
        InvalidWeightsError: Weights of the profile do not sum to 100
    """
    if name not in PROFILE_WEIGHTS:
        raise InvalidParameterError("profile", name, f"expected one of {sorted(PROFILE_WEIGHTS)}")
    if pillar_set not in ("full", "minimal"):
        raise ConfigurationError(f"unknown pillar set '{pillar_set}', expected 'full' or 'minimal'")

    weights = PROFILE_WEIGHTS[name]
    validate_weights(name, weights)

    if pillar_set == "minimal":
        keys = MINIMAL_PILLAR_KEYS
        weights = normalize_points(weights, keys)
        validate_weights(name, weights, keys)
    else:
        keys = PILLAR_KEYS

    requirements = _REQUIREMENTS[name]
    pillars = tuple(
        PillarConfig(
            key=key,
            label=PILLAR_LABELS[key],
            max_points=weights[key],
            required_fields=requirements[key][0],
            missing_severity=requirements[key][1],
        )
        for key in keys
    )
    penalties = MISSING_PENALTIES[name]
    return ScoreProfile(
        name=name,
        label=PROFILE_LABELS[name],
        pillar_set=pillar_set,
        pillars=pillars,
        blocker_penalty=penalties["blocker"],
        warn_penalty=penalties["warn"],
    )
