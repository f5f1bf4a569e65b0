"""Decision scenario builder.

Reads the same operation through three risk tolerances. The conservative lens
never grants GO while a blocker is open; the opportunistic lens reads the
deal as a patrimonial asset and lets blockers through as conditions.
"""

from __future__ import annotations

from committee_engine.core.logging import get_logger
from committee_engine.core.thresholds import SCENARIO_THRESHOLDS, ScenarioThresholds
from committee_engine.domain.models import DecisionScenario, OperationSummary, SmartScoreResult
from committee_engine.services.facts import CommitteeFacts, fmt_pct, fmt_ratio

log = get_logger(__name__)

SCENARIO_LABELS = {
    "conservative": "Conservateur",
    "balanced": "Équilibré",
    "opportunistic": "Opportuniste",
}


def _favorable(f: CommitteeFacts) -> list[str]:
    items = []
    if f.dscr is not None and f.dscr >= 1.2:
        items.append(f"DSCR de {fmt_ratio(f.dscr)}, service de la dette couvert")
    if f.ltv is not None and f.ltv <= 60:
        items.append(f"Levier maîtrisé (LTV {fmt_pct(f.ltv)})")
    if f.market is not None and f.market >= 60:
        items.append(f"Marché local porteur ({f.market}/100)")
    if f.geo_level == "faible":
        items.append("Risque géographique faible")
    if f.margin is not None and f.margin >= 15:
        items.append(f"Marge confortable ({f.margin:.1f} %)")
    if f.score >= 65:
        items.append(f"SmartScore de {f.score}/100")
    items.extend(f"Pilier solide : {label}" for label in f.strong_pillars)
    return items or ["Aucun point fort déterminant identifié"]


def _unfavorable(f: CommitteeFacts) -> list[str]:
    items = []
    if f.dscr is not None and f.dscr < 1.0:
        items.append(f"DSCR de {fmt_ratio(f.dscr)}, revenus insuffisants pour couvrir la dette")
    if f.ltv is not None and f.ltv > 80:
        items.append(f"Levier élevé (LTV {fmt_pct(f.ltv)})")
    if f.market is not None and f.market < 40:
        items.append(f"Marché local peu porteur ({f.market}/100)")
    if f.geo_level == "élevé":
        items.append("Risque géographique élevé")
    if f.margin is not None and f.margin < 5:
        items.append(f"Marge faible ({f.margin:.1f} %)")
    if f.blockers:
        items.append(f"{f.blockers} donnée(s) bloquante(s) manquante(s)")
    items.extend(f"Pilier fragile : {label}" for label in f.weak_pillars)
    if f.missing_pillars:
        items.append(f"Piliers non documentés : {', '.join(f.missing_pillars)}")
    return items or ["Aucun point faible majeur identifié"]


def _conditions(f: CommitteeFacts, extras: list[str]) -> list[str]:
    conditions = [f"[BLOQUANT] Fournir : {label}" for label in f.blocker_labels]
    conditions.extend(f"Fournir : {label}" for label in f.warning_labels)
    conditions.extend(c for c in extras if c not in conditions)
    return conditions


def build_conservative(f: CommitteeFacts, t: ScenarioThresholds = SCENARIO_THRESHOLDS) -> DecisionScenario:
    extras: list[str] = []
    if f.ltv is not None and f.ltv > t["conservative_ltv_max"]:
        extras.append(f"Réduire le LTV sous {t['conservative_ltv_max']:.0f} %")
    if f.dscr is not None and f.dscr < 1.2:
        extras.append("Porter le DSCR au-dessus de 1.20")
    if f.missing_pillars:
        extras.append(f"Documenter les piliers : {', '.join(f.missing_pillars)}")

    if f.dscr is not None and f.dscr < t["conservative_dscr_min"]:
        decision, confidence = "NO_GO", 85
        motivation = (
            f"DSCR de {fmt_ratio(f.dscr)} inférieur à {t['conservative_dscr_min']:.2f} : "
            "les revenus ne couvrent pas le service de la dette."
        )
    elif (
        f.mandatory_guarantees
        and not f.guarantees_documented
        and f.blockers >= t["conservative_nogo_blockers"]
    ):
        decision, confidence = "NO_GO", 70
        motivation = (
            f"Garanties obligatoires non documentées et {f.blockers} données bloquantes manquantes : "
            "le dossier ne peut pas être instruit en l'état."
        )
    elif f.blockers > 0 or f.missing_pillars or (f.ltv is not None and f.ltv > t["conservative_ltv_max"]):
        decision, confidence = "GO_SOUS_CONDITIONS_STRICT", 55
        triggers = []
        if f.blockers:
            triggers.append(f"{f.blockers} donnée(s) bloquante(s)")
        if f.missing_pillars:
            triggers.append(f"{len(f.missing_pillars)} pilier(s) sans données")
        if f.ltv is not None and f.ltv > t["conservative_ltv_max"]:
            triggers.append(f"LTV de {fmt_pct(f.ltv)} au-delà de {t['conservative_ltv_max']:.0f} %")
        motivation = f"Accord soumis à conditions strictes : {', '.join(triggers)}."
    elif f.score < t["conservative_score_min"]:
        decision, confidence = "GO_SOUS_CONDITIONS", 60
        motivation = (
            f"SmartScore de {f.score}/100 sous le seuil de {t['conservative_score_min']} "
            "exigé en lecture prudente."
        )
    else:
        decision, confidence = "GO", 75
        motivation = (
            f"Dossier complet, SmartScore de {f.score}/100, DSCR {fmt_ratio(f.dscr)} "
            f"et LTV {fmt_pct(f.ltv)} dans les limites prudentes."
        )

    return DecisionScenario(
        key="conservative",
        label=SCENARIO_LABELS["conservative"],
        decision=decision,
        risk_reading=(
            "Tolérance au risque faible : tout bloquant, pilier non documenté ou LTV supérieur à "
            f"{t['conservative_ltv_max']:.0f} % conditionne l'accord. Risque géographique {f.geo_level}."
        ),
        favorable=_favorable(f),
        unfavorable=_unfavorable(f),
        motivation=motivation,
        conditions=_conditions(f, extras),
        targets=[
            f"LTV ≤ {t['conservative_ltv_max']:.0f} %",
            "DSCR ≥ 1.20",
            f"SmartScore ≥ {t['conservative_score_min']}",
            "Aucune donnée bloquante",
        ],
        confidence=confidence,
    )


def build_balanced(f: CommitteeFacts, t: ScenarioThresholds = SCENARIO_THRESHOLDS) -> DecisionScenario:
    unmet = []
    if f.ltv is None or f.ltv >= t["balanced_ltv_max"]:
        unmet.append(f"LTV {fmt_pct(f.ltv)} (cible < {t['balanced_ltv_max']:.0f} %)")
    if f.market is None or f.market < t["balanced_market_min"]:
        market = "n.d." if f.market is None else f"{f.market}/100"
        unmet.append(f"marché {market} (cible ≥ {t['balanced_market_min']})")
    if f.dscr is None or f.dscr < t["balanced_dscr_min"]:
        unmet.append(f"DSCR {fmt_ratio(f.dscr)} (cible ≥ {t['balanced_dscr_min']:.2f})")
    if f.blockers:
        unmet.append(f"{f.blockers} donnée(s) bloquante(s)")

    extras: list[str] = []
    if f.ltv is not None and f.ltv >= t["balanced_ltv_max"]:
        extras.append(f"Ramener le LTV sous {t['balanced_ltv_max']:.0f} % (apport ou garantie complémentaire)")
    if f.market is None or f.market < t["balanced_market_min"]:
        extras.append("Étayer la tenue du marché local (comparables, délai d'écoulement)")
    if f.dscr is not None and f.dscr < t["balanced_dscr_min"]:
        extras.append(f"Porter le DSCR à {t['balanced_dscr_min']:.2f} minimum")

    if not unmet:
        decision, confidence = "GO", 80
        motivation = (
            f"LTV {fmt_pct(f.ltv)}, marché {f.market}/100 et DSCR {fmt_ratio(f.dscr)} "
            "réunissent les critères d'un accord sans bloquant."
        )
    elif (
        f.dscr is not None
        and f.dscr < t["balanced_nogo_dscr"]
        and f.blockers >= t["balanced_nogo_blockers"]
    ):
        decision, confidence = "NO_GO", 75
        motivation = (
            f"DSCR de {fmt_ratio(f.dscr)} inférieur à {t['balanced_nogo_dscr']:.2f} "
            f"cumulé à {f.blockers} données bloquantes manquantes."
        )
    else:
        decision, confidence = "GO_SOUS_CONDITIONS", 65
        motivation = f"Accord envisageable sous conditions, critères non atteints : {', '.join(unmet)}."

    return DecisionScenario(
        key="balanced",
        label=SCENARIO_LABELS["balanced"],
        decision=decision,
        risk_reading=(
            f"Tolérance au risque modérée : accord direct si LTV < {t['balanced_ltv_max']:.0f} %, "
            f"marché ≥ {t['balanced_market_min']} et DSCR ≥ {t['balanced_dscr_min']:.2f} sans bloquant."
        ),
        favorable=_favorable(f),
        unfavorable=_unfavorable(f),
        motivation=motivation,
        conditions=_conditions(f, extras),
        targets=[
            f"LTV < {t['balanced_ltv_max']:.0f} %",
            f"Marché ≥ {t['balanced_market_min']}/100",
            f"DSCR ≥ {t['balanced_dscr_min']:.2f}",
            "Aucune donnée bloquante",
        ],
        confidence=confidence,
    )


def build_opportunistic(f: CommitteeFacts, t: ScenarioThresholds = SCENARIO_THRESHOLDS) -> DecisionScenario:
    reasons = []
    extras: list[str] = []
    if f.ltv is None:
        reasons.append("LTV non renseigné")
        extras.append("Établir la valeur de l'actif pour calculer le LTV")
    elif f.ltv >= t["opportunistic_ltv_max"]:
        reasons.append(f"LTV de {fmt_pct(f.ltv)} au-delà de {t['opportunistic_ltv_max']:.0f} %")
        extras.append(f"Ramener le LTV sous {t['opportunistic_ltv_max']:.0f} %")
    if f.geo_level == "inconnu":
        reasons.append("risque géographique non évalué")
        extras.append("Produire l'état des risques (Géorisques)")
    elif f.geo_level != "faible":
        reasons.append(f"risque géographique {f.geo_level}")
        extras.append("Vérifier l'assurabilité et la valeur de revente au regard du risque du site")

    if not reasons:
        decision = "GO_PATRIMONIAL"
        motivation = (
            f"Actif peu levier (LTV {fmt_pct(f.ltv)}) sur un site à risque faible : "
            "la valeur patrimoniale sécurise l'engagement."
        )
    else:
        decision = "GO_SOUS_CONDITIONS"
        motivation = f"Lecture patrimoniale possible sous conditions : {', '.join(reasons)}."

    return DecisionScenario(
        key="opportunistic",
        label=SCENARIO_LABELS["opportunistic"],
        decision=decision,
        risk_reading=(
            "Tolérance au risque élevée : lecture patrimoniale centrée sur le levier "
            f"(LTV < {t['opportunistic_ltv_max']:.0f} %) et le risque du site, les bloquants deviennent des conditions."
        ),
        favorable=_favorable(f),
        unfavorable=_unfavorable(f),
        motivation=motivation,
        conditions=_conditions(f, extras),
        targets=[
            f"LTV < {t['opportunistic_ltv_max']:.0f} %",
            "Risque géographique faible",
            "Valeur patrimoniale de l'actif",
        ],
        confidence=60,
    )


def build_decision_scenarios(
    op: OperationSummary,
    result: SmartScoreResult,
    thresholds: ScenarioThresholds | None = None,
) -> list[DecisionScenario]:
    """Build the conservative, balanced and opportunistic readings.

    Args:
        op: Canonical operation
        result: SmartScore of the operation
        thresholds: Lens breakpoints (defaults to SCENARIO_THRESHOLDS)

    Returns:
        Exactly three scenarios in conservative, balanced, opportunistic order
    """
    t = thresholds or SCENARIO_THRESHOLDS
    facts = CommitteeFacts.from_operation(op, result)
    scenarios = [build_conservative(facts, t), build_balanced(facts, t), build_opportunistic(facts, t)]
    log.debug("scenarios_built", decisions=[s.decision for s in scenarios])
    return scenarios
