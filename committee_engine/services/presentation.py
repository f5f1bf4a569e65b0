"""Committee presentation builder.

Turns the scored operation into the narrative read out in committee: an
executive summary, market, financing, risk/return, risks and strengths
sections, a decision line taken from the balanced lens, and the list of
conditions. Template-based and deterministic.
"""

from __future__ import annotations

from committee_engine.domain.models import (
    CommitteePresentation,
    DecisionScenario,
    OperationSummary,
    PresentationSection,
    RiskReturnMatrix,
    SmartScoreResult,
)
from committee_engine.services.facts import CommitteeFacts, fmt_pct, fmt_ratio

DECISION_LABELS = {
    "GO": "GO",
    "GO_SOUS_CONDITIONS": "GO sous conditions",
    "GO_SOUS_CONDITIONS_STRICT": "GO sous conditions strictes",
    "GO_PATRIMONIAL": "GO patrimonial",
    "NO_GO": "NO GO",
}

MAX_CONDITIONS = 10
MAX_LISTED_MISSING = 5


def _executive_summary(op: OperationSummary, result: SmartScoreResult, f: CommitteeFacts) -> str:
    name = op.meta.dossier_label or op.project.label or "sans intitulé"
    parts = [f"Le dossier « {name} » est présenté en comité de crédit pour analyse et décision."]
    if op.project.address:
        parts.append(f"Le bien est situé {op.project.address}.")
    if result.verdict_level != "DONNEES_INSUFFISANTES":
        parts.append(f"Le SmartScore s'établit à {result.score}/100 ({result.verdict}).")
    if f.dscr is not None:
        parts.append(f"Le DSCR prévisionnel est de {fmt_ratio(f.dscr)}.")
    if f.ltv is not None:
        parts.append(f"Le ratio LTV se situe à {fmt_pct(f.ltv)}.")
    return " ".join(parts)


def _market_section(op: OperationSummary) -> PresentationSection:
    m = op.market
    paras = []
    if m.price_per_sqm is not None and m.comps_count is not None:
        if m.comps_count >= 50:
            depth = "un marché liquide"
        elif m.comps_count >= 20:
            depth = "un volume correct"
        else:
            depth = "un marché étroit"
        paras.append(
            f"L'analyse DVF fait ressortir un prix médian de {m.price_per_sqm:.0f} €/m² "
            f"sur {depth} ({m.comps_count:.0f} transactions)."
        )
    if m.evolution_pct is not None:
        trend = m.evolution_pct
        if trend > 5:
            paras.append(f"La tendance est haussière (+{trend:.1f} %), confortant la valorisation.")
        elif trend > 0:
            paras.append(f"Les prix montrent une légère progression (+{trend:.1f} %).")
        elif trend > -5:
            paras.append(f"Les prix sont en léger recul ({trend:.1f} %).")
        else:
            paras.append(f"Les prix reculent significativement ({trend:.1f} %), facteur de risque sur la sortie.")
    if m.revenue_median is not None:
        if m.revenue_median > 25000:
            paras.append("Le bassin de population est solvable (revenu médian élevé).")
        elif m.revenue_median < 19000:
            paras.append("Le revenu médian modeste peut limiter la demande.")
    if m.unemployment_rate is not None and m.unemployment_rate > 12:
        paras.append(f"Le taux de chômage local de {m.unemployment_rate:.1f} % est préoccupant.")
    if not paras:
        paras.append("Les données de marché disponibles sont insuffisantes pour une analyse approfondie.")
    return PresentationSection(title="Contexte de marché", paragraphs=paras)


def _financial_section(f: CommitteeFacts) -> PresentationSection:
    paras = []
    if f.total_cost is not None:
        paras.append(f"L'opération représente un coût total de {f.total_cost / 1000:.0f} k€.")
    if f.ltv is not None:
        if f.ltv <= 50:
            paras.append(f"Le LTV de {fmt_pct(f.ltv)} traduit une structure prudente avec un levier contenu.")
        elif f.ltv <= 70:
            paras.append(f"Le LTV de {fmt_pct(f.ltv)} reste dans les standards bancaires.")
        else:
            paras.append(f"Le LTV de {fmt_pct(f.ltv)} est élevé et nécessite des garanties renforcées.")
    if f.dscr is not None:
        if f.dscr >= 1.3:
            paras.append(f"Le DSCR de {fmt_ratio(f.dscr)} offre une couverture confortable.")
        elif f.dscr >= 1.0:
            paras.append(f"Le DSCR de {fmt_ratio(f.dscr)} est juste suffisant pour couvrir la dette.")
        else:
            paras.append(f"Le DSCR de {fmt_ratio(f.dscr)} ne couvre pas le service de la dette : risque de défaut.")
    if f.yield_gross is not None:
        if f.yield_gross >= 7:
            paras.append(f"Le rendement brut de {f.yield_gross:.1f} % est attractif.")
        elif f.yield_gross >= 4:
            paras.append(f"Le rendement brut de {f.yield_gross:.1f} % est dans la norme.")
        else:
            paras.append(f"Le rendement brut de {f.yield_gross:.1f} % est faible.")
    if f.margin is not None:
        if f.margin > 15:
            paras.append(f"La marge brute de {f.margin:.1f} % offre un coussin confortable.")
        elif f.margin > 5:
            paras.append(f"La marge brute de {f.margin:.1f} % laisse peu de place aux imprévus.")
        else:
            paras.append(f"La marge de {f.margin:.1f} % est très serrée, risque en cas d'aléas.")
    if not paras:
        paras.append("Données financières insuffisantes pour une analyse complète.")
    return PresentationSection(title="Analyse financière", paragraphs=paras)


def _risks_section(f: CommitteeFacts) -> PresentationSection:
    paras = []
    if f.weak_pillars:
        paras.append(f"Les piliers faibles identifiés sont : {', '.join(f.weak_pillars)}.")
    missing = f.blocker_labels + f.warning_labels
    if missing:
        listed = f" : {', '.join(missing)}" if len(missing) <= MAX_LISTED_MISSING else ""
        paras.append(f"{len(missing)} donnée(s) manquante(s) identifiée(s){listed}.")
    if f.dscr is not None and f.dscr < 1.0:
        paras.append("Le déficit de couverture de la dette constitue un risque structurel majeur.")
    if f.ltv is not None and f.ltv > 80:
        paras.append("L'exposition bancaire est très élevée (LTV > 80 %).")
    if not paras:
        paras.append("Aucun risque majeur identifié à ce stade.")
    return PresentationSection(title="Risques et points d'attention", paragraphs=paras)


def _conditions(f: CommitteeFacts, balanced: DecisionScenario) -> list[str]:
    conditions = list(balanced.conditions)
    extras = []
    if f.dscr is not None and 1.0 <= f.dscr < 1.2:
        extras.append("Suivi trimestriel du DSCR")
    if f.ltv is not None and f.ltv > 70:
        extras.append("Renforcer les garanties ou réduire le LTV")
    if f.weak_pillars:
        extras.append(f"Documenter ou renforcer les piliers faibles ({', '.join(f.weak_pillars)})")
    conditions.extend(c for c in extras if c not in conditions)
    return conditions[:MAX_CONDITIONS]


def build_committee_presentation(
    op: OperationSummary,
    result: SmartScoreResult,
    f: CommitteeFacts,
    scenarios: list[DecisionScenario],
    matrix: RiskReturnMatrix,
) -> CommitteePresentation:
    """Assemble the committee narrative from the computed outputs.

    Args:
        op: Normalized operation
        result: SmartScore of the operation
        f: Decision inputs
        scenarios: The three decision lenses; the balanced one carries the
            decision line
        matrix: Risk/return classification, quoted in its own section

    Returns:
        CommitteePresentation
    """
    balanced = next(s for s in scenarios if s.key == "balanced")

    sections = [
        _market_section(op),
        _financial_section(f),
        PresentationSection(
            title="Profil risque / rendement",
            paragraphs=[f"Quadrant : {matrix.quadrant_label}."] + matrix.commentary,
        ),
        _risks_section(f),
    ]
    if f.strong_pillars:
        sections.append(PresentationSection(
            title="Points forts",
            paragraphs=[f"Les piliers solides du dossier sont : {', '.join(f.strong_pillars)}."],
        ))

    return CommitteePresentation(
        executive_summary=_executive_summary(op, result, f),
        sections=sections,
        decision_line=f"DÉCISION : {DECISION_LABELS[balanced.decision]}. {balanced.motivation}",
        conditions=_conditions(f, balanced),
    )
