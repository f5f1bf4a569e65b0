"""Pillar scoring formulas.

Each assessor reads one facet of a canonical OperationSummary and returns an
unweighted 0-100 score with its signed contributions. Weighting, missing-data
penalties and aggregation live in the services layer.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from committee_engine.domain.models import GeoRiskFlags, OperationSummary, RiskItem

MAX_REASONS = 3

# DPE rating to score adjustment
DPE_ADJUSTMENTS = {
    "A": 8,
    "B": 6,
    "C": 4,
    "D": 0,
    "E": -4,
    "F": -10,
    "G": -12,
}

# Points removed per risk item, by level
RISK_ITEM_PENALTIES = {
    "élevé": 15,
    "moyen": 5,
    "inconnu": 3,
    "faible": 0,
}

RESALE_PROFILES = ("promoteur", "marchand")


@dataclass
class PillarAssessment:
    """Unweighted result of one pillar formula."""
    key: str
    has_data: bool
    raw_score: float
    reasons: list[str]
    actions: list[str]


@dataclass
class _Tally:
    """Accumulates signed contributions on top of a base score."""
    key: str
    base: float
    inputs: int = 0
    contributions: list[tuple[float, str]] = field(default_factory=list)
    actions: list[str] = field(default_factory=list)

    def add(self, delta: float, reason: str) -> None:
        self.inputs += 1
        self.contributions.append((delta, reason))

    def action(self, text: str) -> None:
        if text not in self.actions:
            self.actions.append(text)

    def result(self) -> PillarAssessment:
        if not self.inputs:
            return PillarAssessment(self.key, False, 0.0, [], self.actions)
        raw = self.base + sum(delta for delta, _ in self.contributions)
        raw = round(max(0.0, min(100.0, raw)), 1)
        ordered = sorted(self.contributions, key=lambda c: -abs(c[0]))
        return PillarAssessment(self.key, True, raw, [r for _, r in ordered[:MAX_REASONS]], self.actions)


def _fmt(value: float) -> str:
    return f"{value:,.0f}".replace(",", " ")


def _has(text: str | None, *terms: str) -> bool:
    lowered = (text or "").lower()
    return any(t in lowered for t in terms)


# --- Dossier pillars ---

def assess_documents(op: OperationSummary, profile: str) -> PillarAssessment:
    docs = op.documents
    t = _Tally("documents", base=0)
    if docs.completeness_pct is None and not docs.items:
        t.action("Constituer le dossier documentaire")
        return t.result()

    completeness = max(0.0, min(100.0, docs.completeness_pct or 0.0))
    t.add(completeness, f"Dossier complet à {completeness:.0f} %")

    refused = sum(1 for d in docs.items if d.status == "refused")
    if refused:
        t.add(-min(10 * refused, 30), f"{refused} pièce(s) refusée(s)")
        t.action("Remplacer les pièces refusées")
    if completeness < 80:
        t.action("Compléter les pièces manquantes du dossier")
    return t.result()


def assess_guarantees(op: OperationSummary, profile: str) -> PillarAssessment:
    g = op.guarantees
    loan = op.financing.loan_amount
    t = _Tally("guarantees", base=40)
    if g.coverage_total is None and not g.items:
        t.action("Formaliser les garanties proposées (hypothèque, caution...)")
        return t.result()

    if g.coverage_total is not None and loan:
        coverage = g.coverage_total / loan * 100
        if coverage >= 150:
            t.add(50, f"Garanties couvrant {coverage:.0f} % du prêt")
        elif coverage >= 120:
            t.add(40, f"Garanties couvrant {coverage:.0f} % du prêt")
        elif coverage >= 100:
            t.add(25, f"Garanties couvrant {coverage:.0f} % du prêt")
        elif coverage >= 80:
            t.add(10, f"Couverture partielle ({coverage:.0f} % du prêt)")
        else:
            t.add(-15, f"Couverture insuffisante ({coverage:.0f} % du prêt)")
            t.action("Renforcer les garanties (couverture < 80 %)")
    elif g.coverage_total is not None:
        t.add(10, f"Garanties chiffrées à {_fmt(g.coverage_total)} €")
        t.action("Préciser le montant du prêt pour mesurer la couverture")
    else:
        t.add(0, "Garanties listées sans montant")
        t.action("Chiffrer les garanties")

    kinds = {(i.type or i.label).lower() for i in g.items}
    if any("hypoth" in k for k in kinds):
        t.add(10, "Hypothèque sur l'actif financé")
    if any("caution" in k for k in kinds):
        t.add(5, "Caution personnelle ou solidaire")
    if len(kinds) >= 2:
        t.add(5, f"{len(kinds)} garanties distinctes")
    return t.result()


# --- Financial pillars ---

def assess_budget(op: OperationSummary, profile: str) -> PillarAssessment:
    b = op.budget
    t = _Tally("budget", base=50)
    if b.purchase_price is None and b.total_cost is None and b.works_budget is None:
        t.action("Fournir le plan de financement détaillé")
        return t.result()

    if b.total_cost is not None:
        t.add(10, f"Coût total chiffré à {_fmt(b.total_cost)} €")
    else:
        t.add(0, "Coût total non consolidé")
        t.action("Consolider le coût total de l'opération")
    if b.notary_fees is not None:
        t.add(5, "Frais de notaire intégrés")

    if profile in RESALE_PROFILES:
        if b.works_budget is not None:
            t.add(15, "Budget travaux détaillé")
        else:
            t.add(-10, "Budget travaux absent")
            t.action("Détailler le budget travaux (devis)")
        if b.contingency is not None:
            t.add(5, "Provision pour aléas")
        else:
            t.action("Prévoir une provision pour aléas")
        if b.soft_costs is not None:
            t.add(5, "Frais annexes chiffrés")
        if b.holding_costs is not None:
            t.add(5, "Frais de portage chiffrés")
    elif b.works_budget is not None:
        t.add(10, "Budget travaux chiffré")

    if b.equity is not None and b.equity > 0:
        t.add(5, f"Apport de {_fmt(b.equity)} €")
        if b.total_cost and b.equity / b.total_cost >= 0.2:
            t.add(5, "Apport supérieur à 20 % du coût")

    market = op.market.price_per_sqm
    if b.cost_per_sqm and market:
        ratio = b.cost_per_sqm / market
        if ratio > 1.3:
            t.add(-5, f"Coût au m² {ratio:.0%} du prix de marché")
        elif ratio < 0.7:
            t.add(5, f"Coût au m² {ratio:.0%} du prix de marché")
    return t.result()


def assess_revenues(op: OperationSummary, profile: str) -> PillarAssessment:
    r = op.revenues
    scenarios = r.scenarios
    t = _Tally("revenues", base=40)
    has_scenarios = any(s is not None for s in (scenarios.base, scenarios.upside, scenarios.stress))
    if not (r.strategy or r.exit_value or r.rent_annual or r.revenue_total or has_scenarios):
        t.action("Préciser la stratégie de sortie et les revenus attendus")
        return t.result()

    if r.strategy:
        t.add(5, f"Stratégie : {r.strategy}")
    if r.exit_value is not None:
        t.add(15, f"Prix de sortie estimé à {_fmt(r.exit_value)} €")
    elif profile in RESALE_PROFILES:
        t.action("Fournir un prix de sortie étayé par des comparables")
    if r.rent_annual is not None:
        t.add(15, f"Loyers annuels de {_fmt(r.rent_annual)} €")
    if r.revenue_total is not None:
        t.add(5, "Chiffre d'affaires prévisionnel documenté")

    if r.occupancy_rate is not None:
        if r.occupancy_rate >= 90:
            t.add(5, f"Taux d'occupation de {r.occupancy_rate:.0f} %")
        elif r.occupancy_rate < 75:
            t.add(-5, f"Taux d'occupation faible ({r.occupancy_rate:.0f} %)")

    if scenarios.base is not None and scenarios.stress is not None:
        t.add(10, "Scénarios base et stress fournis")
    elif has_scenarios:
        t.add(5, "Scénario de sortie partiel")
    else:
        t.action("Produire un scénario de stress")

    stress = scenarios.stress
    if stress is not None and stress.margin is not None and stress.margin < 0:
        t.add(-10, f"Marge négative en scénario stress ({stress.margin:.1f} %)")
        t.action("Revoir le plan d'affaires en scénario dégradé")
    return t.result()


def assess_ratios(op: OperationSummary, profile: str) -> PillarAssessment:
    k = op.kpis
    t = _Tally("ratios", base=50)
    if all(v is None for v in (k.ltv, k.ltc, k.dscr, k.dsti, k.margin, k.yield_gross)):
        t.action("Calculer les ratios de financement (LTV, DSCR)")
        return t.result()

    if k.ltv is not None:
        if k.ltv <= 50:
            t.add(15, f"LTV maîtrisé ({k.ltv:.0f} %)")
        elif k.ltv <= 70:
            t.add(8, f"LTV correct ({k.ltv:.0f} %)")
        elif k.ltv <= 80:
            t.add(0, f"LTV tendu ({k.ltv:.0f} %)")
        elif k.ltv <= 90:
            t.add(-10, f"LTV élevé ({k.ltv:.0f} %)")
            t.action("Augmenter l'apport pour réduire le LTV")
        else:
            t.add(-20, f"LTV critique ({k.ltv:.0f} %)")
            t.action("Augmenter l'apport pour réduire le LTV")

    if k.dscr is not None:
        if k.dscr >= 1.3:
            t.add(15, f"DSCR confortable ({k.dscr:.2f})")
        elif k.dscr >= 1.2:
            t.add(10, f"DSCR correct ({k.dscr:.2f})")
        elif k.dscr >= 1.0:
            t.add(3, f"DSCR juste ({k.dscr:.2f})")
        else:
            t.add(-20, f"DSCR insuffisant ({k.dscr:.2f})")
            t.action("Allonger la durée ou réduire le montant emprunté")

    if k.dsti is not None:
        if k.dsti <= 35:
            t.add(5, f"Taux d'endettement de {k.dsti:.0f} %")
        else:
            t.add(-10, f"Taux d'endettement supérieur à 35 % ({k.dsti:.0f} %)")

    if k.margin is not None:
        if k.margin < 0:
            t.add(-20, f"Marge négative ({k.margin:.1f} %)")
        elif k.margin < 5:
            t.add(-10, f"Marge faible ({k.margin:.1f} %)")
        elif k.margin >= 20:
            t.add(10, f"Marge solide ({k.margin:.1f} %)")
        elif k.margin >= 10:
            t.add(5, f"Marge correcte ({k.margin:.1f} %)")

    if k.yield_gross is not None:
        if k.yield_gross >= 7:
            t.add(8, f"Rendement brut élevé ({k.yield_gross:.1f} %)")
        elif k.yield_gross >= 5:
            t.add(4, f"Rendement brut correct ({k.yield_gross:.1f} %)")
        elif k.yield_gross < 3:
            t.add(-5, f"Rendement brut faible ({k.yield_gross:.1f} %)")

    if k.ltc is not None:
        if k.ltc <= 70:
            t.add(5, f"LTC de {k.ltc:.0f} %")
        elif k.ltc > 90:
            t.add(-10, f"LTC supérieur à 90 % ({k.ltc:.0f} %)")
    return t.result()


# --- Market pillars ---

def assess_value(op: OperationSummary, profile: str) -> PillarAssessment:
    b, m, r, p = op.budget, op.market, op.revenues, op.project
    t = _Tally("value", base=50)

    cost_m2 = b.cost_per_sqm
    if cost_m2 is None and b.purchase_price and p.surface_m2:
        cost_m2 = b.purchase_price / p.surface_m2

    if cost_m2 and m.price_per_sqm:
        ratio = cost_m2 / m.price_per_sqm
        detail = f"{_fmt(cost_m2)} €/m² contre {_fmt(m.price_per_sqm)} €/m² (DVF)"
        if ratio <= 0.7:
            t.add(35, f"Prix très inférieur au marché : {detail}")
        elif ratio <= 0.85:
            t.add(25, f"Prix inférieur au marché : {detail}")
        elif ratio <= 1.0:
            t.add(12, f"Prix aligné sur le marché : {detail}")
        elif ratio <= 1.15:
            t.add(-5, f"Prix légèrement au-dessus du marché : {detail}")
        elif ratio <= 1.3:
            t.add(-15, f"Prix au-dessus du marché : {detail}")
        else:
            t.add(-30, f"Prix très au-dessus du marché : {detail}")
            t.action("Justifier l'écart de prix avec le marché")
    elif m.price_per_sqm is None:
        t.action("Obtenir le prix de marché au m² (DVF)")

    if r.exit_value and b.total_cost:
        premium = r.exit_value / b.total_cost
        if premium >= 1.2:
            t.add(10, f"Valeur de sortie {premium:.2f}x le coût total")
        elif premium >= 1.05:
            t.add(5, f"Valeur de sortie {premium:.2f}x le coût total")
        elif premium < 1.0:
            t.add(-15, "Valeur de sortie inférieure au coût total")
            t.action("Revoir le prix de sortie ou le coût de l'opération")

    if p.estimated_value and b.purchase_price:
        discount = b.purchase_price / p.estimated_value
        if discount <= 0.9:
            t.add(10, "Acquisition sous la valeur estimée")
        elif discount > 1.1:
            t.add(-10, "Acquisition au-dessus de la valeur estimée")
    return t.result()


def assess_location(op: OperationSummary, profile: str) -> PillarAssessment:
    m = op.market
    t = _Tally("location", base=50)

    if m.population_commune is not None:
        if m.population_commune >= 100_000:
            t.add(10, f"Grande agglomération ({_fmt(m.population_commune)} hab.)")
        elif m.population_commune >= 20_000:
            t.add(5, f"Ville moyenne ({_fmt(m.population_commune)} hab.)")
        elif m.population_commune < 2_000:
            t.add(-10, f"Petite commune ({_fmt(m.population_commune)} hab.)")
        else:
            t.add(0, f"{_fmt(m.population_commune)} habitants")
    if m.revenue_median is not None:
        if m.revenue_median > 25_000:
            t.add(10, f"Revenu médian élevé ({_fmt(m.revenue_median)} €)")
        elif m.revenue_median < 19_000:
            t.add(-10, f"Revenu médian faible ({_fmt(m.revenue_median)} €)")
        else:
            t.add(0, f"Revenu médian de {_fmt(m.revenue_median)} €")
    if m.unemployment_rate is not None:
        if m.unemployment_rate > 12:
            t.add(-10, f"Chômage élevé ({m.unemployment_rate:.1f} %)")
        elif m.unemployment_rate < 7:
            t.add(5, f"Chômage faible ({m.unemployment_rate:.1f} %)")
        else:
            t.add(0, f"Chômage de {m.unemployment_rate:.1f} %")
    if m.equipment_count is not None:
        if m.equipment_count >= 100:
            t.add(10, f"Bien équipé ({m.equipment_count:.0f} équipements BPE)")
        elif m.equipment_count >= 30:
            t.add(5, f"{m.equipment_count:.0f} équipements BPE")
        elif m.equipment_count < 10:
            t.add(-5, f"Peu d'équipements ({m.equipment_count:.0f})")
        else:
            t.add(0, f"{m.equipment_count:.0f} équipements BPE")
    if m.transport_stations is not None:
        if m.transport_stations >= 3:
            t.add(8, f"{m.transport_stations:.0f} stations de transport à proximité")
        elif m.transport_stations == 0:
            t.add(-5, "Aucune desserte en transport")
        else:
            t.add(2, f"{m.transport_stations:.0f} station(s) de transport")

    if not t.inputs:
        t.action("Compléter les données INSEE / BPE de la commune")
    return t.result()


def assess_liquidity(op: OperationSummary, profile: str) -> PillarAssessment:
    m = op.market
    t = _Tally("liquidity", base=50)

    if m.comps_count is not None:
        if m.comps_count >= 50:
            t.add(20, f"Marché profond ({m.comps_count:.0f} transactions)")
        elif m.comps_count >= 20:
            t.add(10, f"{m.comps_count:.0f} transactions comparables")
        elif m.comps_count >= 10:
            t.add(5, f"{m.comps_count:.0f} transactions comparables")
        elif m.comps_count < 5:
            t.add(-10, f"Marché peu liquide ({m.comps_count:.0f} transactions)")
        else:
            t.add(0, f"{m.comps_count:.0f} transactions comparables")
    if m.absorption_months is not None:
        if m.absorption_months < 6:
            t.add(10, f"Écoulement rapide ({m.absorption_months:.0f} mois)")
        elif m.absorption_months > 18:
            t.add(-10, f"Écoulement lent ({m.absorption_months:.0f} mois)")
        else:
            t.add(0, f"Écoulement en {m.absorption_months:.0f} mois")
    if m.evolution_pct is not None:
        if m.evolution_pct > 3:
            t.add(8, f"Prix en hausse ({m.evolution_pct:+.1f} %/an)")
        elif m.evolution_pct < -3:
            t.add(-8, f"Prix en baisse ({m.evolution_pct:+.1f} %/an)")
        else:
            t.add(0, f"Prix stables ({m.evolution_pct:+.1f} %/an)")
    if m.demand_index is not None:
        if m.demand_index > 70:
            t.add(10, f"Demande soutenue (indice {m.demand_index:.0f})")
        elif m.demand_index <= 40:
            t.add(-5, f"Demande faible (indice {m.demand_index:.0f})")
        else:
            t.add(0, f"Demande modérée (indice {m.demand_index:.0f})")

    if m.comps_count is None:
        t.action("Obtenir des transactions comparables (DVF)")
    return t.result()


# --- Risk pillars ---

def _penalize_items(t: _Tally, items: list[RiskItem], prefix: str) -> None:
    for item in items:
        penalty = RISK_ITEM_PENALTIES[item.level]
        t.add(-penalty, f"{prefix} {item.level} : {item.label}")


def assess_risk(op: OperationSummary, profile: str) -> PillarAssessment:
    risks = op.risks
    geo = risks.geo
    t = _Tally("risk", base=100)

    if isinstance(geo, GeoRiskFlags):
        if geo.score is not None:
            t.base = 0
            t.add(geo.score, f"Score géorisques {geo.score:.0f}/100")
            if geo.has_flood and geo.score > 60:
                t.add(60 - geo.score, "Zone inondable : score plafonné à 60")
        elif geo.risk_count is not None:
            t.add(-min(10 * geo.risk_count, 80), f"{geo.risk_count:.0f} risque(s) recensé(s)")
        if geo.has_flood and geo.score is None:
            t.add(-20, "Zone inondable")
        if geo.has_seismic:
            t.add(-5, "Zone de sismicité")
        if geo.has_flood:
            t.action("Vérifier l'assurabilité du bien (zone inondable)")
    elif geo:
        _penalize_items(t, geo, "Risque")
    elif risks.global_level is not None:
        t.base = {"faible": 80, "moyen": 55, "élevé": 30}[risks.global_level]
        t.add(0, f"Niveau de risque global {risks.global_level}")

    _penalize_items(t, risks.environmental, "Risque environnemental")

    if not t.inputs:
        t.action("Consulter Géorisques pour l'adresse du bien")
    return t.result()


def assess_legal_urbanism(op: OperationSummary, profile: str) -> PillarAssessment:
    p = op.project
    urbanism = op.risks.urbanism
    t = _Tally("legal_urbanism", base=60)

    for item in urbanism:
        if item.level == "élevé":
            t.add(-20, f"Contrainte d'urbanisme forte : {item.label}")
            t.action(f"Lever la contrainte d'urbanisme : {item.label}")
        elif item.level == "moyen":
            t.add(-8, f"Contrainte d'urbanisme : {item.label}")
        else:
            t.add(0, f"Urbanisme : {item.label}")
    if urbanism and all(i.level == "faible" for i in urbanism):
        t.add(10, "Urbanisme sans contrainte majeure")

    if p.condition:
        if _has(p.condition, "lourd", "ruine", "insalubre", "heavy"):
            t.add(-15, f"État du bien : {p.condition}")
            t.action("Faire chiffrer la réhabilitation par un professionnel")
        elif _has(p.condition, "renov", "travaux", "rafraich"):
            t.add(-5, f"État du bien : {p.condition}")
        elif _has(p.condition, "bon", "good", "neuf", "excellent"):
            t.add(10, f"État du bien : {p.condition}")
        else:
            t.add(0, f"État du bien : {p.condition}")
    if p.age_category:
        if _has(p.age_category, "neuf", "recent", "récent", "new"):
            t.add(5, f"Bien {p.age_category}")
        else:
            t.add(0, f"Bien {p.age_category}")
    if p.dpe in DPE_ADJUSTMENTS:
        t.add(DPE_ADJUSTMENTS[p.dpe], f"DPE {p.dpe}")
        if p.dpe in ("F", "G"):
            t.action("Prévoir la rénovation énergétique (DPE F/G)")
    return t.result()


def assess_planning(op: OperationSummary, profile: str) -> PillarAssessment:
    cal = op.calendar
    t = _Tally("planning", base=60)

    if cal.acquisition_date:
        t.add(5, f"Acquisition prévue le {cal.acquisition_date}")
    if cal.start_works_date:
        t.add(5, f"Démarrage des travaux le {cal.start_works_date}")
    if cal.works_duration_months is not None:
        if cal.works_duration_months <= 12:
            t.add(10, f"Travaux sur {cal.works_duration_months:.0f} mois")
        elif cal.works_duration_months > 24:
            t.add(-10, f"Chantier long ({cal.works_duration_months:.0f} mois)")
            t.action("Sécuriser le calendrier (pénalités de retard)")
        else:
            t.add(0, f"Travaux sur {cal.works_duration_months:.0f} mois")

    for item in op.risks.execution:
        if item.level == "élevé":
            t.add(-15, f"Risque d'exécution élevé : {item.label}")
            t.action(f"Couvrir le risque d'exécution : {item.label}")
        elif item.level == "moyen":
            t.add(-5, f"Risque d'exécution : {item.label}")
        else:
            t.add(0, f"Exécution : {item.label}")

    if not t.inputs and profile in RESALE_PROFILES:
        t.action("Fournir le calendrier prévisionnel de l'opération")
    return t.result()


PILLAR_ASSESSORS: dict[str, Callable[[OperationSummary, str], PillarAssessment]] = {
    "documents": assess_documents,
    "guarantees": assess_guarantees,
    "budget": assess_budget,
    "revenues": assess_revenues,
    "value": assess_value,
    "location": assess_location,
    "liquidity": assess_liquidity,
    "risk": assess_risk,
    "legal_urbanism": assess_legal_urbanism,
    "planning": assess_planning,
    "ratios": assess_ratios,
}
