"""Unit tests for committee_engine.services.scenarios and facts modules."""

import pytest

from committee_engine.domain.profiles import get_score_profile
from committee_engine.services.facts import CommitteeFacts, geo_risk_level, market_score
from committee_engine.services.normalizer import normalize
from committee_engine.services.pillar_scorer import score_pillars
from committee_engine.services.scenarios import (
    build_balanced,
    build_conservative,
    build_decision_scenarios,
    build_opportunistic,
)
from committee_engine.services.verdict import compute_smart_score


def _scenarios(raw, settings):
    op = normalize(raw, settings)
    result = compute_smart_score(op, get_score_profile(op.meta.profile), max_missing_penalty=40)
    return {s.key: s for s in build_decision_scenarios(op, result)}


class TestMarketScore:
    """Tests for market_score and geo_risk_level."""

    def test_insight_balance(self, settings):
        op = normalize(
            {"market": {"insights": [
                {"label": "Tension locative", "sentiment": "positive"},
                {"label": "Prix", "sentiment": "negative"},
                {"label": "Vacance", "sentiment": "neutre"},
            ]}},
            settings,
        )
        # (1 - 0.7) / 3 * 100 + 50
        assert market_score(op, []) == 60

    def test_pillar_mean_fallback(self, settings, rental_operation):
        """Mean of value 72, location 88 and liquidity 70."""
        op = normalize(rental_operation, settings)
        pillars = score_pillars(op, get_score_profile("particulier"))
        assert market_score(op, pillars) == 77

    def test_no_market_data(self, settings):
        op = normalize({}, settings)
        assert market_score(op, score_pillars(op, get_score_profile("particulier"))) is None

    @pytest.mark.parametrize(
        "risks,level",
        [
            ({"geo": {"score": 82}}, "faible"),
            ({"geo": {"score": 82, "hasFlood": True}}, "moyen"),
            ({"geo": {"score": 20}}, "élevé"),
            ({"geo": [{"label": "Radon", "level": "moyen"}]}, "moyen"),
            ({"geo": ["Radon"]}, "inconnu"),
            ({"globalLevel": "élevé"}, "élevé"),
            ({}, "inconnu"),
        ],
    )
    def test_geo_risk_level(self, settings, risks, level):
        assert geo_risk_level(normalize({"risks": risks}, settings)) == level


class TestDecisionScenarios:
    """Tests for build_decision_scenarios."""

    def test_three_lenses_in_order(self, settings, rental_operation):
        op = normalize(rental_operation, settings)
        result = compute_smart_score(op, get_score_profile("particulier"), max_missing_penalty=40)
        scenarios = build_decision_scenarios(op, result)
        assert [s.key for s in scenarios] == ["conservative", "balanced", "opportunistic"]

    def test_rental_operation(self, settings, rental_operation):
        scenarios = _scenarios(rental_operation, settings)
        assert scenarios["conservative"].decision == "GO"
        assert scenarios["balanced"].decision == "GO"
        assert scenarios["opportunistic"].decision == "GO_PATRIMONIAL"
        assert scenarios["conservative"].conditions == []

    def test_distressed_operation(self, settings, distressed_operation):
        scenarios = _scenarios(distressed_operation, settings)
        assert scenarios["conservative"].decision == "NO_GO"
        assert scenarios["conservative"].confidence == 85
        assert scenarios["balanced"].decision == "NO_GO"
        assert scenarios["opportunistic"].decision == "GO_SOUS_CONDITIONS"

    def test_blocker_conditions_prefixed(self, settings, distressed_operation):
        conditions = _scenarios(distressed_operation, settings)["opportunistic"].conditions
        assert conditions[:3] == [
            "[BLOQUANT] Fournir : Montant des garanties",
            "[BLOQUANT] Fournir : Prix d'acquisition",
            "[BLOQUANT] Fournir : Donnée manquante",
        ]
        assert "Fournir : Loyers annuels" in conditions

    def test_mandatory_guarantees_missing(self, settings):
        """Private borrower without guarantees and with two blockers is refused."""
        scenarios = _scenarios({"kpis": {"ltv": 50}}, settings)
        assert scenarios["conservative"].decision == "NO_GO"
        assert scenarios["conservative"].confidence == 70

    def test_every_scenario_motivated(self, settings, developer_operation):
        for scenario in _scenarios(developer_operation, settings).values():
            assert scenario.motivation
            assert scenario.favorable
            assert scenario.unfavorable
            assert 0 <= scenario.confidence <= 100


class TestLenses:
    """Tests for the individual lenses on hand-built facts."""

    def test_conservative_never_go_with_blocker(self):
        facts = CommitteeFacts(score=95, blockers=1, blocker_labels=("Prix d'acquisition",), dscr=2.0, ltv=30)
        scenario = build_conservative(facts)
        assert scenario.decision == "GO_SOUS_CONDITIONS_STRICT"
        assert scenario.confidence == 55

    def test_conservative_high_ltv_is_strict(self):
        scenario = build_conservative(CommitteeFacts(score=80, dscr=1.5, ltv=65))
        assert scenario.decision == "GO_SOUS_CONDITIONS_STRICT"
        assert "Réduire le LTV sous 60 %" in scenario.conditions

    def test_conservative_low_score(self):
        scenario = build_conservative(CommitteeFacts(score=66, dscr=1.5, ltv=40))
        assert scenario.decision == "GO_SOUS_CONDITIONS"
        assert scenario.confidence == 60

    def test_balanced_unknown_market_is_unmet(self):
        scenario = build_balanced(CommitteeFacts(score=80, dscr=1.5, ltv=30, market=None))
        assert scenario.decision == "GO_SOUS_CONDITIONS"
        assert "marché n.d." in scenario.motivation

    def test_opportunistic_unknown_geo_is_not_low(self):
        scenario = build_opportunistic(CommitteeFacts(score=50, ltv=30, geo_level="inconnu"))
        assert scenario.decision == "GO_SOUS_CONDITIONS"
        assert "Produire l'état des risques (Géorisques)" in scenario.conditions

    def test_opportunistic_lets_blockers_through(self):
        facts = CommitteeFacts(score=30, blockers=3, dscr=0.8, ltv=35, geo_level="faible")
        assert build_opportunistic(facts).decision == "GO_PATRIMONIAL"
