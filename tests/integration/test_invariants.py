"""Invariant tests for the committee engine.

Verifies rules that must ALWAYS hold, regardless of how malformed the
operation data is.
"""

import random
from typing import Any, Dict, List

import pytest

from committee_engine.core.thresholds import GRADES
from committee_engine.services.normalizer import normalize
from committee_engine.services.pipeline import evaluate_operation, report_hash

_JUNK_VALUES = [
    None, "", "  ", "NaN", "[object Object]", "abc", "1 250,5", "12 %", -5, 0, 0.5, 1e12,
    float("nan"), float("inf"), True, [], [1, "x"], {}, {"value": "3"}, {"label": {"name": "x"}},
    10**400, -(10**400), 1e308, -1e308, 1e-320,
]

_PATHS = [
    ("meta", "profile"), ("project", "surfaceM2"), ("project", "dpe"), ("project", "estimatedValue"),
    ("budget", "purchasePrice"), ("budget", "totalCost"), ("budget", "worksBudget"), ("budget", "equity"),
    ("financing", "loanAmount"), ("financing", "interestRate"), ("financing", "loanDurationMonths"),
    ("revenues", "rentAnnual"), ("revenues", "exitValue"), ("revenues", "occupancyRate"),
    ("market", "pricePerSqm"), ("market", "insights"), ("marketStudy", "dvf"),
    ("risks", "geo"), ("risques", "score_global"), ("risks", "urbanism"),
    ("kpis", "ltv"), ("kpis", "dscr"), ("kpis", "margin"), ("kpis", "dsti"),
    ("guarantees", "items"), ("documents", "items"), ("calendar", "worksDurationMonths"),
]


# --- Fixtures ---

@pytest.fixture
def garbage_operations() -> List[Dict[str, Any]]:
    """Generate 60 randomly malformed operations (seeded)."""
    rng = random.Random(42)
    operations = []
    for _ in range(60):
        op: Dict[str, Any] = {}
        for section, key in rng.sample(_PATHS, k=rng.randint(1, len(_PATHS))):
            block = op.setdefault(section, {})
            if isinstance(block, dict):
                block[key] = rng.choice(_JUNK_VALUES)
        if rng.random() < 0.3:
            op["missing"] = rng.choice([["Bilan"], [{"severity": "blocker"}], "texte", [None, 3]])
        operations.append(op)
    return operations


# --- Invariant Tests ---

class TestInvariants:
    """Rules that hold for every input."""

    def test_garbage_never_raises(self, settings, garbage_operations):
        """Malformed data degrades to absent fields instead of raising."""
        for raw in garbage_operations:
            evaluate_operation(raw, settings)

    def test_score_bounds(self, settings, garbage_operations):
        for raw in garbage_operations:
            report = evaluate_operation(raw, settings)
            score = report.smart_score
            assert 0 <= score.score <= 100
            assert score.grade in GRADES
            assert 0 <= score.total_missing_penalty <= settings.max_missing_penalty
            assert score.score + score.total_missing_penalty <= 100
            assert 0 <= report.acceptance.score <= 100
            assert 0 <= report.matrix.risk_score <= 100
            assert 0 <= report.matrix.return_score <= 100

    def test_pillar_bounds(self, settings, garbage_operations):
        for raw in garbage_operations:
            for pillar in evaluate_operation(raw, settings).smart_score.pillars:
                assert 0 <= pillar.points <= pillar.max_points
                assert 0 <= pillar.raw_score <= 100
                if not pillar.has_data:
                    assert pillar.points == 0
                    assert pillar.raw_score == 0

    def test_no_data_means_insufficient(self, settings, garbage_operations):
        for raw in garbage_operations:
            score = evaluate_operation(raw, settings).smart_score
            has_data = any(p.has_data for p in score.pillars)
            assert (score.verdict_level == "DONNEES_INSUFFISANTES") is (not has_data)

    def test_three_scenarios(self, settings, garbage_operations):
        for raw in garbage_operations:
            report = evaluate_operation(raw, settings)
            assert [s.key for s in report.scenarios] == ["conservative", "balanced", "opportunistic"]
            assert all(s.motivation for s in report.scenarios)

    def test_conservative_never_go_with_blockers(self, settings, garbage_operations):
        for raw in garbage_operations:
            report = evaluate_operation(raw, settings)
            if report.smart_score.blocker_count:
                assert report.scenarios[0].decision != "GO"

    def test_acceptance_traceable(self, settings, garbage_operations):
        """Without truncation, the score is the clamped sum of its drivers."""
        for raw in garbage_operations:
            acceptance = evaluate_operation(raw, settings).acceptance
            expected = max(0, min(100, acceptance.baseline + sum(d.impact for d in acceptance.drivers)))
            assert acceptance.score == expected

    def test_alert_ordering(self, settings, garbage_operations):
        rank = {"critical": 0, "warn": 1, "info": 2}
        for raw in garbage_operations:
            alerts = evaluate_operation(raw, settings).alerts
            assert [rank[a.severity] for a in alerts] == sorted(rank[a.severity] for a in alerts)
            assert [a.id for a in alerts] == [f"alert-{i}" for i in range(1, len(alerts) + 1)]

    def test_stress_cases_never_improve_dscr(self, settings, garbage_operations):
        for raw in garbage_operations:
            pack = evaluate_operation(raw, settings).stress_tests
            if pack.base.dscr is None:
                continue
            for case in pack.cases:
                assert case.dscr is None or case.dscr <= pack.base.dscr

    def test_presentation_always_built(self, settings, garbage_operations):
        for raw in garbage_operations:
            presentation = evaluate_operation(raw, settings).presentation
            assert presentation.executive_summary
            assert presentation.decision_line.startswith("DÉCISION : ")
            assert all(section.paragraphs for section in presentation.sections)

    def test_deterministic(self, settings, garbage_operations):
        for raw in garbage_operations[:10]:
            assert report_hash(evaluate_operation(raw, settings)) == report_hash(evaluate_operation(raw, settings))

    def test_normalize_idempotent(self, settings, garbage_operations):
        """A canonical summary goes through normalize unchanged."""
        for raw in garbage_operations:
            once = normalize(raw, settings)
            assert normalize(once, settings) == once
            assert normalize(raw, settings) == once

    @pytest.mark.parametrize("profile", ["particulier", "marchand", "promoteur", "entreprise"])
    def test_every_profile_weights_sum(self, settings, rental_operation, profile):
        rental_operation["meta"]["profile"] = profile
        pillars = evaluate_operation(rental_operation, settings).smart_score.pillars
        assert sum(p.max_points for p in pillars) == 100
