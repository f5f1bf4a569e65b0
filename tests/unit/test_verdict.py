"""Unit tests for committee_engine.services.verdict module."""

import pytest

from committee_engine import ENGINE_VERSION
from committee_engine.domain.profiles import get_score_profile
from committee_engine.services.normalizer import normalize
from committee_engine.services.verdict import (
    compute_smart_score,
    explain_verdict,
    grade_for,
    verdict_level_for,
)


class TestGradeFor:
    """Tests for the grade scale."""

    @pytest.mark.parametrize(
        "score,grade",
        [(100, "A+"), (80, "A+"), (79, "A"), (72, "A"), (65, "B"), (50, "C"), (42, "D+"), (35, "D"), (20, "E"), (19, "F"), (0, "F")],
    )
    def test_boundaries(self, score, grade):
        assert grade_for(score)[0] == grade

    def test_label(self):
        assert grade_for(85) == ("A+", "Excellent")


class TestVerdictLevelFor:
    """Tests for verdict levels."""

    def test_levels(self):
        assert verdict_level_for(65) == "GO"
        assert verdict_level_for(64) == "GO_SOUS_CONDITIONS"
        assert verdict_level_for(40) == "GO_SOUS_CONDITIONS"
        assert verdict_level_for(39) == "NO_GO"

    def test_no_data(self):
        assert verdict_level_for(90, has_data=False) == "DONNEES_INSUFFISANTES"

    def test_custom_thresholds(self):
        assert verdict_level_for(60, thresholds={"go": 60, "conditions": 30}) == "GO"


class TestComputeSmartScore:
    """Tests for compute_smart_score."""

    def test_rental_operation(self, settings, rental_operation):
        op = normalize(rental_operation, settings)
        result = compute_smart_score(op, get_score_profile("particulier"), max_missing_penalty=40)
        assert result.score == 85
        assert result.grade == "A+"
        assert result.verdict_level == "GO"
        assert result.total_missing_penalty == 0
        assert result.blockers == []
        assert result.engine_version == ENGINE_VERSION

    def test_distressed_operation(self, settings, distressed_operation):
        """Aggregate 40 minus 22 points of missing-data penalty."""
        op = normalize(distressed_operation, settings)
        result = compute_smart_score(op, get_score_profile("particulier"), max_missing_penalty=40)
        assert result.total_missing_penalty == 22
        assert result.score == 18
        assert result.grade == "F"
        assert result.verdict_level == "NO_GO"
        assert result.blocker_count == 3
        assert result.blockers == ["Montant des garanties", "Prix d'acquisition", "Donnée manquante"]

    def test_penalty_cap_applies(self, settings, distressed_operation):
        op = normalize(distressed_operation, settings)
        result = compute_smart_score(op, get_score_profile("particulier"), max_missing_penalty=10)
        assert result.total_missing_penalty == 10
        assert result.score == 30

    def test_no_data(self, settings):
        """No usable pillar: score 0 without penalty, insufficient data verdict."""
        op = normalize({}, settings)
        result = compute_smart_score(op, get_score_profile("particulier"), max_missing_penalty=40)
        assert result.score == 0
        assert result.total_missing_penalty == 0
        assert result.verdict_level == "DONNEES_INSUFFISANTES"
        assert result.rationale.startswith("Données insuffisantes")
        assert "Piliers sans données : Garanties" in result.verdict

    def test_recommendations_start_with_blockers(self, settings, distressed_operation):
        op = normalize(distressed_operation, settings)
        result = compute_smart_score(op, get_score_profile("particulier"), max_missing_penalty=40)
        assert result.recommendations[0].startswith("Renseigner en priorité")
        assert len(result.recommendations) <= 10

    def test_drivers(self, settings, distressed_operation):
        op = normalize(distressed_operation, settings)
        result = compute_smart_score(op, get_score_profile("particulier"), max_missing_penalty=40)
        assert [(d.pillar, d.direction) for d in result.drivers] == [("ratios", "down")]

    def test_deterministic(self, settings, rental_operation):
        op = normalize(rental_operation, settings)
        profile = get_score_profile("particulier")
        first = compute_smart_score(op, profile, max_missing_penalty=40)
        second = compute_smart_score(op, profile, max_missing_penalty=40)
        assert first == second


class TestExplainVerdict:
    """Tests for explain_verdict."""

    def test_lists_every_pillar(self, settings, distressed_operation):
        op = normalize(distressed_operation, settings)
        result = compute_smart_score(op, get_score_profile("particulier"), max_missing_penalty=40)
        text = explain_verdict(result)
        assert text.splitlines()[0] == result.verdict
        assert "- Ratios financiers : 20/100 (3/15 pts)" in text
        assert "- Documentation : N/A (0/15 pts)" in text
        assert "Bloquants : " in text
