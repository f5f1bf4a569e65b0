"""Integration tests for the committee evaluation pipeline.

Runs raw dossiers end to end through normalize, SmartScore and the decision
builders.
"""

import json

import pytest

from committee_engine import ENGINE_VERSION
from committee_engine.domain.models import CommitteeReport
from committee_engine.services.pipeline import canonical_json, evaluate_operation, report_hash


class TestEvaluateOperation:
    """End-to-end evaluation of representative dossiers."""

    def test_rental_operation(self, settings, rental_operation):
        report = evaluate_operation(rental_operation, settings)
        assert report.smart_score.score == 85
        assert report.smart_score.grade == "A+"
        assert [s.decision for s in report.scenarios] == ["GO", "GO", "GO_PATRIMONIAL"]
        assert report.acceptance.score == 100
        assert report.matrix.quadrant == "favorable"
        assert report.stress_tests.summary.worst_case_key == "cost_+15"
        assert report.alerts == []

    def test_distressed_operation(self, settings, distressed_operation):
        """Over-leveraged dossier with a DSCR below 1."""
        report = evaluate_operation(distressed_operation, settings)
        assert report.smart_score.score == 18
        assert report.smart_score.verdict_level == "NO_GO"
        assert [s.decision for s in report.scenarios] == ["NO_GO", "NO_GO", "GO_SOUS_CONDITIONS"]
        assert report.acceptance.score == 0
        assert report.matrix.dominant_risk == "dscr_deficit"
        assert report.alerts[0].severity == "critical"

    def test_developer_operation(self, settings, developer_operation):
        """Resale operation of a property developer, fed by a French market study."""
        report = evaluate_operation(developer_operation, settings)
        op = report.operation
        assert op.meta.profile == "promoteur"
        assert op.market.price_per_sqm == 4900.0
        assert op.market.comps_count == 38.0
        assert op.kpis.margin == pytest.approx(27.27, abs=0.01)
        assert op.kpis.ltv == pytest.approx(57.14, abs=0.01)
        assert op.risks.geo.score == 65.0
        assert report.smart_score.profile == "promoteur"
        assert report.smart_score.blocker_count == 0
        assert report.smart_score.total_missing_penalty == 9
        assert {m.key for m in report.smart_score.missing if m.severity == "warn"} == {
            "documents.completenessPct",
            "guarantees.coverageTotal",
            "risks.urbanism",
        }

    def test_empty_operation(self, settings):
        report = evaluate_operation({}, settings)
        assert report.smart_score.score == 0
        assert report.smart_score.verdict_level == "DONNEES_INSUFFISANTES"
        assert len(report.scenarios) == 3

    def test_minimal_pillar_set(self, settings, rental_operation):
        minimal = settings.model_copy(update={"pillar_set": "minimal"})
        report = evaluate_operation(rental_operation, minimal)
        assert report.smart_score.pillar_set == "minimal"
        assert len(report.smart_score.pillars) == 5
        assert "guarantees" not in {p.key for p in report.smart_score.pillars}

    def test_acceptance_top_n_setting(self, settings, rental_operation):
        limited = settings.model_copy(update={"acceptance_top_n": 3})
        report = evaluate_operation(rental_operation, limited)
        assert len(report.acceptance.drivers) == 3
        assert report.acceptance.score == 100

    def test_engine_version_reported(self, settings, rental_operation):
        report = evaluate_operation(rental_operation, settings)
        assert report.smart_score.engine_version == ENGINE_VERSION


class TestSerialization:
    """Tests for canonical JSON and report hashing."""

    def test_camel_case_wire_names(self, settings, rental_operation):
        payload = json.loads(canonical_json(evaluate_operation(rental_operation, settings)))
        assert "smartScore" in payload
        assert "stressTests" in payload
        assert "rawScore" in payload["smartScore"]["pillars"][0]

    def test_json_round_trip(self, settings, rental_operation):
        report = evaluate_operation(rental_operation, settings)
        restored = CommitteeReport.model_validate_json(canonical_json(report))
        assert restored.model_dump() == report.model_dump()

    def test_hash_stable(self, settings, rental_operation):
        first = report_hash(evaluate_operation(rental_operation, settings))
        second = report_hash(evaluate_operation(dict(rental_operation), settings))
        assert first == second
        assert len(first) == 64

    def test_hash_changes_with_input(self, settings, rental_operation):
        base = report_hash(evaluate_operation(rental_operation, settings))
        rental_operation["kpis"] = {"dscr": 0.9}
        assert report_hash(evaluate_operation(rental_operation, settings)) != base
