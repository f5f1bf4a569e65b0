"""Unit tests for committee_engine.services.missing_data module."""

import pytest

from committee_engine.domain.models import MissingDataItem
from committee_engine.domain.profiles import get_score_profile
from committee_engine.services.missing_data import (
    compute_missing,
    compute_missing_penalties,
    is_present,
)
from committee_engine.services.normalizer import normalize


class TestIsPresent:
    """Tests for is_present."""

    @pytest.mark.parametrize("value", [None, "", "  ", [], {}])
    def test_absent(self, value):
        assert is_present(value) is False

    @pytest.mark.parametrize("value", [0, 0.0, False, "x", [1], {"a": 1}])
    def test_present(self, value):
        """Zero is a value, not a gap."""
        assert is_present(value) is True


class TestComputeMissing:
    """Tests for compute_missing."""

    def test_complete_rental_operation(self, settings, rental_operation):
        op = normalize(rental_operation, settings)
        assert compute_missing(op, get_score_profile("particulier")) == []

    def test_distressed_operation(self, settings, distressed_operation):
        """Taxonomy items come first, then declared items."""
        op = normalize(distressed_operation, settings)
        items = compute_missing(op, get_score_profile("particulier"))
        blockers = [i.key for i in items if i.severity == "blocker"]
        warns = [i.key for i in items if i.severity == "warn"]
        assert blockers == ["guarantees.coverageTotal", "budget.purchasePrice", "missing.0"]
        assert warns == ["documents.completenessPct", "revenues.rentAnnual"]

    def test_declared_item_satisfied_by_data_is_dropped(self, settings):
        op = normalize(
            {"budget": {"worksBudget": 20000}, "missing": [{"key": "budget.worksBudget", "severity": "blocker"}]},
            settings,
        )
        keys = [i.key for i in compute_missing(op, get_score_profile("particulier"))]
        assert "budget.worksBudget" not in keys

    def test_snake_case_declared_key(self, settings):
        """Declared keys written in snake_case are checked against the data too."""
        op = normalize(
            {"budget": {"worksBudget": 20000}, "missing": [{"key": "budget.works_budget"}]},
            settings,
        )
        keys = [i.key for i in compute_missing(op, get_score_profile("particulier"))]
        assert "budget.works_budget" not in keys

    def test_most_severe_kept_on_duplicates(self, settings):
        op = normalize({"missing": [{"key": "kpis.ltv", "severity": "blocker"}]}, settings)
        items = compute_missing(op, get_score_profile("particulier"))
        ltv = [i for i in items if i.key == "kpis.ltv"]
        assert len(ltv) == 1
        assert ltv[0].severity == "blocker"


class TestComputeMissingPenalties:
    """Tests for compute_missing_penalties."""

    def test_particulier_penalties(self):
        items = [
            MissingDataItem(key="a", label="A", severity="blocker"),
            MissingDataItem(key="b", label="B", severity="warn"),
            MissingDataItem(key="c", label="C", severity="info"),
        ]
        penalties, total = compute_missing_penalties(items, get_score_profile("particulier"), cap=40)
        assert [p.points for p in penalties] == [6, 2, 0]
        assert total == 8

    def test_cap(self):
        items = [MissingDataItem(key=str(i), label=str(i), severity="blocker") for i in range(10)]
        penalties, total = compute_missing_penalties(items, get_score_profile("marchand"), cap=40)
        assert sum(p.points for p in penalties) == 80
        assert total == 40

    def test_custom_cap(self):
        items = [MissingDataItem(key="a", label="A", severity="blocker")]
        _, total = compute_missing_penalties(items, get_score_profile("particulier"), cap=3)
        assert total == 3
