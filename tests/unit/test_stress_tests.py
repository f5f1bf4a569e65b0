"""Unit tests for committee_engine.services.stress_tests module."""

import pytest

from committee_engine.domain.profiles import get_score_profile
from committee_engine.services.facts import CommitteeFacts
from committee_engine.services.normalizer import normalize
from committee_engine.services.pipeline import evaluate_operation
from committee_engine.services.stress_tests import (
    build_stress_tests,
    shock_cost_overrun,
    shock_rate,
    shock_vacancy,
    shock_value,
)
from committee_engine.services.verdict import compute_smart_score


def _facts(raw, settings):
    op = normalize(raw, settings)
    result = compute_smart_score(op, get_score_profile(op.meta.profile), max_missing_penalty=40)
    return CommitteeFacts.from_operation(op, result)


class TestShocks:
    """Tests for the individual shocks."""

    def test_vacancy_scales_income_ratios(self):
        facts = CommitteeFacts(score=60, occupancy_rate=100.0, dscr=1.5, yield_gross=6.0)
        shocked = shock_vacancy(facts, 10)
        assert shocked.occupancy_rate == 90.0
        assert shocked.dscr == pytest.approx(1.35)
        assert shocked.yield_gross == pytest.approx(5.4)

    def test_rate_reprices_loan(self):
        facts = CommitteeFacts(score=60, dscr=1.5, loan_amount=200000, loan_duration_months=240, interest_rate=3.5)
        shocked, note = shock_rate(facts, 150, 0.85)
        assert shocked.interest_rate == pytest.approx(5.0)
        assert 0.85 * 1.5 < shocked.dscr < 1.5
        assert note.startswith("Mensualité recalculée")

    def test_rate_uses_given_default_rate(self):
        """Without a stated rate the loan is repriced from the caller's default."""
        facts = CommitteeFacts(score=60, dscr=1.4, loan_amount=200000, loan_duration_months=240, monthly_payment=1432.86)
        shocked, _ = shock_rate(facts, 150, 0.85, default_rate_pct=6.0)
        assert shocked.interest_rate == pytest.approx(7.5)
        assert shocked.monthly_payment > 1432.86
        assert shocked.dscr < 1.4

    def test_rate_never_lowers_a_stated_payment(self):
        """A stated payment above the annuity still goes up under the shock."""
        facts = CommitteeFacts(score=60, dscr=1.4, loan_amount=200000, loan_duration_months=240, monthly_payment=1433)
        shocked, note = shock_rate(facts, 150, 0.85, default_rate_pct=3.5)
        assert shocked.monthly_payment > 1433
        assert shocked.dscr < 1.4
        assert note.startswith("Mensualité recalculée : 1 433 €")

    def test_rate_fallback_without_loan(self):
        """Unknown loan terms fall back to a flat haircut on DSCR."""
        shocked, note = shock_rate(CommitteeFacts(score=60, dscr=1.2), 150, 0.85)
        assert shocked.dscr == pytest.approx(1.02)
        assert note.startswith("Estimation forfaitaire")

    def test_cost_overrun_financed_by_debt(self):
        facts = CommitteeFacts(
            score=60, dscr=1.5, ltv=50, ltc=80, yield_gross=6.0,
            loan_amount=160000, total_cost=200000, asset_value=320000,
        )
        shocked = shock_cost_overrun(facts, 15)
        assert shocked.loan_amount == pytest.approx(190000)
        assert shocked.total_cost == pytest.approx(230000)
        assert shocked.ltv == pytest.approx(190000 / 320000 * 100)
        assert shocked.ltc == pytest.approx(190000 / 230000 * 100)
        assert shocked.dscr == pytest.approx(1.5 * 160000 / 190000)

    def test_value_drop_raises_ltv(self):
        shocked = shock_value(CommitteeFacts(score=60, ltv=72, asset_value=100000), 10)
        assert shocked.ltv == pytest.approx(80)
        assert shocked.asset_value == pytest.approx(90000)

    def test_absent_values_stay_absent(self):
        facts = CommitteeFacts(score=60)
        for shocked in (shock_vacancy(facts, 10), shock_cost_overrun(facts, 15), shock_value(facts, 10)):
            assert shocked.dscr is None
            assert shocked.ltv is None


class TestBuildStressTests:
    """Tests for build_stress_tests."""

    def test_case_keys(self, settings, rental_operation):
        pack = build_stress_tests(_facts(rental_operation, settings))
        assert pack.base.key == "base"
        assert [c.key for c in pack.cases] == ["vacancy_+10", "rate_+150bp", "cost_+15", "value_-10"]

    def test_rental_worst_case(self, settings, rental_operation):
        """The cost overrun costs the LTV bonus; every other shock keeps 100."""
        pack = build_stress_tests(_facts(rental_operation, settings))
        assert pack.base.acceptance_score == 100
        assert pack.summary.worst_case_key == "cost_+15"
        assert pack.summary.worst_acceptance == 98
        assert all(c.dscr < pack.base.dscr for c in pack.cases if c.key != "value_-10")

    def test_distressed_ties_keep_first_case(self, settings, distressed_operation):
        pack = build_stress_tests(_facts(distressed_operation, settings))
        assert all(c.acceptance_score == 0 for c in pack.cases)
        assert pack.summary.worst_case_key == "vacancy_+10"
        assert pack.summary.worst_dscr == pytest.approx(0.72)
        assert "Déficit de couverture (DSCR < 1)" in pack.cases[0].notes
        assert len(pack.summary.key_findings) <= 3

    def test_custom_shocks(self, settings, rental_operation):
        shocks = {
            "vacancy_pts": 20.0,
            "rate_bp": 300.0,
            "cost_overrun_pct": 25.0,
            "value_drop_pct": 20.0,
            "rate_fallback_factor": 0.7,
        }
        pack = build_stress_tests(_facts(rental_operation, settings), shocks)
        assert [c.key for c in pack.cases] == ["vacancy_+20", "rate_+300bp", "cost_+25", "value_-20"]

    def test_shocks_never_improve_dscr(self, settings):
        """With a high default rate, no case covers the debt better than the base case."""
        high_rate = settings.model_copy(update={"default_interest_rate_pct": 6.0})
        raw = {"financing": {"loanAmount": 200000, "loanDurationMonths": 240}, "revenues": {"rentAnnual": 24000}}
        pack = evaluate_operation(raw, high_rate).stress_tests
        assert pack.base.dscr == pytest.approx(1.4)
        assert all(c.dscr <= pack.base.dscr for c in pack.cases)
        rate_case = next(c for c in pack.cases if c.key == "rate_+150bp")
        assert rate_case.dscr < pack.base.dscr
