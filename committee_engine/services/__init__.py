"""Committee services: normalization, scoring and decision builders."""

from .acceptance import build_acceptance_probability
from .alerts import compute_alerts
from .facts import CommitteeFacts, geo_risk_level, market_score
from .missing_data import compute_missing, compute_missing_penalties
from .normalizer import dig, merge_missing_values, normalize, safe_number, safe_string
from .pipeline import canonical_json, evaluate_operation, report_hash
from .pillar_scorer import aggregate_score, score_pillars
from .presentation import build_committee_presentation
from .risk_matrix import build_risk_return_matrix
from .scenarios import build_decision_scenarios
from .stress_tests import build_stress_tests
from .verdict import compute_smart_score, explain_verdict, grade_for, verdict_level_for

__all__ = [
    "normalize",
    "safe_string",
    "safe_number",
    "dig",
    "merge_missing_values",
    "score_pillars",
    "aggregate_score",
    "compute_missing",
    "compute_missing_penalties",
    "compute_smart_score",
    "grade_for",
    "verdict_level_for",
    "explain_verdict",
    "CommitteeFacts",
    "market_score",
    "geo_risk_level",
    "build_decision_scenarios",
    "build_acceptance_probability",
    "build_risk_return_matrix",
    "build_stress_tests",
    "compute_alerts",
    "build_committee_presentation",
    "evaluate_operation",
    "canonical_json",
    "report_hash",
]
