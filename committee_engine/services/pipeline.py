"""End-to-end committee evaluation.

normalize -> pillars + missing data -> SmartScore -> scenarios, acceptance,
risk/return matrix, stress tests, alerts and the committee presentation.
Pure: no I/O besides logging.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from committee_engine.core.logging import get_logger
from committee_engine.core.settings import EngineSettings, get_settings
from committee_engine.domain.models import CommitteeReport
from committee_engine.services.acceptance import build_acceptance_probability
from committee_engine.services.alerts import compute_alerts
from committee_engine.services.facts import CommitteeFacts
from committee_engine.services.normalizer import normalize
from committee_engine.services.pillar_scorer import resolve_profile
from committee_engine.services.presentation import build_committee_presentation
from committee_engine.services.risk_matrix import build_risk_return_matrix
from committee_engine.services.scenarios import build_decision_scenarios
from committee_engine.services.stress_tests import build_stress_tests
from committee_engine.services.verdict import compute_smart_score

log = get_logger(__name__)


def evaluate_operation(raw: Any, settings: EngineSettings | None = None) -> CommitteeReport:
    """Evaluate one operation for the credit committee.

    Args:
        raw: Operation data in any accepted shape
        settings: Engine settings (defaults to environment)

    Returns:
        CommitteeReport; identical input and settings give an identical report
    """
    settings = settings or get_settings()
    op = normalize(raw, settings)
    profile = resolve_profile(op, settings.pillar_set)

    smart_score = compute_smart_score(op, profile, max_missing_penalty=settings.max_missing_penalty)
    facts = CommitteeFacts.from_operation(op, smart_score)

    scenarios = build_decision_scenarios(op, smart_score)
    matrix = build_risk_return_matrix(facts)

    report = CommitteeReport(
        operation=op,
        smart_score=smart_score,
        scenarios=scenarios,
        acceptance=build_acceptance_probability(facts, top_n=settings.acceptance_top_n),
        matrix=matrix,
        stress_tests=build_stress_tests(facts, settings=settings),
        alerts=compute_alerts(op, smart_score),
        presentation=build_committee_presentation(op, smart_score, facts, scenarios, matrix),
    )
    log.info(
        "operation_evaluated",
        profile=profile.name,
        score=smart_score.score,
        decisions=[s.decision for s in report.scenarios],
        acceptance=report.acceptance.score,
        quadrant=report.matrix.quadrant,
    )
    return report


def canonical_json(report: CommitteeReport) -> str:
    """Key-sorted, whitespace-free JSON of a report."""
    payload = report.model_dump(mode="json", by_alias=True)
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def report_hash(report: CommitteeReport) -> str:
    """SHA-256 of the canonical JSON, usable as a cache-invalidation key."""
    return hashlib.sha256(canonical_json(report).encode("utf-8")).hexdigest()
