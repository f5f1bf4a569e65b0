"""Pillar scoring service.

Runs the pillar formulas for a score profile and turns their unweighted
results into weighted Pillar models.
"""

from __future__ import annotations

from committee_engine.core.logging import get_logger
from committee_engine.core.settings import get_settings
from committee_engine.domain.calculator.pillars import PILLAR_ASSESSORS
from committee_engine.domain.models import OperationSummary, Pillar
from committee_engine.domain.profiles import ScoreProfile, get_score_profile

log = get_logger(__name__)


def resolve_profile(op: OperationSummary, pillar_set: str | None = None) -> ScoreProfile:
    """Score profile for the operation's borrower type and the configured pillar set."""
    return get_score_profile(op.meta.profile, pillar_set or get_settings().pillar_set)


def score_pillars(op: OperationSummary, profile: ScoreProfile | None = None) -> list[Pillar]:
    """Score every pillar of the profile, in profile order.

    Args:
        op: Canonical operation
        profile: Score profile (defaults to the operation's own)

    Returns:
        One Pillar per configured pillar; pillars without usable inputs
        have has_data=False, raw_score=0 and points=0
    """
    profile = profile or resolve_profile(op)
    pillars = []
    for cfg in profile.pillars:
        assessment = PILLAR_ASSESSORS[cfg.key](op, profile.name)
        points = round(assessment.raw_score / 100.0 * cfg.max_points) if assessment.has_data else 0
        pillars.append(
            Pillar(
                key=cfg.key,
                label=cfg.label,
                points=points,
                max_points=cfg.max_points,
                raw_score=assessment.raw_score,
                has_data=assessment.has_data,
                reasons=assessment.reasons,
                actions=assessment.actions,
            )
        )

    log.debug(
        "pillars_scored",
        profile=profile.name,
        pillar_set=profile.pillar_set,
        with_data=sum(1 for p in pillars if p.has_data),
        total=len(pillars),
    )
    return pillars


def aggregate_score(pillars: list[Pillar]) -> float | None:
    """Weighted mean of raw scores over pillars with data.

    Weights of the pillars that have data are renormalized so the aggregate
    stays on a 0-100 scale. Returns None when no pillar has data.
    """
    present = [p for p in pillars if p.has_data]
    if not present:
        return None
    total_weight = sum(p.max_points for p in present)
    if total_weight <= 0:
        return sum(p.raw_score for p in present) / len(present)
    return sum(p.raw_score * p.max_points for p in present) / total_weight
