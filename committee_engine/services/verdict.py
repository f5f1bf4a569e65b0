"""Grade, verdict and SmartScore assembly."""

from __future__ import annotations

from committee_engine import ENGINE_VERSION
from committee_engine.core.logging import get_logger
from committee_engine.core.thresholds import (
    GRADE_SCALE,
    STRONG_PILLAR_MIN,
    VERDICT_THRESHOLDS,
    WEAK_PILLAR_MAX,
    VerdictThresholds,
)
from committee_engine.domain.models import (
    OperationSummary,
    Pillar,
    ScoreDriver,
    SmartScoreResult,
)
from committee_engine.domain.profiles import ScoreProfile
from committee_engine.services.missing_data import compute_missing, compute_missing_penalties
from committee_engine.services.pillar_scorer import aggregate_score, resolve_profile, score_pillars

log = get_logger(__name__)

VERDICT_LABELS = {
    "GO": "Favorable",
    "GO_SOUS_CONDITIONS": "Favorable sous conditions",
    "NO_GO": "Défavorable",
    "DONNEES_INSUFFISANTES": "Données insuffisantes",
}

MAX_RECOMMENDATIONS = 10


def grade_for(score: float) -> tuple[str, str]:
    """Map a 0-100 score to (grade, label)."""
    for floor, grade, label in GRADE_SCALE:
        if score >= floor:
            return grade, label
    return GRADE_SCALE[-1][1], GRADE_SCALE[-1][2]


def verdict_level_for(
    score: float,
    has_data: bool = True,
    thresholds: VerdictThresholds | None = None,
) -> str:
    """Verdict level for a score: GO, GO_SOUS_CONDITIONS, NO_GO or DONNEES_INSUFFISANTES."""
    if not has_data:
        return "DONNEES_INSUFFISANTES"
    t = thresholds or VERDICT_THRESHOLDS
    if score >= t["go"]:
        return "GO"
    if score >= t["conditions"]:
        return "GO_SOUS_CONDITIONS"
    return "NO_GO"


def _missing_pillar_labels(pillars: list[Pillar], limit: int = 3) -> list[str]:
    missing = [p for p in pillars if not p.has_data]
    missing.sort(key=lambda p: -p.max_points)
    return [p.label for p in missing[:limit]]


def build_verdict(score: int, grade: str, grade_label: str, level: str, pillars: list[Pillar]) -> str:
    """One-line verdict naming the grade and the heaviest pillars without data."""
    verdict = f"{grade} ({grade_label}) : {VERDICT_LABELS[level]}, score {score}/100"
    missing = _missing_pillar_labels(pillars)
    if missing:
        verdict += f". Piliers sans données : {', '.join(missing)}"
    return verdict


def build_rationale(score: int, penalty: int, pillars: list[Pillar]) -> str:
    present = [p for p in pillars if p.has_data]
    if not present:
        return (
            "Données insuffisantes : aucun pilier ne dispose de données exploitables, "
            "le score ne peut pas être établi."
        )
    text = f"Score {score}/100 établi sur {len(present)}/{len(pillars)} piliers renseignés"
    if penalty:
        text += f", après {penalty} pts de pénalité pour données manquantes"
    text += "."
    strong = [p.label for p in present if p.raw_score >= STRONG_PILLAR_MIN]
    weak = [p.label for p in present if p.raw_score < WEAK_PILLAR_MAX]
    if strong:
        text += f" Points forts : {', '.join(strong)}."
    if weak:
        text += f" Points faibles : {', '.join(weak)}."
    return text


def build_drivers(pillars: list[Pillar]) -> list[ScoreDriver]:
    """Pillars pulling the score up or down, strongest effect first."""
    drivers = []
    for p in pillars:
        if not p.has_data:
            continue
        if p.raw_score >= STRONG_PILLAR_MIN:
            drivers.append(ScoreDriver(pillar=p.key, label=p.label, direction="up", raw_score=p.raw_score))
        elif p.raw_score < WEAK_PILLAR_MAX:
            drivers.append(ScoreDriver(pillar=p.key, label=p.label, direction="down", raw_score=p.raw_score))
    drivers.sort(key=lambda d: -abs(d.raw_score - 50))
    return drivers


def build_recommendations(pillars: list[Pillar], blockers: list[str]) -> list[str]:
    """Follow-ups ordered by urgency: blockers, then actions of the weakest pillars."""
    recommendations: list[str] = []
    if blockers:
        recommendations.append(f"Renseigner en priorité : {', '.join(blockers)}")
    for p in sorted(pillars, key=lambda p: p.raw_score):
        for action in p.actions:
            if action not in recommendations:
                recommendations.append(action)
    return recommendations[:MAX_RECOMMENDATIONS]


def compute_smart_score(
    op: OperationSummary,
    profile: ScoreProfile | None = None,
    max_missing_penalty: int | None = None,
) -> SmartScoreResult:
    """Score an operation.

    Args:
        op: Canonical operation
        profile: Score profile (defaults to the operation's own with the
            configured pillar set)
        max_missing_penalty: Cap on the missing-data penalty (defaults to
            settings.max_missing_penalty)

    Returns:
        SmartScoreResult; identical input gives an identical result
    """
    profile = profile or resolve_profile(op)
    pillars = score_pillars(op, profile)
    missing = compute_missing(op, profile)
    penalties, penalty_total = compute_missing_penalties(missing, profile, cap=max_missing_penalty)

    raw = aggregate_score(pillars)
    has_data = raw is not None
    raw_score = round(raw) if has_data else 0
    # The penalty can only take back points the pillars earned
    penalty_total = min(penalty_total, raw_score)
    score = max(0, min(100, raw_score - penalty_total))

    grade, grade_label = grade_for(score)
    level = verdict_level_for(score, has_data)
    blockers = [item.label for item in missing if item.severity == "blocker"]

    result = SmartScoreResult(
        score=score,
        grade=grade,
        grade_label=grade_label,
        verdict=build_verdict(score, grade, grade_label, level, pillars),
        verdict_level=level,
        rationale=build_rationale(score, penalty_total, pillars),
        profile=profile.name,
        pillar_set=profile.pillar_set,
        pillars=pillars,
        missing=missing,
        missing_penalties=penalties,
        total_missing_penalty=penalty_total,
        blockers=blockers,
        drivers=build_drivers(pillars),
        recommendations=build_recommendations(pillars, blockers),
        engine_version=ENGINE_VERSION,
    )
    log.info(
        "smart_score_computed",
        profile=profile.name,
        score=score,
        grade=grade,
        verdict_level=level,
        blockers=len(blockers),
    )
    return result


def explain_verdict(result: SmartScoreResult) -> str:
    """Multi-line explanation of a SmartScore for the committee minutes."""
    lines = [result.verdict, result.rationale, ""]
    for p in result.pillars:
        if p.has_data:
            line = f"- {p.label} : {p.raw_score:.0f}/100 ({p.points}/{p.max_points} pts)"
            if p.reasons:
                line += f" : {'; '.join(p.reasons)}"
        else:
            line = f"- {p.label} : N/A (0/{p.max_points} pts)"
        lines.append(line)
    if result.blockers:
        lines.append("")
        lines.append(f"Bloquants : {', '.join(result.blockers)}")
    if result.recommendations:
        lines.append("")
        lines.append("Recommandations :")
        lines.extend(f"- {r}" for r in result.recommendations)
    return "\n".join(lines)
