"""Domain layer: value objects and score profiles."""

from .profiles import FIELD_LABELS, PillarConfig, ScoreProfile, get_score_profile

__all__ = ["FIELD_LABELS", "PillarConfig", "ScoreProfile", "get_score_profile"]
