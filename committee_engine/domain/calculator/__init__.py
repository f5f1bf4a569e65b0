"""Pillar formulas, one assessor per scoring dimension."""

from .pillars import PILLAR_ASSESSORS, PillarAssessment

__all__ = ["PILLAR_ASSESSORS", "PillarAssessment"]
