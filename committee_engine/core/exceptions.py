"""Custom exceptions for committee_engine.

Malformed operation data never raises: the normalizer degrades it to absent
fields. These types are reserved for programming invariants and configuration.
"""

from __future__ import annotations

from typing import Any


class CommitteeEngineError(Exception):
    """Base exception for all committee_engine errors."""
    pass


# --- Invariant Errors ---

class InvariantViolationError(CommitteeEngineError):
    """An internal invariant of the scoring model does not hold."""
    pass


class InvalidWeightsError(InvariantViolationError, ValueError):
    """Pillar weights are incomplete or do not sum to the expected total."""

    def __init__(self, profile: str, reason: str):
        self.profile = profile
        self.reason = reason
        super().__init__(f"Invalid weights for profile '{profile}': {reason}")


class InvalidParameterError(CommitteeEngineError):
    """Invalid parameter value provided."""

    def __init__(self, param_name: str, value: Any, reason: str = ""):
        self.param_name = param_name
        self.value = value
        self.reason = reason
        msg = f"Invalid parameter '{param_name}': {value}"
        if reason:
            msg += f" - {reason}"
        super().__init__(msg)


# --- Configuration Errors ---

class ConfigurationError(CommitteeEngineError):
    """Error in engine configuration."""
    pass
