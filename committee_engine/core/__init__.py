"""Core configuration, logging, errors and loan maths."""

from .exceptions import (
    CommitteeEngineError,
    ConfigurationError,
    InvalidParameterError,
    InvalidWeightsError,
    InvariantViolationError,
)
from .financial import calculate_dscr, calculate_monthly_payment
from .logging import configure_logging, get_logger
from .settings import EngineSettings, get_settings

__all__ = [
    "calculate_monthly_payment",
    "calculate_dscr",
    "configure_logging",
    "get_logger",
    "EngineSettings",
    "get_settings",
    # Exceptions
    "CommitteeEngineError",
    "InvariantViolationError",
    "InvalidWeightsError",
    "InvalidParameterError",
    "ConfigurationError",
]
