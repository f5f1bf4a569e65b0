"""Shared pydantic configuration for engine value objects."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

Profile = Literal["particulier", "marchand", "promoteur", "entreprise"]
Severity = Literal["blocker", "warn", "info"]
RiskLevel = Literal["faible", "moyen", "élevé", "inconnu"]


class EngineModel(BaseModel):
    """Immutable model with snake_case attributes and camelCase JSON keys.

    Dump with ``model_dump(by_alias=True)`` to get the wire names
    (``rawScore``, ``hasData``...). Both names are accepted on input.
    """

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "frozen": True,
        "allow_inf_nan": False,
        "extra": "ignore",
    }
