"""Missing-data detection and penalties.

Combines the fixed taxonomy of fields each profile expects with the items the
dossier declares missing, drops declared items the data already satisfies and
prices the remainder.
"""

from __future__ import annotations

from typing import Any

from pydantic.alias_generators import to_camel

from committee_engine.core.settings import get_settings
from committee_engine.domain.models import MissingDataItem, MissingPenalty, OperationSummary
from committee_engine.domain.profiles import FIELD_LABELS, ScoreProfile
from committee_engine.services.normalizer import dig

SEVERITY_RANK = {"blocker": 2, "warn": 1, "info": 0}


def is_present(value: Any) -> bool:
    """A field counts as present unless it is None, blank or an empty collection."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, dict)):
        return bool(value)
    return True


def _lookup(document: dict[str, Any], key: str) -> Any:
    value = dig(document, *key.split("."))
    if value is None:
        value = dig(document, *(to_camel(part) for part in key.split(".")))
    return value


def compute_missing(op: OperationSummary, profile: ScoreProfile) -> list[MissingDataItem]:
    """List the data a committee still expects for this operation.

    Args:
        op: Canonical operation
        profile: Score profile providing the required fields

    Returns:
        Missing items, taxonomy first then declared items, one per key with
        the most severe severity kept
    """
    document = op.model_dump(by_alias=True)
    found: dict[str, MissingDataItem] = {}

    def keep(item: MissingDataItem) -> None:
        current = found.get(item.key)
        if current is None or SEVERITY_RANK[item.severity] > SEVERITY_RANK[current.severity]:
            found[item.key] = item

    for cfg in profile.pillars:
        for field_key in cfg.required_fields:
            if not is_present(_lookup(document, field_key)):
                keep(MissingDataItem(
                    key=field_key,
                    label=FIELD_LABELS.get(field_key, field_key),
                    severity=cfg.missing_severity,
                ))

    for item in op.missing:
        if is_present(_lookup(document, item.key)):
            continue
        keep(item)

    return list(found.values())


def compute_missing_penalties(
    items: list[MissingDataItem],
    profile: ScoreProfile,
    cap: int | None = None,
) -> tuple[list[MissingPenalty], int]:
    """Price missing items for the profile.

    Args:
        items: Missing items
        profile: Score profile providing blocker/warn penalties
        cap: Maximum total penalty (defaults to settings.max_missing_penalty)

    Returns:
        Tuple of (per-item penalties, capped total)
    """
    cap = get_settings().max_missing_penalty if cap is None else cap
    points_by_severity = {"blocker": profile.blocker_penalty, "warn": profile.warn_penalty, "info": 0}
    penalties = [
        MissingPenalty(key=i.key, label=i.label, severity=i.severity, points=points_by_severity[i.severity])
        for i in items
    ]
    total = min(sum(p.points for p in penalties), cap)
    return penalties, total
