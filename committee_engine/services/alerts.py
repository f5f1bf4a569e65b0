"""Operation alerts raised for the committee dashboard."""

from __future__ import annotations

from committee_engine.core.thresholds import WEAK_PILLAR_MAX
from committee_engine.domain.models import OperationAlert, OperationSummary, SmartScoreResult


def compute_alerts(op: OperationSummary, result: SmartScoreResult) -> list[OperationAlert]:
    """Critical alerts first, then warnings, then information; ids are sequential."""
    pending: list[tuple[str, str, str, str | None]] = []
    k = op.kpis

    for label in result.blockers:
        pending.append(("critical", "Donnée bloquante manquante", f"{label} doit être fourni avant le comité.", None))
    if k.dscr is not None and k.dscr < 1.0:
        pending.append(("critical", "Couverture insuffisante", f"DSCR de {k.dscr:.2f} : les revenus ne couvrent pas la dette.", "ratios"))
    if k.ltv is not None and k.ltv > 90:
        pending.append(("critical", "Levier excessif", f"LTV de {k.ltv:.0f} % au-delà de 90 %.", "ratios"))
    if k.margin is not None and k.margin < 0:
        pending.append(("critical", "Marge négative", f"Marge prévisionnelle de {k.margin:.1f} %.", "ratios"))
    if k.dsti is not None and k.dsti > 45:
        pending.append(("warn", "Endettement élevé", f"Taux d'endettement de {k.dsti:.0f} % au-delà de 45 %.", "ratios"))

    for p in result.pillars:
        if p.has_data and p.raw_score < WEAK_PILLAR_MAX:
            detail = "; ".join(p.reasons) or "score faible"
            pending.append(("warn", f"Pilier fragile : {p.label}", f"{p.raw_score:.0f}/100 ({detail}).", p.key))

    if result.verdict_level == "DONNEES_INSUFFISANTES":
        pending.append(("info", "Données insuffisantes", "Aucun pilier ne dispose de données exploitables.", None))

    order = {"critical": 0, "warn": 1, "info": 2}
    pending.sort(key=lambda a: order[a[0]])
    return [
        OperationAlert(id=f"alert-{i}", severity=severity, title=title, message=message, pillar=pillar)
        for i, (severity, title, message, pillar) in enumerate(pending, start=1)
    ]
