"""Input normalizer.

Coerces arbitrary, partial operation data (camelCase or snake_case keys,
French or English source names, numbers as strings, objects where scalars are
expected) into a canonical OperationSummary. Malformed data never raises: a
field that cannot be read is left absent.
"""

from __future__ import annotations

import math
import re
import unicodedata
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from committee_engine.core.exceptions import InvariantViolationError
from committee_engine.core.financial import (
    calculate_dscr,
    calculate_monthly_payment,
    ratio_pct,
    round_or_none,
)
from committee_engine.core.logging import get_logger
from committee_engine.core.settings import EngineSettings, get_settings
from committee_engine.core.thresholds import PROFILE_WEIGHTS
from committee_engine.domain.models import OperationSummary

log = get_logger(__name__)

_REJECTED_STRINGS = frozenset({"[object Object]", "NaN"})
_STRING_PROBE_KEYS = ("name", "label", "value", "title", "code", "id")
_NUMBER_PROBE_KEYS = ("count", "total", "value", "n", "score", "nombre")
_MAX_DEPTH = 4
_WHITESPACE = re.compile(r"\s+")
_DPE_LETTER = re.compile(r"^[A-Ga-g](\b|$)")

_PROFILE_ALIASES = {
    "particulier": "particulier",
    "individual": "particulier",
    "personne_physique": "particulier",
    "marchand": "marchand",
    "marchand_de_biens": "marchand",
    "mdb": "marchand",
    "promoteur": "promoteur",
    "promotion": "promoteur",
    "developer": "promoteur",
    "entreprise": "entreprise",
    "company": "entreprise",
    "sci": "entreprise",
    "professionnel": "entreprise",
}

_MARKET_SOURCES = ("market", "marketStudy", "market_study", "etudeMarche", "marche")
_RISK_SOURCES = ("risks", "risques", "risksRefresh", "riskStudy", "georisques")


# --- Primitive extractors ---

def _to_float(value: int | float) -> float | None:
    """Finite float of a number, or None (NaN, infinity, or an int past the float range)."""
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and _to_float(value) is not None



def _format_number(value: int | float) -> str:
    if isinstance(value, int):
        return str(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def safe_string(value: Any, fallback: str | None = None, _depth: int = 0) -> str | None:
    """Extract a trimmed, human-readable string from any value.

    Args:
        value: String, number, list or mapping
        fallback: Returned when nothing readable is found

    Returns:
        Non-empty string or fallback
    """
    if value is None or isinstance(value, bool):
        return fallback

    if isinstance(value, str):
        text = value.strip()
        if not text or text in _REJECTED_STRINGS:
            return fallback
        return text

    if isinstance(value, (int, float)):
        return _format_number(value) if _to_float(value) is not None else fallback

    if _depth >= _MAX_DEPTH:
        return fallback

    if isinstance(value, Mapping):
        for key in _STRING_PROBE_KEYS:
            text = safe_string(value.get(key), None, _depth + 1)
            if text:
                return text
        for item in value.values():
            if isinstance(item, str):
                text = safe_string(item)
                if text:
                    return text
        for item in value.values():
            if _is_number(item):
                return _format_number(item)
        return fallback

    if isinstance(value, (list, tuple)):
        parts = [safe_string(item, None, _depth + 1) for item in value]
        joined = ", ".join(part for part in parts if part)
        return joined or fallback

    return fallback


def safe_number(value: Any, _depth: int = 0) -> float | None:
    """Extract a finite float from any value, or None.

    Accepts numbers, numeric strings ("1 250,5", "12 %") and mappings probed
    for count/total/value/n/score/nombre. Never returns NaN or infinity.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        return _to_float(value)

    if isinstance(value, str):
        text = _WHITESPACE.sub("", value).replace(",", ".").rstrip("%€")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
        return number if math.isfinite(number) else None

    if isinstance(value, Mapping) and _depth < _MAX_DEPTH:
        for key in _NUMBER_PROBE_KEYS:
            number = safe_number(value.get(key), _depth + 1)
            if number is not None:
                return number
        for item in value.values():
            if _is_number(item):
                return _to_float(item)

    return None


def dig(obj: Any, *keys: str | int) -> Any:
    """Safe nested lookup; None as soon as an intermediate is not a container."""
    current = obj
    for key in keys:
        if isinstance(current, Mapping):
            current = current.get(key)
        elif isinstance(key, int) and isinstance(current, (list, tuple)) and -len(current) <= key < len(current):
            current = current[key]
        else:
            return None
        if current is None:
            return None
    return current


def merge_missing_values(primary: Any, secondary: Any) -> Any:
    """Fill gaps of `primary` from `secondary` without overwriting values.

    Mappings are merged key by key; a key counts as a gap when it is absent,
    None, an empty string or an empty list.
    """
    if not isinstance(primary, Mapping):
        return dict(secondary) if isinstance(secondary, Mapping) and _is_gap(primary) else primary
    if not isinstance(secondary, Mapping):
        return dict(primary)

    merged = dict(primary)
    for key, value in secondary.items():
        current = merged.get(key)
        if _is_gap(current):
            merged[key] = value
        elif isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_missing_values(current, value)
    return merged


def _is_gap(value: Any) -> bool:
    return value is None or value == "" or (isinstance(value, (list, tuple)) and not value)


def _first_present(obj: Mapping[str, Any], *keys: str) -> Any:
    """First value under `keys` that is not a gap; 0 and False count as present."""
    for key in keys:
        value = obj.get(key)
        if not _is_gap(value):
            return value
    return None


def _path(obj: Any, path: str) -> Any:
    return dig(obj, *path.split("."))


def _pick_number(obj: Any, *paths: str) -> float | None:
    for path in paths:
        number = safe_number(_path(obj, path))
        if number is not None:
            return number
    return None


def _pick_string(obj: Any, *paths: str) -> str | None:
    for path in paths:
        text = safe_string(_path(obj, path))
        if text:
            return text
    return None


def _pick_list(obj: Any, limit: int, *paths: str) -> list[Any]:
    for path in paths:
        value = _path(obj, path)
        if isinstance(value, (list, tuple)) and value:
            return list(value[:limit])
    return []


def _merged(data: Mapping[str, Any], *keys: str) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    for key in keys:
        block = data.get(key)
        if isinstance(block, Mapping):
            merged = merge_missing_values(merged, block)
    return merged


def _fold(text: str) -> str:
    """Lowercase and strip accents for keyword matching."""
    decomposed = unicodedata.normalize("NFKD", text.lower())
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def _as_percent(value: float | None, ratio_ceiling: float) -> float | None:
    """Scale a ratio-shaped value (0 < v <= ceiling) to percent."""
    if value is not None and 0 < value <= ratio_ceiling:
        return round(value * 100.0, 6)
    return value


def _finite(value: float | None) -> float | None:
    return value if value is None or math.isfinite(value) else None


def _drop_non_finite(value: Any) -> Any:
    """Replace overflowed floats anywhere in the assembled sections by None."""
    if isinstance(value, float):
        return _finite(value)
    if isinstance(value, dict):
        return {k: _drop_non_finite(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_drop_non_finite(v) for v in value]
    return value


def _non_negative(value: float | None) -> float | None:
    return value if value is not None and value >= 0 else None


def risk_level(value: Any) -> str:
    """Map a free-form risk level to faible/moyen/élevé/inconnu."""
    if not _is_number(value):
        folded = _fold(safe_string(value, ""))
        if any(t in folded for t in ("eleve", "high", "fort", "critique", "critical", "severe")):
            return "élevé"
        if any(t in folded for t in ("moyen", "moder", "medium")):
            return "moyen"
        if any(t in folded for t in ("faible", "low", "nul", "aucun", "none", "minor")):
            return "faible"

    number = safe_number(value)
    if number is None:
        return "inconnu"
    # Numeric levels are 0-100 safety scores
    return "faible" if number >= 70 else "moyen" if number >= 40 else "élevé"


# --- Sections ---

def _normalize_profile(data: Mapping[str, Any], settings: EngineSettings) -> str:
    text = _pick_string(data, "meta.profile", "profile", "meta.profil", "profil", "borrowerProfile")
    if text:
        key = re.sub(r"[\s\-]+", "_", _fold(text))
        if key in _PROFILE_ALIASES:
            return _PROFILE_ALIASES[key]
        log.debug("unknown_profile", received=text, default=settings.default_profile)
    if settings.default_profile in PROFILE_WEIGHTS:
        return settings.default_profile
    return "particulier"


def _meta(data: Mapping[str, Any], settings: EngineSettings) -> dict[str, Any]:
    return {
        "profile": _normalize_profile(data, settings),
        "dossier_label": _pick_string(data, "meta.dossierLabel", "meta.label", "dossierLabel", "dossier.label", "dossier.name"),
        "source": _pick_string(data, "meta.source", "source"),
    }


def _project(data: Mapping[str, Any]) -> dict[str, Any]:
    block = _merged(data, "project", "projet", "property", "bien")
    dpe = _pick_string(block, "dpe", "dpeClass", "classeEnergie")
    if dpe and _DPE_LETTER.match(dpe):
        dpe = dpe[0].upper()
    return {
        "label": _pick_string(block, "label", "name", "title", "nom") or _pick_string(data, "projectLabel"),
        "operation_type": _pick_string(block, "operationType", "operation_type", "typeOperation", "type"),
        "asset_type": _pick_string(block, "assetType", "asset_type", "typeBien", "propertyType"),
        "address": _pick_string(block, "address", "adresse", "location.address"),
        "commune_insee": _pick_string(block, "communeInsee", "commune_insee", "codeInsee", "code_insee", "insee"),
        "departement": _pick_string(block, "departement", "department", "codeDepartement"),
        "surface_m2": _non_negative(_pick_number(block, "surfaceM2", "surface_m2", "surface", "surfaceHabitable")),
        "lots": _non_negative(_pick_number(block, "lots", "nbLots", "nombreLots")),
        "dpe": dpe,
        "age_category": _pick_string(block, "ageCategory", "age_category", "age"),
        "condition": _pick_string(block, "condition", "etat", "state"),
        "estimated_value": _pick_number(block, "estimatedValue", "estimated_value", "valeurEstimee", "value"),
    }


def _budget(data: Mapping[str, Any]) -> dict[str, Any]:
    block = _merged(data, "budget", "costs", "couts")
    return {
        "purchase_price": _pick_number(block, "purchasePrice", "purchase_price", "prixAchat", "prix_achat", "acquisitionPrice"),
        "notary_fees": _pick_number(block, "notaryFees", "notary_fees", "fraisNotaire", "frais_notaire"),
        "works_budget": _pick_number(block, "worksBudget", "works_budget", "budgetTravaux", "travaux", "works"),
        "soft_costs": _pick_number(block, "softCosts", "soft_costs", "fraisAnnexes", "honoraires"),
        "holding_costs": _pick_number(block, "holdingCosts", "holding_costs", "fraisPortage", "portage"),
        "contingency": _pick_number(block, "contingency", "aleas", "provisionAleas"),
        "total_cost": _pick_number(block, "totalCost", "total_cost", "coutTotal", "cout_total", "total"),
        "equity": _pick_number(block, "equity", "apport", "fondsPropres"),
        "cost_per_sqm": _pick_number(block, "costPerSqm", "cost_per_sqm", "coutM2", "prixM2"),
    }


def _financing(data: Mapping[str, Any]) -> dict[str, Any]:
    block = _merged(data, "financing", "financement", "loan", "pret")
    duration = _pick_number(block, "loanDurationMonths", "loan_duration_months", "durationMonths", "dureeMois", "duree_mois")
    if duration is None:
        years = _pick_number(block, "durationYears", "dureeAnnees", "duree_annees")
        duration = years * 12 if years is not None else None
    rate = _pick_number(block, "interestRate", "interest_rate", "rate", "taux", "tauxNominal")
    if rate is not None and 0 < rate < 0.25:
        rate = round(rate * 100.0, 6)
    return {
        "loan_amount": _pick_number(block, "loanAmount", "loan_amount", "montantPret", "montant", "amount", "principal"),
        "loan_duration_months": _non_negative(duration),
        "loan_type": _pick_string(block, "loanType", "loan_type", "typePret", "type"),
        "interest_rate": rate,
        "equity": _pick_number(block, "equity", "apport"),
        "monthly_payment": _pick_number(block, "monthlyPayment", "monthly_payment", "mensualite"),
    }


def _scenario_values(block: Any) -> dict[str, Any] | None:
    if not isinstance(block, Mapping):
        return None
    values = {
        "exit_value": _pick_number(block, "exitValue", "exit_value", "prixSortie"),
        "margin": _pick_number(block, "margin", "marge"),
        "roi": _pick_number(block, "roi"),
        "cashflow": _pick_number(block, "cashflow", "cashFlow", "cash_flow"),
    }
    return values if any(v is not None for v in values.values()) else None


def _revenues(data: Mapping[str, Any]) -> dict[str, Any]:
    block = _merged(data, "revenues", "revenus", "income")
    rent = _pick_number(block, "rentAnnual", "rent_annual", "loyersAnnuels", "loyerAnnuel")
    if rent is None:
        monthly = _pick_number(block, "rentMonthly", "loyerMensuel", "loyersMensuels")
        rent = monthly * 12 if monthly is not None else None
    scenarios = block.get("scenarios") if isinstance(block.get("scenarios"), Mapping) else {}
    return {
        "strategy": _pick_string(block, "strategy", "strategie", "exitStrategy"),
        "exit_value": _pick_number(block, "exitValue", "exit_value", "prixSortie", "prixRevente", "resalePrice"),
        "rent_annual": rent,
        "occupancy_rate": _as_percent(_pick_number(block, "occupancyRate", "occupancy_rate", "occupancy", "tauxOccupation"), 1.0),
        "revenue_total": _pick_number(block, "revenueTotal", "revenue_total", "chiffreAffaires", "caTotal"),
        "scenarios": {
            "base": _scenario_values(scenarios.get("base")),
            "upside": _scenario_values(scenarios.get("upside") or scenarios.get("optimiste")),
            "stress": _scenario_values(scenarios.get("stress") or scenarios.get("pessimiste")),
        },
    }


def _sentiment(value: Any) -> str:
    text = _fold(safe_string(value, ""))
    if any(t in text for t in ("posit", "up", "good", "favor")):
        return "positive"
    if any(t in text for t in ("negat", "down", "bad", "defavor")):
        return "negative"
    return "neutral"


def _market(data: Mapping[str, Any], limit: int) -> dict[str, Any]:
    block = _merged(data, *_MARKET_SOURCES)
    comps = _pick_number(
        block, "compsCount", "comps_count", "nbTransactions", "dvf.nbTransactions", "dvf.count",
        "dvf.transactions_count", "dvf.stats.transactions_count",
    )
    if comps is None:
        transactions = _path(block, "dvf.transactions") or _path(block, "comparables")
        if isinstance(transactions, (list, tuple)):
            comps = float(len(transactions))

    insights = []
    for item in _pick_list(block, limit, "insights"):
        if isinstance(item, Mapping):
            label = safe_string(item.get("label") or item.get("title") or item.get("text"))
        else:
            label = safe_string(item)
        if not label:
            continue
        insights.append({
            "label": label,
            "value": safe_string(dig(item, "value")),
            "sentiment": _sentiment(dig(item, "sentiment") or dig(item, "tone") or dig(item, "trend")),
        })

    return {
        "price_per_sqm": _pick_number(
            block, "pricePerSqm", "price_per_sqm", "prixM2Median", "dvf.prixM2Median",
            "dvf.price_median_eur_m2", "dvf.prix_m2_median", "dvf.stats.price_median_eur_m2",
            "dvf.stats.prixM2Median", "dvf.summary.median_price_m2", "prixM2",
        ),
        "comps_count": _non_negative(comps),
        "demand_index": _pick_number(block, "demandIndex", "demand_index", "indiceDemande", "tension"),
        "absorption_months": _pick_number(block, "absorptionMonths", "absorption_months", "delaiEcoulementMois"),
        "evolution_pct": _pick_number(
            block, "evolutionPct", "evolution_pct", "dvf.evolutionPct", "dvf.evolution_pct",
            "dvf.stats.evolution_pct", "evolutionPrix",
        ),
        "population_commune": _pick_number(block, "populationCommune", "population_commune", "insee.population", "population"),
        "revenue_median": _pick_number(
            block, "revenueMedian", "revenue_median", "insee.revenuMedian", "insee.revenu_median",
            "insee.medianIncome", "revenuMedian",
        ),
        "unemployment_rate": _pick_number(
            block, "unemploymentRate", "unemployment_rate", "insee.tauxChomage", "insee.unemploymentRate", "tauxChomage",
        ),
        "equipment_count": _pick_number(block, "equipmentCount", "equipment_count", "bpe.nbEquipements", "bpe", "nbEquipements"),
        "transport_stations": _pick_number(
            block, "transportStations", "transport_stations", "transport.nbStations", "transport.stations", "transport", "nbStations",
        ),
        "sources": [s for s in (safe_string(x) for x in _pick_list(block, limit, "sources")) if s],
        "insights": insights,
    }


def _risk_item(entry: Any) -> dict[str, Any] | None:
    if isinstance(entry, Mapping):
        label = safe_string(entry.get("label") or entry.get("name") or entry.get("title") or entry.get("type"))
        if not label:
            return None
        level_source = _first_present(entry, "level", "severity", "niveau", "score")
        return {
            "label": label,
            "category": safe_string(entry.get("category") or entry.get("kind") or entry.get("type")),
            "level": risk_level(level_source),
        }
    label = safe_string(entry)
    return {"label": label, "category": None, "level": "inconnu"} if label else None


def _risk_items(block: Any, limit: int, *paths: str) -> list[dict[str, Any]]:
    items = (_risk_item(entry) for entry in _pick_list(block, limit, *paths))
    return [item for item in items if item]


def _geo_flags(block: Mapping[str, Any], limit: int) -> dict[str, Any] | None:
    listed = _pick_list(block, limit, "risks", "items", "risques")
    labels = " ".join(_fold(safe_string(item, "")) for item in listed)
    score = _pick_number(block, "score", "score_global", "scoreGlobal", "riskScore")
    count = _pick_number(block, "riskCount", "nbRisques", "nb_risques", "count")
    if count is None and listed:
        count = float(len(listed))
    has_flood = bool(block.get("hasFlood") or block.get("hasInondation") or block.get("inondation")) or any(
        t in labels for t in ("inond", "flood", "submersion")
    )
    has_seismic = bool(block.get("hasSeismic") or block.get("hasSismique") or block.get("sismique")) or any(
        t in labels for t in ("sism", "seism")
    )
    label = safe_string(block.get("label"))
    if score is None and count is None and not has_flood and not has_seismic and not label:
        return None
    if label is None and score is not None:
        label = "Risque faible" if score >= 70 else "Risque modéré" if score >= 40 else "Risque élevé"
    return {
        "score": score,
        "risk_count": _non_negative(count),
        "has_flood": has_flood,
        "has_seismic": has_seismic,
        "label": label,
    }


def _risks(data: Mapping[str, Any], limit: int) -> dict[str, Any]:
    block = _merged(data, *_RISK_SOURCES)
    geo_source = next(
        (block[k] for k in ("geo", "georisques", "natural", "naturels") if not _is_gap(block.get(k))),
        None,
    )
    geo: Any = None
    if isinstance(geo_source, (list, tuple)):
        geo = _risk_items({"geo": geo_source}, limit, "geo")
    elif isinstance(geo_source, Mapping):
        geo = _geo_flags(geo_source, limit)
    elif block:
        geo = _geo_flags(block, limit)

    global_level = risk_level(dig(block, "globalLevel") or dig(block, "global_level") or dig(block, "niveauGlobal"))
    return {
        "geo": geo or None,
        "urbanism": _risk_items(block, limit, "urbanism", "urbanisme", "plu"),
        "execution": _risk_items(block, limit, "execution", "chantier"),
        "environmental": _risk_items(block, limit, "environmental", "environnement"),
        "global_level": None if global_level == "inconnu" else global_level,
        "sources": [s for s in (safe_string(x) for x in _pick_list(block, limit, "sources")) if s],
    }


def _kpis(data: Mapping[str, Any]) -> dict[str, Any]:
    block = _merged(data, "kpis", "ratios", "indicators")
    return {
        "ltv": _as_percent(_pick_number(block, "ltv", "LTV"), 2.0),
        "ltc": _as_percent(_pick_number(block, "ltc", "LTC"), 2.0),
        "margin": _pick_number(block, "margin", "marge", "margeBrute", "margin_pct"),
        "margin_net": _pick_number(block, "marginNet", "margin_net", "margeNette"),
        "roi": _pick_number(block, "roi", "ROI"),
        "irr": _pick_number(block, "irr", "tri", "TRI"),
        "dscr": _non_negative(_pick_number(block, "dscr", "DSCR")),
        "icr": _pick_number(block, "icr", "ICR"),
        "yield_gross": _pick_number(block, "yieldGross", "yield_gross", "rendementBrut", "grossYield", "yield"),
        "yield_net": _pick_number(block, "yieldNet", "yield_net", "rendementNet"),
        "dsti": _as_percent(_pick_number(block, "dsti", "tauxEndettement"), 2.0),
        "monthly_payment": _pick_number(block, "monthlyPayment", "monthly_payment", "mensualite"),
    }


def _guarantee_item(entry: Any) -> dict[str, Any] | None:
    if isinstance(entry, Mapping):
        kind = safe_string(entry.get("type") or entry.get("kind") or entry.get("nature"))
        return {
            "type": kind,
            "label": safe_string(entry.get("label") or entry.get("name"), kind or "Garantie"),
            "amount": safe_number(_first_present(entry, "amount", "montant", "value")),
        }
    label = safe_string(entry)
    return {"type": None, "label": label, "amount": None} if label else None


def _guarantees(data: Mapping[str, Any], limit: int) -> dict[str, Any]:
    source = data.get("guarantees") or data.get("garanties") or dig(data, "dossier", "garanties")
    block = {"items": source} if isinstance(source, (list, tuple)) else source if isinstance(source, Mapping) else {}
    items = [i for i in (_guarantee_item(e) for e in _pick_list(block, limit, "items", "list")) if i]
    coverage = _pick_number(block, "coverageTotal", "coverage_total", "montantTotal", "total")
    amounts = [i["amount"] for i in items if i["amount"] is not None]
    if coverage is None and amounts:
        coverage = _finite(sum(amounts))
    return {"coverage_total": coverage, "items": items}


_DOC_STATUSES = (
    ("validated", ("valid",)),
    ("refused", ("refus", "reject")),
    ("received", ("recu", "received", "ok", "provided", "fourni")),
)


def _doc_status(value: Any) -> str:
    text = _fold(safe_string(value, ""))
    for status, terms in _DOC_STATUSES:
        if any(t in text for t in terms):
            return status
    return "pending"


def _documents(data: Mapping[str, Any], limit: int) -> dict[str, Any]:
    source = data.get("documents") or dig(data, "dossier", "documents")
    block = {"items": source} if isinstance(source, (list, tuple)) else source if isinstance(source, Mapping) else {}
    items = []
    for entry in _pick_list(block, limit, "items", "list"):
        if isinstance(entry, Mapping):
            label = safe_string(entry.get("label") or entry.get("name") or entry.get("type"))
            status = _doc_status(entry.get("status") or entry.get("statut"))
        else:
            label, status = safe_string(entry), "received"
        if label:
            items.append({"label": label, "status": status})

    completeness = _as_percent(
        _pick_number(block, "completenessPct", "completeness_pct", "completeness", "completude"), 1.0
    )
    if completeness is None and items:
        provided = sum(1 for i in items if i["status"] in ("received", "validated"))
        completeness = round(provided / len(items) * 100.0, 2)
    return {"completeness_pct": completeness, "items": items}


def _calendar(data: Mapping[str, Any]) -> dict[str, Any]:
    block = _merged(data, "calendar", "calendrier", "planning")
    return {
        "acquisition_date": _pick_string(block, "acquisitionDate", "acquisition_date", "dateAcquisition"),
        "start_works_date": _pick_string(block, "startWorksDate", "start_works_date", "dateDebutTravaux"),
        "works_duration_months": _non_negative(
            _pick_number(block, "worksDurationMonths", "works_duration_months", "dureeTravauxMois", "dureeTravaux")
        ),
    }


_SEVERITY_ALIASES = (
    ("blocker", ("block", "bloqu", "critical", "critique")),
    ("info", ("info", "optional", "optionnel")),
    ("warn", ("warn", "attention", "important")),
)


def _severity(value: Any) -> str:
    text = _fold(safe_string(value, ""))
    for severity, terms in _SEVERITY_ALIASES:
        if any(t in text for t in terms):
            return severity
    return "warn"


def _missing(data: Mapping[str, Any], limit: int) -> list[dict[str, Any]]:
    items = []
    for index, entry in enumerate(_pick_list(data, limit, "missing", "missingData", "manquants")):
        if isinstance(entry, Mapping):
            key = safe_string(entry.get("key") or entry.get("field") or entry.get("id"))
            label = safe_string(entry.get("label") or entry.get("name"), key or "Donnée manquante")
            key = key or f"missing.{index}"
            severity = _severity(entry.get("severity") or entry.get("level"))
        else:
            label = safe_string(entry)
            if not label:
                continue
            key, severity = label, "warn"
        items.append({"key": key, "label": label, "severity": severity})
    return items


# --- Derived metrics ---

def _derive_metrics(sections: dict[str, dict[str, Any]], settings: EngineSettings) -> None:
    """Fill KPIs the dossier did not state; explicit values always win."""
    budget, financing = sections["budget"], sections["financing"]
    revenues, kpis, project = sections["revenues"], sections["kpis"], sections["project"]

    if budget["total_cost"] is None and budget["purchase_price"] is not None:
        lines = ("purchase_price", "notary_fees", "works_budget", "soft_costs", "holding_costs", "contingency")
        budget["total_cost"] = _finite(sum(budget[k] for k in lines if budget[k] is not None))

    surface = project["surface_m2"]
    if budget["cost_per_sqm"] is None and budget["total_cost"] and surface:
        budget["cost_per_sqm"] = round_or_none(budget["total_cost"] / surface)

    if budget["equity"] is None:
        budget["equity"] = financing["equity"]
    if financing["equity"] is None:
        financing["equity"] = budget["equity"]

    loan = financing["loan_amount"]
    duration = financing["loan_duration_months"]
    if financing["monthly_payment"] is None:
        financing["monthly_payment"] = kpis["monthly_payment"]
    if financing["monthly_payment"] is None and loan and duration:
        rate = financing["interest_rate"] if financing["interest_rate"] is not None else settings.default_interest_rate_pct
        financing["monthly_payment"] = round_or_none(calculate_monthly_payment(loan, rate, int(duration)))
    if kpis["monthly_payment"] is None:
        kpis["monthly_payment"] = financing["monthly_payment"]

    value = revenues["exit_value"] or project["estimated_value"]
    if kpis["ltv"] is None:
        kpis["ltv"] = round_or_none(ratio_pct(loan, value))
    if kpis["ltc"] is None:
        kpis["ltc"] = round_or_none(ratio_pct(loan, budget["total_cost"]))
    if kpis["yield_gross"] is None:
        kpis["yield_gross"] = round_or_none(ratio_pct(revenues["rent_annual"], budget["total_cost"]))
    if kpis["margin"] is None and revenues["exit_value"] is not None and budget["total_cost"]:
        gain = revenues["exit_value"] - budget["total_cost"]
        kpis["margin"] = round_or_none(ratio_pct(gain, budget["total_cost"]))
    if kpis["dscr"] is None and revenues["rent_annual"] is not None:
        occupancy = revenues["occupancy_rate"]
        income = revenues["rent_annual"] * (occupancy / 100.0 if occupancy is not None else 1.0)
        kpis["dscr"] = _non_negative(round_or_none(calculate_dscr(income, financing["monthly_payment"])))


# --- Entry point ---

def normalize(raw: Any, settings: EngineSettings | None = None) -> OperationSummary:
    """Coerce arbitrary operation data into a canonical OperationSummary.

    Args:
        raw: Mapping in any of the accepted shapes, an OperationSummary, or
            anything else (treated as an empty operation)
        settings: Engine settings (defaults to environment)

    Returns:
        Canonical, immutable OperationSummary
    """
    if isinstance(raw, OperationSummary):
        return raw

    settings = settings or get_settings()
    if not isinstance(raw, Mapping):
        log.warning("operation_not_a_mapping", received=type(raw).__name__)
        raw = {}

    limit = settings.max_collection_items
    sections: dict[str, Any] = {
        "meta": _meta(raw, settings),
        "project": _project(raw),
        "budget": _budget(raw),
        "financing": _financing(raw),
        "revenues": _revenues(raw),
        "market": _market(raw, limit),
        "risks": _risks(raw, limit),
        "kpis": _kpis(raw),
        "guarantees": _guarantees(raw, limit),
        "documents": _documents(raw, limit),
        "calendar": _calendar(raw),
        "missing": _missing(raw, limit),
    }
    _derive_metrics(sections, settings)
    sections = _drop_non_finite(sections)

    try:
        summary = OperationSummary.model_validate(sections)
    except ValidationError as exc:
        raise InvariantViolationError(f"normalizer produced an invalid summary: {exc}") from exc

    log.debug(
        "operation_normalized",
        profile=summary.meta.profile,
        declared_missing=len(summary.missing),
        has_market=summary.market.price_per_sqm is not None,
    )
    return summary
