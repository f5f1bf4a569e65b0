"""Pytest fixtures for committee_engine tests."""

import os
import sys

import pytest

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from committee_engine.core.settings import EngineSettings


@pytest.fixture
def settings():
    """Default settings, isolated from the environment."""
    return EngineSettings(
        _env_file=None,
        pillar_set="full",
        default_profile="particulier",
        max_missing_penalty=40,
        acceptance_top_n=None,
        max_collection_items=200,
    )


@pytest.fixture
def rental_operation():
    """Well-documented buy-to-let operation of a private borrower."""
    return {
        "meta": {"profile": "particulier", "dossierLabel": "Dossier Martin"},
        "project": {
            "label": "T3 Lyon 7e",
            "surfaceM2": 65,
            "dpe": "C",
            "condition": "bon état",
            "ageCategory": "récent",
            "estimatedValue": 320000,
        },
        "budget": {
            "purchasePrice": 280000,
            "notaryFees": 21000,
            "worksBudget": 9000,
            "equity": 110000,
        },
        "financing": {"loanAmount": 120000, "loanDurationMonths": 240, "interestRate": 3.5},
        "revenues": {"strategy": "location", "rentAnnual": 21600, "occupancyRate": 95},
        "market": {
            "dvf": {"prixM2Median": 5200, "nbTransactions": 64, "evolutionPct": 2.5},
            "insee": {"population": 522000, "revenuMedian": 26500, "tauxChomage": 8.1},
            "bpe": {"total": 140},
            "transport": {"nbStations": 4},
        },
        "risks": {"geo": {"score": 82, "nbRisques": 1}},
        "guarantees": {
            "items": [
                {"type": "hypotheque", "label": "Hypothèque 1er rang", "amount": 260000},
                {"type": "caution", "label": "Caution solidaire", "amount": 50000},
            ]
        },
        "documents": {"completenessPct": 90},
        "calendar": {"acquisitionDate": "2026-03-01"},
    }


@pytest.fixture
def distressed_operation():
    """Over-leveraged operation whose income does not cover the debt."""
    return {
        "kpis": {"dscr": 0.85, "ltv": 85},
        "budget": {"totalCost": 300000},
        "missing": [{"severity": "blocker"}],
    }


@pytest.fixture
def developer_operation():
    """Property developer operation (promoteur) with a resale strategy."""
    return {
        "meta": {"profile": "promoteur"},
        "project": {"label": "4 maisons Bordeaux", "surfaceM2": 420, "lots": 4},
        "budget": {
            "purchasePrice": 600000,
            "worksBudget": 850000,
            "softCosts": 90000,
            "contingency": 60000,
            "totalCost": 1650000,
            "equity": 330000,
        },
        "financing": {"loanAmount": 1200000, "loanDurationMonths": 24, "interestRate": 4.8},
        "revenues": {
            "strategy": "revente",
            "exitValue": 2100000,
            "scenarios": {
                "base": {"exitValue": 2100000, "margin": 27.3},
                "stress": {"exitValue": 1800000, "margin": 9.1},
            },
        },
        "marketStudy": {
            "dvf": {"price_median_eur_m2": "4 900", "transactions_count": 38},
            "absorptionMonths": 9,
        },
        "risques": {"score_global": 65, "risks": [{"label": "Retrait-gonflement des argiles"}]},
        "calendar": {"worksDurationMonths": 18},
    }
