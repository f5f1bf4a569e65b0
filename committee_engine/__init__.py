"""
committee_engine - Credit-committee decision engine for real-estate financing

Turns a partially-complete, heterogeneously-shaped operation summary into a
committee-ready assessment: a 0-100 SmartScore with grade and verdict, three
decision lenses, an acceptance estimate, a risk/return classification and
stress-tested variants.

Modules:
    - core: Logging, exceptions, settings, thresholds and loan maths
    - domain: Pydantic value objects and per-profile pillar configuration
    - services: Normalizer, scorers, decision builders and the pipeline
"""

__version__ = "1.4.0"

ENGINE_VERSION = f"committee-engine/{__version__}"
