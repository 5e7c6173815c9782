"""Catalogs and default values for the restoration cost form."""

from __future__ import annotations

from typing import Dict, Tuple

# Tolerance for unfavorable cost reconciliation (5%)
RECONCILIATION_TOLERANCE = 0.05
# Absolute tolerance for "sums to 100" and "total equals parts" checks
SUM_TOLERANCE = 0.01

DEFAULT_TIME_HORIZON = 20
TIME_HORIZON_RANGE: Tuple[int, int] = (1, 100)

# Predefined ecosystem options (free text is accepted as well)
ECOSYSTEM_OPTIONS: Tuple[str, ...] = (
    "Atlantic Forest",
    "Cerrado",
    "Amazon Rainforest",
    "Caatinga",
    "Pantanal",
    "Mangrove",
    "Pampas",
)

# (id, title) of the four baseline method tabs, in display order
METHOD_TABS: Tuple[Tuple[str, str], ...] = (
    ("natural_regeneration", "Natural Regeneration"),
    ("anr_30", "Assisted Natural Regeneration (30% enrichment)"),
    ("seed_dispersal", "Direct Seeding"),
    ("seedling_planting", "Seedling Planting"),
)
METHOD_TYPES: Tuple[str, ...] = tuple(tab_id for tab_id, _ in METHOD_TABS)

# Activities that may be required in the unfavorable scenario
ASSISTANCE_TYPES: Tuple[Tuple[str, str], ...] = (
    ("fencing", "Fencing"),
    ("firebreak", "Firebreak"),
    ("soilRecovery", "Soil recovery"),
    ("invasiveControl", "Invasive species control"),
    ("cattleManagement", "Cattle management"),
    ("enrichmentPlanting", "Enrichment planting"),
)
ASSISTANCE_IDS: Tuple[str, ...] = tuple(a_id for a_id, _ in ASSISTANCE_TYPES)

PHASES: Tuple[str, ...] = ("implementation", "maintenance", "both")

# Cost-bearing context dimensions: key -> (label, unit)
CONTEXT_CONSTRAINTS: Dict[str, Tuple[str, str]] = {
    "fire_risk": ("Firebreak / Fire Risk", "US$/ha"),
    "grazing_pressure": ("Fencing / Grazing Pressure", "US$/km"),
    "invasive_species_pressure": (
        "Weed Control / Invasive Species Pressure",
        "US$/ha",
    ),
    "human_encroachment": ("Monitoring / Human Encroachment", "US$/ha"),
}

SEVERITY_LEVELS: Tuple[str, ...] = ("low", "medium", "high")
SOIL_DEGRADATION_LEVELS: Tuple[str, ...] = ("none", "moderate", "severe")
BINARY_CONSTRAINT: Tuple[str, ...] = ("yes", "no")

# Categorical context dimensions of the simple form variant
CONTEXT_LEVEL_CHOICES: Dict[str, Tuple[str, ...]] = {
    "fire_risk": SEVERITY_LEVELS,
    "soil_degradation": SOIL_DEGRADATION_LEVELS,
    "grazing_pressure": SEVERITY_LEVELS,
    "invasive_species_pressure": SEVERITY_LEVELS,
    "human_encroachment": SEVERITY_LEVELS,
    "seed_availability_constraint": BINARY_CONSTRAINT,
}


def method_label(method_type: str) -> str:
    """Return the display title for ``method_type`` (or the id itself)."""
    return dict(METHOD_TABS).get(method_type, method_type)


def assistance_label(assistance_id: str) -> str:
    """Return the display label for ``assistance_id`` (or the id itself)."""
    return dict(ASSISTANCE_TYPES).get(assistance_id, assistance_id)


__all__ = [
    "RECONCILIATION_TOLERANCE",
    "SUM_TOLERANCE",
    "DEFAULT_TIME_HORIZON",
    "TIME_HORIZON_RANGE",
    "ECOSYSTEM_OPTIONS",
    "METHOD_TABS",
    "METHOD_TYPES",
    "ASSISTANCE_TYPES",
    "ASSISTANCE_IDS",
    "PHASES",
    "CONTEXT_CONSTRAINTS",
    "SEVERITY_LEVELS",
    "SOIL_DEGRADATION_LEVELS",
    "BINARY_CONSTRAINT",
    "CONTEXT_LEVEL_CHOICES",
    "method_label",
    "assistance_label",
]
