# pylint: disable=missing-function-docstring
"""
Tests for the record dataclasses and their camelCase document form.
"""

from restorecalc.schemas.constants import METHOD_TYPES, method_label
from restorecalc.schemas.model import (
    ContextLevels,
    LaborBreakdown,
    LaborPhase,
    RestorationModel,
    camel_case,
)


def test_camel_case():
    assert camel_case("invasive_species_pressure") == "invasiveSpeciesPressure"
    assert camel_case("ecosystem") == "ecosystem"


def test_defaults_have_all_tabs_and_constraints():
    """
    A fresh record carries all four method tabs and every known constraint,
    but no optional sections.
    """
    record = RestorationModel()
    assert list(record.method_costs) == list(METHOD_TYPES)
    assert set(record.context_variables) == {
        "fire_risk",
        "grazing_pressure",
        "invasive_species_pressure",
        "human_encroachment",
    }
    doc = record.to_dict()
    assert "laborBreakdown" not in doc
    assert "contextLevels" not in doc
    assert "invasiveSpeciesPressure" in doc["contextVariables"]


def test_document_roundtrip(complete_record):
    """
    to_dict() emits camelCase keys and from_dict() rebuilds an equal record.
    """
    complete_record.labor_breakdown = LaborBreakdown(
        implementation=LaborPhase(70, 30), hired_labor_cost_per_day=25
    )
    complete_record.context_levels = ContextLevels(fire_risk="high")
    doc = complete_record.to_dict()

    assert doc["favorableScenario"] == {
        "totalCost": 5000,
        "implementationCost": 4000,
        "maintenanceCost": 1000,
    }
    assert doc["assistanceCosts"][1]["factorShares"]["labor"] == 70
    assert doc["laborBreakdown"]["implementation"]["hiredLabor"] == 70
    assert doc["contextLevels"]["fireRisk"] == "high"
    assert RestorationModel.from_dict(doc) == complete_record


def test_unknown_context_keys_are_written_back_unchanged():
    """
    Constraint keys outside the known catalog keep their original spelling.
    """
    doc = RestorationModel().to_dict()
    doc["contextVariables"]["foo_bar"] = {"cost": 5}
    doc["contextVariables"]["customThing"] = {"cost": 1}

    record = RestorationModel.from_dict(doc)
    assert "foo_bar" in record.context_variables
    out = record.to_dict()["contextVariables"]
    assert "foo_bar" in out
    assert "fooBar" not in out
    assert "customThing" in out
    assert "fireRisk" in out
    assert RestorationModel.from_dict(record.to_dict()) == record


def test_from_dict_does_not_coerce():
    record = RestorationModel.from_dict({"favorableScenario": {"totalCost": "1000"}})
    assert record.favorable_scenario.total_cost == "1000"


def test_from_dict_keeps_only_supplied_tabs():
    """
    An absent method tab stays absent so validation can report it.
    """
    record = RestorationModel.from_dict(
        {"methodCosts": {"anr_30": {"implementationCost": 10}}}
    )
    assert list(record.method_costs) == ["anr_30"]
    assert record.method_costs["anr_30"].implementation_cost == 10


def test_from_dict_ignores_malformed_sections():
    record = RestorationModel.from_dict(
        {"selectedAssistances": "fencing", "assistanceCosts": {"name": "x"}}
    )
    assert record.selected_assistances == []
    assert record.assistance_costs == []


def test_copy_is_independent(complete_record):
    clone = complete_record.copy()
    clone.assistance_costs[0].cost = 1
    assert complete_record.assistance_costs[0].cost == 600


def test_method_label():
    assert method_label("seedling_planting") == "Seedling Planting"
    assert method_label("custom") == "custom"
