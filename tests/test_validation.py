# pylint: disable=missing-function-docstring
"""
Tests for the validation rules, the evaluator and the result tree.
"""

import pytest

from restorecalc.core.config import ConfigManager
from restorecalc.schemas.model import (
    AssistanceCost,
    FactorShares,
    LaborBreakdown,
    LaborPhase,
    RestorationModel,
    ScenarioCosts,
)
from restorecalc.validation import ERROR, WARNING, Invalid, Valid, validate
from restorecalc.validation.rules import MISSING, RangeRule, ShareSumRule, resolve


def _failures(result):
    """Merged failure per path, as shown next to the field."""
    return {v.path: result.at(v.path).outcome for v in result.violations()}


def test_complete_record_is_valid(complete_record):
    """
    The reference record has no errors and no warnings.
    """
    result = validate(complete_record)
    assert result.is_valid
    assert result.violations() == []
    assert result.tree.ok


def test_validation_is_idempotent(complete_record):
    complete_record.favorable_factor_shares = FactorShares(50, 30, 19)
    first = validate(complete_record)
    second = validate(complete_record)
    assert first == second


def test_all_violations_are_reported(complete_record):
    """
    Evaluation never stops at the first failure.
    """
    complete_record.ecosystem = ""
    complete_record.favorable_scenario.implementation_cost = -1
    complete_record.favorable_factor_shares = FactorShares(50, 30, 19)
    result = validate(complete_record)
    failures = _failures(result)
    assert "ecosystem" in failures
    assert "favorableScenario.implementationCost" in failures
    assert "favorableFactorShares.labor" in failures
    assert not result.is_valid


def test_shares_sum_within_tolerance(complete_record):
    complete_record.favorable_factor_shares = FactorShares(50, 30, 20.005)
    assert validate(complete_record).at("favorableFactorShares.labor").ok


def test_shares_sum_reports_current_total(complete_record):
    complete_record.favorable_factor_shares = FactorShares(50, 30, 19)
    node = validate(complete_record).at("favorableFactorShares.labor")
    assert isinstance(node.outcome, Invalid)
    assert "currently 99%" in node.outcome.reason
    assert node.outcome.actual == pytest.approx(99)


def test_scenario_total_exact(complete_record):
    complete_record.favorable_scenario = ScenarioCosts(1000, 400, 600)
    complete_record.unfavorable_scenario = ScenarioCosts(2000, 1000, 1000)
    assert validate(complete_record).at("favorableScenario.totalCost").ok


def test_scenario_total_mismatch(complete_record):
    complete_record.favorable_scenario = ScenarioCosts(1000, 400, 601)
    complete_record.unfavorable_scenario = ScenarioCosts(2000, 1000, 1000)
    failure = _failures(validate(complete_record))["favorableScenario.totalCost"]
    assert failure.severity == ERROR
    assert "difference 1.00" in failure.reason
    assert failure.actual == pytest.approx(1)


def test_reconciliation_is_a_warning(complete_record):
    """
    A reconciliation gap is advisory and leaves the record valid.
    """
    complete_record.unfavorable_scenario = ScenarioCosts(6500, 5000, 1500)
    result = validate(complete_record)
    assert result.is_valid
    [warning] = result.warnings()
    assert warning.path == "unfavorableScenario.totalCost"
    assert warning.severity == WARNING
    assert warning.actual == pytest.approx(500)


def test_reconciliation_tolerance_from_config(complete_record):
    complete_record.unfavorable_scenario = ScenarioCosts(6500, 5000, 1500)
    config = ConfigManager()
    config.config["reconciliation_tolerance"] = 0.1
    assert validate(complete_record, config=config).warnings() == []
    assert validate(complete_record, tolerance=0.01).warnings() != []


def test_declared_zero_never_reconciles_with_costs(complete_record):
    complete_record.unfavorable_scenario = ScenarioCosts(0, 0, 0)
    [warning] = validate(complete_record).warnings()
    assert "is 0" in warning.reason


def test_numeric_string_is_rejected(complete_record):
    doc = complete_record.to_dict()
    doc["favorableScenario"]["totalCost"] = "5000"
    failure = _failures(validate(doc))["favorableScenario.totalCost"]
    assert "Must be a number" in failure.reason


def test_percent_above_100(complete_record):
    complete_record.enrichment_intensity = 101
    failure = _failures(validate(complete_record))["enrichmentIntensity"]
    assert failure.reason == "Cannot exceed 100%"


def test_time_horizon_must_be_whole(complete_record):
    complete_record.time_horizon = 2.5
    failure = _failures(validate(complete_record))["timeHorizon"]
    assert failure.reason == "Must be a whole number"


def test_assistance_correspondence(complete_record):
    complete_record.selected_assistances = ["fencing", "soilRecovery"]
    failure = _failures(validate(complete_record))["assistanceCosts"]
    assert "missing entries for soilRecovery" in failure.reason
    assert "firebreak" in failure.reason


def test_duplicate_assistance_entries(complete_record):
    complete_record.selected_assistances = ["fencing"]
    complete_record.assistance_costs = [
        AssistanceCost("fencing", 500, "implementation", FactorShares(100, 0, 0)),
        AssistanceCost("fencing", 500, "implementation", FactorShares(100, 0, 0)),
    ]
    failure = _failures(validate(complete_record))["assistanceCosts"]
    assert "duplicated: fencing" in failure.reason


def test_unknown_assistance_and_phase(complete_record):
    complete_record.selected_assistances = ["fencing", "firebreak", "teleport"]
    complete_record.assistance_costs[0].phase = "later"
    failures = _failures(validate(complete_record))
    assert "selectedAssistances.2" in failures
    assert "assistanceCosts.0.phase" in failures


def test_context_distribution_only_checked_when_cost_positive(complete_record):
    """
    A constraint without cost has no meaningful factor split.
    """
    complete_record.context_variables["fire_risk"].distribution = FactorShares(10, 0, 0)
    assert validate(complete_record).is_valid

    complete_record.context_variables["fire_risk"].cost = 50
    failure = _failures(validate(complete_record))["contextVariables.fireRisk.distribution.labor"]
    assert "currently 10%" in failure.reason


def test_labor_pairs(complete_record):
    complete_record.labor_breakdown = LaborBreakdown(
        implementation=LaborPhase(70, 30), maintenance=LaborPhase(0, 0)
    )
    assert validate(complete_record).is_valid

    complete_record.labor_breakdown.maintenance = LaborPhase(60, 30)
    failure = _failures(validate(complete_record))["laborBreakdown.maintenance.hiredLabor"]
    assert "Hired + Family labor must sum to 100%" in failure.reason


def test_missing_method_tab(complete_record):
    del complete_record.method_costs["seedling_planting"]
    failure = _failures(validate(complete_record))["methodCosts"]
    assert "missing seedling_planting" in failure.reason


def test_result_tree_mirrors_document(complete_record):
    """
    Every document path has a node and failures bubble up to ancestors.
    """
    complete_record.assistance_costs[1].cost = -5
    result = validate(complete_record)
    assert result.at("assistanceCosts.0.cost").ok
    node = result.at("assistanceCosts.1.cost")
    assert not node.ok
    assert node.outcome.reason == "Cannot be negative"
    assert not result.at("assistanceCosts").ok
    assert result.at("does.not.exist") is None
    paths = {path for path, _ in result.iter_paths()}
    assert "methodCosts.anr_30.implementationDistribution.machinery" in paths
    assert result.to_dict()["valid"] is False


def test_empty_record_reports_without_raising():
    result = validate(RestorationModel())
    assert not result.is_valid
    assert result.at("ecosystem").outcome.reason == "Ecosystem is required"


def test_validate_rejects_other_types():
    with pytest.raises(TypeError):
        validate(42)


def test_resolve_and_rules_directly():
    doc = {"a": {"b": [{"c": 3}]}}
    assert resolve(doc, "a.b.0.c") == 3
    assert resolve(doc, "a.b.1.c") is MISSING
    assert isinstance(RangeRule("a.b.0.c", high=2).check(doc), Invalid)
    assert isinstance(RangeRule("a.b.0.c").check(doc), Valid)
    shares = {"s": {"labor": 33.33, "materials": 33.33, "machinery": 33.34}}
    assert isinstance(ShareSumRule("s").check(shares), Valid)


@pytest.mark.parametrize(
    "section, key",
    [
        (None, "country"),
        (None, "timeHorizon"),
        ("favorableScenario", "totalCost"),
        ("favorableFactorShares", "machinery"),
    ],
)
def test_missing_fields_are_carried_by_the_tree(complete_record, section, key):
    """
    A field deleted from the document still gets a failing node, so the tree
    agrees with is_valid and the field can show its message.
    """
    doc = complete_record.to_dict()
    del (doc[section] if section else doc)[key]
    path = f"{section}.{key}" if section else key

    result = validate(doc)
    assert not result.is_valid
    assert result.tree.ok == result.is_valid
    node = result.at(path)
    assert node is not None
    assert not node.ok
    assert node.outcome.path == path
    assert dict(result.iter_paths())[path] == node.outcome
    assert not result.tree.child(section or key).ok
