# pylint: disable=missing-module-docstring,missing-function-docstring,invalid-name,unused-argument,redefined-outer-name
import json
import logging

import pytest

from restorecalc.core.logger import Logger
from restorecalc.schemas.constants import METHOD_TYPES
from restorecalc.schemas.model import (
    AssistanceCost,
    FactorShares,
    MethodCostEntry,
    RestorationModel,
    ScenarioCosts,
)


@pytest.fixture(autouse=True)
def reset_logger(monkeypatch):
    """Start every test with an unconfigured logging system."""
    Logger._configured = False
    monkeypatch.delenv("RESTORECALC_LOG_FMT", raising=False)
    monkeypatch.delenv("RESTORECALC_LOG_LEVEL", raising=False)
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
    Logger._configured = False


@pytest.fixture
def complete_record():
    """A record that passes every check (no errors, no warnings)."""
    return RestorationModel(
        ecosystem="Atlantic Forest",
        country="Brazil",
        method_type="anr_30",
        method="ANR with 30% enrichment",
        time_horizon=20,
        enrichment_intensity=30,
        method_costs={
            m: MethodCostEntry(
                implementation_cost=1000,
                implementation_distribution=FactorShares(50, 30, 20),
                maintenance_cost=500,
                maintenance_distribution=FactorShares(60, 20, 20),
            )
            for m in METHOD_TYPES
        },
        selected_assistances=["fencing", "firebreak"],
        favorable_scenario=ScenarioCosts(5000, 4000, 1000),
        unfavorable_scenario=ScenarioCosts(6000, 4500, 1500),
        assistance_costs=[
            AssistanceCost("fencing", 600, "implementation", FactorShares(40, 50, 10)),
            AssistanceCost("firebreak", 400, "both", FactorShares(70, 20, 10)),
        ],
        interaction_adjustment=0,
        favorable_factor_shares=FactorShares(50, 30, 20),
    )


@pytest.fixture
def record_file(tmp_path, complete_record):
    """Write ``complete_record`` as JSON and return the path."""
    path = tmp_path / "record.json"
    path.write_text(json.dumps(complete_record.to_dict()), encoding="utf-8")
    return path
