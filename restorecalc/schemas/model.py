"""Data model for one (ecosystem x restoration method) cost specification.

Every field corresponds to a parameter of the restoration cost model. The
consultant describes a FAVORABLE scenario (best conditions, no extra
assistance needed) and a plausible UNFAVORABLE scenario requiring additional
assistance activities, linked by the additive cost model::

    declared_unfavorable ~ favorable + sum(assistance costs) + interaction

The dataclasses serialise to the camelCase JSON document used for persistence
and export (:meth:`RestorationModel.to_dict`). :meth:`RestorationModel.from_dict`
fills missing fields with defaults but never coerces values: a numeric string
stays a string so that validation can report it.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Mapping

from .constants import (
    CONTEXT_CONSTRAINTS,
    DEFAULT_TIME_HORIZON,
    METHOD_TYPES,
)

Phase = Literal["implementation", "maintenance", "both"]
MethodType = Literal[
    "natural_regeneration", "anr_30", "seed_dispersal", "seedling_planting"
]


def camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key)
    return value if isinstance(value, Mapping) else {}


@dataclass
class FactorShares:
    """Percentage split of a cost across factors of production.

    Shares must sum to 100 so costs can be extrapolated with local price
    indices: ``adjusted = sum_k(share_k * price_index_k * base_cost)``.
    """

    labor: float = 0.0
    materials: float = 0.0
    machinery: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "labor": self.labor,
            "materials": self.materials,
            "machinery": self.machinery,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FactorShares":
        return cls(
            labor=data.get("labor", 0.0),
            materials=data.get("materials", 0.0),
            machinery=data.get("machinery", 0.0),
        )


@dataclass
class ScenarioCosts:
    """Costs of one scenario over the full time horizon (US$/ha)."""

    total_cost: float = 0.0
    implementation_cost: float = 0.0  # year 1 only
    maintenance_cost: float = 0.0  # years 2..T

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalCost": self.total_cost,
            "implementationCost": self.implementation_cost,
            "maintenanceCost": self.maintenance_cost,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScenarioCosts":
        return cls(
            total_cost=data.get("totalCost", 0.0),
            implementation_cost=data.get("implementationCost", 0.0),
            maintenance_cost=data.get("maintenanceCost", 0.0),
        )


@dataclass
class MethodCostEntry:
    """Baseline costs and their distributions for one method tab."""

    implementation_cost: float = 0.0
    implementation_distribution: FactorShares = field(default_factory=FactorShares)
    maintenance_cost: float = 0.0
    maintenance_distribution: FactorShares = field(default_factory=FactorShares)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "implementationCost": self.implementation_cost,
            "implementationDistribution": self.implementation_distribution.to_dict(),
            "maintenanceCost": self.maintenance_cost,
            "maintenanceDistribution": self.maintenance_distribution.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MethodCostEntry":
        return cls(
            implementation_cost=data.get("implementationCost", 0.0),
            implementation_distribution=FactorShares.from_dict(
                _section(data, "implementationDistribution")
            ),
            maintenance_cost=data.get("maintenanceCost", 0.0),
            maintenance_distribution=FactorShares.from_dict(
                _section(data, "maintenanceDistribution")
            ),
        )


@dataclass
class ContextConstraintEntry:
    """Additional cost of addressing one site constraint."""

    cost: float = 0.0
    applies_to_implementation: bool = False
    applies_to_maintenance: bool = False
    distribution: FactorShares = field(default_factory=FactorShares)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cost": self.cost,
            "appliesToImplementation": self.applies_to_implementation,
            "appliesToMaintenance": self.applies_to_maintenance,
            "distribution": self.distribution.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContextConstraintEntry":
        return cls(
            cost=data.get("cost", 0.0),
            applies_to_implementation=data.get("appliesToImplementation", False),
            applies_to_maintenance=data.get("appliesToMaintenance", False),
            distribution=FactorShares.from_dict(_section(data, "distribution")),
        )


@dataclass
class ContextLevels:
    """Categorical site conditions (the simpler form variant)."""

    fire_risk: str = "low"
    soil_degradation: str = "none"
    grazing_pressure: str = "low"
    invasive_species_pressure: str = "low"
    human_encroachment: str = "low"
    seed_availability_constraint: str = "no"

    def to_dict(self) -> Dict[str, Any]:
        return {camel_case(k): v for k, v in vars(self).items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContextLevels":
        defaults = cls()
        return cls(
            **{
                name: data.get(camel_case(name), default)
                for name, default in vars(defaults).items()
            }
        )


@dataclass
class AssistanceCost:
    """Additive cost of one assistance activity in the unfavorable scenario."""

    name: str = ""
    cost: float = 0.0
    phase: Phase = "implementation"
    factor_shares: FactorShares = field(default_factory=FactorShares)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "cost": self.cost,
            "phase": self.phase,
            "factorShares": self.factor_shares.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AssistanceCost":
        return cls(
            name=data.get("name", ""),
            cost=data.get("cost", 0.0),
            phase=data.get("phase", "implementation"),
            factor_shares=FactorShares.from_dict(_section(data, "factorShares")),
        )


@dataclass
class LaborPhase:
    """Hired vs family labor share of the labor hours in one phase."""

    hired_labor: float = 0.0
    family_labor: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"hiredLabor": self.hired_labor, "familyLabor": self.family_labor}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LaborPhase":
        return cls(
            hired_labor=data.get("hiredLabor", 0.0),
            family_labor=data.get("familyLabor", 0.0),
        )


@dataclass
class LaborBreakdown:
    implementation: LaborPhase = field(default_factory=LaborPhase)
    maintenance: LaborPhase = field(default_factory=LaborPhase)
    hired_labor_cost_per_day: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "implementation": self.implementation.to_dict(),
            "maintenance": self.maintenance.to_dict(),
            "hiredLaborCostPerDay": self.hired_labor_cost_per_day,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LaborBreakdown":
        return cls(
            implementation=LaborPhase.from_dict(_section(data, "implementation")),
            maintenance=LaborPhase.from_dict(_section(data, "maintenance")),
            hired_labor_cost_per_day=data.get("hiredLaborCostPerDay", 0.0),
        )


def default_method_costs() -> Dict[str, MethodCostEntry]:
    return {method_type: MethodCostEntry() for method_type in METHOD_TYPES}


def default_context_variables() -> Dict[str, ContextConstraintEntry]:
    return {key: ContextConstraintEntry() for key in CONTEXT_CONSTRAINTS}


@dataclass
class RestorationModel:
    """The full record for one (ecosystem x method) model specification."""

    # Identification
    ecosystem: str = ""
    country: str = ""
    method_type: str = "natural_regeneration"
    method: str = ""
    time_horizon: int = DEFAULT_TIME_HORIZON
    enrichment_intensity: float = 0.0

    # Baseline costs for all four method tabs
    method_costs: Dict[str, MethodCostEntry] = field(
        default_factory=default_method_costs
    )

    # Context and scenario definition
    context_variables: Dict[str, ContextConstraintEntry] = field(
        default_factory=default_context_variables
    )
    context_levels: ContextLevels | None = None
    selected_assistances: List[str] = field(default_factory=list)

    # Cost estimates
    favorable_scenario: ScenarioCosts = field(default_factory=ScenarioCosts)
    unfavorable_scenario: ScenarioCosts = field(default_factory=ScenarioCosts)

    # Assistance breakdown
    assistance_costs: List[AssistanceCost] = field(default_factory=list)
    interaction_adjustment: float = 0.0

    favorable_factor_shares: FactorShares = field(default_factory=FactorShares)
    labor_breakdown: LaborBreakdown | None = None

    def to_dict(self) -> Dict[str, Any]:
        """Return the JSON-serialisable document for this record."""
        data: Dict[str, Any] = {
            "ecosystem": self.ecosystem,
            "country": self.country,
            "methodType": self.method_type,
            "method": self.method,
            "timeHorizon": self.time_horizon,
            "enrichmentIntensity": self.enrichment_intensity,
            "methodCosts": {k: v.to_dict() for k, v in self.method_costs.items()},
            # unknown constraint keys are written back as they were read
            "contextVariables": {
                (camel_case(k) if k in CONTEXT_CONSTRAINTS else k): v.to_dict()
                for k, v in self.context_variables.items()
            },
            "selectedAssistances": list(self.selected_assistances),
            "favorableScenario": self.favorable_scenario.to_dict(),
            "unfavorableScenario": self.unfavorable_scenario.to_dict(),
            "assistanceCosts": [a.to_dict() for a in self.assistance_costs],
            "interactionAdjustment": self.interaction_adjustment,
            "favorableFactorShares": self.favorable_factor_shares.to_dict(),
        }
        if self.context_levels is not None:
            data["contextLevels"] = self.context_levels.to_dict()
        if self.labor_breakdown is not None:
            data["laborBreakdown"] = self.labor_breakdown.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RestorationModel":
        """Build a record from a document produced by :meth:`to_dict`.

        Missing sections take their defaults, except ``methodCosts`` and
        ``contextVariables`` which keep exactly the entries supplied so that
        an absent method tab stays absent.
        """
        defaults = cls()
        method_costs = (
            {
                k: MethodCostEntry.from_dict(v if isinstance(v, Mapping) else {})
                for k, v in data["methodCosts"].items()
            }
            if isinstance(data.get("methodCosts"), Mapping)
            else default_method_costs()
        )
        if isinstance(data.get("contextVariables"), Mapping):
            by_camel = {camel_case(k): k for k in CONTEXT_CONSTRAINTS}
            context_variables = {
                by_camel.get(k, k): ContextConstraintEntry.from_dict(
                    v if isinstance(v, Mapping) else {}
                )
                for k, v in data["contextVariables"].items()
            }
        else:
            context_variables = default_context_variables()
        assistance = data.get("assistanceCosts")
        return cls(
            ecosystem=data.get("ecosystem", defaults.ecosystem),
            country=data.get("country", defaults.country),
            method_type=data.get("methodType", defaults.method_type),
            method=data.get("method", defaults.method),
            time_horizon=data.get("timeHorizon", defaults.time_horizon),
            enrichment_intensity=data.get(
                "enrichmentIntensity", defaults.enrichment_intensity
            ),
            method_costs=method_costs,
            context_variables=context_variables,
            context_levels=(
                ContextLevels.from_dict(data["contextLevels"])
                if isinstance(data.get("contextLevels"), Mapping)
                else None
            ),
            selected_assistances=(
                list(data["selectedAssistances"])
                if isinstance(data.get("selectedAssistances"), list)
                else []
            ),
            favorable_scenario=ScenarioCosts.from_dict(
                _section(data, "favorableScenario")
            ),
            unfavorable_scenario=ScenarioCosts.from_dict(
                _section(data, "unfavorableScenario")
            ),
            assistance_costs=[
                AssistanceCost.from_dict(a if isinstance(a, Mapping) else {})
                for a in (assistance if isinstance(assistance, list) else [])
            ],
            interaction_adjustment=data.get(
                "interactionAdjustment", defaults.interaction_adjustment
            ),
            favorable_factor_shares=FactorShares.from_dict(
                _section(data, "favorableFactorShares")
            ),
            labor_breakdown=(
                LaborBreakdown.from_dict(data["laborBreakdown"])
                if isinstance(data.get("laborBreakdown"), Mapping)
                else None
            ),
        )

    def copy(self) -> "RestorationModel":
        """Return a deep copy; snapshots never share state with the live record."""
        return copy.deepcopy(self)


__all__ = [
    "Phase",
    "MethodType",
    "FactorShares",
    "ScenarioCosts",
    "MethodCostEntry",
    "ContextConstraintEntry",
    "ContextLevels",
    "AssistanceCost",
    "LaborPhase",
    "LaborBreakdown",
    "RestorationModel",
    "default_method_costs",
    "default_context_variables",
]
