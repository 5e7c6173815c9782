"""Derived values computed from a restoration record.

Cost additivity::

    computed_unfavorable = favorable_total + sum(assistance costs) + interaction

Reconciliation check::

    |declared - computed| / declared <= tolerance

All functions are pure and total: empty lists and all-zero records are valid
inputs, and a non-numeric value where a number is expected counts as ``0``
(validation reports it separately).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from restorecalc.schemas.constants import (
    CONTEXT_CONSTRAINTS,
    METHOD_TABS,
    METHOD_TYPES,
    RECONCILIATION_TOLERANCE,
    SUM_TOLERANCE,
)
from restorecalc.schemas.model import (
    AssistanceCost,
    ContextConstraintEntry,
    FactorShares,
    MethodCostEntry,
    RestorationModel,
)


def as_number(value: Any) -> float:
    """Return ``value`` as a float, or ``0.0`` for missing and non-numeric values."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def shares_sum(shares: FactorShares | None) -> float:
    if shares is None:
        return 0.0
    return (
        as_number(shares.labor)
        + as_number(shares.materials)
        + as_number(shares.machinery)
    )


def shares_sum_ok(shares: FactorShares | None, tolerance: float = SUM_TOLERANCE) -> bool:
    """Return ``True`` when ``shares`` sum to 100 within ``tolerance``."""
    return abs(shares_sum(shares) - 100) < tolerance


def total_assistance_cost(entries: Iterable[AssistanceCost]) -> float:
    """Sum the cost of every assistance entry, counting missing costs as 0."""
    return sum((as_number(getattr(e, "cost", None)) for e in entries), 0.0)


def computed_unfavorable_cost(
    favorable_total: float,
    entries: Iterable[AssistanceCost],
    interaction_adjustment: float = 0.0,
) -> float:
    """Apply the additive cost model to the favorable base cost."""
    return (
        as_number(favorable_total)
        + total_assistance_cost(entries)
        + as_number(interaction_adjustment)
    )


@dataclass(frozen=True)
class Reconciliation:
    """Declared vs computed unfavorable cost."""

    difference: float
    within_tolerance: bool


def reconciliation(
    declared: float, computed: float, tolerance: float = RECONCILIATION_TOLERANCE
) -> Reconciliation:
    """Compare ``declared`` with ``computed`` using a relative ``tolerance``.

    A declared cost of exactly zero only reconciles with a computed cost of
    exactly zero; it never passes by default.
    """
    declared = as_number(declared)
    computed = as_number(computed)
    difference = declared - computed
    if declared == 0:
        within = computed == 0
    else:
        within = abs(difference / declared) <= tolerance
    return Reconciliation(difference=difference, within_tolerance=within)


@dataclass(frozen=True)
class CostComponent:
    """A cost and the factor split it carries."""

    cost: float
    shares: FactorShares


def weighted_factor_shares(components: Sequence[CostComponent]) -> FactorShares:
    """Return the cost-weighted average factor shares of ``components``.

    When the components carry no cost at all the zero triple is returned.
    """
    total = sum((as_number(c.cost) for c in components), 0.0)
    if total == 0:
        return FactorShares(0.0, 0.0, 0.0)
    labor = materials = machinery = 0.0
    for c in components:
        w = as_number(c.cost) / total
        labor += as_number(c.shares.labor) * w
        materials += as_number(c.shares.materials) * w
        machinery += as_number(c.shares.machinery) * w
    return FactorShares(labor, materials, machinery)


def method_entry_complete(
    entry: MethodCostEntry | None, tolerance: float = SUM_TOLERANCE
) -> bool:
    if entry is None:
        return False
    return (
        as_number(entry.implementation_cost) > 0
        and as_number(entry.maintenance_cost) > 0
        and shares_sum_ok(entry.implementation_distribution, tolerance)
        and shares_sum_ok(entry.maintenance_distribution, tolerance)
    )


def method_tabs_complete(
    method_costs: Mapping[str, MethodCostEntry] | None,
    tolerance: float = SUM_TOLERANCE,
) -> bool:
    """Return ``True`` only when all four method tabs are filled in.

    A tab is complete when both its costs are positive and both its
    distributions sum to 100.
    """
    if not method_costs:
        return False
    return all(
        method_entry_complete(method_costs.get(method_type), tolerance)
        for method_type in METHOD_TYPES
    )


@dataclass
class CostBreakdownItem:
    name: str
    cost_per_ha: float
    phase: str


def cost_breakdown_summary(entries: Iterable[AssistanceCost]) -> List[CostBreakdownItem]:
    """Per-assistance rows for display."""
    return [
        CostBreakdownItem(
            name=e.name or "(unnamed)",
            cost_per_ha=as_number(e.cost),
            phase=e.phase,
        )
        for e in entries
    ]


@dataclass
class ConstraintSummary:
    key: str
    label: str
    unit: str
    cost: float
    applies_to_implementation: bool
    applies_to_maintenance: bool
    distribution: FactorShares

    @property
    def phase_label(self) -> str:
        if self.cost <= 0:
            return "-"
        parts = [
            label
            for label, flag in (
                ("Impl.", self.applies_to_implementation),
                ("Maint.", self.applies_to_maintenance),
            )
            if flag
        ]
        return " + ".join(parts) or "-"


@dataclass
class FactorCosts:
    """US$/ha attributed to each factor of production."""

    labor: float
    materials: float
    machinery: float


def factor_costs(total_cost: float, shares: FactorShares) -> FactorCosts:
    total_cost = as_number(total_cost)
    return FactorCosts(
        labor=total_cost * as_number(shares.labor) / 100,
        materials=total_cost * as_number(shares.materials) / 100,
        machinery=total_cost * as_number(shares.machinery) / 100,
    )


@dataclass
class MethodSummary:
    """Favorable/unfavorable summary for one method tab."""

    method_type: str
    title: str
    implementation_cost: float
    maintenance_cost: float
    total_favorable: float
    implementation_distribution: FactorShares
    maintenance_distribution: FactorShares
    constraints: List[ConstraintSummary]
    total_additional: float
    computed_unfavorable: float
    favorable_shares: FactorShares
    unfavorable_shares: FactorShares
    favorable_factor_costs: FactorCosts
    unfavorable_factor_costs: FactorCosts


def _constraint_summaries(
    context_variables: Mapping[str, ContextConstraintEntry] | None,
) -> List[ConstraintSummary]:
    ctx = context_variables or {}
    rows = []
    for key, (label, unit) in CONTEXT_CONSTRAINTS.items():
        entry = ctx.get(key) or ContextConstraintEntry()
        rows.append(
            ConstraintSummary(
                key=key,
                label=label,
                unit=unit,
                cost=as_number(entry.cost),
                applies_to_implementation=bool(entry.applies_to_implementation),
                applies_to_maintenance=bool(entry.applies_to_maintenance),
                distribution=entry.distribution,
            )
        )
    return rows


def method_summaries(
    method_costs: Mapping[str, MethodCostEntry] | None,
    context_variables: Mapping[str, ContextConstraintEntry] | None,
) -> List[MethodSummary]:
    """Build one summary block per method tab.

    The unfavorable factor shares weight the base costs together with every
    context constraint that carries a positive cost.
    """
    costs = method_costs or {}
    constraints = _constraint_summaries(context_variables)
    total_additional = sum((c.cost for c in constraints), 0.0)
    summaries = []
    for method_type, title in METHOD_TABS:
        entry = costs.get(method_type) or MethodCostEntry()
        impl = as_number(entry.implementation_cost)
        maint = as_number(entry.maintenance_cost)
        total_favorable = impl + maint
        base = [
            CostComponent(impl, entry.implementation_distribution),
            CostComponent(maint, entry.maintenance_distribution),
        ]
        favorable_shares = weighted_factor_shares(base)
        unfavorable_shares = weighted_factor_shares(
            base
            + [CostComponent(c.cost, c.distribution) for c in constraints if c.cost > 0]
        )
        computed = total_favorable + total_additional
        summaries.append(
            MethodSummary(
                method_type=method_type,
                title=title,
                implementation_cost=impl,
                maintenance_cost=maint,
                total_favorable=total_favorable,
                implementation_distribution=entry.implementation_distribution,
                maintenance_distribution=entry.maintenance_distribution,
                constraints=constraints,
                total_additional=total_additional,
                computed_unfavorable=computed,
                favorable_shares=favorable_shares,
                unfavorable_shares=unfavorable_shares,
                favorable_factor_costs=factor_costs(total_favorable, favorable_shares),
                unfavorable_factor_costs=factor_costs(computed, unfavorable_shares),
            )
        )
    return summaries


@dataclass
class ConsistencyCheck:
    label: str
    ok: bool


def consistency_checks(
    summary: MethodSummary, tolerance: float = SUM_TOLERANCE
) -> List[ConsistencyCheck]:
    """Return the mathematical consistency lines for one method summary."""
    m = summary
    return [
        ConsistencyCheck(
            label=(
                "Favorable Cost = Implementation + Maintenance = "
                f"{m.implementation_cost:,.2f} + {m.maintenance_cost:,.2f} = "
                f"{m.total_favorable:,.2f}"
            ),
            ok=abs(
                m.total_favorable - (m.implementation_cost + m.maintenance_cost)
            )
            < tolerance,
        ),
        ConsistencyCheck(
            label=(
                "Unfavourable Cost = Favorable + Additional = "
                f"{m.total_favorable:,.2f} + {m.total_additional:,.2f} = "
                f"{m.computed_unfavorable:,.2f}"
            ),
            ok=abs(m.computed_unfavorable - (m.total_favorable + m.total_additional))
            < tolerance,
        ),
        ConsistencyCheck(
            label=f"Favorable factor shares sum = {shares_sum(m.favorable_shares):,.2f}%",
            ok=shares_sum_ok(m.favorable_shares, tolerance),
        ),
        ConsistencyCheck(
            label=(
                "Unfavourable factor shares sum = "
                f"{shares_sum(m.unfavorable_shares):,.2f}%"
            ),
            ok=shares_sum_ok(m.unfavorable_shares, tolerance),
        ),
    ]


@dataclass
class DerivedFields:
    """Summary values recomputed on every change, never stored on the record."""

    total_assistance_cost: float
    computed_unfavorable_cost: float
    difference_from_declared: float
    is_within_tolerance: bool
    cost_breakdown_summary: List[CostBreakdownItem] = field(default_factory=list)
    methods_complete: bool = False
    method_summaries: List[MethodSummary] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def compute_derived(
    record: RestorationModel,
    *,
    tolerance: float = RECONCILIATION_TOLERANCE,
    sum_tolerance: float = SUM_TOLERANCE,
) -> DerivedFields:
    """Compute every derived field for a record snapshot."""
    entries = list(record.assistance_costs)
    computed = computed_unfavorable_cost(
        record.favorable_scenario.total_cost,
        entries,
        record.interaction_adjustment,
    )
    recon = reconciliation(record.unfavorable_scenario.total_cost, computed, tolerance)
    return DerivedFields(
        total_assistance_cost=total_assistance_cost(entries),
        computed_unfavorable_cost=computed,
        difference_from_declared=recon.difference,
        is_within_tolerance=recon.within_tolerance,
        cost_breakdown_summary=cost_breakdown_summary(entries),
        methods_complete=method_tabs_complete(record.method_costs, sum_tolerance),
        method_summaries=method_summaries(
            record.method_costs, record.context_variables
        ),
    )


__all__ = [
    "as_number",
    "shares_sum",
    "shares_sum_ok",
    "total_assistance_cost",
    "computed_unfavorable_cost",
    "Reconciliation",
    "reconciliation",
    "CostComponent",
    "weighted_factor_shares",
    "method_entry_complete",
    "method_tabs_complete",
    "CostBreakdownItem",
    "cost_breakdown_summary",
    "ConstraintSummary",
    "FactorCosts",
    "factor_costs",
    "MethodSummary",
    "method_summaries",
    "ConsistencyCheck",
    "consistency_checks",
    "DerivedFields",
    "compute_derived",
]
