"""Declarative rules describing the record's domains and invariants.

Each rule is attached to a dotted path of the record document (the camelCase
shape produced by :meth:`RestorationModel.to_dict`) and evaluates to exactly
one :class:`~restorecalc.validation.results.Valid` or
:class:`~restorecalc.validation.results.Invalid` at that path. Rules never
raise for bad data; a missing or mistyped value is itself a violation.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, ClassVar, List, Mapping, Sequence, Tuple

from restorecalc.calc.derived import (
    as_number,
    computed_unfavorable_cost,
    method_entry_complete,
    reconciliation,
)
from restorecalc.schemas.constants import (
    ASSISTANCE_IDS,
    CONTEXT_LEVEL_CHOICES,
    METHOD_TYPES,
    PHASES,
    RECONCILIATION_TOLERANCE,
    SUM_TOLERANCE,
    TIME_HORIZON_RANGE,
)
from restorecalc.schemas.model import RestorationModel, camel_case

from .results import WARNING, Invalid, Outcome, Valid, split_path

MISSING = object()

SHARE_FIELDS: Tuple[str, ...] = ("labor", "materials", "machinery")
LABOR_FIELDS: Tuple[str, ...] = ("hiredLabor", "familyLabor")


def resolve(document: Any, path: str) -> Any:
    """Return the value at ``path`` in ``document`` or :data:`MISSING`."""
    value = document
    for key in split_path(path):
        if isinstance(value, Mapping) and key in value:
            value = value[key]
        elif isinstance(value, list) and isinstance(key, int) and key < len(value):
            value = value[key]
        else:
            return MISSING
    return value


def is_number(value: Any) -> bool:
    """``True`` for finite ints/floats; bools and numeric strings are rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _fmt(value: float) -> str:
    return f"{round(value, 2):g}"


@dataclass(frozen=True)
class Rule:
    """Base class; subclasses implement :meth:`check`."""

    path: str

    name: ClassVar[str] = "rule"

    def check(self, document: Mapping[str, Any]) -> Outcome:  # pragma: no cover
        raise NotImplementedError

    def ok(self) -> Valid:
        return Valid(self.path, self.name)

    def fail(self, reason: str, **kwargs: Any) -> Invalid:
        return Invalid(reason=reason, path=self.path, rule=self.name, **kwargs)


@dataclass(frozen=True)
class RangeRule(Rule):
    """Numeric domain check; ``high=None`` means unbounded."""

    low: float | None = 0.0
    high: float | None = None
    integer: bool = False
    percent: bool = False

    name: ClassVar[str] = "range"

    def check(self, document: Mapping[str, Any]) -> Outcome:
        value = resolve(document, self.path)
        if value is MISSING:
            return self.fail("Value is required")
        if not is_number(value):
            return self.fail(f"Must be a number (got {value!r})")
        if self.integer and not float(value).is_integer():
            return self.fail("Must be a whole number", actual=float(value))
        if self.low is not None and value < self.low:
            reason = (
                "Cannot be negative"
                if self.low == 0
                else f"Must be at least {_fmt(self.low)}"
            )
            return self.fail(reason, actual=float(value))
        if self.high is not None and value > self.high:
            reason = (
                f"Cannot exceed {_fmt(self.high)}%"
                if self.percent
                else f"Must be at most {_fmt(self.high)}"
            )
            return self.fail(reason, actual=float(value))
        return self.ok()


@dataclass(frozen=True)
class EnumRule(Rule):
    choices: Tuple[str, ...] = ()

    name: ClassVar[str] = "enum"

    def check(self, document: Mapping[str, Any]) -> Outcome:
        value = resolve(document, self.path)
        if value is MISSING:
            return self.fail("Value is required")
        if not isinstance(value, str) or value not in self.choices:
            return self.fail(
                f"Invalid value {value!r}; expected one of {', '.join(self.choices)}"
            )
        return self.ok()


@dataclass(frozen=True)
class RequiredTextRule(Rule):
    label: str = "Value"

    name: ClassVar[str] = "required"

    def check(self, document: Mapping[str, Any]) -> Outcome:
        value = resolve(document, self.path)
        if not isinstance(value, str) or not value.strip():
            return self.fail(f"{self.label} is required")
        return self.ok()


@dataclass(frozen=True)
class BoolRule(Rule):
    name: ClassVar[str] = "boolean"

    def check(self, document: Mapping[str, Any]) -> Outcome:
        value = resolve(document, self.path)
        if not isinstance(value, bool):
            return self.fail(f"Must be true or false (got {value!r})")
        return self.ok()


@dataclass(frozen=True)
class ShareSumRule(Rule):
    """Parts of a percentage split must sum to 100.

    ``path`` names the container; the outcome attaches to its first field.
    With ``skip_when_empty`` an all-zero split is not checked, and with
    ``active_when`` the split is only checked while the value at that path is
    a positive number.
    """

    fields: Tuple[str, ...] = SHARE_FIELDS
    label: str = "Factor shares"
    tolerance: float = SUM_TOLERANCE
    skip_when_empty: bool = False
    active_when: str | None = None

    name: ClassVar[str] = "sum_to_100"

    @property
    def target(self) -> str:
        return f"{self.path}.{self.fields[0]}"

    def check(self, document: Mapping[str, Any]) -> Outcome:
        parts = [as_number(resolve(document, f"{self.path}.{f}")) for f in self.fields]
        total = sum(parts, 0.0)
        if self.active_when is not None and as_number(
            resolve(document, self.active_when)
        ) <= 0:
            return Valid(self.target, self.name)
        if self.skip_when_empty and not any(parts):
            return Valid(self.target, self.name)
        if abs(total - 100) < self.tolerance:
            return Valid(self.target, self.name)
        return Invalid(
            reason=f"{self.label} must sum to 100% (currently {_fmt(total)}%)",
            path=self.target,
            rule=self.name,
            actual=total,
        )


@dataclass(frozen=True)
class ScenarioTotalRule(Rule):
    """``totalCost`` must equal implementation + maintenance."""

    tolerance: float = SUM_TOLERANCE

    name: ClassVar[str] = "scenario_total"

    def check(self, document: Mapping[str, Any]) -> Outcome:
        total = as_number(resolve(document, f"{self.path}.totalCost"))
        impl = as_number(resolve(document, f"{self.path}.implementationCost"))
        maint = as_number(resolve(document, f"{self.path}.maintenanceCost"))
        difference = abs(total - (impl + maint))
        target = f"{self.path}.totalCost"
        if difference < self.tolerance:
            return Valid(target, self.name)
        return Invalid(
            reason=(
                "Total cost must equal Implementation + Maintenance "
                f"({impl:,.2f} + {maint:,.2f} = {impl + maint:,.2f}; "
                f"difference {difference:,.2f})"
            ),
            path=target,
            rule=self.name,
            actual=difference,
        )


@dataclass(frozen=True)
class ReconciliationRule(Rule):
    """Advisory: declared unfavorable cost vs the additive cost model."""

    path: str = "unfavorableScenario.totalCost"
    tolerance: float = RECONCILIATION_TOLERANCE

    name: ClassVar[str] = "reconciliation"

    def check(self, document: Mapping[str, Any]) -> Outcome:
        record = RestorationModel.from_dict(document)
        computed = computed_unfavorable_cost(
            record.favorable_scenario.total_cost,
            record.assistance_costs,
            record.interaction_adjustment,
        )
        declared = as_number(record.unfavorable_scenario.total_cost)
        recon = reconciliation(declared, computed, self.tolerance)
        if recon.within_tolerance:
            return self.ok()
        if declared == 0:
            reason = (
                "Declared unfavorable cost is 0 but the computed cost is "
                f"{computed:,.2f}"
            )
        else:
            reason = (
                f"Declared unfavorable cost {declared:,.2f} differs from the computed "
                f"{computed:,.2f} by {recon.difference:,.2f} "
                f"({abs(recon.difference / declared):.1%}), beyond the "
                f"{self.tolerance:.0%} tolerance"
            )
        return self.fail(reason, severity=WARNING, actual=recon.difference)


@dataclass(frozen=True)
class CorrespondenceRule(Rule):
    """Assistance entries must match the selected assistances 1:1 by name."""

    path: str = "assistanceCosts"
    selected_path: str = "selectedAssistances"

    name: ClassVar[str] = "correspondence"

    def check(self, document: Mapping[str, Any]) -> Outcome:
        selected = resolve(document, self.selected_path)
        entries = resolve(document, self.path)
        selected = selected if isinstance(selected, list) else []
        entries = entries if isinstance(entries, list) else []
        names = [e.get("name") if isinstance(e, Mapping) else None for e in entries]

        problems: List[str] = []
        missing = [s for s in selected if s not in names]
        orphaned = [n for n in names if n not in selected]
        duplicated = sorted(
            {str(n) for n in names if names.count(n) > 1}
            | {str(s) for s in selected if selected.count(s) > 1}
        )
        if missing:
            problems.append(f"missing entries for {', '.join(map(str, missing))}")
        if orphaned:
            problems.append(
                f"entries without a selected assistance: {', '.join(map(str, orphaned))}"
            )
        if duplicated:
            problems.append(f"duplicated: {', '.join(duplicated)}")
        if problems:
            return self.fail(
                f"Assistance costs do not match the selection ({'; '.join(problems)})"
            )
        return self.ok()


@dataclass(frozen=True)
class MethodTabsRule(Rule):
    """All four method tabs need positive costs and balanced distributions."""

    path: str = "methodCosts"
    tolerance: float = SUM_TOLERANCE

    name: ClassVar[str] = "method_tabs_complete"

    def check(self, document: Mapping[str, Any]) -> Outcome:
        record = RestorationModel.from_dict(document)
        raw = resolve(document, self.path)
        present = raw if isinstance(raw, Mapping) else {}
        missing = [m for m in METHOD_TYPES if m not in present]
        incomplete = [
            m
            for m in METHOD_TYPES
            if m in present
            and not method_entry_complete(record.method_costs.get(m), self.tolerance)
        ]
        if not missing and not incomplete:
            return self.ok()
        parts = []
        if missing:
            parts.append(f"missing {', '.join(missing)}")
        if incomplete:
            parts.append(f"incomplete {', '.join(incomplete)}")
        return self.fail(
            "Complete the implementation and maintenance costs in all four "
            f"method tabs ({'; '.join(parts)})"
        )


def _share_rules(
    path: str,
    *,
    fields: Sequence[str] = SHARE_FIELDS,
    label: str = "Factor shares",
    tolerance: float = SUM_TOLERANCE,
    skip_when_empty: bool = False,
    active_when: str | None = None,
) -> List[Rule]:
    rules: List[Rule] = [
        RangeRule(f"{path}.{f}", low=0.0, high=100.0, percent=True) for f in fields
    ]
    rules.append(
        ShareSumRule(
            path,
            fields=tuple(fields),
            label=label,
            tolerance=tolerance,
            skip_when_empty=skip_when_empty,
            active_when=active_when,
        )
    )
    return rules


def build_rule_set(
    document: Mapping[str, Any],
    *,
    sum_tolerance: float = SUM_TOLERANCE,
    reconciliation_tolerance: float = RECONCILIATION_TOLERANCE,
) -> List[Rule]:
    """Return every rule that applies to ``document``.

    Per-entry rules depend on the data (method tabs and assistance entries
    present), so the set is rebuilt for each snapshot.
    """
    low, high = TIME_HORIZON_RANGE
    rules: List[Rule] = [
        RequiredTextRule("ecosystem", label="Ecosystem"),
        RequiredTextRule("country", label="Country"),
        EnumRule("methodType", choices=METHOD_TYPES),
        RangeRule("timeHorizon", low=float(low), high=float(high), integer=True),
        RangeRule("enrichmentIntensity", low=0.0, high=100.0, percent=True),
    ]

    method_costs = resolve(document, "methodCosts")
    if isinstance(method_costs, Mapping):
        for method_type in method_costs:
            base = f"methodCosts.{method_type}"
            rules.append(RangeRule(f"{base}.implementationCost"))
            rules.append(RangeRule(f"{base}.maintenanceCost"))
            for dist in ("implementationDistribution", "maintenanceDistribution"):
                rules.extend(
                    _share_rules(
                        f"{base}.{dist}",
                        label="The distribution",
                        tolerance=sum_tolerance,
                    )
                )
    rules.append(MethodTabsRule(tolerance=sum_tolerance))

    context = resolve(document, "contextVariables")
    if isinstance(context, Mapping):
        for key in context:
            base = f"contextVariables.{key}"
            rules.append(RangeRule(f"{base}.cost"))
            rules.append(BoolRule(f"{base}.appliesToImplementation"))
            rules.append(BoolRule(f"{base}.appliesToMaintenance"))
            rules.extend(
                _share_rules(
                    f"{base}.distribution",
                    label="The distribution",
                    tolerance=sum_tolerance,
                    active_when=f"{base}.cost",
                )
            )

    if isinstance(resolve(document, "contextLevels"), Mapping):
        for key, choices in CONTEXT_LEVEL_CHOICES.items():
            rules.append(EnumRule(f"contextLevels.{camel_case(key)}", choices=choices))

    selected = resolve(document, "selectedAssistances")
    if isinstance(selected, list):
        for i in range(len(selected)):
            rules.append(EnumRule(f"selectedAssistances.{i}", choices=ASSISTANCE_IDS))

    for scenario in ("favorableScenario", "unfavorableScenario"):
        for part in ("totalCost", "implementationCost", "maintenanceCost"):
            rules.append(RangeRule(f"{scenario}.{part}"))
        rules.append(ScenarioTotalRule(scenario, tolerance=sum_tolerance))

    entries = resolve(document, "assistanceCosts")
    if isinstance(entries, list):
        for i in range(len(entries)):
            base = f"assistanceCosts.{i}"
            rules.append(RequiredTextRule(f"{base}.name", label="Name"))
            rules.append(RangeRule(f"{base}.cost"))
            rules.append(EnumRule(f"{base}.phase", choices=PHASES))
            rules.extend(
                _share_rules(f"{base}.factorShares", tolerance=sum_tolerance)
            )
    rules.append(CorrespondenceRule())

    rules.append(RangeRule("interactionAdjustment", low=None, high=None))
    rules.extend(_share_rules("favorableFactorShares", tolerance=sum_tolerance))
    rules.append(ReconciliationRule(tolerance=reconciliation_tolerance))

    if isinstance(resolve(document, "laborBreakdown"), Mapping):
        for phase in ("implementation", "maintenance"):
            rules.extend(
                _share_rules(
                    f"laborBreakdown.{phase}",
                    fields=LABOR_FIELDS,
                    label="Hired + Family labor",
                    tolerance=sum_tolerance,
                    skip_when_empty=True,
                )
            )
        rules.append(RangeRule("laborBreakdown.hiredLaborCostPerDay"))

    return rules


__all__ = [
    "MISSING",
    "resolve",
    "is_number",
    "Rule",
    "RangeRule",
    "EnumRule",
    "RequiredTextRule",
    "BoolRule",
    "ShareSumRule",
    "ScenarioTotalRule",
    "ReconciliationRule",
    "CorrespondenceRule",
    "MethodTabsRule",
    "build_rule_set",
]
