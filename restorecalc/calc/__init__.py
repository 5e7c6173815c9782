"""Derived values of the restoration cost model."""

from .derived import (
    DerivedFields,
    compute_derived,
    computed_unfavorable_cost,
    method_tabs_complete,
    reconciliation,
    total_assistance_cost,
    weighted_factor_shares,
)

__all__ = [
    "DerivedFields",
    "compute_derived",
    "computed_unfavorable_cost",
    "method_tabs_complete",
    "reconciliation",
    "total_assistance_cost",
    "weighted_factor_shares",
]
