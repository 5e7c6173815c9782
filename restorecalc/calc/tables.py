"""Tabular views of derived values, shared by the CLI and the web app."""

from __future__ import annotations

from typing import Iterable, List, Sequence

import pandas as pd

from restorecalc.schemas.constants import SUM_TOLERANCE, assistance_label

from .derived import CostBreakdownItem, MethodSummary, consistency_checks


def format_usd(value: float) -> str:
    return f"US$ {value:,.2f}"


def method_summary_frame(summaries: Sequence[MethodSummary]) -> pd.DataFrame:
    """One row per method tab with favorable and unfavorable totals (US$/ha)."""
    rows = [
        {
            "method": s.title,
            "implementation": s.implementation_cost,
            "maintenance": s.maintenance_cost,
            "favorable_total": s.total_favorable,
            "additional": s.total_additional,
            "unfavorable_total": s.computed_unfavorable,
        }
        for s in summaries
    ]
    return pd.DataFrame(
        rows,
        columns=[
            "method",
            "implementation",
            "maintenance",
            "favorable_total",
            "additional",
            "unfavorable_total",
        ],
    )


def factor_breakdown_frame(summary: MethodSummary) -> pd.DataFrame:
    """Factor shares (%) and attributed costs (US$/ha) for both scenarios."""
    fav, unf = summary.favorable_shares, summary.unfavorable_shares
    fav_cost, unf_cost = summary.favorable_factor_costs, summary.unfavorable_factor_costs
    df = pd.DataFrame(
        {
            "factor": ["labor", "materials", "machinery"],
            "favorable_pct": [fav.labor, fav.materials, fav.machinery],
            "favorable_cost": [fav_cost.labor, fav_cost.materials, fav_cost.machinery],
            "unfavorable_pct": [unf.labor, unf.materials, unf.machinery],
            "unfavorable_cost": [
                unf_cost.labor,
                unf_cost.materials,
                unf_cost.machinery,
            ],
        }
    )
    return df.set_index("factor")


def constraint_frame(summary: MethodSummary) -> pd.DataFrame:
    rows = [
        {
            "constraint": c.label,
            "cost": c.cost,
            "unit": c.unit,
            "applies_to": c.phase_label,
        }
        for c in summary.constraints
    ]
    return pd.DataFrame(rows, columns=["constraint", "cost", "unit", "applies_to"])


def assistance_frame(items: Iterable[CostBreakdownItem]) -> pd.DataFrame:
    rows = [
        {
            "assistance": assistance_label(item.name),
            "cost_per_ha": item.cost_per_ha,
            "phase": item.phase,
        }
        for item in items
    ]
    return pd.DataFrame(rows, columns=["assistance", "cost_per_ha", "phase"])


def consistency_lines(
    summary: MethodSummary, tolerance: float = SUM_TOLERANCE
) -> List[str]:
    """Human readable consistency checks, prefixed with a check or cross mark."""
    return [
        f"{'✓' if check.ok else '✗'} {check.label}"
        for check in consistency_checks(summary, tolerance)
    ]


__all__ = [
    "format_usd",
    "method_summary_frame",
    "factor_breakdown_frame",
    "constraint_frame",
    "assistance_frame",
    "consistency_lines",
]
