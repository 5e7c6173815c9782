"""Summary, reconciliation and validation panels for the Streamlit form."""

from __future__ import annotations

from typing import Optional, Tuple

import streamlit as st

from restorecalc.calc.derived import DerivedFields
from restorecalc.calc.tables import (
    assistance_frame,
    constraint_frame,
    consistency_lines,
    factor_breakdown_frame,
    format_usd,
    method_summary_frame,
)
from restorecalc.validation.results import Invalid, ValidationResult


def field_feedback(
    validation: ValidationResult, path: str
) -> Optional[Tuple[str, str]]:
    """Return ``(severity, reason)`` for the node at ``path`` or ``None`` if valid."""

    node = validation.at(path)
    if node is None or not isinstance(node.outcome, Invalid):
        return None
    return node.outcome.severity, node.outcome.reason


def show_field_feedback(validation: ValidationResult, path: str) -> None:
    """Render the inline message for ``path`` below its input."""

    feedback = field_feedback(validation, path)
    if feedback is None:
        return
    severity, reason = feedback
    if severity == "warning":
        st.warning(reason)
    else:
        st.error(reason)


def render_reconciliation(derived: DerivedFields, declared: float) -> None:
    """Show computed vs declared unfavorable cost and the tolerance status."""

    cols = st.columns(3)
    cols[0].metric("Total assistance cost", format_usd(derived.total_assistance_cost))
    cols[1].metric(
        "Computed unfavorable cost", format_usd(derived.computed_unfavorable_cost)
    )
    cols[2].metric(
        "Declared - computed",
        format_usd(derived.difference_from_declared),
        help=f"Declared unfavorable cost: {format_usd(declared)}",
    )
    if derived.is_within_tolerance:
        st.success("Declared unfavorable cost reconciles with the cost model.")
    else:
        st.warning(
            "Declared unfavorable cost differs from favorable + assistance "
            "+ interaction by more than the tolerance. Please double-check."
        )
    if derived.cost_breakdown_summary:
        st.dataframe(
            assistance_frame(derived.cost_breakdown_summary),
            hide_index=True,
            use_container_width=True,
        )


def render_method_summaries(derived: DerivedFields, tolerance: float) -> None:
    """One expander per method tab with factor breakdowns and consistency lines."""

    st.dataframe(
        method_summary_frame(derived.method_summaries),
        hide_index=True,
        use_container_width=True,
    )
    for summary in derived.method_summaries:
        with st.expander(summary.title):
            st.dataframe(constraint_frame(summary), hide_index=True)
            st.dataframe(factor_breakdown_frame(summary))
            for line in consistency_lines(summary, tolerance):
                st.markdown(line)


def render_validation_panel(validation: ValidationResult) -> None:
    errors = validation.errors()
    warnings = validation.warnings()
    if not errors and not warnings:
        st.success("All checks passed.")
        return
    for v in errors:
        st.error(f"{v.path or 'record'}: {v.reason}")
    for v in warnings:
        st.warning(f"{v.path or 'record'}: {v.reason}")
