from __future__ import annotations

__doc__ = "Streamlit form for specifying restoration cost models."

from typing import Any, MutableMapping, Tuple

import streamlit as st

from restorecalc.calc.derived import as_number
from restorecalc.core.config import ConfigManager
from restorecalc.core.logger import Logger
from restorecalc.core.storage import LocalFS
from restorecalc.schemas.constants import (
    ASSISTANCE_TYPES,
    CONTEXT_CONSTRAINTS,
    ECOSYSTEM_OPTIONS,
    METHOD_TABS,
    PHASES,
    TIME_HORIZON_RANGE,
    assistance_label,
)
from restorecalc.schemas.model import LaborBreakdown, RestorationModel, camel_case
from restorecalc.services.exports import (
    ExportBlockedError,
    record_export_filename,
    record_to_json,
)
from restorecalc.services.session import FormSession, snake_case
from restorecalc.services.store import ModelStore, SavedModel
from restorecalc.webapp.components.summary import (
    render_method_summaries,
    render_reconciliation,
    render_validation_panel,
    show_field_feedback,
)

# -------------------------------------------------------------------


logger = Logger.get_logger(__name__)

CONFIG = ConfigManager.from_defaults()
storage = LocalFS(CONFIG.get("store_dir"))
store = ModelStore(storage, config=CONFIG, logger=logger)

SESSION_KEY = "form_session"
WIDGET_PREFIX = "w:"


def get_session(state: MutableMapping[str, Any]) -> FormSession:
    """Return the :class:`FormSession` kept in ``state``, creating it once."""

    session = state.get(SESSION_KEY)
    if session is None:
        session = FormSession(config=CONFIG, logger=logger)
        state[SESSION_KEY] = session
    return session


def apply_edit(session: FormSession, path: str, value: Any, current: Any) -> bool:
    """Push a widget value into the session when it differs from the record."""

    if value == current:
        return False
    session.update(path, value)
    return True


def clear_widget_state(state: MutableMapping[str, Any]) -> None:
    """Drop widget values so inputs re-read a freshly loaded record."""

    for key in [k for k in state.keys() if str(k).startswith(WIDGET_PREFIX)]:
        del state[key]


def export_payload(session: FormSession) -> Tuple[str, str]:
    """Return ``(filename, json)`` for the download button.

    Raises :class:`ExportBlockedError` while the record is not ready.
    """

    if not session.state.ready_to_persist:
        raise ExportBlockedError("Record has validation errors")
    record = session.snapshot()
    return record_export_filename(record), record_to_json(record)


def save_current(session: FormSession, model_store: ModelStore) -> SavedModel:
    if not session.state.ready_to_persist:
        raise ExportBlockedError("Record has validation errors")
    return model_store.save(session.snapshot())


def load_saved(
    session: FormSession, record: RestorationModel, state: MutableMapping[str, Any]
) -> None:
    clear_widget_state(state)
    session.replace(record)


def _number(
    session: FormSession,
    label: str,
    path: str,
    current: Any,
    *,
    min_value: float | None = 0.0,
    max_value: float | None = None,
    step: float = 1.0,
    container: Any = st,
) -> None:
    shown = as_number(current)
    # out-of-range values are shown as they are and reported by validation
    if min_value is not None and shown < min_value:
        min_value = None
    if max_value is not None and shown > max_value:
        max_value = None
    value = container.number_input(
        label,
        min_value=min_value,
        max_value=max_value,
        value=shown,
        step=step,
        key=f"{WIDGET_PREFIX}{path}",
    )
    apply_edit(session, path, value, current)
    show_field_feedback(session.state.validation, path)


def _shares(session: FormSession, prefix: str, shares: Any) -> None:
    cols = st.columns(3)
    for col, name in zip(cols, ("labor", "materials", "machinery")):
        _number(
            session,
            f"{name.title()} %",
            f"{prefix}.{name}",
            getattr(shares, name),
            max_value=100.0,
            container=col,
        )


# ---- Page config -----------------------------------------------------------

st.set_page_config(page_title="Restoration Cost Calculator", layout="wide")
st.title("Restoration Cost Calculator")
st.caption(
    "Specify favorable and unfavorable restoration cost scenarios for one "
    "ecosystem and restoration method."
)

session = get_session(st.session_state)
record = session.record

# ---- Identification --------------------------------------------------------
st.header("Identification")
cols = st.columns(2)
options = list(ECOSYSTEM_OPTIONS)
if record.ecosystem and record.ecosystem not in options:
    options.append(record.ecosystem)
ecosystem = cols[0].selectbox(
    "Ecosystem",
    [""] + options,
    index=([""] + options).index(record.ecosystem) if record.ecosystem in options else 0,
    key=f"{WIDGET_PREFIX}ecosystem",
)
apply_edit(session, "ecosystem", ecosystem, record.ecosystem)
with cols[0]:
    show_field_feedback(session.state.validation, "ecosystem")
country = cols[1].text_input("Country", value=record.country, key=f"{WIDGET_PREFIX}country")
apply_edit(session, "country", country, record.country)
with cols[1]:
    show_field_feedback(session.state.validation, "country")

method_ids = [m for m, _ in METHOD_TABS]
method_type = cols[0].selectbox(
    "Restoration method",
    method_ids,
    index=method_ids.index(record.method_type) if record.method_type in method_ids else 0,
    format_func=lambda m: dict(METHOD_TABS)[m],
    key=f"{WIDGET_PREFIX}methodType",
)
apply_edit(session, "methodType", method_type, record.method_type)
low, high = TIME_HORIZON_RANGE
current_horizon = int(as_number(record.time_horizon))
in_range = low <= current_horizon <= high
horizon = cols[1].number_input(
    "Time horizon (years)",
    min_value=low if in_range else None,
    max_value=high if in_range else None,
    value=current_horizon,
    step=1,
    key=f"{WIDGET_PREFIX}timeHorizon",
)
apply_edit(session, "timeHorizon", int(horizon), record.time_horizon)
with cols[1]:
    show_field_feedback(session.state.validation, "timeHorizon")
_number(
    session,
    "Enrichment intensity (%)",
    "enrichmentIntensity",
    record.enrichment_intensity,
    max_value=100.0,
)

# ---- Method costs ----------------------------------------------------------
st.header("Baseline costs per method (favorable scenario, US$/ha)")
tabs = st.tabs([title for _, title in METHOD_TABS])
for tab, (method_id, _title) in zip(tabs, METHOD_TABS):
    entry = record.method_costs.get(method_id)
    with tab:
        if entry is None:
            st.info("No costs recorded for this method.")
            continue
        base = f"methodCosts.{method_id}"
        _number(session, "Implementation cost", f"{base}.implementationCost", entry.implementation_cost)
        st.caption("Implementation factor shares")
        _shares(session, f"{base}.implementationDistribution", entry.implementation_distribution)
        _number(session, "Maintenance cost", f"{base}.maintenanceCost", entry.maintenance_cost)
        st.caption("Maintenance factor shares")
        _shares(session, f"{base}.maintenanceDistribution", entry.maintenance_distribution)
show_field_feedback(session.state.validation, "methodCosts")

# ---- Context constraints ---------------------------------------------------
st.header("Context constraints (unfavorable scenario)")
for key, (label, unit) in CONTEXT_CONSTRAINTS.items():
    constraint = record.context_variables.get(key)
    if constraint is None:
        continue
    base = f"contextVariables.{camel_case(key)}"
    with st.expander(f"{label} ({unit})", expanded=as_number(constraint.cost) > 0):
        _number(session, f"Cost ({unit})", f"{base}.cost", constraint.cost)
        c1, c2 = st.columns(2)
        impl = c1.checkbox(
            "Applies to implementation",
            value=bool(constraint.applies_to_implementation),
            key=f"{WIDGET_PREFIX}{base}.appliesToImplementation",
        )
        apply_edit(session, f"{base}.appliesToImplementation", impl, constraint.applies_to_implementation)
        maint = c2.checkbox(
            "Applies to maintenance",
            value=bool(constraint.applies_to_maintenance),
            key=f"{WIDGET_PREFIX}{base}.appliesToMaintenance",
        )
        apply_edit(session, f"{base}.appliesToMaintenance", maint, constraint.applies_to_maintenance)
        if as_number(constraint.cost) > 0:
            _shares(session, f"{base}.distribution", constraint.distribution)

# ---- Scenarios -------------------------------------------------------------
st.header("Scenario totals (US$/ha over the time horizon)")
for scenario_key, title, scenario in (
    ("favorableScenario", "Favorable scenario", record.favorable_scenario),
    ("unfavorableScenario", "Unfavorable scenario", record.unfavorable_scenario),
):
    st.subheader(title)
    c1, c2, c3 = st.columns(3)
    _number(session, "Total cost", f"{scenario_key}.totalCost", scenario.total_cost, container=c1)
    _number(session, "Implementation (year 1)", f"{scenario_key}.implementationCost", scenario.implementation_cost, container=c2)
    _number(session, "Maintenance (years 2..T)", f"{scenario_key}.maintenanceCost", scenario.maintenance_cost, container=c3)
st.caption("Favorable scenario factor shares")
_shares(session, "favorableFactorShares", record.favorable_factor_shares)

# ---- Assistances -----------------------------------------------------------
st.header("Assistance activities")
assistance_ids = [a for a, _ in ASSISTANCE_TYPES]
selected = st.multiselect(
    "Activities required in the unfavorable scenario",
    assistance_ids,
    default=[a for a in record.selected_assistances if a in assistance_ids],
    format_func=assistance_label,
    key=f"{WIDGET_PREFIX}selectedAssistances",
)
apply_edit(session, "selectedAssistances", list(selected), record.selected_assistances)
show_field_feedback(session.state.validation, "assistanceCosts")
for i, entry in enumerate(session.record.assistance_costs):
    base = f"assistanceCosts.{i}"
    with st.expander(assistance_label(entry.name), expanded=True):
        c1, c2 = st.columns(2)
        _number(session, "Cost (US$/ha)", f"{base}.cost", entry.cost, container=c1)
        phase = c2.selectbox(
            "Phase",
            list(PHASES),
            index=list(PHASES).index(entry.phase) if entry.phase in PHASES else 0,
            key=f"{WIDGET_PREFIX}{base}.phase",
        )
        apply_edit(session, f"{base}.phase", phase, entry.phase)
        _shares(session, f"{base}.factorShares", entry.factor_shares)
_number(
    session,
    "Interaction adjustment (US$/ha)",
    "interactionAdjustment",
    record.interaction_adjustment,
    min_value=None,
)

# ---- Labor breakdown -------------------------------------------------------
st.header("Labor breakdown")
st.caption("Hired vs family labor share of the labor hours, by phase.")
labor = record.labor_breakdown or LaborBreakdown()
for phase_key, title in (
    ("implementation", "Implementation (year 1)"),
    ("maintenance", "Maintenance (years 2..T)"),
):
    st.subheader(title)
    labor_phase = getattr(labor, phase_key)
    c1, c2 = st.columns(2)
    for col, (field_key, field_label) in zip(
        (c1, c2), (("hiredLabor", "Hired labor %"), ("familyLabor", "Family labor %"))
    ):
        _number(
            session,
            field_label,
            f"laborBreakdown.{phase_key}.{field_key}",
            getattr(labor_phase, snake_case(field_key)),
            max_value=100.0,
            container=col,
        )
_number(
    session,
    "Hired labor cost (US$/day)",
    "laborBreakdown.hiredLaborCostPerDay",
    labor.hired_labor_cost_per_day,
)

# ---- Summary & validation --------------------------------------------------
state = session.state
st.header("Summary")
render_reconciliation(state.derived, as_number(record.unfavorable_scenario.total_cost))
render_method_summaries(state.derived, CONFIG.get_sum_tolerance())
st.header("Validation")
render_validation_panel(state.validation)

# ---- Save / export ---------------------------------------------------------
c1, c2, c3 = st.columns(3)
if c1.button("Save model", disabled=not state.ready_to_persist):
    saved = save_current(session, store)
    st.success(f"Saved model {saved.id}")
if state.ready_to_persist:
    filename, payload = export_payload(session)
    c2.download_button("Export JSON", payload, file_name=filename, mime="application/json")
else:
    c2.button("Export JSON", disabled=True)
if c3.button("New model"):
    clear_widget_state(st.session_state)
    session.reset()
    st.rerun()

# ---- Saved models ----------------------------------------------------------
st.sidebar.header("Saved models")
saved_models = store.load_all()
if not saved_models:
    st.sidebar.caption("No saved models yet.")
for saved in saved_models:
    label = f"{saved.record.ecosystem or 'unnamed'} / {saved.saved_at[:19]}"
    st.sidebar.write(label)
    b1, b2 = st.sidebar.columns(2)
    if b1.button("Load", key=f"load:{saved.id}"):
        load_saved(session, saved.record, st.session_state)
        st.rerun()
    if b2.button("Delete", key=f"delete:{saved.id}"):
        store.delete_by_id(saved.id)
        st.rerun()
