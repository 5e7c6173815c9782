"""Editing session: the live record plus its latest derived/validation state.

The session is the only stateful part of the engine. Every accepted edit
runs the assistance synchronisation once and then recomputes derived fields
and validation, unless the record signature is unchanged since the last pass.
Everything is synchronous; there is no I/O here.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Sequence, Tuple

from restorecalc.calc.derived import DerivedFields, compute_derived
from restorecalc.core.config import ConfigManager
from restorecalc.schemas.model import (
    AssistanceCost,
    ContextLevels,
    FactorShares,
    LaborBreakdown,
    RestorationModel,
)
from restorecalc.validation.evaluator import validate
from restorecalc.validation.results import ValidationResult, split_path

from .base import BaseService

# Optional sections created on first edit
_OPTIONAL_SECTIONS = {
    "labor_breakdown": LaborBreakdown,
    "context_levels": ContextLevels,
}


def snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def record_signature(record: RestorationModel) -> str:
    """Canonical string for ``record``; equal records give equal signatures."""
    return json.dumps(record.to_dict(), sort_keys=True, default=repr)


def reconcile_assistance_entries(
    selected: Sequence[str], current: List[AssistanceCost]
) -> List[AssistanceCost]:
    """Return entries matching ``selected`` one-to-one by name.

    Entries whose name is still selected keep their position and values,
    deselected and duplicated entries are dropped, and newly selected ids get
    a zero-initialised entry appended in selection order. Names that are not
    strings never match a selection. When the names already match,
    ``current`` itself is returned so callers can detect that nothing changed.
    """
    if not isinstance(selected, (list, tuple)):
        selected = []
    wanted = list(dict.fromkeys(s for s in selected if isinstance(s, str)))
    kept: List[AssistanceCost] = []
    seen = set()
    for entry in current:
        name = entry.name
        if isinstance(name, str) and name in wanted and name not in seen:
            kept.append(entry)
            seen.add(name)
    for name in wanted:
        if name not in seen:
            kept.append(
                AssistanceCost(
                    name=name,
                    cost=0.0,
                    phase="implementation",
                    factor_shares=FactorShares(),
                )
            )
    if len(kept) == len(current) and all(a is b for a, b in zip(kept, current)):
        return current
    return kept


@dataclass(frozen=True)
class SessionState:
    """Outputs handed to the rendering surface."""

    signature: str
    derived: DerivedFields
    validation: ValidationResult
    ready_to_persist: bool


Listener = Callable[[SessionState], None]


class FormSession(BaseService):
    """Owns the live record of one editing session."""

    def __init__(
        self,
        record: RestorationModel | None = None,
        *,
        config: ConfigManager | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(logger)
        self.config = config or ConfigManager()
        self.record = record.copy() if record is not None else self._empty_record()
        self._state: SessionState | None = None
        self._syncing = False
        self._listeners: List[Listener] = []
        self.recompute_count = 0
        self.sync_assistances()

    def _empty_record(self) -> RestorationModel:
        return RestorationModel(time_horizon=int(self.config.get("time_horizon", 20)))

    # ------------------------------------------------------------------ edits
    def update(self, path: str, value: Any) -> SessionState:
        """Apply a single field edit addressed by its document path.

        ``path`` uses the camelCase document keys, e.g.
        ``"favorableScenario.totalCost"`` or ``"assistanceCosts.0.cost"``.
        """
        keys = split_path(path)
        if not keys:
            raise KeyError("Empty field path")
        # sections created on the way are attached only once the path resolves
        created: List[Tuple[Any, str, Any]] = []
        parent: Any = self.record
        for key in keys[:-1]:
            parent = self._child(parent, key, path, created)
        assign = self._setter(parent, keys[-1], path)
        for owner, attr, section in created:
            setattr(owner, attr, section)
        assign(value)
        self.logger.debug("Field %s updated", path, extra={"path": path})
        self.sync_assistances()
        return self.recompute()

    def replace(self, record: RestorationModel) -> SessionState:
        """Load ``record`` (e.g. a saved model) as the live record."""
        self.record = record.copy()
        self.sync_assistances()
        return self.recompute()

    def reset(self) -> SessionState:
        return self.replace(self._empty_record())

    def snapshot(self) -> RestorationModel:
        """Return an independent copy of the live record."""
        return self.record.copy()

    @staticmethod
    def _child(
        parent: Any, key: str | int, path: str, created: List[Tuple[Any, str, Any]]
    ) -> Any:
        if isinstance(parent, list):
            if not isinstance(key, int) or key >= len(parent):
                raise KeyError(f"Unknown field {path}")
            return parent[key]
        if isinstance(parent, dict):
            name = key if key in parent else snake_case(str(key))
            if name not in parent:
                raise KeyError(f"Unknown field {path}")
            return parent[name]
        attr = snake_case(str(key))
        if not hasattr(parent, attr):
            raise KeyError(f"Unknown field {path}")
        value = getattr(parent, attr)
        if value is None and attr in _OPTIONAL_SECTIONS:
            value = _OPTIONAL_SECTIONS[attr]()
            created.append((parent, attr, value))
        return value

    @staticmethod
    def _setter(parent: Any, key: str | int, path: str) -> Callable[[Any], None]:
        """Resolve the final segment of ``path``; the returned callable assigns it."""
        if isinstance(parent, list):
            if not isinstance(key, int) or key >= len(parent):
                raise KeyError(f"Unknown field {path}")
            return lambda value: parent.__setitem__(key, value)
        if isinstance(parent, dict):
            name = key if key in parent else snake_case(str(key))
            if name not in parent:
                raise KeyError(f"Unknown field {path}")
            return lambda value: parent.__setitem__(name, value)
        attr = snake_case(str(key))
        if not hasattr(parent, attr):
            raise KeyError(f"Unknown field {path}")
        return lambda value: setattr(parent, attr, value)

    # -------------------------------------------------------- synchronisation
    def sync_assistances(self) -> bool:
        """Align assistance entries with the selection; return ``True`` on change.

        Calls made while a sync is already running are ignored.
        """
        if self._syncing:
            return False
        self._syncing = True
        try:
            current = self.record.assistance_costs
            updated = reconcile_assistance_entries(
                self.record.selected_assistances, current
            )
            if updated is current:
                return False
            self.record.assistance_costs = updated
            self.logger.debug(
                "Assistance entries synchronised: %s",
                ", ".join(e.name for e in updated) or "(none)",
                extra={"path": "assistanceCosts"},
            )
            return True
        finally:
            self._syncing = False

    # -------------------------------------------------------------- recompute
    @property
    def state(self) -> SessionState:
        return self._state if self._state is not None else self.recompute()

    def recompute(self) -> SessionState:
        """Return the current outputs, recomputing only when the record changed."""
        signature = record_signature(self.record)
        if self._state is not None and self._state.signature == signature:
            return self._state

        snapshot = self.record.copy()
        derived = compute_derived(
            snapshot,
            tolerance=self.config.get_reconciliation_tolerance(),
            sum_tolerance=self.config.get_sum_tolerance(),
        )
        validation = validate(snapshot, config=self.config)
        state = SessionState(
            signature=signature,
            derived=derived,
            validation=validation,
            ready_to_persist=derived.methods_complete and validation.is_valid,
        )
        self._state = state
        self.recompute_count += 1
        self.logger.debug(
            "Recomputed: %d error(s), %d warning(s), ready=%s",
            len(validation.errors()),
            len(validation.warnings()),
            state.ready_to_persist,
        )
        for listener in list(self._listeners):
            listener(state)
        return state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for new states; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe


__all__ = [
    "snake_case",
    "record_signature",
    "reconcile_assistance_entries",
    "SessionState",
    "FormSession",
]
