"""Evaluate every rule against a record snapshot.

Evaluation never stops at the first failure: all outcomes are collected in
one pass so the form can show every problem at once. The evaluator is pure;
the same snapshot always produces an equal :class:`ValidationResult`.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Mapping

from restorecalc.core.config import ConfigManager
from restorecalc.schemas.constants import RECONCILIATION_TOLERANCE, SUM_TOLERANCE
from restorecalc.schemas.model import RestorationModel

from .results import ValidationResult, build_tree
from .rules import build_rule_set

logger = logging.getLogger(__name__)


def snapshot_document(record: RestorationModel | Mapping[str, Any]) -> dict:
    """Return an independent document for ``record``."""
    if isinstance(record, RestorationModel):
        return record.to_dict()
    if isinstance(record, Mapping):
        return copy.deepcopy(dict(record))
    raise TypeError("record must be a RestorationModel or a mapping")


def validate(
    record: RestorationModel | Mapping[str, Any],
    *,
    config: ConfigManager | None = None,
    tolerance: float | None = None,
    sum_tolerance: float | None = None,
) -> ValidationResult:
    """Validate ``record`` and return the full result tree.

    Tolerances come from the explicit arguments, then ``config``, then the
    package defaults.
    """
    if tolerance is None:
        tolerance = (
            config.get_reconciliation_tolerance() if config else RECONCILIATION_TOLERANCE
        )
    if sum_tolerance is None:
        sum_tolerance = config.get_sum_tolerance() if config else SUM_TOLERANCE

    document = snapshot_document(record)
    rules = build_rule_set(
        document,
        sum_tolerance=sum_tolerance,
        reconciliation_tolerance=tolerance,
    )
    outcomes = tuple(
        sorted(
            (rule.check(document) for rule in rules),
            key=lambda o: (o.path, o.rule),
        )
    )
    result = ValidationResult(outcomes=outcomes, tree=build_tree(document, outcomes))
    for violation in result.violations():
        logger.debug(
            "%s %s: %s",
            violation.severity,
            violation.path,
            violation.reason,
            extra={"path": violation.path, "rule": violation.rule},
        )
    return result
