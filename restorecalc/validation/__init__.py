"""Validation engine: declarative rules and the evaluator."""

from .evaluator import validate
from .results import ERROR, WARNING, Invalid, ResultNode, Valid, ValidationResult

__all__ = [
    "validate",
    "Valid",
    "Invalid",
    "ResultNode",
    "ValidationResult",
    "ERROR",
    "WARNING",
]
