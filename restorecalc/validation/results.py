"""Tagged validation outcomes and the result tree mirroring a record."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Tuple, Union

ERROR = "error"
WARNING = "warning"


@dataclass(frozen=True)
class Valid:
    """A check (or every check at ``path``) passed."""

    path: str
    rule: str = ""

    ok = True


@dataclass(frozen=True)
class Invalid:
    """A check failed at ``path``.

    ``actual`` carries the measured value (current sum, difference, ...) so
    the caller can tell the user how far off the field is.
    """

    reason: str
    path: str
    rule: str = ""
    severity: str = ERROR
    actual: float | None = None

    ok = False


Outcome = Union[Valid, Invalid]


def split_path(path: str) -> List[str | int]:
    """Split a dotted path; numeric segments become list indices."""
    if not path:
        return []
    return [int(p) if p.isdigit() else p for p in path.split(".")]


def merge_outcomes(path: str, outcomes: Tuple[Outcome, ...]) -> Outcome:
    """Collapse the outcomes attached to one path into a single node value."""
    failures = [o for o in outcomes if isinstance(o, Invalid)]
    if not failures:
        return Valid(path)
    if len(failures) == 1:
        return failures[0]
    severity = ERROR if any(f.severity == ERROR for f in failures) else WARNING
    return Invalid(
        reason="; ".join(f.reason for f in failures),
        path=path,
        rule="+".join(f.rule for f in failures),
        severity=severity,
        actual=failures[0].actual,
    )


@dataclass(frozen=True)
class ResultNode:
    """One node of the result tree; children are keyed like the record."""

    path: str
    outcome: Outcome
    children: Tuple[Tuple[str | int, "ResultNode"], ...] = ()

    @property
    def ok(self) -> bool:
        """``True`` when neither this node nor any descendant has an error."""
        if isinstance(self.outcome, Invalid) and self.outcome.severity == ERROR:
            return False
        return all(child.ok for _, child in self.children)

    def child(self, key: str | int) -> "ResultNode | None":
        for k, node in self.children:
            if k == key:
                return node
        return None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"status": "valid" if self.outcome.ok else "invalid"}
        if isinstance(self.outcome, Invalid):
            data["reason"] = self.outcome.reason
            data["severity"] = self.outcome.severity
        if self.children:
            data["children"] = {str(k): node.to_dict() for k, node in self.children}
        return data


def build_tree(document: Any, outcomes: Tuple[Outcome, ...]) -> ResultNode:
    """Return a :class:`ResultNode` tree isomorphic to ``document``.

    Outcomes on paths the document does not contain (a deleted field, say)
    get nodes of their own, so every violation is reachable through the tree.
    """
    by_path: Dict[str, List[Outcome]] = {}
    for outcome in outcomes:
        by_path.setdefault(outcome.path, []).append(outcome)

    def _absent_keys(path: str, present: List[str | int]) -> List[str | int]:
        prefix = f"{path}." if path else ""
        keys: List[str | int] = []
        for p in by_path:
            rest = p[len(prefix):] if p.startswith(prefix) else ""
            if not p or p == path or not rest:
                continue
            head = split_path(rest)[0]
            if head not in present and head not in keys:
                keys.append(head)
        return keys

    def _build(value: Any, path: str) -> ResultNode:
        if isinstance(value, dict):
            items = list(value.items())
        elif isinstance(value, list):
            items = list(enumerate(value))
        else:
            items = []
        items += [(key, None) for key in _absent_keys(path, [k for k, _ in items])]
        children = tuple(
            (key, _build(child, f"{path}.{key}" if path else str(key)))
            for key, child in items
        )
        attached = tuple(by_path.get(path, ()))
        return ResultNode(path, merge_outcomes(path, attached), children)

    return _build(document, "")


@dataclass(frozen=True)
class ValidationResult:
    """Every outcome of one evaluation pass plus the mirrored tree."""

    outcomes: Tuple[Outcome, ...]
    tree: ResultNode

    def violations(self) -> List[Invalid]:
        return [o for o in self.outcomes if isinstance(o, Invalid)]

    def errors(self) -> List[Invalid]:
        return [v for v in self.violations() if v.severity == ERROR]

    def warnings(self) -> List[Invalid]:
        return [v for v in self.violations() if v.severity == WARNING]

    @property
    def is_valid(self) -> bool:
        """``True`` when there are no hard errors; warnings are advisory."""
        return not self.errors()

    def at(self, path: str) -> ResultNode | None:
        """Return the tree node for a dotted ``path`` (``None`` when absent)."""
        node: ResultNode | None = self.tree
        for key in split_path(path):
            if node is None:
                return None
            node = node.child(key)
        return node

    def iter_paths(self) -> Iterator[Tuple[str, Outcome]]:
        """Yield ``(path, outcome)`` for every node, depth first."""
        stack = [self.tree]
        while stack:
            node = stack.pop()
            yield node.path, node.outcome
            stack.extend(reversed([child for _, child in node.children]))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.is_valid,
            "errors": [
                {"path": v.path, "rule": v.rule, "reason": v.reason}
                for v in self.errors()
            ],
            "warnings": [
                {"path": v.path, "rule": v.rule, "reason": v.reason}
                for v in self.warnings()
            ],
            "tree": self.tree.to_dict(),
        }


__all__ = [
    "ERROR",
    "WARNING",
    "Valid",
    "Invalid",
    "Outcome",
    "split_path",
    "merge_outcomes",
    "ResultNode",
    "build_tree",
    "ValidationResult",
]
