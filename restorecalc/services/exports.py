from __future__ import annotations

"""Export a restoration record as a JSON file."""

import json
import re
from datetime import datetime, timezone
from typing import Any

from restorecalc.core.storage import StorageAdapter
from restorecalc.schemas.constants import method_label
from restorecalc.schemas.model import RestorationModel


class ExportError(Exception):
    """Raised when a record cannot be serialised or written."""


class ExportBlockedError(ExportError):
    """Raised when exporting a record that is not ready to persist."""


def _safe_part(value: str) -> str:
    name = re.sub(r"\s+", "_", value.strip())
    name = re.sub(r"[^\w\-]", "", name)
    return name or "unknown"


def export_filename(
    ecosystem: str, method: str, now: datetime | None = None
) -> str:
    """Return ``restoration_<ecosystem>_<method>_<timestamp>.json``.

    Whitespace becomes ``_`` and path-unsafe characters are dropped; the
    timestamp is UTC with ``:`` and ``T`` replaced so the name is portable.
    """
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%d-%H-%M-%S")
    return f"restoration_{_safe_part(ecosystem)}_{_safe_part(method)}_{stamp}.json"


def record_export_filename(
    record: RestorationModel, now: datetime | None = None
) -> str:
    """Filename for ``record``; the method falls back to the method tab title."""
    method = record.method or method_label(record.method_type)
    return export_filename(record.ecosystem, method, now)


def record_to_json(record: RestorationModel) -> str:
    """Serialise ``record`` to its indented JSON document."""
    try:
        return json.dumps(record.to_dict(), indent=2, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise ExportError(f"Record cannot be serialised: {exc}") from exc


def record_from_json(text: str | bytes) -> RestorationModel:
    """Parse a document written by :func:`record_to_json`."""
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ExportError(f"Invalid record JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ExportError("Record JSON must be an object")
    return RestorationModel.from_dict(data)


def export_record(
    record: RestorationModel,
    storage: StorageAdapter,
    directory: str = "exports",
    *,
    ready: bool = True,
    now: datetime | None = None,
) -> str:
    """Write ``record`` below ``directory`` and return the URI.

    ``ready`` is the session's ready-to-persist flag; a record that is not
    ready is refused with :class:`ExportBlockedError`.
    """
    if not ready:
        raise ExportBlockedError("Record has validation errors; fix them before exporting")
    payload = record_to_json(record).encode("utf-8")
    uri = storage.join(directory, record_export_filename(record, now))
    try:
        return storage.write_bytes(uri, payload)
    except OSError as exc:
        raise ExportError(f"Could not write {uri}: {exc}") from exc


__all__ = [
    "ExportError",
    "ExportBlockedError",
    "export_filename",
    "record_export_filename",
    "record_to_json",
    "record_from_json",
    "export_record",
]
