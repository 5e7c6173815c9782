"""Persistence of saved restoration models.

All saved models live in one JSON document (a list of ``{id, savedAt, data}``
entries) under a fixed key of a :class:`~restorecalc.core.storage.StorageAdapter`.
Reading is fail-soft: a missing or corrupt document yields an empty list and a
logged warning. Entries that do not match the expected shape are skipped when
listing but stay in the document when it is rewritten.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from restorecalc.core.config import ConfigManager
from restorecalc.core.storage import StorageAdapter
from restorecalc.schemas.model import RestorationModel

from .base import BaseService


class StoreError(Exception):
    """Raised when the saved-model document cannot be written."""


class _StoredEntry(BaseModel):
    """Shape of one entry of the stored document."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    saved_at: str = Field(alias="savedAt")
    data: Dict[str, Any]


@dataclass
class SavedModel:
    """A saved record with its store id and save timestamp (ISO 8601, UTC)."""

    id: str
    saved_at: str
    record: RestorationModel

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "savedAt": self.saved_at, "data": self.record.to_dict()}


class ModelStore(BaseService):
    """Append, list and delete saved models under ``key``."""

    def __init__(
        self,
        storage: StorageAdapter,
        key: str | None = None,
        *,
        config: ConfigManager | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(logger)
        cfg = config or ConfigManager()
        self.storage = storage
        self.key = key or cfg.get("storage_key", ConfigManager.STORAGE_KEY)
        self.uri = storage.join(f"{self.key}.json")

    def _read_raw(self) -> List[Any]:
        """Return the stored list as written, or ``[]`` when it is unusable."""
        if not self.storage.exists(self.uri):
            return []
        try:
            raw = json.loads(self.storage.read_bytes(self.uri).decode("utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            self.logger.warning(
                "Ignoring unreadable saved models at %s: %s",
                self.uri,
                exc,
                extra={"uri": self.uri},
            )
            return []
        if not isinstance(raw, list):
            self.logger.warning(
                "Ignoring saved models at %s: not a list", self.uri, extra={"uri": self.uri}
            )
            return []
        return raw

    def _read_entries(self) -> List[_StoredEntry]:
        entries: List[_StoredEntry] = []
        for item in self._read_raw():
            try:
                entries.append(_StoredEntry.model_validate(item))
            except ValidationError as exc:
                self.logger.warning(
                    "Skipping malformed saved model entry: %s",
                    exc.errors()[0]["msg"],
                    extra={"uri": self.uri},
                )
        return entries

    def _write_entries(self, entries: List[Any]) -> None:
        try:
            payload = json.dumps(entries, indent=2, allow_nan=False).encode("utf-8")
            self.storage.write_bytes(self.uri, payload)
        except (OSError, TypeError, ValueError) as exc:
            raise StoreError(f"Could not write saved models to {self.uri}: {exc}") from exc

    def load_all(self) -> List[SavedModel]:
        """Return every well-formed saved model in save order."""
        return [
            SavedModel(
                id=entry.id,
                saved_at=entry.saved_at,
                record=RestorationModel.from_dict(entry.data),
            )
            for entry in self._read_entries()
        ]

    def get(self, model_id: str) -> SavedModel | None:
        for saved in self.load_all():
            if saved.id == model_id:
                return saved
        return None

    def save(self, record: RestorationModel, now: datetime | None = None) -> SavedModel:
        """Append ``record`` under a fresh id.

        Every stored item is written back as it was read, including entries
        that :meth:`load_all` skips.
        """
        entries = self._read_raw()
        taken = {_entry_id(item) for item in entries}
        model_id = uuid4().hex
        while model_id in taken:
            model_id = uuid4().hex
        saved_at = (now or datetime.now(timezone.utc)).isoformat()
        saved = SavedModel(id=model_id, saved_at=saved_at, record=record.copy())
        entries.append(saved.to_dict())
        self._write_entries(entries)
        self.logger.info(
            "Saved model %s (%s)",
            model_id,
            record.ecosystem or "unnamed",
            extra={"model_id": model_id, "uri": self.uri},
        )
        return saved

    def delete_by_id(self, model_id: str) -> bool:
        """Remove the entry with ``model_id``; return ``False`` if none matched."""
        entries = self._read_raw()
        remaining = [item for item in entries if _entry_id(item) != model_id]
        if len(remaining) == len(entries):
            self.logger.debug("No saved model with id %s", model_id, extra={"model_id": model_id})
            return False
        self._write_entries(remaining)
        self.logger.info("Deleted model %s", model_id, extra={"model_id": model_id, "uri": self.uri})
        return True


def _entry_id(item: Any) -> str | None:
    value = item.get("id") if isinstance(item, dict) else None
    return value if isinstance(value, str) else None


__all__ = ["StoreError", "SavedModel", "ModelStore"]
