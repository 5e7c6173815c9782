"""Tests for record export: filenames, JSON encoding and the ready gate."""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from restorecalc.core.storage import LocalFS, MemoryStorage
from restorecalc.services.exports import (
    ExportBlockedError,
    ExportError,
    export_filename,
    export_record,
    record_export_filename,
    record_from_json,
    record_to_json,
)

WHEN = datetime(2024, 3, 5, 14, 7, 9, tzinfo=timezone.utc)


def test_export_filename():
    name = export_filename("Atlantic Forest", "Seedling Planting", WHEN)
    assert name == "restoration_Atlantic_Forest_Seedling_Planting_2024-03-05-14-07-09.json"


def test_export_filename_sanitizes():
    """Whitespace becomes underscores and unsafe characters are dropped."""
    name = export_filename("../evil  eco", "", WHEN)
    assert name == "restoration_evil_eco_unknown_2024-03-05-14-07-09.json"


def test_record_filename_falls_back_to_method_title(complete_record):
    complete_record.method = ""
    name = record_export_filename(complete_record, WHEN)
    assert name.startswith("restoration_Atlantic_Forest_Assisted_Natural_Regeneration_30")


def test_json_roundtrip(complete_record):
    text = record_to_json(complete_record)
    assert '"favorableScenario"' in text
    assert record_from_json(text) == complete_record


def test_record_to_json_rejects_nan(complete_record):
    """NaN and infinity are not valid JSON and are refused."""
    complete_record.interaction_adjustment = float("nan")
    with pytest.raises(ExportError):
        record_to_json(complete_record)


@pytest.mark.parametrize("text", ["{oops", "[1, 2]"])
def test_record_from_json_errors(text):
    with pytest.raises(ExportError):
        record_from_json(text)


def test_export_record(tmp_path, complete_record):
    uri = export_record(complete_record, LocalFS(), str(tmp_path / "out"), now=WHEN)
    path = Path(uri)
    assert path.parent == tmp_path / "out"
    assert path.name.endswith("_2024-03-05-14-07-09.json")
    assert record_from_json(path.read_text()) == complete_record


def test_export_blocked(complete_record):
    """A record that is not ready is never written."""
    storage = MemoryStorage()
    with pytest.raises(ExportBlockedError):
        export_record(complete_record, storage, "exports", ready=False)
    assert storage.objects == {}
