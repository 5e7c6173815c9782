"""
restorecalc CLI entrypoint: validate, summarise and export restoration cost
records, and manage the local store of saved models.
"""

import sys
import json

import pandas as pd
import click  # type: ignore
from click import echo

from restorecalc.calc.derived import compute_derived
from restorecalc.calc.tables import (
    assistance_frame,
    consistency_lines,
    factor_breakdown_frame,
    format_usd,
    method_summary_frame,
)
from restorecalc.core.config import ConfigManager, ConfigValidationError
from restorecalc.core.logger import Logger
from restorecalc.core.storage import LocalFS
from restorecalc.schemas.constants import METHOD_TYPES
from restorecalc.schemas.model import RestorationModel
from restorecalc.services.exports import ExportError, export_record, record_from_json
from restorecalc.services.session import FormSession
from restorecalc.services.store import ModelStore, StoreError
from restorecalc.validation import validate as validate_record

logger = Logger.get_logger(__name__)


def _load_record(path: str) -> RestorationModel:
    """Return the record stored as JSON at *path*."""
    with open(path, "rb") as fh:
        return record_from_json(fh.read())


def _echo_violations(result) -> None:
    for v in result.errors():
        echo(f"❌  {v.path or '(record)'}: {v.reason}")
    for v in result.warnings():
        echo(f"⚠️  {v.path or '(record)'}: {v.reason}")


def _store(config: ConfigManager) -> ModelStore:
    return ModelStore(LocalFS(config.get("store_dir")), config=config, logger=logger)


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML/TOML/JSON file overriding the default settings.",
)
@click.pass_context
def cli(ctx, config_path):
    """restorecalc: restoration cost model specification toolkit."""
    Logger.setup()
    try:
        config = ConfigManager.from_defaults()
        if config_path:
            config.load(config_path)
    except ConfigValidationError as e:
        echo(f"❌  {e}", err=True)
        sys.exit(1)
    ctx.obj = {"config": config}


@cli.command()
@click.argument("record_json", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--tolerance",
    type=float,
    default=None,
    help="Relative tolerance for the unfavorable cost reconciliation (e.g. 0.05).",
)
@click.option("--json", "as_json", is_flag=True, help="Print the result tree as JSON.")
@click.pass_context
def validate(ctx, record_json, tolerance, as_json):
    """Validate RECORD_JSON and report every violation."""
    config = ctx.obj["config"]
    try:
        record = _load_record(record_json)
        result = validate_record(record, config=config, tolerance=tolerance)
    # pylint: disable=broad-exception-caught
    except Exception as e:
        echo(f"❌  Validation failed: {e}", err=True)
        sys.exit(1)

    if as_json:
        echo(json.dumps(result.to_dict(), indent=2))
    else:
        _echo_violations(result)
        if result.is_valid:
            echo(f"✅  {record_json} is valid ({len(result.warnings())} warning(s))")
    sys.exit(0 if result.is_valid else 1)


@cli.command()
@click.argument("record_json", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--method",
    type=click.Choice(list(METHOD_TYPES)),
    default=None,
    help="Also print the factor breakdown of one method tab.",
)
@click.pass_context
def summary(ctx, record_json, method):
    """Print derived totals and per-method summaries for RECORD_JSON."""
    config = ctx.obj["config"]
    try:
        record = _load_record(record_json)
        derived = compute_derived(
            record,
            tolerance=config.get_reconciliation_tolerance(),
            sum_tolerance=config.get_sum_tolerance(),
        )
    # pylint: disable=broad-exception-caught
    except Exception as e:
        echo(f"❌  Summary failed: {e}", err=True)
        sys.exit(1)

    echo(f"Total assistance cost:      {format_usd(derived.total_assistance_cost)}")
    echo(f"Computed unfavorable cost:  {format_usd(derived.computed_unfavorable_cost)}")
    echo(
        f"Difference from declared:   {format_usd(derived.difference_from_declared)} "
        f"({'within' if derived.is_within_tolerance else 'outside'} tolerance)"
    )
    echo(f"All method tabs complete:   {'yes' if derived.methods_complete else 'no'}")
    if derived.cost_breakdown_summary:
        echo("")
        echo(assistance_frame(derived.cost_breakdown_summary).to_string(index=False))
    echo("")
    with pd.option_context("display.float_format", "{:,.2f}".format):
        echo(method_summary_frame(derived.method_summaries).to_string(index=False))
        for s in derived.method_summaries:
            if method and s.method_type != method:
                continue
            echo("")
            echo(s.title)
            if method:
                echo(factor_breakdown_frame(s).to_string())
            for line in consistency_lines(s, config.get_sum_tolerance()):
                echo(f"  {line}")


@cli.command()
@click.argument("record_json", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output-dir",
    "-o",
    default=None,
    help="Directory for the exported file (defaults to the configured export_dir).",
)
@click.option("--force", is_flag=True, help="Export even if validation fails.")
@click.pass_context
def export(ctx, record_json, output_dir, force):
    """Export RECORD_JSON as a timestamped restoration_*.json file."""
    config = ctx.obj["config"]
    try:
        session = FormSession(_load_record(record_json), config=config, logger=logger)
        state = session.state
        if not state.ready_to_persist and not force:
            _echo_violations(state.validation)
            echo("❌  Record is not ready to export (use --force to override)", err=True)
            sys.exit(1)
        uri = export_record(
            session.snapshot(),
            LocalFS(),
            output_dir or config.get("export_dir", ConfigManager.EXPORT_DIR),
            ready=True,
        )
        echo(f"✅  Exported to {uri}")
    except ExportError as e:
        echo(f"❌  Export failed: {e}", err=True)
        sys.exit(1)


@cli.group()
def models():
    """Manage locally saved models."""


@models.command(name="list")
@click.pass_context
def list_models(ctx):
    """List saved models, oldest first."""
    saved = _store(ctx.obj["config"]).load_all()
    if not saved:
        echo("No saved models.")
        return
    df = pd.DataFrame(
        [
            {
                "id": s.id,
                "saved_at": s.saved_at,
                "ecosystem": s.record.ecosystem,
                "method_type": s.record.method_type,
            }
            for s in saved
        ]
    )
    echo(df.to_string(index=False))


@models.command(name="save")
@click.argument("record_json", type=click.Path(exists=True, dir_okay=False))
@click.option("--force", is_flag=True, help="Save even if validation fails.")
@click.pass_context
def save_model(ctx, record_json, force):
    """Save RECORD_JSON to the local store."""
    config = ctx.obj["config"]
    try:
        session = FormSession(_load_record(record_json), config=config, logger=logger)
        state = session.state
        if not state.ready_to_persist and not force:
            _echo_violations(state.validation)
            echo("❌  Record is not ready to save (use --force to override)", err=True)
            sys.exit(1)
        saved = _store(config).save(session.snapshot())
        echo(f"✅  Saved model {saved.id}")
    except (ExportError, StoreError) as e:
        echo(f"❌  Save failed: {e}", err=True)
        sys.exit(1)


@models.command(name="show")
@click.argument("model_id")
@click.pass_context
def show_model(ctx, model_id):
    """Print the saved model MODEL_ID as JSON."""
    saved = _store(ctx.obj["config"]).get(model_id)
    if saved is None:
        echo(f"❌  No saved model with id {model_id}", err=True)
        sys.exit(1)
    echo(json.dumps(saved.record.to_dict(), indent=2))


@models.command(name="delete")
@click.argument("model_id")
@click.pass_context
def delete_model(ctx, model_id):
    """Delete the saved model MODEL_ID."""
    try:
        deleted = _store(ctx.obj["config"]).delete_by_id(model_id)
    except StoreError as e:
        echo(f"❌  Delete failed: {e}", err=True)
        sys.exit(1)
    if not deleted:
        echo(f"❌  No saved model with id {model_id}", err=True)
        sys.exit(1)
    echo(f"✅  Deleted model {model_id}")


if __name__ == "__main__":
    cli()
