"""supply_etl.import_supply_requests

CLI entrypoint: convert a supply-request form CSV export into SQL insert
statements plus a validation report.

Usage:
    python -m supply_etl.import_supply_requests \\
        --src "rawEvidence/pedidos.csv" \\
        --output-dir "artifacts/sql" \\
        --rejects-path "artifacts/rejects/pedidos_rejects.csv"

Exit status is 0 for a completed run (even if every row was rejected) and
1 when the source or destination cannot be used.
"""

from __future__ import annotations

import json
import logging
import sys
import tempfile
import uuid
from datetime import datetime
from pathlib import Path

import click

from supply_etl.pipeline import run_pipeline
from supply_etl.reference_catalog import (
    DEFAULT_CATALOG_PATH,
    CatalogLoadError,
    ReferenceCatalog,
)
from supply_etl.shared import (
    PipelineFatalError,
    RejectWriter,
    RunCounters,
    write_run_report,
)


@click.command()
@click.option("--src", default=None, type=click.Path(), help="Source CSV export")
@click.option(
    "--output-dir",
    default=tempfile.gettempdir(),
    envvar="SUPPLY_ETL_OUTPUT_DIR",
    type=click.Path(file_okay=False),
    show_default=True,
    help="Directory for the <stamp>_output.sql and <stamp>_report.txt files",
)
@click.option(
    "--reference-path",
    default=str(DEFAULT_CATALOG_PATH),
    envvar="SUPPLY_ETL_REFERENCE_PATH",
    type=click.Path(dir_okay=False),
    help="YAML file with zones, districts and municipalities",
)
@click.option("--rejects-path", default=None, type=click.Path(), help="Also write rejected rows to this CSV")
@click.option("--run-id", default=None, help="Override UUID for log correlation")
@click.option(
    "--run-report/--no-run-report",
    default=False,
    show_default=True,
    help="Write a JSON run report under ./artifacts/reports",
)
@click.option("--verbose", is_flag=True, default=False, help="Log each rejected row")
def main(
    src: str | None,
    output_dir: str,
    reference_path: str,
    rejects_path: str | None,
    run_id: str | None,
    run_report: bool,
    verbose: bool,
) -> None:
    """Convert a supply-request CSV export into SQL insert statements."""
    run_id = run_id or str(uuid.uuid4())
    started_at = datetime.utcnow().isoformat()
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    src_path = _validate_flags(src, run_id)

    try:
        catalog = ReferenceCatalog.from_yaml(Path(reference_path))
    except CatalogLoadError as exc:
        click.echo(f"[{run_id}] FATAL: {exc}", err=True)
        sys.exit(1)

    click.echo(f"[{run_id}] Starting conversion of {src_path} ({len(catalog)} reference entries)")

    counters = RunCounters()
    rejects = RejectWriter(Path(rejects_path)) if rejects_path else None
    try:
        outputs = run_pipeline(
            src_path,
            Path(output_dir),
            catalog,
            rejects=rejects,
            counters=counters,
        )
    except PipelineFatalError as exc:
        click.echo(f"[{run_id}] FATAL: {exc}", err=True)
        sys.exit(1)
    finally:
        if rejects is not None:
            rejects.close()

    for warning in counters.warnings:
        click.echo(f"[{run_id}] WARNING: {warning}", err=True)

    click.echo(f"[{run_id}] SQL output: {outputs.sql_path}")
    click.echo(f"[{run_id}] Error report: {outputs.report_path}")
    if rejects is not None and counters.rows_rejected:
        click.echo(f"[{run_id}] Rejected rows: {rejects.path}")

    if run_report:
        try:
            report_path = write_run_report(
                run_id, started_at,
                {
                    "csv_path": str(src_path),
                    "sql_path": str(outputs.sql_path),
                    "report_path": str(outputs.report_path),
                },
                counters,
            )
        except PipelineFatalError as exc:
            click.echo(f"[{run_id}] FATAL: {exc}", err=True)
            sys.exit(1)
        click.echo(f"[{run_id}] Run report: {report_path}")

    click.echo(json.dumps(counters.to_dict(), indent=2, default=str))
    click.echo(f"[{run_id}] Done.")


def _validate_flags(src: str | None, run_id: str) -> Path:
    if not src:
        click.echo(
            f"[{run_id}] FATAL: please provide a source CSV file via --src "
            "(example: supply-etl --src pedidos.csv)",
            err=True,
        )
        sys.exit(1)
    return Path(src)


if __name__ == "__main__":
    main()
