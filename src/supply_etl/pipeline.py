"""supply_etl.pipeline

Drive a supply-request CSV export row by row and write the two run
artifacts:

  <stamp>_output.sql   insert statements, in input row order, framed by a
                       source comment and a row-count trailer
  <stamp>_report.txt   one "ROW: <n> | Error: <message>" line per rejected
                       row, or "No errors"

A row that fails validation is recorded and skipped; only source read
failures (StreamIOError) and output write failures (OutputWriteError)
abort the run. Both artifacts and the optional rejects CSV are staged
and moved into place together, so an aborted run leaves no complete
outputs behind.
"""

from __future__ import annotations

import csv
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from supply_etl.reference_catalog import ReferenceCatalog
from supply_etl.shared import (
    OutputWriteError,
    PipelineFatalError,
    RejectWriter,
    RunCounters,
    StreamIOError,
    normalize_headers,
)
from supply_etl.sql_emit import emit_insert
from supply_etl.transform import (
    EXPECTED_HEADERS,
    ITEM_TABLE,
    REQUEST_TABLE,
    RowFailure,
    new_request_id,
    transform_row,
)

log = logging.getLogger(__name__)

SQL_SUFFIX = "_output.sql"
REPORT_SUFFIX = "_report.txt"
NO_ERRORS = "No errors"
STAMP_FORMAT = "%Y%m%dT%H%M%S%fZ"


@dataclass(frozen=True)
class PipelineOutputs:
    sql_path: Path
    report_path: Path
    counters: RunCounters


# ---------------------------------------------------------------------------
# Source stream
# ---------------------------------------------------------------------------

def iter_csv_rows(csv_path: Path, counters: RunCounters) -> Iterator[dict[str, str]]:
    """Yield each data row as a header-stripped mapping.

    Raises:
        StreamIOError: If the file cannot be opened, decoded or parsed.
    """
    try:
        with csv_path.open(encoding="utf-8-sig", newline="") as fh:
            reader = csv.DictReader(fh)
            headers = {k.strip() for k in reader.fieldnames or []}
            missing = EXPECTED_HEADERS - headers
            if missing:
                counters.warnings.append(f"missing headers: {sorted(missing)}")
            for raw_row in reader:
                yield normalize_headers(raw_row)
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        raise StreamIOError(f"cannot read source CSV {csv_path}: {exc}") from exc


# ---------------------------------------------------------------------------
# Row loop
# ---------------------------------------------------------------------------

def render_outputs(
    rows: Iterator[dict[str, str]],
    source_label: str,
    catalog: ReferenceCatalog,
    counters: RunCounters,
    rejects: RejectWriter | None = None,
    id_factory: Callable[[], str] = new_request_id,
) -> tuple[list[str], list[str]]:
    """Return (sql lines, error lines) for *rows*, in input order."""
    statements = [f"-- Output file generated from {source_label}"]
    errors: list[str] = []

    for row_number, row in enumerate(rows, start=1):
        counters.rows_read += 1
        result = transform_row(row, row_number, catalog, id_factory=id_factory)
        if isinstance(result, RowFailure):
            counters.rows_rejected += 1
            errors.append(result.report_line)
            log.debug("rejected %s", result.report_line)
            if rejects is not None:
                rejects.write(row, row_number, result.message)
            continue
        statements.append(emit_insert(result.request, REQUEST_TABLE))
        counters.requests_emitted += 1
        for item in result.items:
            statements.append(emit_insert(item, ITEM_TABLE))
            counters.items_emitted += 1

    statements.append(f"-- Rows processed: {counters.rows_read}")
    return statements, errors


# ---------------------------------------------------------------------------
# Output artifacts
# ---------------------------------------------------------------------------

def output_paths(output_dir: Path, stamp: str) -> tuple[Path, Path]:
    return output_dir / f"{stamp}{SQL_SUFFIX}", output_dir / f"{stamp}{REPORT_SUFFIX}"


def _write_together(contents: dict[Path, str]) -> None:
    """Write every file or none of them."""
    staged: list[tuple[Path, Path]] = []
    placed: list[Path] = []
    try:
        for path, text in contents.items():
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_name(path.name + ".part")
            staged.append((tmp, path))
            tmp.write_text(text, encoding="utf-8")
        for tmp, path in staged:
            tmp.replace(path)
            placed.append(path)
    except OSError as exc:
        for tmp, _ in staged:
            tmp.unlink(missing_ok=True)
        for path in placed:
            path.unlink(missing_ok=True)
        raise OutputWriteError(f"cannot write output files: {exc}") from exc


def run_pipeline(
    csv_path: Path,
    output_dir: Path,
    catalog: ReferenceCatalog,
    rejects: RejectWriter | None = None,
    counters: RunCounters | None = None,
    stamp: str | None = None,
    id_factory: Callable[[], str] = new_request_id,
) -> PipelineOutputs:
    """Convert *csv_path* and write the SQL and report files to *output_dir*.

    Raises:
        StreamIOError: Source unreadable (nothing is written, staged rejects
            are removed).
        OutputWriteError: Destination unwritable (nothing is left behind).
    """
    counters = counters if counters is not None else RunCounters()
    stamp = stamp or datetime.now(timezone.utc).strftime(STAMP_FORMAT)
    sql_path, report_path = output_paths(output_dir, stamp)

    try:
        statements, errors = render_outputs(
            iter_csv_rows(csv_path, counters),
            str(csv_path),
            catalog,
            counters,
            rejects=rejects,
            id_factory=id_factory,
        )
        _write_together({
            sql_path: "\n".join(statements),
            report_path: "\n".join(errors) if errors else NO_ERRORS,
        })
        if rejects is not None:
            try:
                rejects.commit()
            except OutputWriteError:
                sql_path.unlink(missing_ok=True)
                report_path.unlink(missing_ok=True)
                raise
    except PipelineFatalError:
        if rejects is not None:
            rejects.close()
        raise

    log.info(
        "wrote %s (%d statements) and %s (%d errors)",
        sql_path, counters.statements_emitted, report_path, len(errors),
    )
    return PipelineOutputs(sql_path=sql_path, report_path=report_path, counters=counters)
