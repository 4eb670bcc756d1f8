"""supply_etl.shared

Run-level support shared by the pipeline and the CLI: fatal error
types, RejectWriter, RunCounters, header normalization and the JSON
run report.
"""

from __future__ import annotations

import csv
import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class PipelineFatalError(Exception):
    """Base for errors that abort a whole run."""


class StreamIOError(PipelineFatalError):
    """Raised when the source CSV cannot be opened, decoded or parsed."""


class OutputWriteError(PipelineFatalError):
    """Raised when an output artifact cannot be written."""


# ---------------------------------------------------------------------------
# RejectWriter
# ---------------------------------------------------------------------------

class RejectWriter:
    """Lazy-open CSV writer for rejected rows.

    Rows go to a ``.part`` sibling of *path*; ``commit`` moves it into
    place once the run's other outputs are written, and ``close`` without
    a commit removes it.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._staging = path.with_name(path.name + ".part")
        self._fh = None
        self._writer = None

    @property
    def path(self) -> Path:
        return self._path

    def write(self, row: dict[str, str], row_number: int, reason: str) -> None:
        try:
            if self._fh is None:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                self._fh = open(self._staging, "w", newline="", encoding="utf-8")
                fieldnames = ["_row_number"] + list(row.keys()) + ["_reject_reason"]
                self._writer = csv.DictWriter(
                    self._fh, fieldnames=fieldnames, extrasaction="ignore"
                )
                self._writer.writeheader()
            out = {"_row_number": row_number, **row, "_reject_reason": reason}
            self._writer.writerow(out)
            self._fh.flush()
        except OSError as exc:
            raise OutputWriteError(f"cannot write rejects file {self._path}: {exc}") from exc

    def commit(self) -> None:
        """Move the staged rows into place; no-op when nothing was rejected."""
        if self._fh is None:
            return
        try:
            self._fh.close()
            self._staging.replace(self._path)
        except OSError as exc:
            self._staging.unlink(missing_ok=True)
            raise OutputWriteError(f"cannot write rejects file {self._path}: {exc}") from exc
        finally:
            self._fh = None
            self._writer = None

    def close(self) -> None:
        if self._fh:
            self._fh.close()
            self._fh = None
            self._writer = None
            self._staging.unlink(missing_ok=True)


# ---------------------------------------------------------------------------
# RunCounters
# ---------------------------------------------------------------------------

@dataclass
class RunCounters:
    rows_read: int = 0
    rows_rejected: int = 0
    requests_emitted: int = 0
    items_emitted: int = 0
    warnings: list[str] = field(default_factory=list)

    @property
    def statements_emitted(self) -> int:
        return self.requests_emitted + self.items_emitted

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows_read": self.rows_read,
            "rows_rejected": self.rows_rejected,
            "requests_emitted": self.requests_emitted,
            "items_emitted": self.items_emitted,
            "statements_emitted": self.statements_emitted,
            "warnings": self.warnings,
        }


# ---------------------------------------------------------------------------
# Header normalization
# ---------------------------------------------------------------------------

def normalize_headers(raw: dict[str | None, Any]) -> dict[str, str]:
    """Return a new dict with header keys whitespace-stripped.

    Overflow cells (csv.DictReader puts them under the None key) are
    dropped, and short rows have their missing cells left as None.
    """
    return {k.strip(): v for k, v in raw.items() if k is not None}


# ---------------------------------------------------------------------------
# Report writer
# ---------------------------------------------------------------------------

def write_run_report(
    run_id: str,
    started_at: str,
    source_paths: dict[str, str | None],
    counters: RunCounters,
    reports_dir: Path = Path("./artifacts/reports"),
) -> Path:
    report = {
        "run_id": run_id,
        "started_at": started_at,
        "finished_at": datetime.utcnow().isoformat(),
        **source_paths,
        "counters": counters.to_dict(),
    }
    report_path = reports_dir / f"{run_id}.json"
    try:
        report_path.parent.mkdir(parents=True, exist_ok=True)
        report_path.write_text(json.dumps(report, indent=2, default=str))
    except OSError as exc:
        raise OutputWriteError(f"cannot write run report {report_path}: {exc}") from exc
    return report_path
