"""supply_etl.sql_emit

Render structured records as literal ``insert`` statement text.

Values are NOT escaped: an embedded single quote is written through
unchanged and produces invalid (or unsafe) SQL. Input exports are
assumed free of quotes. Switching to doubled quotes would change the
output of existing runs, so it is left as a known gap.
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal


class ValueKind(enum.Enum):
    TEXT = "text"
    NULLABLE_TEXT = "nullable_text"
    NUMBER = "number"


@dataclass(frozen=True)
class FieldSpec:
    """One output column paired with how its value must be serialized."""

    column: str
    kind: ValueKind
    value: str | int | Decimal | None


def render_literal(spec: FieldSpec) -> str:
    """Return the SQL literal for a single field.

    TEXT          -> 'value'  (None/empty -> '')
    NULLABLE_TEXT -> 'value'  (None/empty -> null)
    NUMBER        -> value    (None -> empty)
    """
    value = spec.value
    if spec.kind is ValueKind.TEXT:
        return f"'{'' if value is None else value}'"
    if spec.kind is ValueKind.NULLABLE_TEXT:
        if value is None or value == "":
            return "null"
        return f"'{value}'"
    if spec.kind is ValueKind.NUMBER:
        return "" if value is None else str(value)
    raise ValueError(f"unsupported value kind: {spec.kind!r}")


def emit_insert(record: Sequence[FieldSpec], table_name: str) -> str:
    """Build ``insert into <table> (<cols>) values (<vals>);`` for *record*.

    Column order is the order of *record*.
    """
    if not record:
        raise ValueError(f"cannot emit an insert into {table_name} with no columns")
    columns = ", ".join(spec.column for spec in record)
    values = ", ".join(render_literal(spec) for spec in record)
    return f"insert into {table_name} ({columns}) values ({values});"
