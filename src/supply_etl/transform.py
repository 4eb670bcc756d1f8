"""supply_etl.transform

Map one raw supply-request form row to a request record plus zero or more
item records, or to a row-level failure.

Steps (the first validation error aborts the row):
  1. fresh request id
  2. submission timestamp -> ISO-8601 instant (created_at == modified_at)
  3. required contact / location fields
  4. district + municipality lookups (mandatory), zone lookup (optional)
  5. priority / status free text -> enum (never fails)
  6. quantity-gated supplementary items
  7. request record assembly

No record of a failed row is ever returned.
"""

from __future__ import annotations

import enum
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal

from supply_etl.normalize import (
    parse_quantity,
    parse_submission_ts,
    to_iso_instant,
    trim,
)
from supply_etl.reference_catalog import (
    DISTRICT,
    MUNICIPALITY,
    ZONE,
    ReferenceCatalog,
)
from supply_etl.sql_emit import FieldSpec, ValueKind
from supply_etl.validators import (
    RowValidationError,
    field_error,
    require_email,
    require_non_empty,
    require_phone_number,
    require_postal_code,
)

# ---------------------------------------------------------------------------
# Source columns (form export headers)
# ---------------------------------------------------------------------------

COL_TIMESTAMP = "Carimbo de data/hora"
COL_INSTITUTION = "Instituição"
COL_SERVICE = "Serviço"
COL_ADDRESS = "Morada"
COL_POSTAL_CODE = "Código Postal"
COL_DISTRICT = "Distrito"
COL_MUNICIPALITY = "Concelho"
COL_ZONE = "Zona"
COL_REQUESTER_NAME = "Nome do Requisitante"
COL_EMAIL = "Email"
COL_PHONE = "Contacto Telefónico"
COL_PRIORITY = "Prioridade"
COL_STATUS = "Estado"
COL_OBSERVATIONS = "Observações"
COL_VISOR_QUANTITY = "Quantidade de Viseiras"
COL_GOWN_QUANTITY = "Quantidade de Batas"

EXPECTED_HEADERS = frozenset({
    COL_TIMESTAMP, COL_INSTITUTION, COL_SERVICE, COL_ADDRESS,
    COL_POSTAL_CODE, COL_DISTRICT, COL_MUNICIPALITY, COL_ZONE,
    COL_REQUESTER_NAME, COL_EMAIL, COL_PHONE, COL_PRIORITY, COL_STATUS,
    COL_OBSERVATIONS, COL_VISOR_QUANTITY, COL_GOWN_QUANTITY,
})

# ---------------------------------------------------------------------------
# Output tables and fixed identifiers
# ---------------------------------------------------------------------------

REQUEST_TABLE = "requests"
ITEM_TABLE = "request_items"

# Audit actor for request rows written by this importer
IMPORT_ACTOR = "csv-import"
# Audit actor for item rows: the form submitter is never authenticated
UNAUTHENTICATED_SUBMITTER = "anonymous-submitter"

# Institution type is not captured by the form; every request gets this id
# until the export carries a column that can be looked up.
INSTITUTION_TYPE_PLACEHOLDER_ID = "00000000-0000-0000-0000-000000000001"

VISOR_PRODUCT_ID = "9f3b2c1e-6a0d-4c57-8f1e-2b7d5a9c4e10"
GOWN_PRODUCT_ID = "c4e81a7d-2f95-4b36-a0c8-71d3e6b59f22"

# (quantity column, product id) in emission order
SUPPLEMENTARY_ITEMS: tuple[tuple[str, str], ...] = (
    (COL_VISOR_QUANTITY, VISOR_PRODUCT_ID),
    (COL_GOWN_QUANTITY, GOWN_PRODUCT_ID),
)


class Priority(str, enum.Enum):
    HIGH = "HIGH"
    NORMAL = "NORMAL"
    LOW = "LOW"


class RequestStatus(str, enum.Enum):
    RECEIVED = "RECEIVED"
    ACCEPTED = "ACCEPTED"
    IN_PROGRESS = "IN_PROGRESS"
    DELIVERED = "DELIVERED"
    REJECTED = "REJECTED"
    CANCELED = "CANCELED"


PRIORITY_MAP = {
    "Urgente": Priority.HIGH,
    "Baixo": Priority.LOW,
}

STATUS_MAP = {
    "Aceite": RequestStatus.ACCEPTED,
    "Em Progresso": RequestStatus.IN_PROGRESS,
    "Entregue": RequestStatus.DELIVERED,
    "Recusado": RequestStatus.REJECTED,
    "Cancelado": RequestStatus.CANCELED,
}


# ---------------------------------------------------------------------------
# Row results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RowSuccess:
    request: list[FieldSpec]
    items: list[list[FieldSpec]] = field(default_factory=list)

    @property
    def request_id(self) -> str:
        return str(self.request[0].value)


@dataclass(frozen=True)
class RowFailure:
    row_number: int
    message: str

    @property
    def report_line(self) -> str:
        return f"ROW: {self.row_number} | Error: {self.message}"


RowResult = RowSuccess | RowFailure


def new_request_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------

def map_priority(value: str | None) -> Priority:
    return PRIORITY_MAP.get(trim(value) or "", Priority.NORMAL)


def map_status(value: str | None) -> RequestStatus:
    return STATUS_MAP.get(trim(value) or "", RequestStatus.RECEIVED)


def parse_timestamp_field(row: Mapping[str, str | None], field_name: str) -> str:
    raw = require_non_empty(row, field_name)
    ts = parse_submission_ts(raw)
    if ts is None:
        raise field_error(field_name, "is not a valid timestamp", raw)
    return to_iso_instant(ts)


def build_items(
    row: Mapping[str, str | None],
    request_id: str,
    timestamp: str,
) -> list[list[FieldSpec]]:
    """Return one item record per supplementary column with a positive quantity."""
    items: list[list[FieldSpec]] = []
    for column, product_id in SUPPLEMENTARY_ITEMS:
        quantity = parse_quantity(row.get(column))
        if quantity is None:
            continue
        items.append(_item_record(request_id, product_id, quantity, timestamp))
    return items


def _item_record(
    request_id: str, product_id: str, quantity: Decimal, timestamp: str
) -> list[FieldSpec]:
    return [
        FieldSpec("request_id", ValueKind.TEXT, request_id),
        FieldSpec("product_id", ValueKind.TEXT, product_id),
        FieldSpec("quantity", ValueKind.NUMBER, quantity),
        FieldSpec("observations", ValueKind.NULLABLE_TEXT, None),
        FieldSpec("created_at", ValueKind.TEXT, timestamp),
        FieldSpec("created_by", ValueKind.TEXT, UNAUTHENTICATED_SUBMITTER),
        FieldSpec("modified_at", ValueKind.TEXT, timestamp),
        FieldSpec("modified_by", ValueKind.TEXT, UNAUTHENTICATED_SUBMITTER),
    ]


# ---------------------------------------------------------------------------
# Row transformation
# ---------------------------------------------------------------------------

def build_request(
    row: Mapping[str, str | None],
    catalog: ReferenceCatalog,
    request_id: str,
) -> tuple[list[FieldSpec], str]:
    """Validate *row* and return (request record, ISO timestamp).

    Raises:
        RowValidationError: On the first missing/malformed/unknown value.
    """
    timestamp = parse_timestamp_field(row, COL_TIMESTAMP)

    institution = require_non_empty(row, COL_INSTITUTION)
    service = require_non_empty(row, COL_SERVICE)
    address = require_non_empty(row, COL_ADDRESS)
    postal_code = require_postal_code(row, COL_POSTAL_CODE)
    requester_name = require_non_empty(row, COL_REQUESTER_NAME)
    email = require_email(row, COL_EMAIL)
    phone = require_phone_number(row, COL_PHONE)

    district_id = catalog.lookup(DISTRICT, row.get(COL_DISTRICT))
    municipality_id = catalog.lookup(MUNICIPALITY, row.get(COL_MUNICIPALITY))
    zone_id = catalog.lookup(ZONE, row.get(COL_ZONE))

    priority = map_priority(row.get(COL_PRIORITY))
    status = map_status(row.get(COL_STATUS))

    request = [
        FieldSpec("id", ValueKind.TEXT, request_id),
        FieldSpec("institution_type_id", ValueKind.TEXT, INSTITUTION_TYPE_PLACEHOLDER_ID),
        FieldSpec("institution", ValueKind.TEXT, institution),
        FieldSpec("service", ValueKind.TEXT, service),
        FieldSpec("address", ValueKind.TEXT, address),
        FieldSpec("postal_code", ValueKind.TEXT, postal_code),
        FieldSpec("district_id", ValueKind.TEXT, district_id),
        FieldSpec("municipality_id", ValueKind.TEXT, municipality_id),
        FieldSpec("zone_id", ValueKind.NULLABLE_TEXT, zone_id),
        FieldSpec("requester_name", ValueKind.TEXT, requester_name),
        FieldSpec("email", ValueKind.TEXT, email),
        FieldSpec("phone", ValueKind.TEXT, phone),
        FieldSpec("priority", ValueKind.TEXT, priority.value),
        FieldSpec("status", ValueKind.TEXT, status.value),
        FieldSpec("observations", ValueKind.NULLABLE_TEXT, trim(row.get(COL_OBSERVATIONS))),
        FieldSpec("created_at", ValueKind.TEXT, timestamp),
        FieldSpec("created_by", ValueKind.TEXT, IMPORT_ACTOR),
        FieldSpec("modified_at", ValueKind.TEXT, timestamp),
        FieldSpec("modified_by", ValueKind.TEXT, IMPORT_ACTOR),
    ]
    return request, timestamp


def transform_row(
    row: Mapping[str, str | None],
    row_number: int,
    catalog: ReferenceCatalog,
    id_factory: Callable[[], str] = new_request_id,
) -> RowResult:
    """Transform one CSV row.

    Returns RowSuccess with the request and its items, or RowFailure
    carrying the first validation message. Validation errors never
    propagate out of this function.
    """
    request_id = id_factory()
    try:
        request, timestamp = build_request(row, catalog, request_id)
    except RowValidationError as exc:
        return RowFailure(row_number=row_number, message=str(exc))
    return RowSuccess(request=request, items=build_items(row, request_id, timestamp))
