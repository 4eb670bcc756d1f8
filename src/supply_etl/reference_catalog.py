"""supply_etl.reference_catalog

Read-only lookup tables for zones, districts and municipalities.

The catalog is built once per run and passed explicitly to the row
transformer. Display names are folded with normalize_lookup_name at load
time; lookups fold the row value the same way and compare exactly.

Usage:
    from pathlib import Path
    from supply_etl.reference_catalog import ReferenceCatalog

    catalog = ReferenceCatalog.from_yaml(Path("reference_catalog.yml"))
    district_id = catalog.lookup("district", "Lisboa")
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from supply_etl.normalize import normalize_lookup_name
from supply_etl.validators import RowValidationError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ZONE = "zone"
DISTRICT = "district"
MUNICIPALITY = "municipality"

CATEGORIES = (ZONE, DISTRICT, MUNICIPALITY)

# YAML top-level key for each category
YAML_KEYS = {
    ZONE: "zones",
    DISTRICT: "districts",
    MUNICIPALITY: "municipalities",
}

# Categories where a blank row value means "not provided" rather than an error
OPTIONAL_CATEGORIES = frozenset({ZONE})

DEFAULT_CATALOG_PATH = Path(__file__).parent / "data" / "reference_catalog.yml"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class CatalogLoadError(ValueError):
    """Raised when reference data cannot be read or has the wrong shape."""


class ReferenceNotFoundError(RowValidationError):
    """Raised when a row value has no entry in a reference table."""

    def __init__(self, category: str, raw_name: str | None) -> None:
        self.category = category
        self.raw_name = raw_name or ""
        super().__init__(f"Unknown {category} (value: '{self.raw_name}')")


# ---------------------------------------------------------------------------
# ReferenceEntry / ReferenceCatalog
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ReferenceEntry:
    normalized_name: str
    id: str


@dataclass(frozen=True)
class ReferenceCatalog:
    """Immutable name -> id index per category."""

    _index: Mapping[str, Mapping[str, str]] = field(repr=False)

    @classmethod
    def load(
        cls, raw_entries: Mapping[str, Iterable[Mapping[str, Any]]]
    ) -> ReferenceCatalog:
        """Build a catalog from ``{category: [{"name": ..., "id": ...}, ...]}``.

        Missing categories load as empty tables. The first entry wins when
        two names fold to the same key.
        """
        index: dict[str, Mapping[str, str]] = {}
        for category in CATEGORIES:
            table: dict[str, str] = {}
            for raw in raw_entries.get(category) or []:
                entry = _parse_entry(category, raw)
                table.setdefault(entry.normalized_name, entry.id)
            index[category] = MappingProxyType(table)
        return cls(_index=MappingProxyType(index))

    @classmethod
    def from_yaml(cls, yaml_path: Path = DEFAULT_CATALOG_PATH) -> ReferenceCatalog:
        """Load the three tables from a YAML file.

        Raises:
            CatalogLoadError: If the file is unreadable or malformed.
        """
        try:
            data = yaml.safe_load(yaml_path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            raise CatalogLoadError(f"cannot read reference catalog {yaml_path}: {exc}") from exc
        if not isinstance(data, dict):
            raise CatalogLoadError(f"reference catalog {yaml_path}: YAML root must be a mapping.")
        raw_entries: dict[str, Any] = {}
        for category, key in YAML_KEYS.items():
            entries = data.get(key) or []
            if not isinstance(entries, list):
                raise CatalogLoadError(
                    f"reference catalog {yaml_path}: '{key}' must be a list of {{name, id}}"
                )
            raw_entries[category] = entries
        return cls.load(raw_entries)

    def entries(self, category: str) -> list[ReferenceEntry]:
        return [ReferenceEntry(n, i) for n, i in self._table(category).items()]

    def lookup(self, category: str, raw_name: str | None) -> str | None:
        """Return the id for *raw_name* in *category*.

        A blank zone returns None. Blank or unknown values in any other
        category, and unknown zones, raise ReferenceNotFoundError.
        """
        table = self._table(category)
        key = normalize_lookup_name(raw_name)
        if not key:
            if category in OPTIONAL_CATEGORIES:
                return None
            raise ReferenceNotFoundError(category, raw_name)
        try:
            return table[key]
        except KeyError:
            raise ReferenceNotFoundError(category, raw_name) from None

    def __len__(self) -> int:
        return sum(len(t) for t in self._index.values())

    def _table(self, category: str) -> Mapping[str, str]:
        try:
            return self._index[category]
        except KeyError:
            raise KeyError(f"unknown reference category {category!r}") from None


def _parse_entry(category: str, raw: Mapping[str, Any]) -> ReferenceEntry:
    if not isinstance(raw, Mapping) or "name" not in raw or "id" not in raw:
        raise CatalogLoadError(f"{category} entry must have 'name' and 'id': {raw!r}")
    name = normalize_lookup_name(str(raw["name"]))
    if not name:
        raise CatalogLoadError(f"{category} entry has a blank name: {raw!r}")
    return ReferenceEntry(normalized_name=name, id=str(raw["id"]))
