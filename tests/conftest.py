"""Shared fixtures: a small reference catalog and a valid form row."""

from __future__ import annotations

import csv
from pathlib import Path

import pytest

from supply_etl.reference_catalog import ReferenceCatalog

CATALOG_ENTRIES = {
    "zone": [
        {"name": "Lisboa e Vale do Tejo", "id": "ARSLVT"},
        {"name": "Norte", "id": "ARSN"},
    ],
    "district": [
        {"name": "Lisboa", "id": "11"},
        {"name": "Porto", "id": "13"},
    ],
    "municipality": [
        {"name": "Lisboa", "id": "1106"},
        {"name": "Matosinhos", "id": "1308"},
    ],
}


def base_row() -> dict[str, str]:
    return {
        "Carimbo de data/hora": "3/27/2020 14:05:09",
        "Instituição": "Hospital de Santa Maria",
        "Serviço": "Urgência",
        "Morada": "Av. Prof. Egas Moniz",
        "Código Postal": "1649-035",
        "Distrito": "Lisboa",
        "Concelho": "Lisboa",
        "Zona": "Lisboa e Vale do Tejo",
        "Nome do Requisitante": "Ana Silva",
        "Email": "ana.silva@example.pt",
        "Contacto Telefónico": "+351912345678",
        "Prioridade": "Urgente",
        "Estado": "Aceite",
        "Observações": "",
        "Quantidade de Viseiras": "",
        "Quantidade de Batas": "",
    }


def write_csv(path: Path, rows: list[dict[str, str]]) -> Path:
    with path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=list(base_row().keys()))
        writer.writeheader()
        writer.writerows(rows)
    return path


@pytest.fixture
def catalog() -> ReferenceCatalog:
    return ReferenceCatalog.load(CATALOG_ENTRIES)


@pytest.fixture
def row() -> dict[str, str]:
    return base_row()
