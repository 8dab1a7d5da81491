from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.store import StoreError


class MemoryStore:
    """In-memory stand-in for the Supabase tables with the same ``select``."""

    def __init__(self, tables=None, fail_on=()):
        self.tables = {name: list(rows) for name, rows in (tables or {}).items()}
        self.fail_on = set(fail_on)
        self.calls = []

    def select(self, table, *, columns="*", eq=None, lte=None, order=None, descending=False):
        self.calls.append(table)
        if table in self.fail_on:
            raise StoreError(table, "connection reset")
        rows = list(self.tables.get(table, []))
        for column, value in (eq or {}).items():
            rows = [row for row in rows if row.get(column) == value]
        for column, value in (lte or {}).items():
            rows = [row for row in rows if str(row.get(column)) <= str(value)]
        if order:
            rows.sort(key=lambda row: str(row.get(order) or ""), reverse=descending)
        if columns != "*":
            wanted = [c.strip() for c in columns.split(",")]
            rows = [{c: row.get(c) for c in wanted} for row in rows]
        return rows


@pytest.fixture(autouse=True)
def isolated_log_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("GANADO_LOG_DIR", str(tmp_path / "logs"))
    return tmp_path / "logs"


@pytest.fixture
def memory_store():
    return MemoryStore


@pytest.fixture
def sample_tables():
    return {
        "registros": [
            {"id": 1, "socio": "Ana Pérez", "fecha": "2024-01-10", "entradas": 10, "vr_kilo": 8000, "kg_totales": 300},
            {"id": 2, "socio": "Ana Pérez", "fecha": "2024-03-05", "entradas": 5, "vr_kilo": 9000, "kg_totales": 320},
            {"id": 3, "socio": "Luis Gómez", "fecha": "2024-02-01", "entradas": 20, "vr_kilo": 7500, "kg_totales": 280},
        ],
        "salidas_detalle": [
            {"id": "s1", "socio": "Ana Pérez", "fecha": "2024-04-01", "causa": "ventas", "cantidad": 3},
            {"id": "s2", "socio": "Ana Pérez", "fecha": "2024-04-15", "causa": "muerte", "cantidad": 1},
            {"id": "s3", "socio": "Ana Pérez", "fecha": "2024-05-02", "causa": "ventas", "cantidad": 2},
            {"id": "s4", "socio": "Luis Gómez", "fecha": "2024-03-20", "causa": "robo", "cantidad": 2},
            {"id": "s5", "socio": "Luis Gómez", "fecha": "2024-04-10", "causa": "ventas", "cantidad": 4},
        ],
    }
