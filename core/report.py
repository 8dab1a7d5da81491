"""Loaders that feed the dashboard tabs from the external store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import pandas as pd

from core.activity import append_log, log_event, new_trace
from core.numbers import normalize_numeric
from core.store import REGISTROS_TABLE, SALIDAS_TABLE, StoreError
from ventas_engine import CAUSAS, SaleReportRow, build_sales_report, resumen_ventas, ventas_to_frame

REGISTROS_COLUMNS = ["fecha", "socio", "entradas", "vr_kilo", "kg_totales"]
SALIDAS_COLUMNS = ["fecha", "socio", "causa", "cantidad"]


@dataclass
class VentasReport:
    rows: list[SaleReportRow] = field(default_factory=list)
    error: str | None = None
    generated_at: datetime = field(default_factory=datetime.now)
    trace: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def load_ventas_report(store) -> VentasReport:
    """Build the whole report or nothing.

    On a store failure the report comes back empty with ``error`` set; the
    caller retries the full build.
    """

    trace = new_trace("ventas-")
    try:
        rows = build_sales_report(store)
    except StoreError as exc:
        append_log(f"Reporte de ventas abortado: {exc}", level="ERROR", scope="store")
        log_event("reporte_ventas", f"error={exc}", level="ERROR", trace_id=trace)
        return VentasReport(rows=[], error=str(exc), trace=trace)

    log_event("reporte_ventas", f"filas={len(rows)}", trace_id=trace)
    return VentasReport(rows=rows, trace=trace)


def _frame(records: list[dict[str, Any]], columns: list[str], numeric: list[str]) -> pd.DataFrame:
    df = pd.DataFrame(records or [])
    for column in columns:
        if column not in df.columns:
            df[column] = pd.NA
    df = df[columns].copy()
    for column in numeric:
        df[column] = normalize_numeric(df[column], index=df.index)
    df["socio"] = df["socio"].fillna("").astype(str)
    df["fecha"] = pd.to_datetime(df["fecha"], errors="coerce").dt.date
    return df


def load_registros(store) -> pd.DataFrame:
    records = store.select(REGISTROS_TABLE, order="fecha", descending=True)
    return _frame(records, REGISTROS_COLUMNS, ["entradas", "vr_kilo", "kg_totales"])


def load_salidas(store, causa: str | None = None) -> pd.DataFrame:
    eq = {"causa": causa} if causa else None
    records = store.select(SALIDAS_TABLE, eq=eq, order="fecha", descending=True)
    df = _frame(records, SALIDAS_COLUMNS, ["cantidad"])
    df["causa"] = df["causa"].fillna("").astype(str)
    return df


def load_socios(store) -> list[str]:
    records = store.select(REGISTROS_TABLE, columns="socio", order="socio")
    socios: list[str] = []
    for record in records:
        socio = record.get("socio") or ""
        if socio and socio not in socios:
            socios.append(socio)
    return socios


def filtrar_por_socio(df: pd.DataFrame, socio: str = "") -> pd.DataFrame:
    if not socio or df.empty:
        return df
    mask = df["socio"].str.lower().str.contains(socio.lower(), regex=False)
    return df[mask]


def ventas_por_mes(rows: list[SaleReportRow]) -> pd.DataFrame:
    df = ventas_to_frame(rows)
    df = df[df["fecha_venta"].notna()].copy()
    if df.empty:
        return pd.DataFrame(columns=["mes", "total_venta"])
    df["mes"] = pd.to_datetime(df["fecha_venta"]).dt.strftime("%Y-%m")
    por_mes = df.groupby("mes", as_index=False)["total_venta"].sum()
    return por_mes.sort_values("mes").reset_index(drop=True)


def dashboard_stats(
    registros: pd.DataFrame,
    salidas: pd.DataFrame,
    ventas: list[SaleReportRow],
) -> dict[str, Any]:
    salidas_por_causa = {causa: 0.0 for causa in CAUSAS}
    if not salidas.empty:
        grouped = salidas.groupby("causa")["cantidad"].sum()
        for causa in CAUSAS:
            salidas_por_causa[causa] = float(grouped.get(causa, 0.0))

    total_entradas = float(registros["entradas"].sum()) if not registros.empty else 0.0
    socios = set(registros["socio"]) | set(salidas["socio"])
    socios.discard("")

    resumen = resumen_ventas(ventas)
    return {
        "total_registros": int(len(registros)),
        "socios": len(socios),
        "total_entradas": total_entradas,
        "salidas_por_causa": salidas_por_causa,
        "inventario_actual": total_entradas - sum(salidas_por_causa.values()),
        "total_ventas": resumen["total_venta"],
        "ventas": resumen["ventas"],
    }


__all__ = [
    "VentasReport",
    "load_ventas_report",
    "load_registros",
    "load_salidas",
    "load_socios",
    "filtrar_por_socio",
    "ventas_por_mes",
    "dashboard_stats",
]
