# ventas_engine.py - Motor de cálculo del reporte de ventas por socio
from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass, fields
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from core.numbers import coerce_number, format_fixed, format_plain
from core.store import REGISTROS_TABLE, SALIDAS_TABLE

CAUSA_VENTAS = "ventas"
CAUSA_MUERTE = "muerte"
CAUSA_ROBO = "robo"
CAUSAS = (CAUSA_VENTAS, CAUSA_MUERTE, CAUSA_ROBO)

PORCENTAJE_SESENTA = 0.6
PORCENTAJE_CUARENTA = 0.4

CSV_HEADERS = [
    "Fecha Venta",
    "Socio",
    "Inventario",
    "Salidas x Venta",
    "Salidas x Muerte",
    "Salidas x Robo",
    "Vr Kilo Venta",
    "Total Kilos Venta",
    "Total Venta",
    "60%",
    "40%",
    "Inventario Actual",
]


@dataclass
class InventoryEntry:
    socio: str
    fecha: Optional[date]
    entradas: float
    vr_kilo: float
    kg_totales: float
    id: Any = None
    created_at: str = ""


@dataclass
class OutboundEvent:
    id: Any
    socio: str
    fecha: Optional[date]
    causa: str
    cantidad: float


@dataclass
class SaleReportRow:
    id: Any
    socio: str
    fecha_venta: Optional[date]
    inventario: float
    salidas_venta: float
    salidas_muerte: float
    salidas_robo: float
    vr_kilo_venta: float
    kg_totales: float
    total_kilos_venta: float
    total_venta: float
    sesenta_porciento: float
    cuarenta_porciento: float
    inventario_actual: float

    @property
    def fecha_iso(self) -> str:
        return self.fecha_venta.isoformat() if self.fecha_venta else ""


REPORT_COLUMNS = [f.name for f in fields(SaleReportRow)]


def parse_fecha(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    ts = pd.to_datetime(str(value), errors="coerce")
    if pd.isna(ts):
        return None
    return ts.date()


def _txt(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def registros_from_records(records: Iterable[Dict[str, Any]]) -> List[InventoryEntry]:
    return [
        InventoryEntry(
            socio=rec.get("socio") or "",
            fecha=parse_fecha(rec.get("fecha")),
            entradas=coerce_number(rec.get("entradas")),
            vr_kilo=coerce_number(rec.get("vr_kilo")),
            kg_totales=coerce_number(rec.get("kg_totales")),
            id=rec.get("id"),
            created_at=_txt(rec.get("created_at")),
        )
        for rec in records or []
    ]


def salidas_from_records(records: Iterable[Dict[str, Any]]) -> List[OutboundEvent]:
    return [
        OutboundEvent(
            id=rec.get("id"),
            socio=rec.get("socio") or "",
            fecha=parse_fecha(rec.get("fecha")),
            causa=rec.get("causa") or "",
            cantidad=coerce_number(rec.get("cantidad")),
        )
        for rec in records or []
    ]


def _id_key(value: Any) -> tuple:
    # ids pueden ser enteros o uuid; los números ordenan antes que el texto
    if value is None:
        return (0, 0, "")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (1, float(value), "")
    return (2, 0, str(value))


def registro_reciente(entries: Sequence[InventoryEntry]) -> Optional[InventoryEntry]:
    """Most recent entry by fecha.

    Ties on the same fecha go to the latest ``created_at``, then the
    greatest ``id``, then the last entry in input order. Undated entries
    only win when nothing is dated.
    """

    best: Optional[InventoryEntry] = None
    best_key: Optional[tuple] = None
    for entry in entries:
        key = (
            entry.fecha is not None,
            entry.fecha or date.min,
            entry.created_at,
            _id_key(entry.id),
        )
        if best_key is None or key >= best_key:
            best, best_key = entry, key
    return best


def agrupar_por_socio(items: Iterable[Any]) -> Dict[str, list]:
    grupos: Dict[str, list] = defaultdict(list)
    for item in items:
        grupos[item.socio].append(item)
    return dict(grupos)


def salidas_hasta(eventos: Iterable[OutboundEvent], fecha: Optional[date]) -> Dict[str, float]:
    """Sum cantidad per causa over the events dated on or before ``fecha``."""

    totales = {causa: 0.0 for causa in CAUSAS}
    if fecha is None:
        return totales
    for evento in eventos:
        if evento.fecha is None or evento.fecha > fecha:
            continue
        if evento.causa in totales:
            totales[evento.causa] += evento.cantidad
    return totales


def calcular_venta(
    venta: OutboundEvent,
    registros_socio: Sequence[InventoryEntry],
    salidas_socio: Sequence[OutboundEvent],
) -> SaleReportRow:
    inventario = 0.0
    for registro in registros_socio:
        inventario += registro.entradas

    hasta = salidas_hasta(salidas_socio, venta.fecha)

    reciente = registro_reciente(registros_socio)
    vr_kilo = reciente.vr_kilo if reciente else 0.0
    kg_totales = reciente.kg_totales if reciente else 0.0

    total_kilos = venta.cantidad * kg_totales
    total_venta = total_kilos * vr_kilo

    return SaleReportRow(
        id=venta.id,
        socio=venta.socio,
        fecha_venta=venta.fecha,
        inventario=inventario,
        salidas_venta=hasta[CAUSA_VENTAS],
        salidas_muerte=hasta[CAUSA_MUERTE],
        salidas_robo=hasta[CAUSA_ROBO],
        vr_kilo_venta=vr_kilo,
        kg_totales=kg_totales,
        total_kilos_venta=total_kilos,
        total_venta=total_venta,
        sesenta_porciento=total_venta * PORCENTAJE_SESENTA,
        cuarenta_porciento=total_venta * PORCENTAJE_CUARENTA,
        inventario_actual=inventario - hasta[CAUSA_VENTAS] - hasta[CAUSA_MUERTE] - hasta[CAUSA_ROBO],
    )


def calcular_ventas(
    salidas: Sequence[OutboundEvent],
    registros: Sequence[InventoryEntry],
) -> List[SaleReportRow]:
    """One report row per ``ventas`` event, in the order the events arrive.

    ``salidas`` holds every outbound event (all causas); they are grouped by
    socio once and sliced by date in memory for each sale.
    """

    salidas_por_socio = agrupar_por_socio(salidas)
    registros_por_socio = agrupar_por_socio(registros)

    return [
        calcular_venta(
            salida,
            registros_por_socio.get(salida.socio, []),
            salidas_por_socio.get(salida.socio, []),
        )
        for salida in salidas
        if salida.causa == CAUSA_VENTAS
    ]


def build_sales_report(store) -> List[SaleReportRow]:
    """Fetch both tables and derive the report.

    Store errors propagate untouched so that callers never see a half-built
    list.
    """

    salidas_raw = store.select(SALIDAS_TABLE, order="fecha", descending=True)
    registros_raw = store.select(REGISTROS_TABLE, order="fecha", descending=True)
    return calcular_ventas(
        salidas_from_records(salidas_raw),
        registros_from_records(registros_raw),
    )


def filtrar_ventas(
    rows: Iterable[SaleReportRow],
    socio: str = "",
    fecha: str = "",
) -> List[SaleReportRow]:
    socio_l = (socio or "").lower()
    fecha_s = fecha or ""
    return [
        row
        for row in rows
        if (not socio_l or socio_l in row.socio.lower())
        and (not fecha_s or fecha_s in row.fecha_iso)
    ]


def ventas_to_frame(rows: Sequence[SaleReportRow]) -> pd.DataFrame:
    if not rows:
        return pd.DataFrame(columns=REPORT_COLUMNS)
    return pd.DataFrame([asdict(row) for row in rows], columns=REPORT_COLUMNS)


def _csv_record(row: SaleReportRow) -> list[str]:
    return [
        row.fecha_iso,
        row.socio,
        format_plain(row.inventario),
        format_plain(row.salidas_venta),
        format_plain(row.salidas_muerte),
        format_plain(row.salidas_robo),
        format_fixed(row.vr_kilo_venta),
        format_fixed(row.total_kilos_venta),
        format_fixed(row.total_venta),
        format_fixed(row.sesenta_porciento),
        format_fixed(row.cuarenta_porciento),
        format_plain(row.inventario_actual),
    ]


def ventas_csv(rows: Sequence[SaleReportRow]) -> str:
    data = pd.DataFrame([_csv_record(row) for row in rows], columns=CSV_HEADERS)
    return data.to_csv(index=False, lineterminator="\n")


def resumen_ventas(rows: Sequence[SaleReportRow]) -> dict:
    total_venta = total_kilos = sesenta = cuarenta = 0.0
    for row in rows:
        total_venta += row.total_venta
        total_kilos += row.total_kilos_venta
        sesenta += row.sesenta_porciento
        cuarenta += row.cuarenta_porciento
    return {
        "ventas": len(rows),
        "socios": len({row.socio for row in rows}),
        "total_venta": total_venta,
        "total_kilos_venta": total_kilos,
        "sesenta_porciento": sesenta,
        "cuarenta_porciento": cuarenta,
    }
