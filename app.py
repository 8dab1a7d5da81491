# app.py - Ganado Socios v0.3 - Inventario, salidas y reporte de ventas por socio
# Pestañas: 🏠 Dashboard | 📥 Registros | 📤 Salidas | 💰 Ventas
# Estructura:
#   app.py, ventas_engine.py, pyproject.toml
#   core/: activity.py, numbers.py, report.py, settings.py, store.py
#   Datos: tablas `registros` y `salidas_detalle` en Supabase (solo lectura)
from __future__ import annotations

from contextlib import contextmanager
from textwrap import dedent

import matplotlib.pyplot as plt
import pandas as pd
import streamlit as st

from core.activity import get_log_path, log_event
from core.numbers import format_fixed, format_money, format_plain
from core.report import (
    dashboard_stats,
    filtrar_por_socio,
    load_registros,
    load_salidas,
    load_socios,
    load_ventas_report,
    ventas_por_mes,
)
from core.settings import cache_ttl, load_store_settings
from core.store import StoreError, store_from_settings
from ventas_engine import CAUSAS, filtrar_ventas, resumen_ventas, ventas_csv

APP_VERSION = "Ganado Socios v0.3"
TODOS_LOS_SOCIOS = "Todos los socios"
TODAS_LAS_CAUSAS = "Todas"

st.set_page_config(page_title=APP_VERSION, layout="wide")

BASE_STYLE = dedent(
    """
    <style>
    :root {
        --shadow-card: 0 18px 42px -24px rgba(15, 23, 42, 0.28);
        --radius-card: 18px;
        --radius-pill: 999px;
    }

    html, body, .block-container {
        font-family: "Inter", "Segoe UI", -apple-system, BlinkMacSystemFont, "Helvetica Neue", sans-serif;
        letter-spacing: 0.01em;
    }

    .card {
        padding: 1.35rem;
        border-radius: var(--radius-card);
        background: #FFFFFF;
        box-shadow: var(--shadow-card);
        margin-bottom: 1rem;
    }

    .stButton>button,
    .stDownloadButton>button {
        border-radius: var(--radius-pill);
        font-weight: 600;
        padding: 0.55rem 1.35rem;
    }

    .stTabs [data-baseweb="tab"] {
        padding: 0.65rem 1.35rem;
        border-radius: var(--radius-pill);
        font-weight: 600;
        margin-right: 0.35rem;
    }

    .metric-small .stMetric {
        background: rgba(37, 99, 235, 0.08);
        padding: 0.8rem 1.1rem;
        border-radius: var(--radius-card);
    }
    </style>
    """
)
st.markdown(BASE_STYLE, unsafe_allow_html=True)


@contextmanager
def card(title: str, subtitle: str | None = None, icon: str = ""):
    st.markdown('<div class="card">', unsafe_allow_html=True)
    st.markdown(
        f"**{icon} {title}**" + (f"<br><span style='color:#6B7280'>{subtitle}</span>" if subtitle else ""),
        unsafe_allow_html=True,
    )
    yield
    st.markdown("</div>", unsafe_allow_html=True)


def clear_streamlit_cache():
    st.cache_data.clear()


def rerun_with_cache_reset():
    clear_streamlit_cache()
    st.rerun()


# ------------------------------------------------------------------------------
# Conexión al almacén externo
# ------------------------------------------------------------------------------
@st.cache_resource
def get_store():
    return store_from_settings(load_store_settings())


CACHE_TTL = cache_ttl()


@st.cache_data(ttl=CACHE_TTL, show_spinner="Cargando ventas...")
def cached_ventas_report(_store):
    return load_ventas_report(_store)


@st.cache_data(ttl=CACHE_TTL, show_spinner=False)
def cached_registros(_store) -> pd.DataFrame:
    return load_registros(_store)


@st.cache_data(ttl=CACHE_TTL, show_spinner=False)
def cached_salidas(_store) -> pd.DataFrame:
    return load_salidas(_store)


@st.cache_data(ttl=CACHE_TTL, show_spinner=False)
def cached_socios(_store) -> list[str]:
    return load_socios(_store)


def _load_or_error(loader, label: str, default):
    try:
        return loader(store)
    except StoreError as exc:
        log_event("carga", f"{label}: {exc}", level="ERROR")
        st.error(f"No se pudieron cargar {label}: {exc}")
        return default


def _fecha_local(value) -> str:
    if value is None or pd.isna(value):
        return ""
    return value.strftime("%d/%m/%Y")


def _csv_bytes(df: pd.DataFrame) -> bytes:
    return df.to_csv(index=False).encode("utf-8-sig")


st.markdown(f"### 🐄 {APP_VERSION}")

try:
    store = get_store()
except StoreError as exc:
    st.error(f"Configurá la conexión a Supabase en `.streamlit/secrets.toml` o variables de entorno ({exc}).")
    st.stop()

_, top_right = st.columns([4, 1])
with top_right:
    if st.button("🔄 Actualizar datos", use_container_width=True):
        log_event("actualizar", "cache limpiada")
        rerun_with_cache_reset()

# ------------------------------------------------------------------------------
# Tabs
# ------------------------------------------------------------------------------
tab_home, tab_registros, tab_salidas, tab_ventas = st.tabs(
    ["🏠 Dashboard", "📥 Registros", "📤 Salidas", "💰 Ventas"]
)

report = cached_ventas_report(store)
if not report.ok:
    # No se cachea un reporte fallido: el próximo intento vuelve a consultar todo
    cached_ventas_report.clear()

# ------------------------------------------------------------------------------
# 🏠 Dashboard
# ------------------------------------------------------------------------------
with tab_home:
    registros_df = _load_or_error(cached_registros, "los registros", pd.DataFrame(columns=["socio", "entradas"]))
    salidas_df = _load_or_error(cached_salidas, "las salidas", pd.DataFrame(columns=["socio", "causa", "cantidad"]))
    stats = dashboard_stats(registros_df, salidas_df, report.rows)

    with card("Resumen operativo"):
        st.markdown('<div class="metric-small">', unsafe_allow_html=True)
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Total Registros", f"{stats['total_registros']:,}")
        c2.metric("Socios", stats["socios"])
        c3.metric("Inventario actual", format_plain(stats["inventario_actual"]))
        c4.metric("Total ventas", format_money(stats["total_ventas"]))

        salidas_causa = stats["salidas_por_causa"]
        d1, d2, d3, d4 = st.columns(4)
        d1.metric("Entradas", format_plain(stats["total_entradas"]))
        d2.metric("Salidas x Venta", format_plain(salidas_causa["ventas"]))
        d3.metric("Salidas x Muerte", format_plain(salidas_causa["muerte"]))
        d4.metric("Salidas x Robo", format_plain(salidas_causa["robo"]))
        st.markdown("</div>", unsafe_allow_html=True)

    por_mes = ventas_por_mes(report.rows)
    if not por_mes.empty:
        with card("Ventas por mes"):
            fig = plt.figure()
            plt.bar(por_mes["mes"], por_mes["total_venta"])
            plt.xticks(rotation=45, ha="right")
            plt.ylabel("Total venta ($)")
            plt.xlabel("Mes")
            plt.tight_layout()
            st.pyplot(fig, use_container_width=True)
            plt.close(fig)
    else:
        st.info("Aún no hay ventas para graficar.")

    log_path = get_log_path()
    if log_path.exists():
        try:
            activity_df = pd.read_csv(log_path, sep="|", encoding="utf-8")
        except (OSError, pd.errors.ParserError) as exc:
            st.warning(f"No se pudo leer activity_log.csv: {exc}")
        else:
            if not activity_df.empty:
                with card("Actividad reciente"):
                    st.dataframe(activity_df.tail(20).iloc[::-1], use_container_width=True, hide_index=True)

# ------------------------------------------------------------------------------
# 📥 Registros
# ------------------------------------------------------------------------------
with tab_registros:
    st.subheader("Registros de inventario")
    registros_df = _load_or_error(cached_registros, "los registros", None)
    if registros_df is not None:
        filtro = st.text_input("Buscar socio", key="registros_socio")
        vista = filtrar_por_socio(registros_df, filtro)
        st.caption(f"{len(vista)} registros")
        st.dataframe(
            vista.assign(fecha=vista["fecha"].map(_fecha_local)),
            use_container_width=True,
            hide_index=True,
        )
        if st.download_button(
            "⬇️ Descargar CSV",
            data=_csv_bytes(vista),
            file_name="registros.csv",
            mime="text/csv",
            key="registros_export_csv",
        ):
            log_event("exportacion", f"registros.csv filas={len(vista)}")

# ------------------------------------------------------------------------------
# 📤 Salidas
# ------------------------------------------------------------------------------
with tab_salidas:
    st.subheader("Salidas (ventas, muerte, robo)")
    salidas_df = _load_or_error(cached_salidas, "las salidas", None)
    if salidas_df is not None:
        col_socio, col_causa = st.columns(2)
        with col_socio:
            filtro = st.text_input("Buscar socio", key="salidas_socio")
        with col_causa:
            causa = st.selectbox("Causa", [TODAS_LAS_CAUSAS, *CAUSAS], key="salidas_causa")
        vista = filtrar_por_socio(salidas_df, filtro)
        if causa != TODAS_LAS_CAUSAS:
            vista = vista[vista["causa"] == causa]
        st.caption(f"{len(vista)} salidas")
        st.dataframe(
            vista.assign(fecha=vista["fecha"].map(_fecha_local)),
            use_container_width=True,
            hide_index=True,
        )
        if st.download_button(
            "⬇️ Descargar CSV",
            data=_csv_bytes(vista),
            file_name="salidas.csv",
            mime="text/csv",
            key="salidas_export_csv",
        ):
            log_event("exportacion", f"salidas.csv filas={len(vista)}")

# ------------------------------------------------------------------------------
# 💰 Ventas
# ------------------------------------------------------------------------------
with tab_ventas:
    st.subheader("Reporte de Ventas")
    st.caption(
        "Gestión y seguimiento de ventas ganaderas · "
        f"generado {report.generated_at.strftime('%d/%m/%Y %H:%M')}"
    )

    if not report.ok:
        st.error(f"No se pudo generar el reporte de ventas: {report.error}")
        if st.button("Reintentar", key="ventas_retry"):
            log_event("reintento", "reporte de ventas", trace_id=report.trace)
            rerun_with_cache_reset()

    socios = _load_or_error(cached_socios, "los socios", [])

    with card("Filtros"):
        f1, f2 = st.columns(2)
        with f1:
            socio_sel = st.selectbox("Socio", [TODOS_LOS_SOCIOS, *socios], key="ventas_socio")
        with f2:
            fecha_sel = st.date_input("Fecha", value=None, key="ventas_fecha", format="DD/MM/YYYY")

    filtro_socio = "" if socio_sel == TODOS_LOS_SOCIOS else socio_sel
    filtro_fecha = fecha_sel.isoformat() if fecha_sel else ""
    filtradas = filtrar_ventas(report.rows, socio=filtro_socio, fecha=filtro_fecha)

    resumen = resumen_ventas(filtradas)
    r1, r2, r3 = st.columns(3)
    r1.metric("Total Venta", format_money(resumen["total_venta"]))
    r2.metric("60%", format_money(resumen["sesenta_porciento"]))
    r3.metric("40%", format_money(resumen["cuarenta_porciento"]))

    st.markdown(f"#### Ventas Registradas ({len(filtradas)})")
    if filtradas:
        tabla = pd.DataFrame(
            [
                {
                    "Fecha Venta": _fecha_local(row.fecha_venta),
                    "Inventario": format_plain(row.inventario),
                    "Salidas x Venta": format_plain(row.salidas_venta),
                    "Salidas x Muerte": format_plain(row.salidas_muerte),
                    "Salidas x Robo": format_plain(row.salidas_robo),
                    "Vr Kilo Venta": format_money(row.vr_kilo_venta),
                    "Total Kilos Venta": f"{format_fixed(row.total_kilos_venta)} kg",
                    "Total Venta": format_money(row.total_venta),
                    "60%": format_money(row.sesenta_porciento),
                    "40%": format_money(row.cuarenta_porciento),
                    "Inventario Actual": format_plain(row.inventario_actual),
                    "Socio": row.socio,
                }
                for row in filtradas
            ]
        )
        st.dataframe(tabla, use_container_width=True, hide_index=True)
    else:
        st.info("No se encontraron ventas registradas")

    if st.download_button(
        "⬇️ Exportar CSV",
        data=ventas_csv(filtradas).encode("utf-8-sig"),
        file_name="ventas.csv",
        mime="text/csv",
        key="ventas_export_csv",
    ):
        log_event("exportacion", f"ventas.csv filas={len(filtradas)}", trace_id=report.trace)
