"""
ui/styling.py
=============
Componentes de presentación para Streamlit.

IMPORTANTE: Este módulo SÍ puede importar streamlit.
No debe contener lógica de comparación. Solo renderiza resultados ya
calculados por datacompare/.
"""
from __future__ import annotations

import pandas as pd
import streamlit as st

from datacompare import csv_comparison, time_series
from datacompare.models import ComparisonResult
from datacompare.report import report_to_dataframe, status_frame

# ---------------------------------------------------------------------------
# Colores CSS por estado de celda
# ---------------------------------------------------------------------------

STATUS_CSS = {
    "pass": "background-color: #92D050; color: #1a3a1a;",
    "fail": "background-color: #FF6666; color: #3a0000; font-weight: bold;",
}

RESULT_LABELS = {
    True: "🟢 OK",
    False: "🔴 Diferencias",
}

MODE_LABELS = {
    "table": "Tabla (celda a celda)",
    "timeseries": "Serie temporal (por timestamp)",
}


def report_columns(mode: str) -> list[str]:
    """Columnas disponibles del informe para un modo."""
    if mode == "timeseries":
        return list(time_series.GET_TABLE_VALUES)
    return list(csv_comparison.GET_TABLE_VALUES)


# ---------------------------------------------------------------------------
# Helpers de color (internos)
# ---------------------------------------------------------------------------

def _css_for_status(status) -> str:
    return STATUS_CSS.get(status, "")


def _styled_table(table: list[list]) -> "pd.io.formats.style.Styler":
    display = report_to_dataframe(table)
    statuses = status_frame(table)
    # .map() compatible con pandas >= 2.1
    css = statuses.map(_css_for_status)
    return display.style.apply(lambda _: css, axis=None)


# ---------------------------------------------------------------------------
# Componentes de resultados
# ---------------------------------------------------------------------------

def render_summary(result: ComparisonResult) -> None:
    """Métricas principales y estado global de la comparación."""
    st.subheader(f"📊 {RESULT_LABELS[result.is_ok]}")
    st.caption(f"`{result.expected_name}` (esperado) vs `{result.actual_name}` (real) · {MODE_LABELS.get(result.mode, result.mode)}")

    cols = st.columns(3)
    cols[0].metric("Fallos", result.failure_count)
    cols[1].metric("Puntos comparados", "-" if result.point_count is None else result.point_count)
    cols[2].metric("Tolerancia usada", result.used_tolerance or "exacta")


def render_result_table(result: ComparisonResult) -> None:
    """Tabla completa del informe con colores por estado."""
    if len(result.table) <= 1:
        st.success("✅ Sin diferencias que mostrar.")
        return
    st.dataframe(_styled_table(result.table), use_container_width=True, hide_index=True)


def render_failures(result: ComparisonResult) -> None:
    """Lista de fallos en formato registro (una fila por fallo)."""
    if not result.query:
        return
    with st.expander(f"🔍 Detalle de fallos ({len(result.query)})", expanded=False):
        st.dataframe(pd.DataFrame(result.query), use_container_width=True, hide_index=True)


def render_all_results(result: ComparisonResult) -> None:
    """Renderiza todos los resultados de la comparación."""
    render_summary(result)
    st.divider()
    render_result_table(result)
    render_failures(result)


# ---------------------------------------------------------------------------
# Sidebar helpers
# ---------------------------------------------------------------------------

def render_column_selector(mode: str) -> list[str]:
    """Selector de columnas del informe. Vacío = todas, en el orden por defecto."""
    options = report_columns(mode)
    return st.multiselect(
        "Columnas del informe",
        options=options,
        default=[],
        help="Deja vacío para mostrar todas las columnas.",
        key=f"columns_{mode}",
    )
