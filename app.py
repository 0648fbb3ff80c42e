"""
app.py: Comparador de datos esperado vs real
=============================================
Entrypoint principal para Streamlit Cloud.

Flujo:
  1. Sidebar: subida de fichero esperado + real, modo y tolerancia.
  2. Botón único "Ejecutar Comparación".
  3. Área principal: resumen + tabla de diferencias coloreada.
  4. Descarga de Excel con formato.
"""
from __future__ import annotations

import logging
from typing import Any

import streamlit as st

from datacompare.models import COMPARISON_MODES, ComparisonConfig
from datacompare.pipeline import run_comparison
from datacompare.report import build_excel, summary_rows
from ui.styling import MODE_LABELS, render_all_results, render_column_selector

# ---------------------------------------------------------------------------
# Configuración de logging (no verbose, no exponer datos sensibles)
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuración de página
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="Comparador de datos",
    page_icon="📐",
    layout="wide",
    initial_sidebar_state="expanded",
    menu_items={
        "About": "Comparación de tablas y series temporales con tolerancia.",
        "Report a bug": None,
        "Get help": None,
    },
)

# ---------------------------------------------------------------------------
# Helpers de session_state
# ---------------------------------------------------------------------------

def _init_state() -> None:
    """Inicializa claves de session_state si no existen."""
    defaults: dict[str, Any] = {
        "result": None,
        "excel_bytes": None,
    }
    for key, val in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = val


def _defaults() -> dict[str, Any]:
    """Valores por defecto de st.secrets['defaults'], si existen."""
    try:
        return dict(st.secrets.get("defaults", {}))
    except FileNotFoundError:
        return {}


# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------

def render_sidebar():
    """Renderiza el sidebar completo y devuelve (esperado, real, configuración)."""
    defaults = _defaults()
    with st.sidebar:
        st.title("📐 Comparador")
        st.caption("Esperado vs real, con tolerancia numérica")
        st.divider()

        # --- Subida de archivos ---
        st.header("📂 Archivos")
        expected = st.file_uploader(
            "Fichero esperado",
            type=["xlsx", "xls", "csv"],
            help="Datos de referencia. Soporta .xlsx, .xls, .csv",
            key="uploader_expected",
        )
        actual = st.file_uploader(
            "Fichero real",
            type=["xlsx", "xls", "csv"],
            help="Datos a validar contra la referencia.",
            key="uploader_actual",
        )

        st.divider()

        # --- Parámetros ---
        st.header("⚙️ Parámetros")
        mode = st.radio(
            "Modo de comparación",
            options=list(COMPARISON_MODES),
            format_func=lambda m: MODE_LABELS.get(m, m),
        )
        tolerance = st.text_input(
            "Tolerancia",
            value=str(defaults.get("tolerance", "")),
            help="Cláusulas separadas por ';': 0.01 (absoluta), 1% (relativa), epsilon. "
                 "Sufijo ':N' para redondear a N cifras significativas. Vacío = igualdad exacta.",
        )

        config = ComparisonConfig(tolerance=tolerance, mode=mode)
        if mode == "timeseries":
            st.subheader("Columnas de la serie")
            config.timestamp_column = st.text_input(
                "Timestamp", value=str(defaults.get("timestamp_column", "timestamp"))
            )
            config.value_column = st.text_input(
                "Valor", value=str(defaults.get("value_column", "value"))
            )
            config.is_good_column = st.text_input(
                "Calidad (is good)", value=str(defaults.get("is_good_column", "isgood"))
            )

        config.desired_columns = render_column_selector(mode)

    return expected, actual, config


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> None:
    _init_state()

    expected, actual, config = render_sidebar()

    # --- Área principal ---
    st.title("📐 Comparador de datos esperado vs real")
    st.caption(
        "Sube el fichero esperado y el real en el sidebar, elige el modo y la "
        "tolerancia y pulsa **Ejecutar Comparación**."
    )

    col_btn, col_info = st.columns([1, 3])
    with col_btn:
        run_btn = st.button(
            "▶ Ejecutar Comparación",
            type="primary",
            disabled=(expected is None or actual is None),
            use_container_width=True,
            help="Requiere el fichero esperado y el real.",
        )

    with col_info:
        if expected is None or actual is None:
            st.info("📌 Carga ambos ficheros en el sidebar para activar la comparación.")

    st.divider()

    # --- Ejecución ---
    if run_btn:
        with st.spinner("⏳ Comparando..."):
            try:
                result = run_comparison(
                    expected.getvalue(),
                    expected.name,
                    actual.getvalue(),
                    actual.name,
                    config,
                )
                st.session_state.result = result
                st.session_state.excel_bytes = build_excel(
                    {result.sheet_name: result.table},
                    summary_rows(result),
                )
                logger.info(
                    "Comparación completada: modo %s, %d fallos",
                    result.mode,
                    result.failure_count,
                )

            except ValueError as e:
                st.error(f"❌ Error de configuración o de datos: {e}")
                logger.warning("ValueError en comparación: %s", e)
                st.stop()
            except Exception as e:
                st.error(f"❌ Error inesperado durante la comparación: {e}")
                logger.exception("Error inesperado en run_comparison")
                st.stop()

    # --- Renderizar resultados (persisten entre reruns gracias a session_state) ---
    if st.session_state.result is not None:
        render_all_results(st.session_state.result)

        if st.session_state.excel_bytes:
            st.divider()
            st.download_button(
                label="📥 Descargar Informe Excel",
                data=st.session_state.excel_bytes,
                file_name="comparacion.xlsx",
                mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                type="primary",
                use_container_width=False,
                help="Descarga la tabla de resultados con colores por estado y un resumen.",
            )


if __name__ == "__main__":
    main()
