"""
datacompare/report.py
=====================
Exportación de tablas de resultados: DataFrame para pantalla y Excel con
formato para descarga.

Las tablas de entrada son las que devuelve `do_table()`: una fila de cabecera y
filas de celdas con prefijo de estado ('pass:', 'fail:', 'report:').
"""
from __future__ import annotations

import io
import logging
from typing import Any, Mapping, Optional, Sequence

import pandas as pd
from openpyxl import Workbook
from openpyxl.formatting.rule import Rule
from openpyxl.styles import Font, PatternFill
from openpyxl.styles.differential import DifferentialStyle
from openpyxl.utils import get_column_letter
from openpyxl.utils.dataframe import dataframe_to_rows

from datacompare.models import ComparisonResult
from datacompare.table_renderer import split_status

logger = logging.getLogger(__name__)

STATUS_COLORS = {
    "pass": "C6EFCE",
    "fail": "FFC7CE",
    "report": "E7E6E6",
}
WITHIN_TOLERANCE_COLOR = "FFEB9C"

MAX_SHEET_NAME = 31


# ===========
# DataFrames
# ===========
def report_to_dataframe(table: Sequence[Sequence[Any]]) -> pd.DataFrame:
    """Tabla renderizada -> DataFrame de textos sin prefijos de estado."""
    if not table:
        return pd.DataFrame()
    columns = [split_status(c)[1] for c in table[0]]
    rows = [[split_status(c)[1] for c in row] for row in table[1:]]
    return pd.DataFrame(rows, columns=columns)


def status_frame(table: Sequence[Sequence[Any]]) -> pd.DataFrame:
    """Mismo formato que report_to_dataframe, con el estado de cada celda ('pass', 'fail', 'report' o None)."""
    if not table:
        return pd.DataFrame()
    columns = [split_status(c)[1] for c in table[0]]
    rows = [[split_status(c)[0] for c in row] for row in table[1:]]
    return pd.DataFrame(rows, columns=columns)


def summary_rows(result: ComparisonResult) -> dict[str, Any]:
    return {
        "Mode": result.mode,
        "Expected": result.expected_name,
        "Actual": result.actual_name,
        "Failures": result.failure_count,
        "Points": "" if result.point_count is None else result.point_count,
        "Tolerance": result.used_tolerance,
        "Result": "OK" if result.is_ok else "FAIL",
    }


# ===========
# Excel (formato)
# ===========
def _fill(color: str) -> PatternFill:
    return PatternFill(start_color=color, end_color=color, fill_type="solid")


def add_issue_formatting(ws, cell_range: str) -> None:
    """Colorea la columna Issue según el resultado que contiene."""
    rules = [
        ("WithinTolerance", WITHIN_TOLERANCE_COLOR),
        ("Issue", STATUS_COLORS["fail"]),
        ("Missing", STATUS_COLORS["fail"]),
        ("Surplus", STATUS_COLORS["fail"]),
    ]
    for text, color in rules:
        rule = Rule(type="containsText", operator="containsText", text=text, dxf=DifferentialStyle(fill=_fill(color)))
        ws.conditional_formatting.add(cell_range, rule)


def _autofit(ws) -> None:
    for col in ws.columns:
        max_len = max((len(str(cell.value)) if cell.value is not None else 0) for cell in col)
        ws.column_dimensions[col[0].column_letter].width = min(max(10, max_len + 2), 45)


def write_result_sheet(ws, table: Sequence[Sequence[Any]]) -> None:
    """Escribe una tabla renderizada: textos sin prefijo, relleno según estado."""
    fills = {status: _fill(color) for status, color in STATUS_COLORS.items()}
    for r, row in enumerate(table, start=1):
        for c, raw in enumerate(row, start=1):
            status, text = split_status(raw)
            cell = ws.cell(row=r, column=c, value=text)
            if r == 1:
                cell.font = Font(bold=True)
            elif status in ("pass", "fail"):
                cell.fill = fills[status]
    if table:
        ws.freeze_panes = "A2"
        headers = [split_status(h)[1] for h in table[0]]
        if "Issue" in headers and len(table) > 1:
            letter = get_column_letter(headers.index("Issue") + 1)
            add_issue_formatting(ws, f"{letter}2:{letter}{len(table)}")
    _autofit(ws)


def write_dataframe_sheet(ws, df: pd.DataFrame) -> None:
    for r in dataframe_to_rows(df, index=False, header=True):
        ws.append(r)
    for cell in ws[1]:
        cell.font = Font(bold=True)
    _autofit(ws)


def _sheet_title(name: str, used: set[str]) -> str:
    base = "".join("_" if ch in '[]:*?/\\' else ch for ch in name)[:MAX_SHEET_NAME] or "Sheet"
    title, n = base, 2
    while title.lower() in used:
        suffix = f" ({n})"
        title = base[:MAX_SHEET_NAME - len(suffix)] + suffix
        n += 1
    used.add(title.lower())
    return title


def build_excel(
    tables: Mapping[str, Sequence[Sequence[Any]]],
    summary: Optional[Mapping[str, Any]] = None,
) -> bytes:
    """Genera un Excel con una hoja 'Resumen' (si hay resumen) y una hoja por tabla.

    Args:
        tables:  nombre de hoja -> tabla renderizada (salida de do_table()).
        summary: pares campo -> valor para la hoja de resumen.

    Returns:
        Contenido del fichero .xlsx.
    """
    wb = Workbook()
    ws_first = wb.active
    used: set[str] = set()

    if summary is not None:
        ws_first.title = _sheet_title("Resumen", used)
        summary_df = pd.DataFrame({"Campo": list(summary.keys()), "Valor": [str(v) for v in summary.values()]})
        write_dataframe_sheet(ws_first, summary_df)
        ws_first = None

    for name, table in tables.items():
        if ws_first is not None:
            ws = ws_first
            ws.title = _sheet_title(name, used)
            ws_first = None
        else:
            ws = wb.create_sheet(_sheet_title(name, used))
        write_result_sheet(ws, table)

    legend = wb.create_sheet(_sheet_title("Leyenda", used))
    write_dataframe_sheet(legend, pd.DataFrame({
        "Estado": ["pass", "fail", "report"],
        "Significado": ["Dentro de tolerancia", "Diferencia", "Informativo"],
    }))
    for row, status in enumerate(("pass", "fail", "report"), start=2):
        legend.cell(row=row, column=1).fill = _fill(STATUS_COLORS[status])

    buf = io.BytesIO()
    wb.save(buf)
    logger.info("Excel generado: %d hoja(s) de resultados", len(tables))
    return buf.getvalue()
