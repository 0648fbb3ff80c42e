"""
datacompare/csv_comparison.py
=============================
Comparación celda a celda de dos tablas (esperada / real).

Recorre la fila de cabeceras y después max(filas) x max(columnas) celdas. Solo
se conservan las celdas que no están OK. Las referencias de fila y columna
siguen la convención de una hoja de cálculo: la cabecera es la fila 1 y las
columnas se nombran A, B, ..., Z, AA, ...

Uso:
    comparison = CsvComparison(expected_table, actual_table, Tolerance.parse("1%"))
    comparison.error_count()
    comparison.do_table(["Cell", "Value", "Issue"])
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Sequence

from datacompare.formatting import to_column_letters
from datacompare.models import CsvTable, EvaluationState
from datacompare.table_renderer import TableRenderer, report
from datacompare.tolerance import Tolerance
from datacompare.value_comparison import ValueComparison

logger = logging.getLogger(__name__)

HEADER_ROW = -1

CELL_CAPTION = "Cell"
ROW_NO_CAPTION = "Row No"
ROW_NAME_CAPTION = "Row Name"
COLUMN_NO_CAPTION = "Column No"
COLUMN_NAME_CAPTION = "Column Name"
VALUE_CAPTION = "Value"
DELTA_CAPTION = "Delta"
DELTA_PERCENTAGE_CAPTION = "Delta %"
ISSUE_CAPTION = "Issue"


# ===========
# Referencias
# ===========
def row_reference(row: int) -> str:
    """Fila en numeración de hoja de cálculo: cabecera (-1) -> '1', fila 0 -> '2'."""
    return str(row + 2)


def column_reference(column: int) -> str:
    """'3 (C)' para la columna 2."""
    return f"{column + 1} ({to_column_letters(column)})"


def cell_reference(row: int, column: int) -> str:
    """Referencia tipo 'C2'."""
    return to_column_letters(column) + row_reference(row)


# ===========
# CellComparison
# ===========
@dataclass(frozen=True)
class CellComparison:
    """Resultado de comparar una celda, con su posición en la tabla."""
    row: int
    row_name: Optional[str]
    column: int
    column_name: Optional[str]
    cell: ValueComparison

    @classmethod
    def compare(
        cls,
        row: int,
        row_name: Optional[str],
        column: int,
        column_name: Optional[str],
        expected: Any,
        actual: Any,
        tolerance: Optional[Tolerance] = None,
    ) -> "CellComparison":
        # data_range=None: la base de una tolerancia relativa es siempre el propio valor esperado
        cell = ValueComparison(expected, actual, tolerance, data_range=None)
        return cls(row, row_name, column, column_name, cell)

    @property
    def key(self) -> tuple[int, int]:
        return self.row, self.column


GET_TABLE_VALUES: dict[str, Callable[[CellComparison], Any]] = {
    CELL_CAPTION: lambda r: report(cell_reference(r.row, r.column)),
    ROW_NO_CAPTION: lambda r: report(row_reference(r.row)),
    ROW_NAME_CAPTION: lambda r: report(r.row_name),
    COLUMN_NO_CAPTION: lambda r: report(column_reference(r.column)),
    COLUMN_NAME_CAPTION: lambda r: report(r.column_name),
    VALUE_CAPTION: lambda r: r.cell.table_result(r.cell.value_message),
    DELTA_CAPTION: lambda r: r.cell.table_result(r.cell.delta_message),
    DELTA_PERCENTAGE_CAPTION: lambda r: r.cell.table_result(r.cell.delta_percentage_message),
    ISSUE_CAPTION: lambda r: r.cell.table_result(str(r.cell.outcome)),
}


def query_row(entry: CellComparison) -> dict[str, str]:
    return {
        CELL_CAPTION: cell_reference(entry.row, entry.column),
        ROW_NO_CAPTION: row_reference(entry.row),
        ROW_NAME_CAPTION: entry.row_name or "",
        COLUMN_NO_CAPTION: column_reference(entry.column),
        COLUMN_NAME_CAPTION: entry.column_name or "",
        VALUE_CAPTION: entry.cell.value_message,
        DELTA_CAPTION: entry.cell.delta_message,
        DELTA_PERCENTAGE_CAPTION: entry.cell.delta_percentage_message,
        ISSUE_CAPTION: str(entry.cell.outcome),
    }


def make_query_table(result: Iterable[CellComparison]) -> list[dict[str, str]]:
    return [query_row(entry) for entry in result]


def _first_present(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value is not None:
            return value
    return None


# ===========
# CsvComparison
# ===========
class CsvComparison:
    """Compara una tabla esperada (base) con una real (compared).

    El resultado se calcula la primera vez que se consulta y se mantiene hasta
    llamar a `rerun()`.
    """

    def __init__(
        self,
        base_table: Optional[CsvTable],
        compared_table: Optional[CsvTable],
        tolerance: Optional[Tolerance] = None,
    ):
        self._base = base_table if base_table is not None else CsvTable()
        self._compared = compared_table if compared_table is not None else CsvTable()
        self._tolerance = tolerance
        self._state = EvaluationState.UNEVALUATED
        self._result: list[CellComparison] = []

    @property
    def state(self) -> EvaluationState:
        return self._state

    @property
    def result(self) -> list[CellComparison]:
        if self._state is EvaluationState.UNEVALUATED:
            self._result = self._compare()
            self._state = EvaluationState.EVALUATED
        return self._result

    def rerun(self) -> None:
        """Invalida la caché; la próxima consulta vuelve a comparar."""
        self._state = EvaluationState.UNEVALUATED
        self._result = []

    def _compare(self) -> list[CellComparison]:
        base, compared = self._base, self._compared
        max_rows = max(base.row_count, compared.row_count)
        max_columns = max(base.column_count, compared.column_count)
        result: list[CellComparison] = []

        # cabeceras: la columna 0 de la cabecera hace de nombre de fila
        header_row_name = base.header(0)
        for column in range(max_columns):
            comparison = CellComparison.compare(
                HEADER_ROW,
                header_row_name,
                column,
                _first_present(base.header(column), compared.header(column)),
                base.header(column),
                compared.header(column),
                self._tolerance,
            )
            if not comparison.cell.is_ok():
                result.append(comparison)

        for row in range(max_rows):
            row_name = _first_present(base.data_cell(row, 0), compared.data_cell(row, 0))
            for column in range(max_columns):
                comparison = CellComparison.compare(
                    row,
                    row_name,
                    column,
                    _first_present(base.header(column), compared.header(column)),
                    base.data_cell(row, column),
                    compared.data_cell(row, column),
                    self._tolerance,
                )
                if not comparison.cell.is_ok():
                    logger.debug("Diferencia en fila %d, columna %d: %s", row, column, comparison.cell.outcome)
                    result.append(comparison)

        logger.info(
            "Comparación de tablas: %d filas x %d columnas, %d diferencias",
            max_rows, max_columns, len(result),
        )
        return result

    def error_count(self) -> int:
        return len(self.result)

    def errors(self) -> dict[str, str]:
        """Resumen por celda: 'C2 [Stream2/Attr1]' -> '101.1 != 100 (Delta:1.1, 1.1 %, OutsideToleranceIssue)'."""
        errors = {}
        for entry in self.result:
            key = f"{cell_reference(entry.row, entry.column)} [{entry.column_name}/{entry.row_name}]"
            cell = entry.cell
            details = ""
            if cell.delta_message:
                details += f"Delta:{cell.delta_message}, "
            if cell.delta_percentage_message:
                details += f"{cell.delta_percentage_message}, "
            errors[key] = f"{cell.value_message} ({details}{cell.outcome})"
        return errors

    def query(self) -> list[dict[str, str]]:
        return make_query_table(self.result)

    def do_table(self, desired_columns: Optional[Sequence[str]] = None) -> list[list[Any]]:
        renderer = TableRenderer(GET_TABLE_VALUES)
        columns = renderer.align_headers(desired_columns)
        return renderer.make_table(self.result, columns)

    def delta_with(self, other: "CsvComparison") -> list[CellComparison]:
        """Celdas cuyo estado de error difiere entre dos ejecuciones (clave fila/columna)."""
        mine = {entry.key for entry in self.result}
        theirs = {entry.key for entry in other.result}
        only_mine = [entry for entry in self.result if entry.key not in theirs]
        only_theirs = [entry for entry in other.result if entry.key not in mine]
        return only_mine + only_theirs

    def __str__(self) -> str:
        return "CsvComparison"


class CsvComparisonDifference:
    """Diferencia entre dos comparaciones de tablas: errores que solo aparecen en una."""

    def __init__(self, first: CsvComparison, second: CsvComparison):
        self._first = first
        self._second = second
        self._state = EvaluationState.UNEVALUATED
        self._result: list[CellComparison] = []

    @property
    def result(self) -> list[CellComparison]:
        if self._state is EvaluationState.UNEVALUATED:
            self._result = self._first.delta_with(self._second)
            self._state = EvaluationState.EVALUATED
        return self._result

    def rerun(self) -> None:
        self._state = EvaluationState.UNEVALUATED
        self._result = []

    def error_count(self) -> int:
        return len(self.result)

    def query(self) -> list[dict[str, str]]:
        return make_query_table(self.result)

    def do_table(self, desired_columns: Optional[Sequence[str]] = None) -> list[list[Any]]:
        renderer = TableRenderer(GET_TABLE_VALUES)
        columns = renderer.align_headers(desired_columns)
        return renderer.make_table(self.result, columns)

    def __str__(self) -> str:
        return "CsvComparisonDifference"
