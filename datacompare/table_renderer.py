"""
datacompare/table_renderer.py
=============================
Renderizado genérico de resultados como tabla de celdas con estado.

Cada celda de salida lleva un prefijo de estado ('pass:', 'fail:' o 'report:')
que la capa de presentación usa para colorearla.
"""
from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from datacompare.errors import UnknownColumnError

PASS_PREFIX = "pass:"
FAIL_PREFIX = "fail:"
REPORT_PREFIX = "report:"

STATUS_PREFIXES = (PASS_PREFIX, FAIL_PREFIX, REPORT_PREFIX)


def pass_(message: Any) -> str:
    return f"{PASS_PREFIX}{'' if message is None else message}"


def fail(message: Any) -> str:
    return f"{FAIL_PREFIX}{'' if message is None else message}"


def report(message: Any) -> str:
    return f"{REPORT_PREFIX}{'' if message is None else message}"


def split_status(cell: Any) -> tuple[Optional[str], str]:
    """Separa el prefijo de estado: 'fail:1 != 2' -> ('fail', '1 != 2').

    Las celdas sin prefijo devuelven (None, texto).
    """
    text = "" if cell is None else str(cell)
    for prefix in STATUS_PREFIXES:
        if text.startswith(prefix):
            return prefix[:-1], text[len(prefix):]
    return None, text


class TableRenderer:
    """Convierte registros en filas según un mapa nombre de columna -> extractor.

    Args:
        get_field: Columnas conocidas, en el orden por defecto, con la función
                   que obtiene el valor de cada una a partir de un registro.
    """

    def __init__(self, get_field: Mapping[str, Callable[[Any], Any]]):
        self._get_field = dict(get_field)
        self._all_headers = list(self._get_field)

    @property
    def headers(self) -> list[str]:
        return list(self._all_headers)

    def align_headers(self, desired_columns: Optional[Sequence[str]] = None) -> list[str]:
        """Valida las columnas pedidas y las devuelve con el nombre canónico.

        Raises:
            UnknownColumnError: si alguna columna no existe.
        """
        if not desired_columns:
            return list(self._all_headers)
        by_lower = {h.lower(): h for h in self._all_headers}
        aligned = []
        for name in desired_columns:
            canonical = by_lower.get(str(name).lower())
            if canonical is None:
                raise UnknownColumnError(
                    f"{name}: No such header. Recognised values: {', '.join(self._all_headers)}."
                )
            aligned.append(canonical)
        return aligned

    def make_table(
        self,
        records: Iterable[Any],
        desired_columns: Optional[Sequence[str]] = None,
    ) -> list[list[Any]]:
        """Cabecera (con prefijo 'report:') seguida de una fila por registro."""
        columns = self.align_headers(desired_columns)
        table: list[list[Any]] = [[report(c) for c in columns]]
        for record in records:
            table.append([self._get_field[c](record) for c in columns])
        return table
