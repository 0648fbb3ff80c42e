"""
datacompare/models.py
=====================
Modelos de datos puros del comparador: resultado de una comparación, tabla
CSV, medida de serie temporal y configuración de ejecución.

Sin dependencias de Streamlit: 100% testeable en aislamiento.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

import pandas as pd

from datacompare.errors import UnknownColumnError
from datacompare.tolerance import Tolerance
from datacompare.type_inference import CompareType, convert_with_default


# ---------------------------------------------------------------------------
# CompareOutcome
# ---------------------------------------------------------------------------

class CompareOutcome(Enum):
    """Clasificación de una pareja (esperado, real). El valor es el texto del informe."""
    NONE = "None"
    WITHIN_TOLERANCE = "WithinTolerance"
    OUTSIDE_TOLERANCE_ISSUE = "OutsideToleranceIssue"
    VALUE_ISSUE = "ValueIssue"
    MISSING = "Missing"
    SURPLUS = "Surplus"

    @property
    def is_ok(self) -> bool:
        return self in (CompareOutcome.NONE, CompareOutcome.WITHIN_TOLERANCE)

    def __str__(self) -> str:
        return self.value


class EvaluationState(Enum):
    """Estado de la caché de resultados de un comparador."""
    UNEVALUATED = "unevaluated"
    EVALUATED = "evaluated"


# ---------------------------------------------------------------------------
# CsvTable
# ---------------------------------------------------------------------------

@dataclass
class CsvTable:
    """Tabla mínima fila/columna: cabeceras + celdas de texto por filas.

    Attributes:
        headers: Nombres de columna, en orden.
        rows:    Filas de datos; cada fila es una lista de textos.
    """
    headers: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.headers)

    def header(self, index: int) -> Optional[str]:
        """Cabecera de la columna `index`, o None si está fuera de la tabla."""
        return self.headers[index] if 0 <= index < self.column_count else None

    def data_cell(self, row: int, column: int) -> Optional[str]:
        """Celda (fila, columna), o None si está fuera de la tabla."""
        if not (0 <= row < self.row_count and 0 <= column < self.column_count):
            return None
        line = self.rows[row]
        return line[column] if column < len(line) else None

    def header_index(self, name: str) -> int:
        for i, header in enumerate(self.headers):
            if header.lower() == name.lower():
                return i
        raise UnknownColumnError(
            f"Cabecera '{name}' no encontrada. Disponibles: {', '.join(self.headers)}"
        )

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> "CsvTable":
        """Construye la tabla desde un DataFrame; los nulos pasan a texto vacío."""
        headers = [str(c) for c in df.columns]
        rows = [[_cell_text(v) for v in line] for line in df.itertuples(index=False, name=None)]
        return cls(headers=headers, rows=rows)


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value)


# ---------------------------------------------------------------------------
# Measurement
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Measurement:
    """Un punto de una serie temporal.

    Attributes:
        timestamp: Instante de la medida (clave única dentro de la serie).
        value:     Valor en texto; el tipo se infiere al comparar.
        is_good:   Indicador de calidad.
    """
    timestamp: datetime
    value: Optional[str]
    is_good: bool = True

    @classmethod
    def parse(cls, timestamp: Any, value: Any, is_good: Any = True) -> "Measurement":
        """Crea una medida desde textos. Un is_good ilegible cuenta como bueno.

        Raises:
            ValueError: si el timestamp está vacío o no es una fecha.
        """
        if not isinstance(timestamp, datetime):
            text = "" if timestamp is None else str(timestamp).strip()
            if not text:
                raise ValueError("Medida sin timestamp.")
            timestamp = pd.Timestamp(text)
        return cls(
            timestamp=_naive_utc(timestamp),
            value=None if value is None else str(value),
            is_good=convert_with_default(is_good, CompareType.BOOL, True),
        )


def _naive_utc(timestamp: Any) -> datetime:
    """Los timestamps con zona se pasan a UTC sin zona; los naive no cambian."""
    ts = pd.Timestamp(timestamp)
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts.to_pydatetime()


# ---------------------------------------------------------------------------
# ComparisonConfig
# ---------------------------------------------------------------------------

COMPARISON_MODES = ("table", "timeseries")


@dataclass
class ComparisonConfig:
    """Parámetros de una ejecución.

    Attributes:
        tolerance:        Especificación de tolerancia (ver Tolerance.parse).
        mode:             'table' (celda a celda) o 'timeseries' (por timestamp).
        timestamp_column: Columna de timestamps en ficheros de serie temporal.
        value_column:     Columna de valores en ficheros de serie temporal.
        is_good_column:   Columna de calidad en ficheros de serie temporal.
        desired_columns:  Columnas del informe; vacío = todas.
    """
    tolerance: str = ""
    mode: str = "table"
    timestamp_column: str = "timestamp"
    value_column: str = "value"
    is_good_column: str = "isgood"
    desired_columns: list[str] = field(default_factory=list)

    def build_tolerance(self) -> Tolerance:
        return Tolerance.parse(self.tolerance)


@dataclass
class ComparisonResult:
    """Resultado de una ejecución, listo para presentar o exportar.

    Attributes:
        mode:           Modo de comparación usado.
        expected_name:  Fichero esperado.
        actual_name:    Fichero real.
        table:          Tabla renderizada (cabecera + filas con prefijo de estado).
        query:          Registros de los elementos con fallo.
        failure_count:  Número de fallos.
        point_count:    Puntos comparados (solo series temporales).
        used_tolerance: Tolerancia efectiva en texto.
    """
    mode: str
    expected_name: str
    actual_name: str
    table: list[list[Any]] = field(default_factory=list)
    query: list[dict[str, str]] = field(default_factory=list)
    failure_count: int = 0
    point_count: Optional[int] = None
    used_tolerance: str = ""

    @property
    def is_ok(self) -> bool:
        return self.failure_count == 0

    @property
    def sheet_name(self) -> str:
        return "Series" if self.mode == "timeseries" else "Tabla"


def validate_config(config: ComparisonConfig) -> None:
    """Valida la configuración antes de ejecutar.

    Raises:
        ValueError: con el campo problemático en el mensaje.
    """
    if config.mode not in COMPARISON_MODES:
        raise ValueError(f"Modo '{config.mode}' no válido. Opciones: {', '.join(COMPARISON_MODES)}")
    try:
        config.build_tolerance()
    except ValueError as e:
        raise ValueError(f"Tolerancia inválida '{config.tolerance}': {e}") from e
    if config.mode == "timeseries":
        for name in ("timestamp_column", "value_column", "is_good_column"):
            if not getattr(config, name).strip():
                raise ValueError(f"La columna '{name}' no puede estar vacía.")
