"""
datacompare/time_series.py
==========================
Comparación de series temporales indexadas por timestamp.

Cada medida esperada se compara con la real del mismo timestamp (timestamp,
valor e indicador de calidad). Las reales sin pareja se añaden al final como
sobrantes. El tipo de comparación y la base de las tolerancias relativas se
calculan una sola vez por ejecución a partir de la serie completa.
"""
from __future__ import annotations

import bisect
import logging
import math
from datetime import datetime
from typing import Any, Callable, Iterable, Iterator, Optional, Sequence

import pandas as pd

from datacompare.errors import DuplicateKeyError
from datacompare.formatting import to_round_trip_format
from datacompare.models import CompareOutcome, CsvTable, EvaluationState, Measurement
from datacompare.table_renderer import TableRenderer, fail, pass_
from datacompare.tolerance import Tolerance
from datacompare.type_inference import CompareType, infer_type, to_double
from datacompare.value_comparison import ValueComparison

logger = logging.getLogger(__name__)

TIMESTAMP_CAPTION = "Timestamp"
VALUE_CAPTION = "Value"
DELTA_CAPTION = "Delta"
DELTA_PERCENTAGE_CAPTION = "Delta %"
IS_GOOD_CAPTION = "Is Good"
ISSUE_CAPTION = "Issue"

IS_GOOD_ISSUE = "IsGoodIssue"


# ---------------------------------------------------------------------------
# TimeSeries
# ---------------------------------------------------------------------------

class TimeSeries:
    """Serie de medidas en el orden en que se añadieron.

    Args:
        measurements:     Medidas iniciales.
        timestamp_column: Columna de timestamps al cargar desde una tabla.
        value_column:     Columna de valores.
        is_good_column:   Columna del indicador de calidad.
        name:             Nombre para mostrar (normalmente el fichero de origen).
    """

    def __init__(
        self,
        measurements: Optional[Iterable[Measurement]] = None,
        timestamp_column: str = "timestamp",
        value_column: str = "value",
        is_good_column: str = "isgood",
        name: Optional[str] = None,
    ):
        self.measurements: list[Measurement] = list(measurements or [])
        self.timestamp_column = timestamp_column
        self.value_column = value_column
        self.is_good_column = is_good_column
        self.name = name

    def add_measurement(self, measurement: Measurement) -> None:
        self.measurements.append(measurement)

    @classmethod
    def from_table(
        cls,
        table: CsvTable,
        timestamp_column: str = "timestamp",
        value_column: str = "value",
        is_good_column: str = "isgood",
        name: Optional[str] = None,
    ) -> "TimeSeries":
        """Carga la serie desde una tabla. Las filas sin valor ni calidad se ignoran.

        Raises:
            UnknownColumnError: si falta alguna de las tres columnas.
        """
        timestamp_index = table.header_index(timestamp_column)
        value_index = table.header_index(value_column)
        is_good_index = table.header_index(is_good_column)

        series = cls(
            timestamp_column=timestamp_column,
            value_column=value_column,
            is_good_column=is_good_column,
            name=name,
        )
        for row in range(table.row_count):
            value = table.data_cell(row, value_index)
            is_good = table.data_cell(row, is_good_index)
            if not value and not is_good:
                continue
            series.add_measurement(
                Measurement.parse(table.data_cell(row, timestamp_index), value, is_good)
            )
        logger.info("Serie '%s' cargada: %d medidas", name or "", len(series))
        return series

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, **kwargs: Any) -> "TimeSeries":
        return cls.from_table(CsvTable.from_dataframe(df), **kwargs)

    def __len__(self) -> int:
        return len(self.measurements)

    def __iter__(self) -> Iterator[Measurement]:
        return iter(self.measurements)

    def __str__(self) -> str:
        return self.name or "TimeSeries"


# ---------------------------------------------------------------------------
# TimeSeriesMetadata
# ---------------------------------------------------------------------------

def _nan_min(a: float, b: float) -> float:
    if math.isnan(a):
        return b
    return a if math.isnan(b) else min(a, b)


def _nan_max(a: float, b: float) -> float:
    if math.isnan(a):
        return b
    return a if math.isnan(b) else max(a, b)


class TimeSeriesMetadata:
    """Tipo común y extremos numéricos de una secuencia de valores.

    Los extremos solo consideran valores numéricos finitos; si el tipo común no
    es numérico (o no hay ningún valor numérico) ambos son NaN.
    """

    def __init__(self, values: Iterable[Optional[str]]):
        self.data_type: Optional[CompareType] = None
        self.min_value = math.nan
        self.max_value = math.nan

        for value in values:
            if value:
                self.data_type = infer_type(value, self.data_type)
                # string es un estado final
                if self.data_type is CompareType.STRING:
                    break
                if self.data_type is CompareType.BOOL:
                    continue
            self._update_extremes(value)

        if self.data_type is not None and not self.data_type.is_numeric:
            self.min_value = math.nan
            self.max_value = math.nan

    @property
    def range(self) -> float:
        """max - min; 0 si no hay extremos."""
        if math.isnan(self.max_value):
            return 0.0
        return self.max_value - self.min_value

    def _update_extremes(self, value: Optional[str]) -> None:
        if not value or not infer_type(value).is_numeric:
            return
        number = to_double(value)
        if not math.isfinite(number):
            return
        self.min_value = _nan_min(self.min_value, number)
        self.max_value = _nan_max(self.max_value, number)


# ---------------------------------------------------------------------------
# MeasurementComparison
# ---------------------------------------------------------------------------

class MeasurementComparison:
    """Comparación de un punto: timestamp, valor e indicador de calidad."""

    def __init__(
        self,
        expected: Optional[Measurement],
        actual: Optional[Measurement],
        tolerance: Optional[Tolerance] = None,
        compare_type: Optional[CompareType] = None,
        data_range: Optional[float] = None,
    ):
        self.timestamp = ValueComparison(
            to_round_trip_format(expected.timestamp) if expected else None,
            to_round_trip_format(actual.timestamp) if actual else None,
        )
        self.value = ValueComparison(
            expected.value if expected else None,
            actual.value if actual else None,
            tolerance,
            compare_type,
            data_range,
        )
        self.is_good = ValueComparison(
            expected.is_good if expected else None,
            actual.is_good if actual else None,
        )

    def is_ok(self) -> bool:
        return self.timestamp.is_ok() and self.value.is_ok() and self.is_good.is_ok()

    @property
    def outcome_message(self) -> str:
        if self.timestamp.outcome is not CompareOutcome.NONE:
            return str(self.timestamp.outcome)
        issues = []
        if self.value.outcome is not CompareOutcome.NONE:
            issues.append(str(self.value.outcome))
        if not self.is_good.is_ok():
            issues.append(IS_GOOD_ISSUE)
        return "; ".join(issues) if issues else str(CompareOutcome.NONE)

    @property
    def timestamp_text(self) -> str:
        return self.timestamp.actual_value_out or self.timestamp.expected_value_out or ""

    def table_result(self, message: Optional[str]) -> str:
        return pass_(message) if self.is_ok() else fail(message)


# ---------------------------------------------------------------------------
# MeasurementComparisonDictionary
# ---------------------------------------------------------------------------

class MeasurementComparisonDictionary:
    """Mapa timestamp -> MeasurementComparison, siempre ordenado por timestamp."""

    def __init__(self, items: Optional[Iterable[tuple[datetime, MeasurementComparison]]] = None):
        self._keys: list[datetime] = []
        self._values: dict[datetime, MeasurementComparison] = {}
        for timestamp, comparison in items or []:
            self._insert(timestamp, comparison)

    def add(self, timestamp: datetime, comparison: MeasurementComparison, series_tag: str) -> None:
        """Añade un punto.

        Raises:
            DuplicateKeyError: si el timestamp ya existe; indica la serie de origen.
        """
        if timestamp in self._values:
            raise DuplicateKeyError(series_tag, timestamp, to_round_trip_format(timestamp))
        self._insert(timestamp, comparison)

    def _insert(self, timestamp: datetime, comparison: MeasurementComparison) -> None:
        bisect.insort(self._keys, timestamp)
        self._values[timestamp] = comparison

    def clear(self) -> None:
        self._keys.clear()
        self._values.clear()

    def keys(self) -> list[datetime]:
        return list(self._keys)

    def values(self) -> list[MeasurementComparison]:
        return [self._values[k] for k in self._keys]

    def items(self) -> list[tuple[datetime, MeasurementComparison]]:
        return [(k, self._values[k]) for k in self._keys]

    def subset(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> "MeasurementComparisonDictionary":
        """Copia con los puntos en [start, end]; un límite None no restringe."""
        low = 0 if start is None else bisect.bisect_left(self._keys, start)
        high = len(self._keys) if end is None else bisect.bisect_right(self._keys, end)
        return MeasurementComparisonDictionary((k, self._values[k]) for k in self._keys[low:high])

    def __getitem__(self, timestamp: datetime) -> MeasurementComparison:
        return self._values[timestamp]

    def __contains__(self, timestamp: object) -> bool:
        return timestamp in self._values

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[datetime]:
        return iter(list(self._keys))


# ---------------------------------------------------------------------------
# TimeSeriesComparison
# ---------------------------------------------------------------------------

GET_TABLE_VALUES: dict[str, Callable[[MeasurementComparison], Any]] = {
    TIMESTAMP_CAPTION: lambda r: r.timestamp.table_result(r.timestamp.value_message),
    VALUE_CAPTION: lambda r: r.value.table_result(r.value.value_message),
    DELTA_CAPTION: lambda r: r.value.table_result(r.value.delta_message),
    DELTA_PERCENTAGE_CAPTION: lambda r: r.value.table_result(r.value.delta_percentage_message),
    IS_GOOD_CAPTION: lambda r: r.is_good.table_result(r.is_good.value_message),
    ISSUE_CAPTION: lambda r: r.table_result(r.outcome_message),
}


class TimeSeriesComparison:
    """Compara dos series temporales.

    La comparación se ejecuta la primera vez que se consulta un resultado y se
    mantiene hasta llamar a `run_comparison()` de nuevo.
    """

    def __init__(
        self,
        expected: Optional[TimeSeries] = None,
        actual: Optional[TimeSeries] = None,
        tolerance: Optional[Tolerance] = None,
    ):
        self._expected = expected if expected is not None else TimeSeries()
        self._actual = actual if actual is not None else TimeSeries()
        self._tolerance = tolerance if tolerance is not None else Tolerance.parse("")
        self._state = EvaluationState.UNEVALUATED
        self._result = MeasurementComparisonDictionary()
        self._compare_type: Optional[CompareType] = None
        self._data_range = 0.0
        self._min_value = math.nan
        self._max_value = math.nan
        self._base_timestamp: Optional[datetime] = None
        self._time_span_seconds = 0.0

    @property
    def state(self) -> EvaluationState:
        return self._state

    @property
    def result(self) -> MeasurementComparisonDictionary:
        self._ensure_evaluated()
        return self._result

    def _ensure_evaluated(self) -> None:
        if self._state is EvaluationState.UNEVALUATED:
            self.run_comparison()

    def run_comparison(self) -> None:
        """Ejecuta (o vuelve a ejecutar) la comparación y cachea el resultado."""
        self._result.clear()
        self._state = EvaluationState.UNEVALUATED
        expected, actual = self._expected.measurements, self._actual.measurements
        if not expected and not actual:
            self._state = EvaluationState.EVALUATED
            return

        actual_by_timestamp: dict[datetime, Measurement] = {}
        for measurement in actual:
            if measurement.timestamp in actual_by_timestamp:
                raise DuplicateKeyError("actual", measurement.timestamp, to_round_trip_format(measurement.timestamp))
            actual_by_timestamp[measurement.timestamp] = measurement

        meta_expected = TimeSeriesMetadata(m.value for m in expected)
        meta_actual = TimeSeriesMetadata(m.value for m in actual)
        self._compare_type = meta_expected.data_type or meta_actual.data_type
        self._min_value = _nan_min(meta_expected.min_value, meta_actual.min_value)
        self._max_value = _nan_max(meta_expected.max_value, meta_actual.max_value)
        self._data_range = meta_expected.range

        base_series = expected if expected else actual
        self._base_timestamp = base_series[0].timestamp
        self._time_span_seconds = (base_series[-1].timestamp - self._base_timestamp).total_seconds()

        matched: set[datetime] = set()
        for measurement in expected:
            counterpart = actual_by_timestamp.get(measurement.timestamp)
            comparison = MeasurementComparison(
                measurement, counterpart, self._tolerance, self._compare_type, self._data_range
            )
            if counterpart is not None:
                matched.add(measurement.timestamp)
            self._result.add(measurement.timestamp, comparison, "expected")

        for timestamp, measurement in actual_by_timestamp.items():
            if timestamp in matched:
                continue
            comparison = MeasurementComparison(None, measurement, self._tolerance, data_range=self._data_range)
            self._result.add(timestamp, comparison, "surplus")

        self._state = EvaluationState.EVALUATED
        logger.info(
            "Comparación de series: %d puntos, %d fallos, tipo %s, tolerancia '%s'",
            len(self._result),
            self.failure_count,
            self._compare_type.value if self._compare_type else "-",
            self.used_tolerance,
        )

    # ------------------------------------------------------------------
    # Resultados
    # ------------------------------------------------------------------

    @property
    def failure_count(self) -> int:
        return sum(1 for c in self.result.values() if not c.is_ok())

    @property
    def point_count(self) -> int:
        return len(self.result)

    @property
    def used_tolerance(self) -> str:
        self._ensure_evaluated()
        return str(self._tolerance.resolve(self._data_range))

    @property
    def compare_type(self) -> Optional[CompareType]:
        self._ensure_evaluated()
        return self._compare_type

    @property
    def data_range(self) -> float:
        self._ensure_evaluated()
        return self._data_range

    @property
    def min_value(self) -> float:
        self._ensure_evaluated()
        return self._min_value

    @property
    def max_value(self) -> float:
        self._ensure_evaluated()
        return self._max_value

    @property
    def base_timestamp(self) -> Optional[datetime]:
        self._ensure_evaluated()
        return self._base_timestamp

    @property
    def time_span_seconds(self) -> float:
        self._ensure_evaluated()
        return self._time_span_seconds

    def subset(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> MeasurementComparisonDictionary:
        return self.result.subset(start, end)

    def query(self) -> list[dict[str, str]]:
        """Puntos con fallo, un registro por punto."""
        rows = []
        for comparison in self.result.values():
            if comparison.is_ok():
                continue
            rows.append({
                TIMESTAMP_CAPTION: comparison.timestamp_text,
                VALUE_CAPTION: comparison.value.value_message,
                DELTA_CAPTION: comparison.value.delta_message,
                DELTA_PERCENTAGE_CAPTION: comparison.value.delta_percentage_message,
                IS_GOOD_CAPTION: comparison.is_good.value_message,
                ISSUE_CAPTION: comparison.outcome_message,
            })
        return rows

    def do_table(self, desired_columns: Optional[Sequence[str]] = None) -> list[list[Any]]:
        renderer = TableRenderer(GET_TABLE_VALUES)
        columns = renderer.align_headers(desired_columns)
        return renderer.make_table(self.result.values(), columns)

    def __str__(self) -> str:
        return "Comparison"
