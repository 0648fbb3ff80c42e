"""Datacompare: comparación de tablas y series temporales con tolerancia. Sin dependencias de Streamlit."""
from datacompare.errors import (
    DuplicateKeyError,
    FormatError,
    TypeNotRecognizedError,
    UnknownColumnError,
)
from datacompare.models import (
    CompareOutcome,
    ComparisonConfig,
    ComparisonResult,
    CsvTable,
    EvaluationState,
    Measurement,
    validate_config,
)
from datacompare.tolerance import ResolvedTolerance, Tolerance, ToleranceSpec
from datacompare.type_inference import CompareType, convert, convert_with_default, infer_compatible_type, infer_type
from datacompare.value_comparison import ValueComparison
from datacompare.csv_comparison import CellComparison, CsvComparison, CsvComparisonDifference
from datacompare.time_series import (
    MeasurementComparison,
    MeasurementComparisonDictionary,
    TimeSeries,
    TimeSeriesComparison,
    TimeSeriesMetadata,
)
from datacompare.table_renderer import TableRenderer
from datacompare.readers import read_table
from datacompare.report import build_excel, report_to_dataframe
from datacompare.pipeline import run_comparison, setup_logging

__all__ = [
    # Errores
    "DuplicateKeyError",
    "FormatError",
    "TypeNotRecognizedError",
    "UnknownColumnError",
    # Modelos
    "CompareOutcome",
    "ComparisonConfig",
    "ComparisonResult",
    "CsvTable",
    "EvaluationState",
    "Measurement",
    "validate_config",
    # Tolerancia y tipos
    "Tolerance",
    "ToleranceSpec",
    "ResolvedTolerance",
    "CompareType",
    "convert",
    "convert_with_default",
    "infer_type",
    "infer_compatible_type",
    # Comparadores
    "ValueComparison",
    "CellComparison",
    "CsvComparison",
    "CsvComparisonDifference",
    "MeasurementComparison",
    "MeasurementComparisonDictionary",
    "TimeSeries",
    "TimeSeriesComparison",
    "TimeSeriesMetadata",
    "TableRenderer",
    # E/S
    "read_table",
    "build_excel",
    "report_to_dataframe",
    "run_comparison",
    "setup_logging",
]
