"""
datacompare/pipeline.py
=======================
Ejecución completa de una comparación a partir de dos ficheros subidos.

Sin dependencias de Streamlit: la UI solo llama a `run_comparison` y muestra
el ComparisonResult.
"""
from __future__ import annotations

import logging
from typing import BinaryIO, Union

from datacompare.csv_comparison import CsvComparison
from datacompare.models import ComparisonConfig, ComparisonResult, validate_config
from datacompare.readers import load_csv_table, load_time_series
from datacompare.time_series import TimeSeriesComparison

logger = logging.getLogger(__name__)

FileInput = Union[bytes, BinaryIO]


# ===========
# Logging
# ===========
def setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(levelname)s: %(message)s"
    )


# ===========
# Pipeline
# ===========
def compare_tables(
    expected: FileInput,
    expected_name: str,
    actual: FileInput,
    actual_name: str,
    config: ComparisonConfig,
) -> ComparisonResult:
    tolerance = config.build_tolerance()
    comparison = CsvComparison(
        load_csv_table(expected, expected_name),
        load_csv_table(actual, actual_name),
        tolerance,
    )
    return ComparisonResult(
        mode="table",
        expected_name=expected_name,
        actual_name=actual_name,
        table=comparison.do_table(config.desired_columns or None),
        query=comparison.query(),
        failure_count=comparison.error_count(),
        used_tolerance=str(tolerance.resolve(None)),
    )


def compare_time_series(
    expected: FileInput,
    expected_name: str,
    actual: FileInput,
    actual_name: str,
    config: ComparisonConfig,
) -> ComparisonResult:
    comparison = TimeSeriesComparison(
        load_time_series(expected, expected_name, config),
        load_time_series(actual, actual_name, config),
        config.build_tolerance(),
    )
    return ComparisonResult(
        mode="timeseries",
        expected_name=expected_name,
        actual_name=actual_name,
        table=comparison.do_table(config.desired_columns or None),
        query=comparison.query(),
        failure_count=comparison.failure_count,
        point_count=comparison.point_count,
        used_tolerance=comparison.used_tolerance,
    )


def run_comparison(
    expected: FileInput,
    expected_name: str,
    actual: FileInput,
    actual_name: str,
    config: ComparisonConfig,
) -> ComparisonResult:
    """Valida la configuración, carga ambos ficheros y compara según el modo.

    Raises:
        ValueError: configuración inválida, fichero ilegible, columna
                    desconocida o timestamps duplicados.
    """
    validate_config(config)
    logger.info("Comparando '%s' con '%s' (modo %s)", expected_name, actual_name, config.mode)
    if config.mode == "timeseries":
        return compare_time_series(expected, expected_name, actual, actual_name, config)
    return compare_tables(expected, expected_name, actual, actual_name, config)
