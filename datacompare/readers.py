"""
datacompare/readers.py
======================
Carga de ficheros subidos (CSV / Excel) a los modelos del comparador.

Todas las celdas se leen como texto: la inferencia de tipos la hace el motor de
comparación, no pandas.
"""
from __future__ import annotations

import io
import logging
import os
from typing import BinaryIO, Union

import pandas as pd

from datacompare.models import ComparisonConfig, CsvTable
from datacompare.time_series import TimeSeries

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".csv", ".xlsx", ".xls")
CSV_SEPARATORS = (";", ",", "\t")


def _read_bytes(buffer: Union[bytes, BinaryIO]) -> bytes:
    if isinstance(buffer, (bytes, bytearray)):
        return bytes(buffer)
    buffer.seek(0)
    return buffer.read()


def detect_separator(text: str) -> str:
    """Separador más frecuente en la primera línea (',' si no hay ninguno)."""
    first_line = text.splitlines()[0] if text else ""
    counts = {sep: first_line.count(sep) for sep in CSV_SEPARATORS}
    best = max(counts, key=counts.get)
    return best if counts[best] > 0 else ","


def read_table(buffer: Union[bytes, BinaryIO], filename: str) -> pd.DataFrame:
    """Lee un fichero CSV o Excel a un DataFrame de textos.

    Args:
        buffer:   Contenido del fichero (bytes o file-like).
        filename: Nombre original; su extensión decide el lector.

    Raises:
        ValueError: formato no soportado o fichero ilegible.
    """
    ext = os.path.splitext(filename)[1].lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise ValueError(
            f"Formato no soportado: '{filename}'. Extensiones válidas: {', '.join(SUPPORTED_EXTENSIONS)}"
        )
    data = _read_bytes(buffer)

    if ext == ".csv":
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError:
            text = data.decode("latin-1")
        sep = detect_separator(text)
        try:
            df = pd.read_csv(io.StringIO(text), sep=sep, dtype=str, keep_default_na=False, engine="python")
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise ValueError(f"No se pudo leer {filename}: {e}") from e
    else:
        try:
            df = pd.read_excel(io.BytesIO(data), sheet_name=0, dtype=str, keep_default_na=False, engine="openpyxl")
        except Exception as e:
            raise ValueError(f"No se pudo leer {filename}: {e}") from e

    logger.info("Leído '%s': %d filas x %d columnas", filename, df.shape[0], df.shape[1])
    return df


def load_csv_table(buffer: Union[bytes, BinaryIO], filename: str) -> CsvTable:
    return CsvTable.from_dataframe(read_table(buffer, filename))


def load_time_series(
    buffer: Union[bytes, BinaryIO],
    filename: str,
    config: ComparisonConfig,
) -> TimeSeries:
    """Serie temporal a partir de un fichero, con las columnas de `config`.

    Raises:
        UnknownColumnError: si falta alguna de las columnas configuradas.
    """
    return TimeSeries.from_dataframe(
        read_table(buffer, filename),
        timestamp_column=config.timestamp_column,
        value_column=config.value_column,
        is_good_column=config.is_good_column,
        name=os.path.basename(filename),
    )
