"""
datacompare/errors.py
=====================
Excepciones del motor de comparación.

Todas heredan de ValueError: un fallo aquí siempre significa datos de entrada
mal formados (tolerancia inválida, timestamps duplicados, columna desconocida),
nunca un error transitorio.
"""
from __future__ import annotations

from datetime import datetime


class FormatError(ValueError):
    """Un texto no se puede convertir al tipo pedido."""


class TypeNotRecognizedError(ValueError):
    """Nombre de tipo de comparación desconocido."""


class UnknownColumnError(ValueError):
    """Se pidió una columna de informe (o cabecera) que no existe."""


class DuplicateKeyError(ValueError):
    """Dos medidas de la misma serie comparten timestamp.

    Attributes:
        series_tag: Serie que produjo el duplicado ('expected', 'actual', 'surplus').
        timestamp:  Timestamp repetido.
    """

    def __init__(self, series_tag: str, timestamp: datetime, rendered: str):
        super().__init__(f"Duplicate timestamp in {series_tag}: {rendered}")
        self.series_tag = series_tag
        self.timestamp = timestamp
