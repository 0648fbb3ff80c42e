"""
datacompare/formatting.py
=========================
Utilidades numéricas y de presentación compartidas por los comparadores.
"""
from __future__ import annotations

import math
import re
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Any, Optional

from datacompare.type_inference import as_text, format_double, is_numeric, to_double

# Menor double positivo representable
EPSILON = math.ulp(0.0)

MAX_ROUNDING_DIGITS = 15


def format_value(value: Any) -> Optional[str]:
    """Texto de presentación de un valor (None se mantiene como None)."""
    if isinstance(value, float):
        return format_double(value)
    return as_text(value)


def format_percentage(fraction: float) -> str:
    """Formato porcentaje con un decimal: 0.011 -> '1.1 %'.

    Redondeo "half away from zero" sobre 15 cifras significativas, para que
    0.0015 dé '0.2 %' aunque el double sea 0.00149999...
    """
    percent = fraction * 100
    if not math.isfinite(percent):
        return f"{format_double(percent)} %"
    scaled = Decimal(f"{percent:.15g}")
    # la precisión por defecto (28 dígitos) no basta para cocientes enormes
    with localcontext() as ctx:
        ctx.prec = max(28, scaled.adjusted() + 3)
        rounded = scaled.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return f"{rounded} %"


def fractional_digits(value: Any) -> int:
    """Número de decimales con que está escrito un valor numérico ('1.25E-1' -> 3)."""
    if not is_numeric(value):
        return 0
    text = (as_text(value) or "").strip()
    parts = re.split(r"[eE]", text, maxsplit=1)
    exponent = -int(parts[1]) if len(parts) > 1 else 0
    point = parts[0].split(".")
    digits = len(point[1]) if len(point) > 1 else 0
    return max(digits + exponent, 0)


def rounded_to(value: Any, digits: Optional[int]) -> Any:
    """Redondea a `digits` decimales; si no es posible devuelve el valor tal cual."""
    if digits is None or not is_numeric(value) or digits < 0 or digits > MAX_ROUNDING_DIGITS:
        return value
    return round(to_double(value), digits)


def is_zero(value: float) -> bool:
    return abs(value) <= EPSILON


def to_column_letters(column: int) -> str:
    """Columna base 0 a letras estilo hoja de cálculo: 0 -> 'A', 26 -> 'AA'.

    Sin límite superior: 18278 -> 'AAAA'.
    """
    letters = ""
    number = column + 1
    while number > 0:
        number, remainder = divmod(number - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


def to_round_trip_format(timestamp: datetime) -> str:
    """Timestamp con 7 decimales de fracción: '2004-03-24T00:00:00.0000000'."""
    text = f"{timestamp:%Y-%m-%dT%H:%M:%S}.{timestamp.microsecond * 10:07d}"
    offset = timestamp.utcoffset()
    if offset is None:
        return text
    if offset == timedelta(0):
        return text + "Z"
    sign = "-" if offset < timedelta(0) else "+"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"
