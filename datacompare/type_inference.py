"""
datacompare/type_inference.py
=============================
Inferencia de tipos y conversión de valores textuales.

Los valores llegan siempre como texto (celdas CSV, valores de medidas). Aquí se
decide qué tipo comparable representan y se convierten a ese tipo. El conjunto
de tipos es cerrado: int, long, double, bool y string.
"""
from __future__ import annotations

import locale
import math
import re
from enum import Enum
from typing import Any, Iterable, Optional

from datacompare.errors import FormatError, TypeNotRecognizedError

INT32_MIN, INT32_MAX = -(2 ** 31), 2 ** 31 - 1
INT64_MIN, INT64_MAX = -(2 ** 63), 2 ** 63 - 1

_INTEGER_RE = re.compile(r"^\s*[+-]?\d+\s*$")
_FLOAT_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")

_SPECIAL_FLOATS = {
    "infinity": math.inf,
    "+infinity": math.inf,
    "-infinity": -math.inf,
    "∞": math.inf,
    "+∞": math.inf,
    "-∞": -math.inf,
    "nan": math.nan,
}


# ===========
# Tipos
# ===========
class CompareType(Enum):
    INT = "int"
    LONG = "long"
    DOUBLE = "double"
    BOOL = "bool"
    STRING = "string"

    @property
    def is_numeric(self) -> bool:
        return self in (CompareType.INT, CompareType.LONG, CompareType.DOUBLE)

    @property
    def is_floating_point(self) -> bool:
        return self is CompareType.DOUBLE

    @classmethod
    def from_name(cls, name: str) -> "CompareType":
        """Devuelve el tipo para un nombre como 'double' o 'Int64'.

        Raises:
            TypeNotRecognizedError: si el nombre no corresponde a ningún tipo.
        """
        key = (name or "").strip().lower()
        if key in _TYPE_ALIASES:
            return _TYPE_ALIASES[key]
        raise TypeNotRecognizedError(f"Tipo '{name}' no reconocido.")


_TYPE_ALIASES = {
    "int": CompareType.INT,
    "integer": CompareType.INT,
    "int32": CompareType.INT,
    "long": CompareType.LONG,
    "int64": CompareType.LONG,
    "double": CompareType.DOUBLE,
    "float": CompareType.DOUBLE,
    "decimal": CompareType.DOUBLE,
    "bool": CompareType.BOOL,
    "boolean": CompareType.BOOL,
    "string": CompareType.STRING,
    "str": CompareType.STRING,
}


# ===========
# Parsing
# ===========
def as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, float):
        return format_double(value)
    return str(value)


def format_double(value: float) -> str:
    """Representación más corta de un double, con el estilo invariante habitual.

    12.0 -> '12', 4.14593e-08 -> '4.14593E-08', inf -> 'Infinity'.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    text = repr(value)
    if "e" in text:
        mantissa, exponent = text.split("e")
        if mantissa.endswith(".0"):
            mantissa = mantissa[:-2]
        return f"{mantissa}E{exponent}"
    if text.endswith(".0"):
        text = text[:-2]
    return text


def _parse_integer(text: str, low: int, high: int) -> Optional[int]:
    if not _INTEGER_RE.match(text):
        return None
    number = int(text.strip())
    return number if low <= number <= high else None


def _parse_invariant_double(text: str) -> Optional[float]:
    t = text.strip()
    special = _SPECIAL_FLOATS.get(t.lower())
    if special is not None:
        return special
    if _FLOAT_RE.match(t):
        return float(t)
    return None


def _parse_locale_double(text: str) -> Optional[float]:
    conv = locale.localeconv()
    decimal_point = conv.get("decimal_point") or "."
    thousands_sep = conv.get("thousands_sep") or ""
    t = text.strip()
    if thousands_sep:
        t = t.replace(thousands_sep, "")
    if decimal_point != ".":
        if "." in t:
            return None
        t = t.replace(decimal_point, ".")
    return _parse_invariant_double(t)


def parse_double(text: Optional[str]) -> Optional[float]:
    """Parsea un double: primero formato invariante, después el locale actual."""
    if text is None:
        return None
    value = _parse_invariant_double(text)
    if value is None:
        value = _parse_locale_double(text)
    return value


def parse_bool(text: Optional[str]) -> Optional[bool]:
    if text is None:
        return None
    t = text.strip().lower()
    if t == "true":
        return True
    if t == "false":
        return False
    return None


def is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    return parse_double(as_text(value)) is not None


# ===========
# Inferencia
# ===========
def _infer_single(value: Any) -> CompareType:
    text = as_text(value)
    if text is None:
        return CompareType.STRING
    # el orden importa: un entero nunca debe clasificarse como double
    if _parse_integer(text, INT32_MIN, INT32_MAX) is not None:
        return CompareType.INT
    if _parse_integer(text, INT64_MIN, INT64_MAX) is not None:
        return CompareType.LONG
    if parse_double(text) is not None:
        return CompareType.DOUBLE
    if parse_bool(text) is not None:
        return CompareType.BOOL
    return CompareType.STRING


def infer_type(value: Any, current_type: Optional[CompareType] = None) -> CompareType:
    """Tipo de `value` compatible con `current_type`.

    Reglas de promoción: (long, int) -> long; (double, int|long) -> double;
    cualquier otra mezcla (incluido bool con numérico) -> string.
    """
    new_type = _infer_single(value)
    if current_type is None or current_type is new_type:
        return new_type
    pair = {current_type, new_type}
    if pair == {CompareType.LONG, CompareType.INT}:
        return CompareType.LONG
    if pair in ({CompareType.DOUBLE, CompareType.LONG}, {CompareType.DOUBLE, CompareType.INT}):
        return CompareType.DOUBLE
    return CompareType.STRING


def infer_compatible_type(values: Iterable[Any]) -> Optional[CompareType]:
    """Tipo común de una secuencia. None si no hay ningún valor informado."""
    current: Optional[CompareType] = None
    for value in values:
        if value is None or value == "":
            continue
        current = infer_type(value, current)
        if current is CompareType.STRING:
            break
    return current


# ===========
# Conversión
# ===========
def convert(value: Any, target: CompareType) -> Any:
    """Convierte un valor al tipo indicado.

    Raises:
        FormatError: si el valor no es representable en ese tipo.
    """
    text = as_text(value)
    if text is None:
        raise FormatError(f"No se puede convertir un valor nulo a {target.value}")
    if target is CompareType.STRING:
        return text
    if target is CompareType.INT:
        result = _parse_integer(text, INT32_MIN, INT32_MAX)
    elif target is CompareType.LONG:
        result = _parse_integer(text, INT64_MIN, INT64_MAX)
    elif target is CompareType.DOUBLE:
        result = parse_double(text)
    else:
        result = parse_bool(text)
    if result is None:
        raise FormatError(f"No se pudo convertir '{text}' a {target.value}")
    return result


def convert_with_default(value: Any, target: CompareType, default: Any) -> Any:
    try:
        return convert(value, target)
    except FormatError:
        return default


def to_double(value: Any) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return convert(value, CompareType.DOUBLE)
