"""
datacompare/tolerance.py
========================
Modelo de tolerancia para comparaciones numéricas.

Formato: una o más cláusulas separadas por ';'. Cada cláusula es un número
(tolerancia absoluta), un porcentaje (relativa al rango de datos esperado) o
'epsilon', con un sufijo opcional ':N' de cifras significativas.

    Tolerance.parse("0.001;0.1%")      # la mayor de ambas
    Tolerance.parse("0.1%:4;0.001:4")  # redondeando a 4 cifras significativas

El valor efectivo es el máximo de los valores aplicados de cada cláusula; la
precisión (decimales de presentación) es la de la cláusula que da ese máximo.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional

from datacompare.formatting import EPSILON, format_percentage, is_zero, rounded_to
from datacompare.type_inference import CompareType, convert, format_double, to_double


@dataclass(frozen=True)
class ToleranceSpec:
    """Una cláusula de tolerancia ya parseada.

    Attributes:
        is_absolute:        False para porcentajes (relativos al rango de datos).
        magnitude:          Valor absoluto, o fracción (1% -> 0.01) si es relativa.
        significant_digits: Cifras significativas para redondear, o None.
    """
    is_absolute: bool
    magnitude: float
    significant_digits: Optional[int] = None

    @classmethod
    def parse(cls, text: Optional[str]) -> "ToleranceSpec":
        """Parsea una cláusula ('0.1', '2%', 'epsilon', '0.01:3').

        Raises:
            FormatError: si el número o las cifras significativas no son válidos.
        """
        if not text or not text.strip():
            return cls(is_absolute=True, magnitude=0.0)
        raw = text
        significant_digits = None
        if ":" in raw:
            raw, _, digits_text = raw.partition(":")
            significant_digits = convert(digits_text, CompareType.INT)
        raw = raw.strip()
        if raw.lower() == "epsilon":
            return cls(is_absolute=True, magnitude=EPSILON, significant_digits=significant_digits)
        if raw.endswith("%"):
            magnitude = abs(to_double(raw[:raw.index("%")]) / 100.0)
            return cls(is_absolute=False, magnitude=magnitude, significant_digits=significant_digits)
        return cls(is_absolute=True, magnitude=abs(to_double(raw)), significant_digits=significant_digits)

    def applied(self, data_range: Optional[float]) -> tuple[float, Optional[int]]:
        """(valor aplicado, precisión) para un rango de datos dado."""
        value = self.magnitude if self.is_absolute else abs(data_range or 0.0) * self.magnitude
        if self.significant_digits is None or is_zero(value) or not math.isfinite(value):
            return value, None
        precision = max(math.ceil(-math.log10(value)) + self.significant_digits - 1, 0)
        return rounded_to(value, precision), precision


@dataclass(frozen=True)
class ResolvedTolerance:
    """Tolerancia efectiva para un rango de datos concreto."""
    value: float
    precision: Optional[int]
    data_range: Optional[float]

    def __str__(self) -> str:
        if not self.value > 0:
            return ""
        text = format_double(self.value)
        if self.data_range is None or is_zero(self.data_range):
            return text
        fraction = self.value / self.data_range
        if not math.isfinite(fraction):
            return text
        return f"{text} ({format_percentage(fraction)})"


class Tolerance:
    """Conjunto ordenado de cláusulas más el rango de datos de referencia.

    `value` y `precision` se calculan de forma perezosa y se cachean hasta que
    cambian las cláusulas o `data_range`. Los comparadores no tocan
    `data_range`: usan `resolve()`, que no modifica el objeto.
    """

    def __init__(self, specs: Optional[Iterable[ToleranceSpec]] = None):
        self._specs: list[ToleranceSpec] = list(specs or [])
        self._data_range: Optional[float] = None
        self._resolved = ResolvedTolerance(0.0, None, None)
        self._is_dirty = True

    @classmethod
    def parse(cls, text: Optional[str]) -> "Tolerance":
        return cls(ToleranceSpec.parse(clause) for clause in (text or "").split(";"))

    @property
    def specs(self) -> tuple[ToleranceSpec, ...]:
        return tuple(self._specs)

    def add_spec(self, spec: ToleranceSpec) -> None:
        self._specs.append(spec)
        self._is_dirty = True

    @property
    def data_range(self) -> Optional[float]:
        return self._data_range

    @data_range.setter
    def data_range(self, value: Optional[float]) -> None:
        self._data_range = value
        self._is_dirty = True

    @property
    def value(self) -> float:
        return self._current().value

    @property
    def precision(self) -> Optional[int]:
        return self._current().precision

    def resolve(self, data_range: Optional[float]) -> ResolvedTolerance:
        max_value = 0.0
        precision = None
        for spec in self._specs:
            applied, spec_precision = spec.applied(data_range)
            # empate: se queda la primera cláusula que alcanzó el máximo
            if applied > max_value:
                max_value = applied
                precision = spec_precision
        return ResolvedTolerance(max_value, precision, data_range)

    def _current(self) -> ResolvedTolerance:
        if self._is_dirty:
            self._resolved = self.resolve(self._data_range)
            self._is_dirty = False
        return self._resolved

    def __str__(self) -> str:
        return str(self._current())

    def __repr__(self) -> str:
        return f"Tolerance(specs={self._specs!r}, data_range={self._data_range!r})"
