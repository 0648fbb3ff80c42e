"""
datacompare/value_comparison.py
===============================
Comparación atómica de una pareja (esperado, real) con tolerancia.

La comparación se ejecuta en el constructor; el objeto no cambia después.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Optional

from datacompare.errors import FormatError
from datacompare.formatting import (
    format_percentage,
    format_value,
    fractional_digits,
    is_zero,
    rounded_to,
)
from datacompare.models import CompareOutcome
from datacompare.table_renderer import fail, pass_, report
from datacompare.tolerance import ResolvedTolerance, Tolerance
from datacompare.type_inference import (
    CompareType,
    as_text,
    convert,
    infer_type,
    is_numeric,
    parse_double,
    to_double,
)

logger = logging.getLogger(__name__)

INFINITY_TEXT = "Infinity"


class ValueComparison:
    """Compara un valor esperado con uno real.

    Args:
        expected:     Valor esperado (texto o None).
        actual:       Valor real (texto o None).
        tolerance:    Tolerancia a aplicar; None = igualdad estricta.
        compare_type: Tipo de comparación; si es None se infiere de ambos valores.
        data_range:   Base para tolerancias relativas. Si es None y la comparación
                      es numérica, se toma el valor esperado.
    """

    def __init__(
        self,
        expected: Any,
        actual: Any,
        tolerance: Optional[Tolerance] = None,
        compare_type: Optional[CompareType] = None,
        data_range: Optional[float] = None,
    ):
        self._expected_in = as_text(expected)
        self._actual_in = as_text(actual)
        self._tolerance = tolerance
        self._compare_type = compare_type
        self._tolerance_base = data_range
        self._resolved: Optional[ResolvedTolerance] = (
            tolerance.resolve(data_range) if tolerance is not None else None
        )
        self._expected_out: Optional[str] = None
        self._actual_out: Optional[str] = None
        self._delta_out = ""
        self._outcome = self._run_comparison()

    # ------------------------------------------------------------------
    # Resultado
    # ------------------------------------------------------------------

    @property
    def outcome(self) -> CompareOutcome:
        return self._outcome

    @property
    def compare_type(self) -> Optional[CompareType]:
        return self._compare_type

    @property
    def resolved_tolerance(self) -> Optional[ResolvedTolerance]:
        return self._resolved

    @property
    def tolerance_base(self) -> Optional[float]:
        return self._tolerance_base

    @property
    def expected_value_out(self) -> Optional[str]:
        return self._expected_out

    @property
    def actual_value_out(self) -> Optional[str]:
        return self._actual_out

    @property
    def delta_out(self) -> str:
        return self._delta_out

    @property
    def delta_message(self) -> str:
        return self._delta_out

    @property
    def delta_percentage_message(self) -> str:
        """Delta relativo a la base de tolerancia ('1.1 %'), o '' si no aplica."""
        if not self._is_tolerance_used() or self._tolerance_base is None or not self._delta_out:
            return ""
        delta = parse_double(self._delta_out)
        if delta is None or is_zero(self._tolerance_base):
            return ""
        ratio = delta / self._tolerance_base
        if not math.isfinite(ratio):
            return ""
        return format_percentage(abs(ratio))

    @property
    def value_message(self) -> str:
        expected = self._expected_out or ""
        actual = self._actual_out or ""
        outcome = self._outcome
        if outcome is CompareOutcome.NONE:
            return actual
        if outcome is CompareOutcome.WITHIN_TOLERANCE:
            return f"{actual} ~= {expected}"
        if outcome is CompareOutcome.OUTSIDE_TOLERANCE_ISSUE:
            return f"{actual} != {expected}"
        if outcome is CompareOutcome.VALUE_ISSUE:
            return f"[{actual}] expected [{expected}]"
        if outcome is CompareOutcome.MISSING:
            return f"[{expected}] missing"
        return f"[{actual}] surplus"

    def is_ok(self) -> bool:
        return self._outcome.is_ok

    def table_result(self, message: Optional[str]) -> str:
        """Mensaje con prefijo de estado: report (vacío), pass o fail."""
        if not message:
            return report("")
        return pass_(message) if self.is_ok() else fail(message)

    # ------------------------------------------------------------------
    # Lógica
    # ------------------------------------------------------------------

    def _is_tolerance_used(self) -> bool:
        return self._outcome in (CompareOutcome.WITHIN_TOLERANCE, CompareOutcome.OUTSIDE_TOLERANCE_ISSUE)

    def _round_via_tolerance(self, target: Optional[str]) -> Optional[str]:
        if target is None:
            return None
        compare_type = self._compare_type or infer_type(target)
        if self._resolved is not None and compare_type.is_floating_point and is_numeric(target):
            return format_value(rounded_to(to_double(target), self._resolved.precision))
        return target

    def _run_comparison(self) -> CompareOutcome:
        expected, actual = self._expected_in, self._actual_in
        self._actual_out = self._round_via_tolerance(actual)
        self._expected_out = self._round_via_tolerance(expected)

        if expected is None and actual is None:
            return CompareOutcome.NONE
        if expected is None:
            return CompareOutcome.SURPLUS
        if actual is None:
            return CompareOutcome.MISSING

        if expected == actual:
            return CompareOutcome.NONE

        # sin tipo indicado: tipo compatible de ambos valores
        if self._compare_type is None:
            self._compare_type = infer_type(actual, infer_type(expected))
        compare_type = self._compare_type

        try:
            actual_value = convert(actual, compare_type)
            convert(expected, compare_type)
        except FormatError:
            return CompareOutcome.VALUE_ISSUE

        if (
            self._tolerance is not None
            and self._tolerance_base is None
            and compare_type.is_numeric
            and is_numeric(expected)
        ):
            self._tolerance_base = to_double(expected)
            self._resolved = self._tolerance.resolve(self._tolerance_base)

        # mismos textos de salida con entradas distintas: notación E, '∞' vs
        # 'Infinity' o redondeo por precisión
        if self._expected_out in (self._actual_out, format_value(actual_value)):
            if INFINITY_TEXT in (self._actual_out or ""):
                return CompareOutcome.NONE
            return CompareOutcome.WITHIN_TOLERANCE

        if not compare_type.is_numeric or self._resolved is None or self._resolved.value == 0.0:
            return CompareOutcome.VALUE_ISSUE

        if compare_type.is_floating_point:
            return self._double_comparison()
        return self._long_comparison()

    def _double_comparison(self) -> CompareOutcome:
        precision = self._resolved.precision
        expected = to_double(self._expected_in)
        actual = to_double(self._actual_in)
        delta = abs(expected - actual)
        self._actual_out = format_value(rounded_to(actual, precision))

        # el delta se presenta con la precisión de los propios valores
        if precision is None:
            precision = max(fractional_digits(self._expected_in), fractional_digits(self._actual_in))
        self._delta_out = format_value(rounded_to(delta, precision))

        if delta <= self._resolved.value:
            return CompareOutcome.WITHIN_TOLERANCE
        return CompareOutcome.OUTSIDE_TOLERANCE_ISSUE

    def _long_comparison(self) -> CompareOutcome:
        expected = convert(self._expected_in, self._compare_type)
        actual = convert(self._actual_in, self._compare_type)
        delta = abs(expected - actual)
        value = self._resolved.value
        rounded_tolerance = int(value) if math.isfinite(value) else math.inf
        self._delta_out = str(delta)
        logger.debug("Comparación entera %s vs %s: delta=%d, tolerancia=%s", expected, actual, delta, rounded_tolerance)
        if delta <= rounded_tolerance:
            return CompareOutcome.WITHIN_TOLERANCE
        return CompareOutcome.OUTSIDE_TOLERANCE_ISSUE

    def __repr__(self) -> str:
        return (
            f"ValueComparison(expected={self._expected_in!r}, actual={self._actual_in!r}, "
            f"outcome={self._outcome})"
        )
