"""
rounding.py — Motore di arrotondamento

================================================================================
ALGORITMO
================================================================================

Input: un razionale (numeratore, denominatore) nella rappresentazione del
Calculator e una RoundingMode. Output: un intero.

1. Si normalizza il segno del denominatore (d > 0).
2. divide() restituisce q troncato verso zero e resto r.
3. Se r == 0 il risultato è esatto: q.
4. Altrimenti il valore esatto sta tra q e q + s (s = segno del numeratore).
   Le modalità HALF_* confrontano 2·|r| con d per sapere se siamo sotto,
   sopra o esattamente a metà.

Nessun floating point: solo divisione intera e confronti.
Il risultato dista sempre meno di una unità dal valore esatto.

================================================================================
"""

from __future__ import annotations
from enum import Enum
from typing import Any

from .calculator import Calculator


class RoundingMode(Enum):
    """
    Strategie di arrotondamento.

    - UP / DOWN: via da zero / verso zero
    - CEIL / FLOOR: verso +inf / verso -inf
    - HALF_UP: metà verso +inf (2.5 -> 3, -2.5 -> -2)
    - HALF_DOWN: metà verso -inf (2.5 -> 2, -2.5 -> -3)
    - HALF_EVEN: banker's rounding, metà verso il pari
    - HALF_ODD: metà verso il dispari
    - HALF_TOWARD_ZERO / HALF_AWAY_FROM_ZERO: metà verso / via da zero

    In contesti finanziari spesso la normativa impone una strategia specifica.
    """
    HALF_EVEN = "half_even"
    HALF_UP = "half_up"
    HALF_DOWN = "half_down"
    HALF_ODD = "half_odd"
    HALF_TOWARD_ZERO = "half_toward_zero"
    HALF_AWAY_FROM_ZERO = "half_away_from_zero"
    UP = "up"
    DOWN = "down"
    CEIL = "ceil"
    FLOOR = "floor"

    @property
    def is_half(self) -> bool:
        return self.value.startswith("half_")


def round_quotient(
    calculator: Calculator,
    numerator: Any,
    denominator: Any,
    mode: RoundingMode = RoundingMode.HALF_EVEN,
) -> Any:
    """Divide numerator by denominator and round the quotient to an integer."""
    if not isinstance(mode, RoundingMode):
        raise TypeError(f"mode deve essere RoundingMode, ricevuto: {mode!r}")

    zero = calculator.from_integer(0)
    one = calculator.from_integer(1)

    if calculator.is_zero(denominator):
        raise ZeroDivisionError("denominatore zero")
    if calculator.compare(denominator, zero) < 0:
        numerator = calculator.negate(numerator)
        denominator = calculator.negate(denominator)

    quotient, remainder = calculator.divide(numerator, denominator)
    if calculator.is_zero(remainder):
        return quotient

    positive = calculator.compare(numerator, zero) > 0
    away = calculator.add(quotient, one) if positive else calculator.subtract(quotient, one)

    if not mode.is_half:
        if mode is RoundingMode.DOWN:
            return quotient
        if mode is RoundingMode.UP:
            return away
        if mode is RoundingMode.CEIL:
            return away if positive else quotient
        return quotient if positive else away  # FLOOR

    abs_remainder = remainder if positive else calculator.negate(remainder)
    doubled = calculator.multiply(abs_remainder, calculator.from_integer(2))
    half = calculator.compare(doubled, denominator)
    if half < 0:
        return quotient
    if half > 0:
        return away

    # Esattamente a metà
    if mode is RoundingMode.HALF_UP:
        return away if positive else quotient
    if mode is RoundingMode.HALF_DOWN:
        return quotient if positive else away
    if mode is RoundingMode.HALF_TOWARD_ZERO:
        return quotient
    if mode is RoundingMode.HALF_AWAY_FROM_ZERO:
        return away

    quotient_is_even = calculator.is_zero(calculator.modulo(quotient, calculator.from_integer(2)))
    if mode is RoundingMode.HALF_EVEN:
        return quotient if quotient_is_even else away
    return away if quotient_is_even else quotient  # HALF_ODD
