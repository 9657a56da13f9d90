"""
scale.py — Normalizzazione degli esponenti

Due importi con esponenti diversi (10.00 a esponente 2, 10.000 a esponente 3)
vanno portati allo stesso esponente prima di sommarli o confrontarli.
Si alza sempre quello con esponente minore: solo moltiplicazioni, nessuna
perdita di precisione.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Any

from .calculator import Calculator, ensure_compatible
from .rounding import RoundingMode, round_quotient

if TYPE_CHECKING:
    from .money import Money


def scale_factor(calculator: Calculator, base: int, digits: int) -> Any:
    """base ** digits nella rappresentazione del calculator."""
    return calculator.power(calculator.from_integer(base), digits)


def rescale(
    calculator: Calculator,
    amount: Any,
    base: int,
    source: int,
    target: int,
    mode: RoundingMode = RoundingMode.HALF_EVEN,
) -> Any:
    """
    Porta `amount` dall'esponente `source` all'esponente `target`.

    Verso l'alto è esatto (moltiplicazione). Verso il basso passa dal
    motore di arrotondamento con la `mode` richiesta.
    """
    if target < 0:
        raise ValueError(f"Esponente negativo: {target}")
    if target == source:
        return amount
    if target > source:
        return calculator.multiply(amount, scale_factor(calculator, base, target - source))
    return round_quotient(calculator, amount, scale_factor(calculator, base, source - target), mode)


def normalize(a: Money, b: Money) -> tuple[Any, Any, int]:
    """
    Allinea gli importi di `a` e `b` all'esponente massimo.

    Returns:
        (amount_a, amount_b, exponent)

    Raises:
        IncompatibleBackendError: se i calculator non sono compatibili
    """
    calculator = ensure_compatible(a.calculator, b.calculator)
    if a.currency.base != b.currency.base:
        raise ValueError(
            f"Basi numeriche diverse: {a.currency.code} (base {a.currency.base}) "
            f"vs {b.currency.code} (base {b.currency.base})"
        )
    exponent = max(a.exponent, b.exponent)
    base = a.currency.base
    return (
        rescale(calculator, a.amount, base, a.exponent, exponent),
        rescale(calculator, b.amount, base, b.exponent, exponent),
        exponent,
    )
