"""
allocation.py — Ripartizione proporzionale con somma esatta

================================================================================
LARGEST REMAINDER METHOD (Hare-Niemeyer)
================================================================================

Dato un importo A e dei rapporti r_1 … r_n (somma R):

1. Ogni parte base_i = round(A · r_i / R) con la RoundingMode scelta
   (default FLOOR, cioè la quota "per difetto").
2. Si calcola lo scarto di ciascuna parte: A · r_i - base_i · R
   (la frazione scartata, in unità di 1/R).
3. leftover = A - Σ base_i. |leftover| <= n per costruzione.
4. Se leftover > 0: +1 alle parti con scarto maggiore.
   Se leftover < 0: -1 alle parti con scarto minore (le più arrotondate
   per eccesso). Parità risolte per indice crescente.

INVARIANTE: Σ parti == A, esattamente, per ogni vettore di rapporti valido.

================================================================================
"""

from __future__ import annotations
from decimal import Decimal
from fractions import Fraction
from functools import cmp_to_key
from math import lcm
from typing import Any, Sequence, Union

from loguru import logger

from .calculator import Calculator
from .errors import InvalidRatioError
from .rounding import RoundingMode, round_quotient

Ratio = Union[int, Fraction, Decimal]

# Limite sul numero di parti (protezione DoS)
MAX_ALLOCATION_PARTS: int = 10_000


def normalize_ratios(ratios: Sequence[Ratio]) -> list[int]:
    """
    Converte i rapporti in interi non negativi con lo stesso peso relativo.

    Fraction e Decimal vengono scalati per il minimo comune multiplo dei
    denominatori. I float sono rifiutati: 33.33 non è 3333/100.
    """
    if len(ratios) == 0:
        raise InvalidRatioError("ratios non può essere vuoto")
    if len(ratios) > MAX_ALLOCATION_PARTS:
        raise InvalidRatioError(f"ratios supera il limite di {MAX_ALLOCATION_PARTS} parti")

    fractions: list[Fraction] = []
    for ratio in ratios:
        if isinstance(ratio, bool) or not isinstance(ratio, (int, Fraction, Decimal)):
            raise TypeError(
                f"Rapporto non supportato: {type(ratio).__name__}. "
                f"Usa int, Fraction o Decimal."
            )
        if isinstance(ratio, Decimal) and not ratio.is_finite():
            raise InvalidRatioError(f"Rapporto non finito: {ratio}")
        value = Fraction(ratio)
        if value < 0:
            raise InvalidRatioError(f"ratios non può contenere valori negativi: {ratio}")
        fractions.append(value)

    if all(value == 0 for value in fractions):
        raise InvalidRatioError("almeno un rapporto deve essere > 0")

    common = lcm(*(value.denominator for value in fractions))
    return [int(value * common) for value in fractions]


def allocate(
    calculator: Calculator,
    amount: Any,
    ratios: Sequence[Ratio],
    mode: RoundingMode = RoundingMode.FLOOR,
) -> list[Any]:
    """
    Ripartisce `amount` secondo `ratios`.

    Returns:
        Lista di importi (rappresentazione del calculator), stessa lunghezza
        di `ratios`, la cui somma è esattamente `amount`.

    Raises:
        InvalidRatioError: rapporti vuoti, tutti zero, negativi o troppi
        TypeError: rapporti di tipo non supportato (es. float)
    """
    weights = [calculator.from_integer(r) for r in normalize_ratios(ratios)]
    total = calculator.from_integer(0)
    for weight in weights:
        total = calculator.add(total, weight)

    parts: list[Any] = []
    errors: list[Any] = []
    allocated = calculator.from_integer(0)
    for weight in weights:
        exact = calculator.multiply(amount, weight)
        part = round_quotient(calculator, exact, total, mode)
        parts.append(part)
        errors.append(calculator.subtract(exact, calculator.multiply(part, total)))
        allocated = calculator.add(allocated, part)

    leftover = calculator.to_integer(calculator.subtract(amount, allocated))
    if leftover == 0:
        return parts

    logger.debug(f"Allocation leftover of {leftover} unit(s) across {len(parts)} parts")

    step = calculator.from_integer(1 if leftover > 0 else -1)
    direction = -1 if leftover > 0 else 1

    def by_error(i: int, j: int) -> int:
        order = direction * calculator.compare(errors[i], errors[j])
        return order if order != 0 else i - j

    for index in sorted(range(len(parts)), key=cmp_to_key(by_error))[:abs(leftover)]:
        parts[index] = calculator.add(parts[index], step)
    return parts
