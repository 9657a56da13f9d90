"""
calculator.py — Backend numerico pluggabile

================================================================================
CONTRATTO
================================================================================

Money non fa mai aritmetica diretta sui suoi importi: ogni operazione passa
da un Calculator. Il valore numerico è opaco, il core lo tocca solo tramite
questi metodi.

Requisiti per qualsiasi implementazione:
- Operazioni pure e deterministiche (stesso input, stesso output)
- add e multiply associativi e commutativi
- divide(a, b) restituisce (quoziente, resto) con quoziente troncato verso
  zero e resto con il segno del dividendo: a == b * q + r
- Re-entrant: lo stesso calculator può essere condiviso tra thread

Due Money possono essere combinati solo se i loro calculator sono
compatibili: stessa istanza, oppure is_compatible() == True in entrambe
le direzioni, così a + b e b + a falliscono o riescono insieme.

================================================================================
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from .errors import IncompatibleBackendError


@runtime_checkable
class Calculator(Protocol):
    """Arithmetic over an opaque arbitrary-precision integer representation."""

    def add(self, a: Any, b: Any) -> Any: ...

    def subtract(self, a: Any, b: Any) -> Any: ...

    def multiply(self, a: Any, b: Any) -> Any: ...

    def divide(self, a: Any, b: Any) -> tuple[Any, Any]: ...

    def compare(self, a: Any, b: Any) -> int: ...

    def negate(self, a: Any) -> Any: ...

    def is_zero(self, a: Any) -> bool: ...

    def to_integer(self, a: Any) -> int: ...

    def from_integer(self, value: int) -> Any: ...

    def power(self, base: Any, exponent: int) -> Any: ...

    def modulo(self, a: Any, b: Any) -> Any: ...

    def is_compatible(self, other: Calculator) -> bool: ...


def are_compatible(left: Calculator, right: Calculator) -> bool:
    """True if the two calculators accept each other (symmetric)."""
    return left is right or (left.is_compatible(right) and right.is_compatible(left))


def ensure_compatible(left: Calculator, right: Calculator) -> Calculator:
    """Return the shared calculator or raise IncompatibleBackendError."""
    if are_compatible(left, right):
        return left
    raise IncompatibleBackendError(left, right)


# ==============================================================================
# REFERENCE IMPLEMENTATION (Python int, precisione arbitraria)
# ==============================================================================

@dataclass(frozen=True, slots=True)
class IntCalculator:
    """
    Backend di riferimento basato su int nativo.

    Gli int di Python sono a precisione arbitraria: nessun overflow,
    nessun limite di 2**53 come nei double.
    """

    def add(self, a: int, b: int) -> int:
        return a + b

    def subtract(self, a: int, b: int) -> int:
        return a - b

    def multiply(self, a: int, b: int) -> int:
        return a * b

    def divide(self, a: int, b: int) -> tuple[int, int]:
        if b == 0:
            raise ZeroDivisionError("divisione per zero")
        quotient = abs(a) // abs(b)
        if (a < 0) != (b < 0):
            quotient = -quotient
        return quotient, a - b * quotient

    def compare(self, a: int, b: int) -> int:
        return (a > b) - (a < b)

    def negate(self, a: int) -> int:
        return -a

    def is_zero(self, a: int) -> bool:
        return a == 0

    def to_integer(self, a: int) -> int:
        return a

    def from_integer(self, value: int) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"Atteso int, ricevuto {type(value).__name__}")
        return value

    def power(self, base: int, exponent: int) -> int:
        if exponent < 0:
            raise ValueError(f"Esponente negativo non supportato: {exponent}")
        return base ** exponent

    def modulo(self, a: int, b: int) -> int:
        return self.divide(a, b)[1]

    def is_compatible(self, other: Calculator) -> bool:
        return type(other) is type(self) and other == self


@dataclass(frozen=True, slots=True)
class BoundedIntCalculator(IntCalculator):
    """
    Backend a larghezza fissa (default 64 bit con segno).

    Modella un tipo nativo a dimensione fissa: ogni risultato fuori range
    solleva OverflowError invece di perdere bit in silenzio.
    Due BoundedIntCalculator sono compatibili solo con lo stesso numero di bit.
    """

    bits: int = 64

    def __post_init__(self) -> None:
        if self.bits < 2:
            raise ValueError(f"bits deve essere >= 2, ricevuto: {self.bits}")

    @property
    def max_value(self) -> int:
        return (1 << (self.bits - 1)) - 1

    @property
    def min_value(self) -> int:
        return -(1 << (self.bits - 1))

    def _check(self, value: int) -> int:
        if not self.min_value <= value <= self.max_value:
            raise OverflowError(f"{value} fuori dal range di un intero a {self.bits} bit")
        return value

    def add(self, a: int, b: int) -> int:
        return self._check(a + b)

    def subtract(self, a: int, b: int) -> int:
        return self._check(a - b)

    def multiply(self, a: int, b: int) -> int:
        return self._check(a * b)

    def divide(self, a: int, b: int) -> tuple[int, int]:
        quotient, remainder = IntCalculator.divide(self, a, b)
        return self._check(quotient), remainder

    def negate(self, a: int) -> int:
        return self._check(-a)

    def from_integer(self, value: int) -> int:
        return self._check(IntCalculator.from_integer(self, value))

    def power(self, base: int, exponent: int) -> int:
        return self._check(IntCalculator.power(self, base, exponent))
