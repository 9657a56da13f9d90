"""
builder.py — Allocation (distribuzione complessa)

Quando serve distribuire un importo secondo regole miste:
quote fisse prima, il resto in proporzione.

INVARIANTE: sum(finalize()) == totale originale (sempre)
"""

from __future__ import annotations
from typing import Sequence

from .allocation import Ratio
from .calculator import ensure_compatible
from .errors import CurrencyMismatchError
from .money import Money
from .rounding import RoundingMode


class Allocation:
    """
    Builder immutabile: ogni passo restituisce una nuova Allocation.

        parts = (
            Allocation(total)
            .fixed(rent)
            .fixed(insurance)
            .split_remainder([2, 1])
            .finalize()
        )
    """

    def __init__(self, total: Money, parts: Sequence[Money] = ()):
        self._total = total
        self._parts: tuple[Money, ...] = tuple(parts)

    @property
    def total(self) -> Money:
        return self._total

    def fixed(self, amount: Money) -> Allocation:
        """Alloca una quota fissa."""
        if not amount.has_same_currency(self._total):
            raise CurrencyMismatchError(self._total.currency.code, amount.currency.code, "fixed")
        ensure_compatible(self._total.calculator, amount.calculator)
        return Allocation(self._total, self._parts + (amount,))

    def remainder(self) -> Money:
        """Restituisce il residuo non ancora allocato."""
        allocated = Money.zero(self._total.currency, self._total.calculator, self._total.exponent)
        for part in self._parts:
            allocated = allocated + part
        return self._total - allocated

    def split_remainder(
        self,
        ratios: Sequence[Ratio],
        mode: RoundingMode = RoundingMode.FLOOR,
    ) -> Allocation:
        """Aggiunge una parte per ogni rapporto, ripartendo il residuo."""
        return Allocation(self._total, self._parts + tuple(self.remainder().allocate(ratios, mode)))

    def finalize(self) -> list[Money]:
        """
        Finalizza l'allocazione.

        Se c'è residuo, lo aggiunge all'ultima parte.

        Returns:
            Lista di parti la cui somma == totale originale

        Raises:
            ValueError: se le parti eccedono il totale (residuo di segno
                opposto al totale, o non nullo con totale zero)
        """
        parts = list(self._parts)
        remainder = self.remainder()
        if not remainder.is_zero():
            if self._total.is_zero() or remainder.is_negative() != self._total.is_negative():
                raise ValueError(
                    f"Allocazione eccede il totale: {self._total!r}, residuo {remainder!r}"
                )
            if parts:
                parts[-1] = parts[-1] + remainder
            else:
                parts.append(remainder)
        return parts

    def __repr__(self) -> str:
        return f"Allocation(total={self._total!r}, parts={len(self._parts)})"
