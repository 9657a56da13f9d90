"""
errors.py — Eccezioni di dominio per exactmoney

Ogni errore eredita da MoneyError e, dove ha senso, anche dall'eccezione
builtin che un chiamante Python si aspetterebbe (TypeError, ValueError,
KeyError). Così `except TypeError` continua a funzionare per chi mescola
valute diverse, come nel primo Money.
"""

from __future__ import annotations


class MoneyError(Exception):
    """Base exception for all exactmoney errors."""

    pass


class IncompatibleBackendError(MoneyError, TypeError):
    """Raised when two operands use non-interoperable calculators."""

    def __init__(self, left: object, right: object):
        self.left = left
        self.right = right
        super().__init__(
            f"Calculator incompatibili: {type(left).__name__} vs {type(right).__name__}. "
            f"Usa lo stesso backend per entrambi gli operandi."
        )


class CurrencyMismatchError(MoneyError, TypeError):
    """Raised on a binary operation between different currency codes."""

    def __init__(self, left: str, right: str, operation: str = "operazione"):
        self.left = left
        self.right = right
        self.operation = operation
        super().__init__(
            f"Valute diverse in {operation}: {left} vs {right}. "
            f"Converti esplicitamente prima di combinarle."
        )


class InvalidRatioError(MoneyError, ValueError):
    """Raised when an allocation ratio vector cannot be used."""

    pass


class InvalidMaskError(MoneyError, ValueError):
    """Raised when a format mask cannot be parsed."""

    def __init__(self, mask: str, position: int, reason: str):
        self.mask = mask
        self.position = position
        self.reason = reason
        super().__init__(f"Invalid mask {mask!r} at position {position}: {reason}")


class UnknownCurrencyError(MoneyError, KeyError):
    """Raised when a currency code is absent from the supplied registry."""

    def __init__(self, code: str, available: tuple[str, ...] = ()):
        self.code = code
        self.available = available
        super().__init__(code)

    def __str__(self) -> str:
        if self.available:
            return f"Currency '{self.code}' not found. Available: {', '.join(self.available)}"
        return f"Currency '{self.code}' not found"
