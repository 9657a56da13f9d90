"""
currency.py — Currency descriptors and registries.

A Currency is pure data: code, exponent (minor-unit digits), optional
symbol and numeric base. Registries are read-only lookups supplied by the
caller; the core never populates them on its own.
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Optional, Union
import json

from loguru import logger

from .errors import UnknownCurrencyError


@dataclass(frozen=True, slots=True)
class Currency:
    """
    Currency descriptor.

    Attributes:
        code: ISO 4217 (or custom) alphabetic code, upper-cased.
        exponent: digits after the implied decimal point (USD=2, IQD=3).
        symbol: display symbol, None when unknown.
        base: numeric base of the minor unit, 10 for every ISO currency.
        name: optional human-readable name.
    """
    code: str
    exponent: int
    symbol: Optional[str] = None
    base: int = 10
    name: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.code, str) or not self.code.strip():
            raise ValueError(f"code must be a non-empty string, got: {self.code!r}")
        if isinstance(self.exponent, bool) or not isinstance(self.exponent, int) or self.exponent < 0:
            raise ValueError(f"exponent must be a non-negative integer, got: {self.exponent!r}")
        if isinstance(self.base, bool) or not isinstance(self.base, int) or self.base < 2:
            raise ValueError(f"base must be an integer >= 2, got: {self.base!r}")
        if self.symbol is not None and not isinstance(self.symbol, str):
            raise ValueError(f"symbol must be a string or None, got: {self.symbol!r}")
        object.__setattr__(self, "code", self.code.strip().upper())

    @property
    def multiplier(self) -> int:
        """Conversion factor major -> minor unit."""
        return self.base ** self.exponent

    @property
    def display_symbol(self) -> str:
        """Symbol when known, otherwise the code."""
        return self.symbol if self.symbol else self.code

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"code": self.code, "exponent": self.exponent}
        if self.symbol is not None:
            data["symbol"] = self.symbol
        if self.base != 10:
            data["base"] = self.base
        if self.name is not None:
            data["name"] = self.name
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Currency:
        return cls(
            code=data["code"],
            exponent=data["exponent"],
            symbol=data.get("symbol"),
            base=data.get("base", 10),
            name=data.get("name"),
        )

    def __str__(self) -> str:
        return self.code


class CurrencyRegistry(Mapping[str, Currency]):
    """
    Read-only mapping code -> Currency.

    Lookups are case-insensitive. `get_currency()` raises UnknownCurrencyError
    instead of a bare KeyError so callers get the list of known codes.
    """

    def __init__(self, currencies: Iterable[Currency] = ()):
        entries: dict[str, Currency] = {}
        for currency in currencies:
            if not isinstance(currency, Currency):
                raise TypeError(f"Expected Currency, got {type(currency).__name__}")
            if currency.code in entries:
                raise ValueError(f"Duplicate currency code in registry: {currency.code}")
            entries[currency.code] = currency
        self._entries = entries
        logger.debug(f"Currency registry built with {len(entries)} entries")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Mapping[str, Any]]) -> CurrencyRegistry:
        """
        Build from plain data, keyed by code:

            {"USD": {"exponent": 2, "symbol": "$"}, ...}
        """
        return cls(
            Currency.from_dict({"code": code, **fields})
            for code, fields in data.items()
        )

    @classmethod
    def from_json(cls, source: Union[str, Path]) -> CurrencyRegistry:
        """Build from a JSON file path or a JSON document with the from_mapping() shape."""
        if isinstance(source, Path) or not source.lstrip().startswith("{"):
            path = Path(source)
            logger.debug(f"Loading currency registry from {path}")
            text = path.read_text(encoding="utf-8")
        else:
            text = source
        return cls.from_mapping(json.loads(text))

    def get_currency(self, code: str) -> Currency:
        key = code.strip().upper() if isinstance(code, str) else code
        try:
            return self._entries[key]
        except KeyError:
            raise UnknownCurrencyError(str(code), tuple(sorted(self._entries))) from None

    def with_currency(self, currency: Currency) -> CurrencyRegistry:
        """New registry with `currency` added or replaced. The original is untouched."""
        merged = dict(self._entries)
        merged[currency.code] = currency
        return CurrencyRegistry(merged.values())

    def __getitem__(self, code: str) -> Currency:
        return self.get_currency(code)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and code.strip().upper() in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"CurrencyRegistry({', '.join(self._entries)})"
