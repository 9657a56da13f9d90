"""Bundled currency data (ISO 4217 subset plus BTC)."""

from .currency import Currency, CurrencyRegistry


USD = Currency("USD", 2, "$", name="US Dollar")
EUR = Currency("EUR", 2, "€", name="Euro")
GBP = Currency("GBP", 2, "£", name="British Pound")
CHF = Currency("CHF", 2, "CHF", name="Swiss Franc")
JPY = Currency("JPY", 0, "¥", name="Japanese Yen")
KWD = Currency("KWD", 3, "د.ك", name="Kuwaiti Dinar")
IQD = Currency("IQD", 3, "ع.د", name="Iraqi Dinar")
BTC = Currency("BTC", 8, "₿", name="Bitcoin")

DEFAULT_REGISTRY = CurrencyRegistry([USD, EUR, GBP, CHF, JPY, KWD, IQD, BTC])
