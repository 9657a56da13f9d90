"""
exactmoney — Exact, currency-aware monetary values

Integer amounts behind a pluggable Calculator, explicit rounding, allocation
that always sums to the original, and locale-free format masks.

================================================================================
QUICK START
================================================================================

Basic usage:

    from exactmoney import money, RoundingMode
    from exactmoney.currencies import USD, IQD

    price = money(150000, USD)                 # 1500.00 USD
    price.format("$0,0.00")                    # "$1,500.00"

    # Allocation (sum ALWAYS equals original)
    parts = money(100, USD).allocate([1, 1, 1])   # 34, 33, 33 cents

    # Explicit rounding
    money(100, "XXX", precision=0).divide(3, RoundingMode.HALF_EVEN)  # 33

    # Currencies with three decimals
    money(1000, IQD).format("$0,0.000")        # "ع.د1.000"

Injected backend and registry:

    from exactmoney import MoneyFactory, BoundedIntCalculator
    from exactmoney.currencies import DEFAULT_REGISTRY

    factory = MoneyFactory(BoundedIntCalculator(64), DEFAULT_REGISTRY)
    fee = factory.of(250, "EUR")

Conversion with a rate the caller has already resolved:

    from fractions import Fraction
    from exactmoney.currencies import EUR

    price.convert(EUR, Fraction(89, 100))

Logging goes through loguru and is disabled by default:

    from loguru import logger
    logger.enable("exactmoney")

================================================================================
"""

from loguru import logger

from .calculator import (
    Calculator,
    IntCalculator,
    BoundedIntCalculator,
    are_compatible,
    ensure_compatible,
)
from .currency import Currency, CurrencyRegistry
from .errors import (
    MoneyError,
    IncompatibleBackendError,
    CurrencyMismatchError,
    InvalidRatioError,
    InvalidMaskError,
    UnknownCurrencyError,
)
from .rounding import RoundingMode, round_quotient
from .allocation import allocate
from .formatting import FormatMask, parse_mask, format_money
from .money import (
    Money,
    MoneyFactory,
    Comparison,
    money,
)
from .builder import Allocation

logger.disable("exactmoney")

__version__ = "1.0.0"
__license__ = "MIT"

__all__ = [
    # Core
    "Money",
    "MoneyFactory",
    "money",
    "Comparison",
    "Currency",
    "CurrencyRegistry",
    "RoundingMode",
    "round_quotient",
    "allocate",
    "Allocation",
    # Backends
    "Calculator",
    "IntCalculator",
    "BoundedIntCalculator",
    "are_compatible",
    "ensure_compatible",
    # Formatting
    "FormatMask",
    "parse_mask",
    "format_money",
    # Errors
    "MoneyError",
    "IncompatibleBackendError",
    "CurrencyMismatchError",
    "InvalidRatioError",
    "InvalidMaskError",
    "UnknownCurrencyError",
]
