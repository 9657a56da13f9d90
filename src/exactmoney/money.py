"""
money.py — Domain Primitive per rappresentazione monetaria

================================================================================
DESIGN PRINCIPLES
================================================================================

1. RAPPRESENTAZIONE INTERNA
   Un intero (amount) + un esponente: amount / base**exponent unità.
   L'intero vive nel Calculator scelto dal chiamante. Mai floating point.

2. TYPE SAFETY
   Operazioni tra valute diverse sollevano CurrencyMismatchError (TypeError).
   Operazioni tra calculator incompatibili sollevano IncompatibleBackendError.
   I float sono rifiutati ovunque: la conversione è responsabilità del chiamante.

3. IMMUTABILITA
   Frozen dataclass. Ogni operazione restituisce nuova istanza.
   Nessun side effect, safe per concorrenza.

4. PRECISION VARIABILE
   Ogni valore porta il suo esponente (USD=2, JPY=0, IQD=3). Valori con
   esponenti diversi vengono normalizzati prima di sommarli o confrontarli.

5. ROUNDING ESPLICITO
   Divisioni, conversioni e percentuali passano tutte da round_quotient()
   con una RoundingMode scelta dal chiamante (default HALF_EVEN).

6. INVARIANTI VERIFICABILI
   allocate() e distribute() garantiscono sum(parts) == original.
   Operazioni fiscali (VAT, discount) preservano net + vat == gross.

================================================================================
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from enum import IntEnum
from fractions import Fraction
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from loguru import logger

from . import allocation as _allocation
from .calculator import Calculator, IntCalculator, are_compatible
from .currency import Currency, CurrencyRegistry
from .errors import CurrencyMismatchError, UnknownCurrencyError
from .formatting import FormatMask
from .rounding import RoundingMode, round_quotient
from .scale import normalize, rescale, scale_factor

Rational = Union[int, Fraction, Decimal, tuple]
DEFAULT_BARE_PRECISION = 2


class Comparison(IntEnum):
    """Esito di Money.compare()."""
    LESS = -1
    EQUAL = 0
    GREATER = 1


def as_fraction(value: Rational) -> Fraction:
    """
    Converte un razionale esatto in Fraction.

    Accetta int, Fraction, Decimal finito e tuple (numeratore, denominatore).
    I float sono rifiutati: 0.1 non è 1/10.
    """
    if isinstance(value, bool):
        raise TypeError("bool non è un numero razionale valido")
    if isinstance(value, (int, Fraction)):
        return Fraction(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"Decimal non finito: {value}")
        return Fraction(value)
    if isinstance(value, tuple) and len(value) == 2:
        numerator, denominator = value
        if all(isinstance(v, int) and not isinstance(v, bool) for v in value):
            return Fraction(numerator, denominator)
    raise TypeError(
        f"Razionale non supportato: {type(value).__name__}. "
        f"Usa int, Fraction, Decimal o (numeratore, denominatore)."
    )


# ==============================================================================
# MONEY CLASS
# ==============================================================================

@dataclass(frozen=True, slots=True, order=False)
class Money:
    """
    Domain Primitive per importi monetari.

    INVARIANTI:
    1. amount è sempre un intero del calculator (mai frazioni)
    2. exponent è un intero >= 0
    3. Operazioni tra valute diverse sollevano CurrencyMismatchError
    4. allocate()/distribute() garantiscono sum(parts) == self

    USAGE:
        price = money(150000, USD)          # 1500.00 USD
        parts = price.allocate([1, 1, 1])   # somma esatta
        price.format("$0,0.00")             # "$1,500.00"

    SERIALIZATION:
        to_dict() / from_dict(). Formato:
        {"amount": int, "currency": str, "exponent": int}
        MAI serializzare come float.
    """
    amount: Any
    exponent: int
    calculator: Calculator
    currency: Currency

    # Limite sul numero di parti per allocate/distribute (protezione DoS)
    MAX_ALLOCATION_PARTS = _allocation.MAX_ALLOCATION_PARTS
    DEFAULT_ROUNDING = RoundingMode.HALF_EVEN

    def __post_init__(self) -> None:
        if isinstance(self.exponent, bool) or not isinstance(self.exponent, int) or self.exponent < 0:
            raise ValueError(f"exponent deve essere un intero >= 0, ricevuto: {self.exponent!r}")
        if not isinstance(self.currency, Currency):
            raise TypeError(f"currency deve essere Currency, ricevuto: {type(self.currency).__name__}")
        if not isinstance(self.calculator, Calculator):
            raise TypeError(f"calculator non implementa Calculator: {type(self.calculator).__name__}")

    # -------------------------------------------------------------------------
    # Costruttori
    # -------------------------------------------------------------------------

    @classmethod
    def zero(
        cls,
        currency: Currency,
        calculator: Optional[Calculator] = None,
        exponent: Optional[int] = None,
    ) -> Money:
        """Zero per una data valuta. Utile come valore iniziale per sum()."""
        calculator = calculator if calculator is not None else IntCalculator()
        return cls(
            amount=calculator.from_integer(0),
            exponent=currency.exponent if exponent is None else exponent,
            calculator=calculator,
            currency=currency,
        )

    def _with_amount(self, amount: Any, exponent: Optional[int] = None) -> Money:
        return Money(
            amount=amount,
            exponent=self.exponent if exponent is None else exponent,
            calculator=self.calculator,
            currency=self.currency,
        )

    # -------------------------------------------------------------------------
    # Controlli
    # -------------------------------------------------------------------------

    def _require_money(self, other: object, operation: str) -> Money:
        if not isinstance(other, Money):
            raise TypeError(
                f"Operazione non permessa: Money {operation} {type(other).__name__}. "
                f"Costruisci un Money con money() prima."
            )
        return other

    def _check_same_currency(self, other: Money, operation: str) -> None:
        if self.currency.code != other.currency.code:
            raise CurrencyMismatchError(self.currency.code, other.currency.code, operation)

    def has_same_currency(self, other: Money) -> bool:
        return self.currency.code == self._require_money(other, "has_same_currency").currency.code

    def has_same_amount(self, other: Money) -> bool:
        """Stesso valore dopo normalizzazione, ignorando la valuta."""
        left, right, _ = normalize(self, self._require_money(other, "has_same_amount"))
        return self.calculator.compare(left, right) == 0

    # -------------------------------------------------------------------------
    # Operazioni aritmetiche (type-safe)
    # -------------------------------------------------------------------------

    def add(self, other: Money, ignore_currency: bool = False) -> Money:
        """Somma. L'esponente del risultato è il massimo dei due."""
        other = self._require_money(other, "+")
        if not ignore_currency:
            self._check_same_currency(other, "add")
        left, right, exponent = normalize(self, other)
        return self._with_amount(self.calculator.add(left, right), exponent)

    def subtract(self, other: Money, ignore_currency: bool = False) -> Money:
        other = self._require_money(other, "-")
        if not ignore_currency:
            self._check_same_currency(other, "subtract")
        left, right, exponent = normalize(self, other)
        return self._with_amount(self.calculator.subtract(left, right), exponent)

    def multiply(self, factor: Rational, mode: RoundingMode = DEFAULT_ROUNDING) -> Money:
        """
        Moltiplicazione per un fattore.

        Con un int è esatta. Con Fraction/Decimal il risultato passa dal
        motore di arrotondamento: l'esponente non cambia.
        """
        if isinstance(factor, int) and not isinstance(factor, bool):
            return self._with_amount(
                self.calculator.multiply(self.amount, self.calculator.from_integer(factor))
            )
        return self._scale_by(as_fraction(factor), mode)

    def divide(self, divisor: Rational, mode: RoundingMode = DEFAULT_ROUNDING) -> Money:
        """
        Divisione per un razionale, arrotondata con `mode`.

        Esempio: money(100, "XXX", precision=0).divide(3) -> 33
        """
        value = as_fraction(divisor)
        if value == 0:
            raise ZeroDivisionError("divisione di Money per zero")
        return self._scale_by(1 / value, mode)

    def _scale_by(self, factor: Fraction, mode: RoundingMode) -> Money:
        calc = self.calculator
        numerator = calc.multiply(self.amount, calc.from_integer(factor.numerator))
        return self._with_amount(
            round_quotient(calc, numerator, calc.from_integer(factor.denominator), mode)
        )

    def negate(self) -> Money:
        return self._with_amount(self.calculator.negate(self.amount))

    def absolute(self) -> Money:
        return self.negate() if self.is_negative() else self

    def __add__(self, other: Money) -> Money:
        return self.add(other)

    def __sub__(self, other: Money) -> Money:
        return self.subtract(other)

    def __neg__(self) -> Money:
        return self.negate()

    def __abs__(self) -> Money:
        return self.absolute()

    def __mul__(self, factor: int) -> Money:
        """
        Moltiplicazione per intero (quantità).

        Per fattori razionali usare multiply() che richiede una RoundingMode.
        """
        if isinstance(factor, bool) or not isinstance(factor, int):
            raise TypeError(
                f"Money può essere moltiplicato solo per int (quantità), "
                f"non {type(factor).__name__}. Per fattori razionali usa multiply()."
            )
        return self.multiply(factor)

    def __rmul__(self, factor: int) -> Money:
        return self.__mul__(factor)

    # -------------------------------------------------------------------------
    # Scala
    # -------------------------------------------------------------------------

    def transform_scale(self, exponent: int, mode: RoundingMode = DEFAULT_ROUNDING) -> Money:
        """
        Porta il valore a un nuovo esponente.

        Verso l'alto è esatto; verso il basso arrotonda con `mode`.
        """
        amount = rescale(
            self.calculator, self.amount, self.currency.base, self.exponent, exponent, mode
        )
        return self._with_amount(amount, exponent)

    def trim_scale(self) -> Money:
        """Rimuove gli zeri finali scendendo fino all'esponente della valuta."""
        calc = self.calculator
        base = calc.from_integer(self.currency.base)
        amount, exponent = self.amount, self.exponent
        while exponent > self.currency.exponent:
            quotient, remainder = calc.divide(amount, base)
            if not calc.is_zero(remainder):
                break
            amount, exponent = quotient, exponent - 1
        return self._with_amount(amount, exponent)

    # -------------------------------------------------------------------------
    # Distribuzione
    # -------------------------------------------------------------------------

    def allocate(
        self,
        ratios: Sequence[_allocation.Ratio],
        mode: RoundingMode = RoundingMode.FLOOR,
    ) -> list[Money]:
        """
        Distribuisce l'importo proporzionalmente ai rapporti dati.

        Algoritmo: Largest Remainder Method (vedi allocation.py).
        INVARIANTE: sum(result) == self (garantito)

        Raises:
            InvalidRatioError: rapporti vuoti, tutti zero o negativi
        """
        parts = _allocation.allocate(self.calculator, self.amount, ratios, mode)
        return [self._with_amount(part) for part in parts]

    def distribute(self, n: int) -> list[Money]:
        """
        Distribuisce l'importo in n parti con somma ESATTA.

        Le prime (amount mod n) parti ricevono una minor unit in più.
        """
        if isinstance(n, bool) or not isinstance(n, int):
            raise TypeError(f"n deve essere int, ricevuto: {type(n).__name__}")
        if n <= 0:
            raise ValueError(f"n deve essere > 0, ricevuto: {n}")
        return self.allocate([1] * n)

    # -------------------------------------------------------------------------
    # Operazioni fiscali
    # -------------------------------------------------------------------------

    def apply_percentage(self, percent: Rational, mode: RoundingMode = DEFAULT_ROUNDING) -> Money:
        """
        Moltiplica per una percentuale.

        Esempio: importo.apply_percentage(15) per calcolare il 15%.
        """
        return self._scale_by(as_fraction(percent) / 100, mode)

    def add_vat(
        self,
        rate_percent: Rational,
        mode: RoundingMode = DEFAULT_ROUNDING,
    ) -> tuple[Money, Money, Money]:
        """
        Calcola importo + IVA.

        Returns:
            (netto, iva, lordo)

        INVARIANTE: netto + iva == lordo (garantito)
        """
        vat = self.apply_percentage(rate_percent, mode)
        return (self, vat, self.add(vat))

    def extract_vat(
        self,
        rate_percent: Rational,
        mode: RoundingMode = DEFAULT_ROUNDING,
    ) -> tuple[Money, Money, Money]:
        """
        Estrae IVA da un importo lordo (scorporo).

        Formula: netto = lordo / (1 + rate)
                 iva = lordo - netto

        INVARIANTE: netto + iva == lordo (garantito, lordo è self)
        """
        net = self._scale_by(1 / (1 + as_fraction(rate_percent) / 100), mode)
        return (net, self.subtract(net), self)

    def apply_discount(
        self,
        percent: Rational,
        mode: RoundingMode = DEFAULT_ROUNDING,
    ) -> tuple[Money, Money]:
        """
        Applica sconto percentuale.

        Returns:
            (sconto, prezzo_scontato)

        INVARIANTE: sconto + prezzo_scontato == self
        """
        discount = self.apply_percentage(percent, mode)
        return (discount, self.subtract(discount))

    # -------------------------------------------------------------------------
    # Conversione
    # -------------------------------------------------------------------------

    def convert(
        self,
        target: Union[Currency, str],
        rate: Union[Rational, Mapping[str, Rational]],
        mode: RoundingMode = DEFAULT_ROUNDING,
        exponent: Optional[int] = None,
    ) -> Money:
        """
        Converte in un'altra valuta con un tasso già risolto dal chiamante.

        Args:
            target: Currency di destinazione, o codice (esponente 2 se non
                specificato diversamente)
            rate: razionale, oppure mapping codice -> razionale
            mode: arrotondamento al nuovo esponente
            exponent: esponente del risultato (default: quello della valuta)

        Raises:
            UnknownCurrencyError: se rate è un mapping senza il codice target
        """
        if isinstance(target, str):
            target = Currency(target, DEFAULT_BARE_PRECISION if exponent is None else exponent)
        if isinstance(rate, Mapping):
            try:
                rate = rate[target.code]
            except KeyError:
                raise UnknownCurrencyError(target.code, tuple(sorted(rate))) from None
        factor = as_fraction(rate)
        target_exponent = target.exponent if exponent is None else exponent
        if target_exponent < 0:
            raise ValueError(f"Esponente negativo: {target_exponent}")

        calc = self.calculator
        numerator = calc.multiply(
            calc.multiply(self.amount, calc.from_integer(factor.numerator)),
            scale_factor(calc, target.base, target_exponent),
        )
        denominator = calc.multiply(
            calc.from_integer(factor.denominator),
            scale_factor(calc, self.currency.base, self.exponent),
        )
        logger.debug(
            f"Converting {self.currency.code} -> {target.code} at rate {factor} "
            f"(exponent {self.exponent} -> {target_exponent}, {mode.value})"
        )
        return Money(
            amount=round_quotient(calc, numerator, denominator, mode),
            exponent=target_exponent,
            calculator=calc,
            currency=target,
        )

    # -------------------------------------------------------------------------
    # Comparazione
    # -------------------------------------------------------------------------

    def compare(self, other: Money, ignore_currency: bool = False) -> Comparison:
        other = self._require_money(other, "compare")
        if not ignore_currency:
            self._check_same_currency(other, "compare")
        left, right, _ = normalize(self, other)
        return Comparison(self.calculator.compare(left, right))

    @classmethod
    def minimum(cls, values: Iterable[Money]) -> Money:
        return cls._pick(values, Comparison.LESS)

    @classmethod
    def maximum(cls, values: Iterable[Money]) -> Money:
        return cls._pick(values, Comparison.GREATER)

    @classmethod
    def _pick(cls, values: Iterable[Money], wanted: Comparison) -> Money:
        iterator = iter(values)
        try:
            best = next(iterator)
        except StopIteration:
            raise ValueError("values non può essere vuoto") from None
        for value in iterator:
            if value.compare(best) is wanted:
                best = value
        return best

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        if self.currency.code != other.currency.code or self.currency.base != other.currency.base:
            return False
        if not are_compatible(self.calculator, other.calculator):
            return False
        return self.compare(other) is Comparison.EQUAL

    def __lt__(self, other: Money) -> bool:
        return self.compare(other) is Comparison.LESS

    def __le__(self, other: Money) -> bool:
        return self.compare(other) is not Comparison.GREATER

    def __gt__(self, other: Money) -> bool:
        return self.compare(other) is Comparison.GREATER

    def __ge__(self, other: Money) -> bool:
        return self.compare(other) is not Comparison.LESS

    def __hash__(self) -> int:
        # Coerente con __eq__: 10.00 e 10.000 hanno lo stesso hash
        calc = self.calculator
        base = calc.from_integer(self.currency.base)
        amount, exponent = self.amount, self.exponent
        while exponent > 0:
            quotient, remainder = calc.divide(amount, base)
            if not calc.is_zero(remainder):
                break
            amount, exponent = quotient, exponent - 1
        return hash((self.currency.code, calc.to_integer(amount), exponent))

    # -------------------------------------------------------------------------
    # Proprietà e output
    # -------------------------------------------------------------------------

    def is_zero(self) -> bool:
        return self.calculator.is_zero(self.amount)

    def is_positive(self) -> bool:
        return self.calculator.compare(self.amount, self.calculator.from_integer(0)) > 0

    def is_negative(self) -> bool:
        return self.calculator.compare(self.amount, self.calculator.from_integer(0)) < 0

    def to_unit(self) -> Fraction:
        """
        Valore in major units come Fraction esatta.

        Per passare il valore a un formatter esterno usare to_rounded_unit().
        """
        return Fraction(
            self.calculator.to_integer(self.amount),
            self.currency.base ** self.exponent,
        )

    def to_rounded_unit(self, digits: int, mode: RoundingMode = DEFAULT_ROUNDING) -> Decimal:
        """
        Valore in major units arrotondato a `digits` decimali.

        Il Decimal restituito ha esattamente `digits` cifre decimali:
        è il punto di consegna per formatter locale-aware esterni.
        """
        if isinstance(digits, bool) or not isinstance(digits, int) or digits < 0:
            raise ValueError(f"digits deve essere un intero >= 0, ricevuto: {digits!r}")
        calc = self.calculator
        numerator = calc.multiply(self.amount, scale_factor(calc, 10, digits))
        denominator = scale_factor(calc, self.currency.base, self.exponent)
        rounded = calc.to_integer(round_quotient(calc, numerator, denominator, mode))
        return Decimal((int(rounded < 0), tuple(int(d) for d in str(abs(rounded))), -digits))

    def format(self, mask: str, mode: RoundingMode = DEFAULT_ROUNDING) -> str:
        """Rende il valore con una maschera (vedi formatting.py)."""
        return FormatMask(mask).render(self, mode)

    def __repr__(self) -> str:
        if self.currency.base != 10:
            return f"{self.to_unit()} {self.currency.code}"

        value = self.calculator.to_integer(self.amount)
        sign = "-" if value < 0 else ""
        abs_amount = abs(value)

        if self.exponent == 0:
            return f"{sign}{abs_amount} {self.currency.code}"

        major, minor = divmod(abs_amount, 10 ** self.exponent)
        return f"{sign}{major}.{minor:0{self.exponent}d} {self.currency.code}"

    def __str__(self) -> str:
        return self.__repr__()

    # -------------------------------------------------------------------------
    # Serializzazione
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict:
        """
        Serializza per persistenza/API.

        Formato: {"amount": int, "currency": str, "exponent": int}

        NOTA: MAI serializzare come float. Sempre amount come int.
        """
        return {
            "amount": self.calculator.to_integer(self.amount),
            "currency": self.currency.code,
            "exponent": self.exponent,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], factory: Optional[MoneyFactory] = None) -> Money:
        """
        Deserializza da dict.

        Con una factory dotata di registry il descrittore (simbolo incluso)
        viene recuperato dal registry.
        """
        factory = factory if factory is not None else MoneyFactory()
        return factory.of(data["amount"], data["currency"], precision=data["exponent"])


# ==============================================================================
# FACTORY
# ==============================================================================

class MoneyFactory:
    """
    Costruisce Money iniettando calculator e descrittori di valuta.

    Nessuno stato globale: ogni factory porta il suo backend e il suo
    registry. Più factory con backend diversi convivono nello stesso processo.
    """

    def __init__(
        self,
        calculator: Optional[Calculator] = None,
        registry: Optional[CurrencyRegistry] = None,
    ):
        self._calculator = calculator if calculator is not None else IntCalculator()
        self._registry = registry

    @property
    def calculator(self) -> Calculator:
        return self._calculator

    @property
    def registry(self) -> Optional[CurrencyRegistry]:
        return self._registry

    def currency(self, currency: Union[Currency, str], precision: Optional[int] = None) -> Currency:
        """
        Risolve un codice in descrittore.

        - Currency: restituita così com'è
        - codice + registry: lookup (UnknownCurrencyError se assente)
        - codice senza registry: esponente `precision` o 2, simbolo ignoto
        """
        if isinstance(currency, Currency):
            return currency
        if not isinstance(currency, str):
            raise TypeError(f"currency deve essere Currency o str, ricevuto: {type(currency).__name__}")
        if self._registry is not None:
            return self._registry.get_currency(currency)
        return Currency(currency, DEFAULT_BARE_PRECISION if precision is None else precision)

    def of(
        self,
        amount: Any,
        currency: Union[Currency, str],
        precision: Optional[int] = None,
    ) -> Money:
        """
        Costruttore da minor units.

        `amount` è un intero (o un valore già nel formato del calculator).
        float, str e Decimal sono rifiutati: la conversione è esterna al core.
        """
        if isinstance(amount, (bool, float, str, Decimal, Fraction)):
            raise TypeError(
                f"amount deve essere un intero in minor units, non {type(amount).__name__}"
            )
        descriptor = self.currency(currency, precision)
        value = self._calculator.from_integer(amount) if isinstance(amount, int) else amount
        return Money(
            amount=value,
            exponent=descriptor.exponent if precision is None else precision,
            calculator=self._calculator,
            currency=descriptor,
        )

    def zero(self, currency: Union[Currency, str], precision: Optional[int] = None) -> Money:
        return self.of(0, currency, precision)

    def __repr__(self) -> str:
        return f"MoneyFactory(calculator={self._calculator!r}, registry={self._registry!r})"


def money(
    amount: Any,
    currency: Union[Currency, str],
    precision: Optional[int] = None,
    calculator: Optional[Calculator] = None,
    registry: Optional[CurrencyRegistry] = None,
) -> Money:
    """Shorthand per MoneyFactory(calculator, registry).of(amount, currency, precision)."""
    return MoneyFactory(calculator, registry).of(amount, currency, precision)
