"""
test_money.py — Test suite per Money domain primitive

================================================================================
STRUTTURA DEI TEST
================================================================================

1. UNIT TESTS
   Test deterministici per casi specifici e edge cases.

2. PROPERTY-BASED TESTS (Hypothesis)
   Test che verificano PROPRIETA' che devono valere per QUALSIASI input:
   somma esatta delle allocazioni, associatività, round-trip di scala.

3. SCENARI
   I casi d'uso di riferimento (dinaro iracheno, divisione per 3, ...).

================================================================================
"""

import pytest
from decimal import Decimal
from fractions import Fraction
from hypothesis import given, assume, settings, HealthCheck
from hypothesis import strategies as st

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from exactmoney import (
    Money,
    MoneyFactory,
    Comparison,
    RoundingMode,
    Allocation,
    BoundedIntCalculator,
    CurrencyMismatchError,
    IncompatibleBackendError,
    InvalidRatioError,
    UnknownCurrencyError,
    money,
)
from exactmoney.currencies import USD, EUR, GBP, JPY, IQD, BTC, DEFAULT_REGISTRY


# ==============================================================================
# TEST HELPERS
# ==============================================================================

@st.composite
def money_strategy(draw, currency=None, min_value=-10_000_00, max_value=10_000_00, exponent=None):
    """Genera Money random per property testing."""
    if currency is None:
        currency = draw(st.sampled_from([USD, EUR, GBP]))
    amount = draw(st.integers(min_value=min_value, max_value=max_value))
    return money(amount, currency, precision=exponent)


@st.composite
def positive_money_strategy(draw, currency=None):
    """Genera Money positivi."""
    return draw(money_strategy(currency=currency, min_value=1, max_value=10_000_00))


def total_of(parts, currency):
    total = Money.zero(currency)
    for p in parts:
        total = total + p
    return total


def units(n):
    """Money a esponente 0, valuta generica: comodo per i test di arrotondamento."""
    return money(n, "XXX", precision=0)


# ==============================================================================
# UNIT TESTS: Costruttori
# ==============================================================================

class TestConstructors:
    """Test per money() e MoneyFactory."""

    def test_money_from_descriptor_uses_its_exponent(self):
        m = money(1000, IQD)
        assert m.amount == 1000
        assert m.exponent == 3
        assert m.currency == IQD

    def test_bare_code_defaults_to_precision_two(self):
        m = money(100, "usd")
        assert m.exponent == 2
        assert m.currency.code == "USD"
        assert m.currency.symbol is None

    def test_bare_code_with_precision(self):
        m = money(1000, "IQD", precision=3)
        assert m.exponent == 3
        assert str(m) == "1.000 IQD"

    def test_precision_overrides_descriptor(self):
        m = money(10000, USD, precision=3)
        assert m.exponent == 3
        assert m.currency.exponent == 2

    def test_registry_lookup(self):
        m = money(1000, "iqd", registry=DEFAULT_REGISTRY)
        assert m.currency is IQD
        assert m.exponent == 3

    def test_registry_unknown_code_raises(self):
        with pytest.raises(UnknownCurrencyError):
            money(1, "XYZ", registry=DEFAULT_REGISTRY)

    def test_factory_injects_calculator(self):
        calc = BoundedIntCalculator(32)
        factory = MoneyFactory(calc, DEFAULT_REGISTRY)
        m = factory.of(250, "EUR")
        assert m.calculator is calc
        assert m.currency is EUR

    def test_non_integer_amounts_rejected(self):
        for bad in (1.5, "100", Decimal("1"), True):
            with pytest.raises(TypeError):
                money(bad, USD)

    def test_zero_creates_zero_money(self):
        m = Money.zero(EUR)
        assert m.amount == 0
        assert m.is_zero()

    def test_sign_predicates(self):
        assert money(1, EUR).is_positive()
        assert not money(1, EUR).is_negative()
        assert money(-1, EUR).is_negative()
        assert not money(-1, EUR).is_positive()
        zero = Money.zero(EUR)
        assert not zero.is_positive() and not zero.is_negative()

    def test_negative_exponent_rejected(self):
        with pytest.raises(ValueError):
            money(1, "USD", precision=-1)

    def test_jpy_has_no_decimals(self):
        m = money(1000, JPY)
        assert str(m) == "1000 JPY"

    def test_beyond_native_integer_range(self):
        huge = money(2 ** 80, USD)
        assert (huge + huge).amount == 2 ** 81


# ==============================================================================
# UNIT TESTS: Distribuzione
# ==============================================================================

class TestDistribute:
    """Test per distribute()."""

    def test_2026_divided_by_12(self):
        budget = money(202600, EUR)
        parts = budget.distribute(12)

        assert len(parts) == 12
        assert total_of(parts, EUR) == budget

    def test_equal_distribution(self):
        parts = money(12000, EUR).distribute(12)
        assert all(p.amount == 1000 for p in parts)

    def test_remainder_goes_to_first_parts(self):
        parts = money(100, EUR).distribute(3)
        assert [p.amount for p in parts] == [34, 33, 33]

    def test_more_parts_than_cents(self):
        parts = money(5, EUR).distribute(10)

        assert len([p for p in parts if not p.is_zero()]) == 5
        assert total_of(parts, EUR) == money(5, EUR)

    def test_distribute_negative(self):
        parts = money(-100, EUR).distribute(3)
        assert [p.amount for p in parts] == [-33, -33, -34]

    def test_distribute_invalid_n(self):
        m = money(10000, EUR)

        with pytest.raises(ValueError):
            m.distribute(0)

        with pytest.raises(ValueError):
            m.distribute(-1)

        with pytest.raises(ValueError):
            m.distribute(Money.MAX_ALLOCATION_PARTS + 1)


class TestAllocate:
    """Test per allocate(): largest remainder method."""

    def test_unequal_ratios(self):
        parts = money(100, EUR).allocate([70, 30])
        assert [p.amount for p in parts] == [70, 30]

    def test_largest_remainder_wins(self):
        # 16.67 / 33.33 / 50: la frazione più grande scartata è la prima
        parts = money(100, EUR).allocate([1, 2, 3])
        assert [p.amount for p in parts] == [17, 33, 50]

    def test_ties_broken_by_index(self):
        parts = money(2, EUR).allocate([1, 1, 1])
        assert [p.amount for p in parts] == [1, 1, 0]

    def test_zero_ratio_gets_nothing(self):
        parts = money(5, EUR).allocate([0, 1])
        assert [p.amount for p in parts] == [0, 5]

    def test_fraction_ratios(self):
        parts = money(10, EUR).allocate([Fraction(1, 3), Fraction(2, 3)])
        assert [p.amount for p in parts] == [3, 7]

    def test_decimal_ratios(self):
        m = money(100000, EUR)
        parts = m.allocate([Decimal("33.33"), Decimal("33.33"), Decimal("33.34")])
        assert total_of(parts, EUR) == m

    def test_rounding_mode_with_negative_leftover(self):
        # CEIL arrotonda tutto per eccesso: 3 + 3 = 6, si toglie 1 dalla prima
        parts = money(5, EUR).allocate([1, 1], RoundingMode.CEIL)
        assert [p.amount for p in parts] == [2, 3]

    def test_parts_keep_exponent_and_currency(self):
        parts = money(1000, IQD).allocate([1, 3])
        assert all(p.exponent == 3 and p.currency is IQD for p in parts)

    def test_invalid_ratios(self):
        m = money(100, EUR)

        with pytest.raises(InvalidRatioError):
            m.allocate([])

        with pytest.raises(InvalidRatioError):
            m.allocate([0, 0])

        with pytest.raises(InvalidRatioError):
            m.allocate([-1, 2])

    def test_float_ratios_rejected(self):
        with pytest.raises(TypeError):
            money(100, EUR).allocate([0.5, 0.5])


# ==============================================================================
# UNIT TESTS: Operazioni fiscali
# ==============================================================================

class TestVAT:
    """Test per operazioni IVA."""

    def test_add_vat_22_percent(self):
        net = money(10000, EUR)
        net_out, vat, gross = net.add_vat(22)

        assert net_out == net
        assert vat == money(2200, EUR)
        assert gross == money(12200, EUR)

    def test_add_vat_decimal_rate(self):
        _, vat, _ = money(10000, EUR).add_vat(Decimal("22.5"))
        assert vat.amount == 2250

    def test_add_vat_preserves_invariant(self):
        net_out, vat, gross = money(9999, EUR).add_vat(22)
        assert net_out + vat == gross

    def test_extract_vat_round_trip(self):
        _, _, gross = money(10000, EUR).add_vat(22)
        recovered_net, vat, gross_out = gross.extract_vat(22)

        assert recovered_net == money(10000, EUR)
        assert recovered_net + vat == gross_out

    def test_float_rate_rejected(self):
        with pytest.raises(TypeError):
            money(10000, EUR).add_vat(22.0)


class TestDiscount:
    """Test per sconti."""

    def test_apply_discount_10_percent(self):
        price = money(10000, EUR)
        discount, final = price.apply_discount(10)

        assert discount == money(1000, EUR)
        assert final == money(9000, EUR)

    def test_discount_preserves_invariant(self):
        price = money(9999, EUR)
        discount, final = price.apply_discount(15)
        assert discount + final == price


# ==============================================================================
# UNIT TESTS: Operazioni aritmetiche
# ==============================================================================

class TestArithmetic:
    """Test per operazioni aritmetiche."""

    def test_add_same_currency(self):
        assert money(10000, EUR) + money(5000, EUR) == money(15000, EUR)

    def test_add_normalizes_exponents(self):
        result = money(1000, USD) + money(1, USD, precision=3)
        assert result.amount == 10001
        assert result.exponent == 3

    def test_add_different_currency_raises(self):
        a = money(10000, USD)
        b = money(10000, EUR)

        with pytest.raises(CurrencyMismatchError):
            a + b

        # Gli input non cambiano
        assert a.amount == 10000 and a.currency is USD
        assert b.amount == 10000 and b.currency is EUR

    def test_currency_mismatch_is_type_error(self):
        with pytest.raises(TypeError):
            money(1, USD) - money(1, EUR)

    def test_ignore_currency(self):
        result = money(100, USD).add(money(50, EUR), ignore_currency=True)
        assert result.amount == 150
        assert result.currency is USD

    def test_add_non_money_raises(self):
        with pytest.raises(TypeError):
            money(100, EUR) + 100

    def test_incompatible_backends_raise(self):
        a = money(100, USD)
        b = money(100, USD, calculator=BoundedIntCalculator())

        with pytest.raises(IncompatibleBackendError):
            a + b

    def test_subtract(self):
        assert money(10000, EUR) - money(3000, EUR) == money(7000, EUR)

    def test_negate_and_abs(self):
        assert -money(100, EUR) == money(-100, EUR)
        assert abs(money(-500, EUR)) == money(500, EUR)

    def test_multiply_by_int(self):
        assert money(1000, EUR) * 5 == money(5000, EUR)
        assert 3 * money(1000, EUR) == money(3000, EUR)

    def test_multiply_by_float_raises(self):
        with pytest.raises(TypeError):
            money(1000, EUR) * 1.5

    def test_multiply_by_fraction_rounds(self):
        # 1001 * 3/2 = 1501.5 -> pari più vicino
        assert money(1001, EUR).multiply(Fraction(3, 2)).amount == 1502
        assert money(5, EUR).multiply(Decimal("0.5")).amount == 2

    def test_divide_by_three_half_even(self):
        assert units(100).divide(3, RoundingMode.HALF_EVEN).amount == 33

    def test_divide_exact_half_goes_to_even(self):
        assert units(5).divide(2).amount == 2
        assert units(7).divide(2).amount == 4
        assert units(250).divide(4).amount == 62

    def test_divide_exact(self):
        assert units(250).divide(2).amount == 125

    def test_divide_with_mode(self):
        assert units(250).divide(4, RoundingMode.HALF_UP).amount == 63
        assert units(100).divide(3, RoundingMode.UP).amount == 34

    def test_divide_by_zero(self):
        with pytest.raises(ZeroDivisionError):
            units(1).divide(0)

    def test_percentage(self):
        assert money(10000, EUR).apply_percentage(15).amount == 1500


# ==============================================================================
# UNIT TESTS: Comparazione
# ==============================================================================

class TestComparison:
    """Test per comparazioni."""

    def test_compare(self):
        assert money(50, EUR).compare(money(100, EUR)) is Comparison.LESS
        assert money(100, EUR).compare(money(100, EUR)) is Comparison.EQUAL
        assert money(100, EUR).compare(money(50, EUR)) is Comparison.GREATER

    def test_compare_across_exponents(self):
        assert money(1000, USD).compare(money(9999, USD, precision=3)) is Comparison.GREATER

    def test_equal_across_exponents(self):
        a = money(1000, USD)
        b = money(10000, USD, precision=3)
        assert a == b
        assert hash(a) == hash(b)

    def test_equal_different_currency(self):
        assert money(100, EUR) != money(100, USD)

    def test_bare_code_equals_descriptor(self):
        assert money(100, "USD") == money(100, USD)

    def test_less_than(self):
        assert money(50, EUR) < money(100, EUR)
        assert not money(100, EUR) < money(50, EUR)
        assert money(100, EUR) <= money(100, EUR)

    def test_compare_different_currency_raises(self):
        with pytest.raises(CurrencyMismatchError):
            money(100, EUR) < money(100, USD)

    def test_minimum_maximum(self):
        values = [money(300, EUR), money(100, EUR), money(200, EUR)]
        assert Money.minimum(values) == money(100, EUR)
        assert Money.maximum(values) == money(300, EUR)

    def test_has_same_amount_ignores_currency(self):
        assert money(100, EUR).has_same_amount(money(1000, USD, precision=3))


# ==============================================================================
# UNIT TESTS: Scala
# ==============================================================================

class TestScale:
    """Test per transform_scale() e trim_scale()."""

    def test_scale_round_trip(self):
        original = money(1000, USD)
        up = original.transform_scale(3)

        assert up.amount == 10000
        assert up.transform_scale(2).amount == 1000

    def test_scale_down_rounds(self):
        m = money(1005, USD, precision=3)
        assert m.transform_scale(2).amount == 100
        assert m.transform_scale(2, RoundingMode.HALF_UP).amount == 101

    def test_trim_scale(self):
        assert money(10000, USD, precision=3).trim_scale().exponent == 2
        trimmed = money(10010, USD, precision=4).trim_scale()
        assert (trimmed.amount, trimmed.exponent) == (1001, 3)


# ==============================================================================
# UNIT TESTS: Conversione
# ==============================================================================

class TestConvert:
    """Test per convert() con tassi già risolti."""

    def test_convert_with_fraction(self):
        eur = money(10000, USD).convert(EUR, Fraction(89, 100))
        assert eur == money(8900, EUR)

    def test_convert_with_rate_mapping(self):
        eur = money(10000, USD).convert(EUR, {"EUR": Decimal("0.89"), "GBP": Decimal("0.79")})
        assert eur.amount == 8900

    def test_convert_missing_rate(self):
        with pytest.raises(UnknownCurrencyError):
            money(10000, USD).convert(EUR, {"GBP": 1})

    def test_convert_to_lower_exponent(self):
        yen = money(10000, USD).convert(JPY, 150)
        assert (yen.amount, yen.exponent) == (15000, 0)

    def test_convert_to_higher_exponent(self):
        dinar = money(100, USD).convert(IQD, 1310)
        assert (dinar.amount, dinar.exponent) == (1310000, 3)

    def test_convert_rounding(self):
        assert money(1, USD).convert(EUR, Fraction(1, 2)).amount == 0
        assert money(1, USD).convert(EUR, Fraction(1, 2), RoundingMode.HALF_UP).amount == 1

    def test_convert_to_bare_code(self):
        cad = money(100, USD).convert("CAD", (137, 100))
        assert (cad.amount, cad.exponent, cad.currency.code) == (137, 2, "CAD")

    def test_convert_float_rate_rejected(self):
        with pytest.raises(TypeError):
            money(100, USD).convert(EUR, 0.9)


# ==============================================================================
# UNIT TESTS: Unità
# ==============================================================================

class TestUnit:
    """Test per to_unit() e to_rounded_unit()."""

    def test_to_unit_is_exact(self):
        assert money(150000, USD).to_unit() == Fraction(1500)
        assert money(1, IQD).to_unit() == Fraction(1, 1000)

    def test_to_rounded_unit(self):
        assert str(money(1055, USD).to_rounded_unit(1)) == "10.6"
        assert str(money(1055, USD).to_rounded_unit(1, RoundingMode.HALF_DOWN)) == "10.5"

    def test_to_rounded_unit_pads(self):
        assert str(money(1055, USD).to_rounded_unit(4)) == "10.5500"

    def test_to_rounded_unit_negative(self):
        assert money(-1055, USD).to_rounded_unit(1) == Decimal("-10.6")

    def test_to_rounded_unit_invalid_digits(self):
        with pytest.raises(ValueError):
            money(1, USD).to_rounded_unit(-1)


# ==============================================================================
# UNIT TESTS: Serializzazione
# ==============================================================================

class TestSerialization:
    """Test per serializzazione."""

    def test_to_dict(self):
        assert money(12345, EUR).to_dict() == {"amount": 12345, "currency": "EUR", "exponent": 2}

    def test_from_dict(self):
        m = Money.from_dict({"amount": 12345, "currency": "EUR", "exponent": 2})
        assert m == money(12345, EUR)

    def test_from_dict_with_registry(self):
        factory = MoneyFactory(registry=DEFAULT_REGISTRY)
        m = Money.from_dict({"amount": 1000, "currency": "IQD", "exponent": 3}, factory)
        assert m.currency.symbol == "ع.د"


# ==============================================================================
# PROPERTY-BASED TESTS (Hypothesis)
# ==============================================================================

class TestAllocationProperties:
    """
    Property-based tests per allocate()/distribute().

    Questi test verificano che certe PROPRIETA' valgano per QUALSIASI input,
    non solo per casi specifici che abbiamo pensato.
    """

    @given(
        m=money_strategy(currency=EUR, min_value=-1_000_000_00, max_value=1_000_000_00),
        ratios=st.lists(st.integers(min_value=0, max_value=1000), min_size=1, max_size=50),
        mode=st.sampled_from(list(RoundingMode)),
    )
    @settings(max_examples=500, suppress_health_check=[HealthCheck.too_slow])
    def test_allocate_sum_equals_original(self, m, ratios, mode):
        """
        PROPRIETA': Per qualsiasi Money m e rapporti validi:
            sum(m.allocate(r)) == m
        """
        assume(any(r > 0 for r in ratios))
        parts = m.allocate(ratios, mode)

        assert len(parts) == len(ratios)
        assert total_of(parts, EUR) == m

    @given(
        m=positive_money_strategy(currency=EUR),
        n=st.integers(min_value=1, max_value=100),
    )
    @settings(max_examples=300)
    def test_distribute_parts_differ_by_at_most_one(self, m, n):
        values = [p.amount for p in m.distribute(n)]
        assert max(values) - min(values) <= 1

    @given(m=money_strategy(currency=EUR))
    @settings(max_examples=200)
    def test_distribute_one_equals_self(self, m):
        assert m.distribute(1) == [m]


class TestArithmeticProperties:
    """Property-based tests per operazioni aritmetiche."""

    @given(
        a=money_strategy(currency=USD, exponent=2),
        b=money_strategy(currency=USD, exponent=3),
        c=money_strategy(currency=USD, exponent=4),
    )
    @settings(max_examples=300)
    def test_addition_associative_across_exponents(self, a, b, c):
        """(a + b) + c == a + (b + c), anche con esponenti diversi."""
        left = (a + b) + c
        right = a + (b + c)
        assert left.amount == right.amount
        assert left.exponent == right.exponent

    @given(a=money_strategy(currency=EUR), b=money_strategy(currency=EUR))
    @settings(max_examples=300)
    def test_addition_commutative(self, a, b):
        assert a + b == b + a

    @given(a=money_strategy(currency=EUR))
    @settings(max_examples=200)
    def test_add_negative_equals_zero(self, a):
        assert (a + (-a)).is_zero()

    @given(
        a=money_strategy(currency=USD),
        extra=st.integers(min_value=0, max_value=10),
    )
    @settings(max_examples=300)
    def test_scale_round_trip(self, a, extra):
        """Alzare e riabbassare l'esponente restituisce l'importo originale."""
        back = a.transform_scale(a.exponent + extra).transform_scale(a.exponent)
        assert back.amount == a.amount


class TestFiscalProperties:
    """Property-based tests per operazioni fiscali."""

    @given(
        m=positive_money_strategy(currency=EUR),
        rate=st.fractions(min_value=0, max_value=100, max_denominator=1000),
    )
    @settings(max_examples=300)
    def test_vat_invariants(self, m, rate):
        net, vat, gross = m.add_vat(rate)
        assert net + vat == gross

        net, vat, gross = m.extract_vat(rate)
        assert net + vat == gross

    @given(
        m=positive_money_strategy(currency=EUR),
        percent=st.integers(min_value=0, max_value=100),
    )
    @settings(max_examples=300)
    def test_discount_invariant(self, m, percent):
        discount, final = m.apply_discount(percent)
        assert discount + final == m


class TestSerializationProperties:

    @given(m=money_strategy())
    @settings(max_examples=300)
    def test_serialization_round_trip(self, m):
        assert Money.from_dict(m.to_dict()) == m


# ==============================================================================
# SCENARI
# ==============================================================================

class TestScenarios:

    def test_iraqi_dinar(self):
        m = money(1000, IQD)
        assert m.to_unit() == 1
        assert m.format("$0,0.000") == "ع.د1.000"

    def test_iraqi_dinar_without_symbol(self):
        assert money(1000, "IQD", precision=3).format("$0,0.000") == "IQD1.000"

    def test_usd_mask(self):
        assert money(150000, USD).format("$0,0.00") == "$1,500.00"

    def test_very_large_amount(self):
        huge = money(100_000_000_000_000, EUR)
        assert total_of(huge.distribute(1000), EUR) == huge

    def test_btc_eight_decimals(self):
        btc = money(100_000_000, BTC)
        assert total_of(btc.distribute(3), BTC) == btc


# ==============================================================================
# ALLOCATION BUILDER TESTS
# ==============================================================================

class TestAllocationBuilder:
    """Test per Allocation helper."""

    def test_allocation_with_fixed_parts(self):
        total = money(100000, EUR)

        parts = (
            Allocation(total)
            .fixed(money(30000, EUR))
            .fixed(money(20000, EUR))
            .finalize()
        )

        # Il remainder (500) va all'ultima parte
        assert parts == [money(30000, EUR), money(70000, EUR)]

    def test_split_remainder(self):
        total = money(100000, EUR)

        parts = (
            Allocation(total)
            .fixed(money(40000, EUR))
            .split_remainder([2, 1])
            .finalize()
        )

        assert parts == [money(40000, EUR), money(40000, EUR), money(20000, EUR)]
        assert total_of(parts, EUR) == total

    def test_builder_is_immutable(self):
        base = Allocation(money(1000, EUR))
        base.fixed(money(100, EUR))
        assert base.remainder() == money(1000, EUR)

    def test_fixed_different_currency_raises(self):
        with pytest.raises(CurrencyMismatchError):
            Allocation(money(1000, EUR)).fixed(money(100, USD))

    def test_fixed_incompatible_backend_raises(self):
        narrow = money(100, EUR, calculator=BoundedIntCalculator(32))
        with pytest.raises(IncompatibleBackendError):
            Allocation(money(1000, EUR)).fixed(narrow)

    def test_over_allocation_rejected(self):
        builder = Allocation(money(100, EUR)).fixed(money(300, EUR)).fixed(money(100, EUR))
        with pytest.raises(ValueError):
            builder.finalize()

    def test_negative_total(self):
        """Un totale negativo (es. rimborso) si alloca come uno positivo."""
        parts = Allocation(money(-1000, EUR)).fixed(money(-300, EUR)).fixed(money(-200, EUR)).finalize()
        assert parts == [money(-300, EUR), money(-700, EUR)]

    def test_zero_total_with_parts_rejected(self):
        with pytest.raises(ValueError):
            Allocation(money(0, EUR)).fixed(money(100, EUR)).finalize()


# ==============================================================================
# MAIN (per run diretto)
# ==============================================================================

if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
