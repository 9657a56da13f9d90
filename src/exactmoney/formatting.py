"""
formatting.py — Format masks for Money

================================================================================
MASK GRAMMAR
================================================================================

A mask is scanned left to right into a token stream, once. The stream is
immutable and can render any number of Money values.

    \\x         escape: emits x literally (x may be any character)
    $          currency symbol, or the currency code when no symbol is known
    @          currency code
    0 # , .    number section (see below)
    anything   literal

Number section: a maximal run made of `0 # , .` that starts at `0`, `#`, or
at a `.` directly followed by `0`/`#`, and ends on a placeholder (trailing
`,`/`.` fall back to literals). A leading `.` means no integer digits, so
"$.00" renders 0.50 USD as "$.50".

    0   mandatory digit
    #   optional digit
    ,   in the integer part: group thousands by three
    .   decimal point (at most one)

    Integer part: the count of `0` after the last `,` (the whole integer
    part when there is no `,`) is the minimum zero-padded width, so "0,0"
    means "at least one digit, grouped". When every placeholder is optional
    and nothing would be printed, a single "0" is emitted instead, so "#"
    renders zero as "0" while "#.00" still renders 0.50 as ".50".
    Fraction part: every `0` is always printed; each `#` is printed only if
    it is not a trailing zero. Mandatory digits come before optional ones.
    Values with more fraction digits than the mask are rounded with the
    chosen RoundingMode.

Negative values: `-` goes right before the first placeholder token
(number, `$` or `@`), so "$0,0.00" renders "-$1.00". The sign follows the
rendered number: a mask without a number section never prints it.

Errors (InvalidMaskError): trailing lone `\\`, more than one number section,
a second `.`, a `,` in the fraction part, a `0` after a `#` in the fraction.

Examples:

    "$0,0.00"     150000 @2 USD  ->  "$1,500.00"
    "0.00 @"      -1999  @2 EUR  ->  "-19.99 EUR"
    "$0,0.000"    1000   @3 IQD  ->  "ع.د1.000"
    "#,##0.0#"    123450 @3 USD  ->  "123.45"

================================================================================
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from loguru import logger

from .errors import InvalidMaskError
from .rounding import RoundingMode, round_quotient
from .scale import scale_factor

if TYPE_CHECKING:
    from .money import Money

ESCAPE = "\\"
SYMBOL = "$"
CODE = "@"
MANDATORY_DIGIT = "0"
OPTIONAL_DIGIT = "#"
GROUP_MARK = ","
DECIMAL_MARK = "."
GROUP_SIZE = 3

_NUMBER_CHARS = frozenset(MANDATORY_DIGIT + OPTIONAL_DIGIT + GROUP_MARK + DECIMAL_MARK)
_PLACEHOLDERS = frozenset(MANDATORY_DIGIT + OPTIONAL_DIGIT)


# ==============================================================================
# TOKENS
# ==============================================================================

@dataclass(frozen=True, slots=True)
class LiteralToken:
    text: str


@dataclass(frozen=True, slots=True)
class SymbolToken:
    pass


@dataclass(frozen=True, slots=True)
class CodeToken:
    pass


@dataclass(frozen=True, slots=True)
class NumberToken:
    integer_digits: int
    grouping: bool
    fraction_required: int
    fraction_optional: int

    @property
    def fraction_digits(self) -> int:
        return self.fraction_required + self.fraction_optional


Token = Union[LiteralToken, SymbolToken, CodeToken, NumberToken]


# ==============================================================================
# PARSER
# ==============================================================================

def _parse_number(mask: str, start: int, section: str) -> NumberToken:
    integer, dot, fraction = section.partition(DECIMAL_MARK)

    if DECIMAL_MARK in fraction:
        position = start + len(integer) + 1 + fraction.index(DECIMAL_MARK)
        raise InvalidMaskError(mask, position, "more than one decimal point")
    if GROUP_MARK in fraction:
        position = start + len(integer) + 1 + fraction.index(GROUP_MARK)
        raise InvalidMaskError(mask, position, "grouping mark in the fraction part")

    optional_seen = False
    for offset, char in enumerate(fraction):
        if char == OPTIONAL_DIGIT:
            optional_seen = True
        elif optional_seen:
            raise InvalidMaskError(
                mask, start + len(integer) + 1 + offset, "mandatory digit after optional digit"
            )

    return NumberToken(
        integer_digits=integer.rpartition(GROUP_MARK)[2].count(MANDATORY_DIGIT),
        grouping=GROUP_MARK in integer,
        fraction_required=fraction.count(MANDATORY_DIGIT),
        fraction_optional=fraction.count(OPTIONAL_DIGIT),
    )


def parse_mask(mask: str) -> tuple[Token, ...]:
    """
    Tokenize a mask.

    Raises:
        InvalidMaskError: see module docstring for the error cases
    """
    if not isinstance(mask, str):
        raise TypeError(f"mask must be a string, got {type(mask).__name__}")

    tokens: list[Token] = []
    literal: list[str] = []
    number_at = -1

    def flush() -> None:
        if literal:
            tokens.append(LiteralToken("".join(literal)))
            literal.clear()

    i, length = 0, len(mask)
    while i < length:
        char = mask[i]
        if char == ESCAPE:
            if i + 1 >= length:
                raise InvalidMaskError(mask, i, "unterminated escape")
            literal.append(mask[i + 1])
            i += 2
        elif char == SYMBOL:
            flush()
            tokens.append(SymbolToken())
            i += 1
        elif char == CODE:
            flush()
            tokens.append(CodeToken())
            i += 1
        elif char in _PLACEHOLDERS or (
            char == DECIMAL_MARK and i + 1 < length and mask[i + 1] in _PLACEHOLDERS
        ):
            if number_at >= 0:
                raise InvalidMaskError(mask, i, f"second number section (first at {number_at})")
            end = i
            while end < length and mask[end] in _NUMBER_CHARS:
                end += 1
            while mask[end - 1] not in _PLACEHOLDERS:
                end -= 1
            flush()
            tokens.append(_parse_number(mask, i, mask[i:end]))
            number_at = i
            i = end
        else:
            literal.append(char)
            i += 1
    flush()

    logger.debug(f"Parsed mask {mask!r} into {len(tokens)} tokens")
    return tuple(tokens)


# ==============================================================================
# RENDERER
# ==============================================================================

def _group(digits: str, separator: str) -> str:
    head = len(digits) % GROUP_SIZE or GROUP_SIZE
    groups = [digits[:head]]
    groups.extend(digits[i:i + GROUP_SIZE] for i in range(head, len(digits), GROUP_SIZE))
    return separator.join(groups)


class FormatMask:
    """
    A parsed mask, reusable across renders.

        mask = FormatMask("$0,0.00")
        mask.render(price)                  # "$1,500.00"

    `group_separator` and `decimal_separator` change the characters that
    `,` and `.` produce, e.g. FormatMask("0,0.00 @", ".", ",") -> "1.500,00 EUR".
    """

    def __init__(self, mask: str, group_separator: str = GROUP_MARK, decimal_separator: str = DECIMAL_MARK):
        self._mask = mask
        self._tokens = parse_mask(mask)
        self._group_separator = group_separator
        self._decimal_separator = decimal_separator

    @property
    def mask(self) -> str:
        return self._mask

    @property
    def tokens(self) -> tuple[Token, ...]:
        return self._tokens

    def _render_number(self, token: NumberToken, value: Money, mode: RoundingMode) -> tuple[bool, str]:
        calc = value.calculator
        unit = scale_factor(calc, 10, token.fraction_digits)
        scaled = round_quotient(
            calc,
            calc.multiply(value.amount, unit),
            scale_factor(calc, value.currency.base, value.exponent),
            mode,
        )
        negative = calc.compare(scaled, calc.from_integer(0)) < 0
        if negative:
            scaled = calc.negate(scaled)

        integer, fraction = calc.divide(scaled, unit)
        integer_value = calc.to_integer(integer)

        if integer_value == 0 and token.integer_digits == 0:
            integer_text = ""
        else:
            integer_text = str(integer_value).rjust(token.integer_digits, "0")
        if token.grouping and integer_text:
            integer_text = _group(integer_text, self._group_separator)

        fraction_text = ""
        if token.fraction_digits:
            fraction_text = str(calc.to_integer(fraction)).rjust(token.fraction_digits, "0")
            while len(fraction_text) > token.fraction_required and fraction_text.endswith("0"):
                fraction_text = fraction_text[:-1]

        if not integer_text and not fraction_text:
            integer_text = "0"
        if fraction_text:
            return negative, f"{integer_text}{self._decimal_separator}{fraction_text}"
        return negative, integer_text

    def render(self, value: Money, mode: RoundingMode = RoundingMode.HALF_EVEN) -> str:
        """Render `value`. Pure: no locale lookups, same output everywhere."""
        numbers = [t for t in self._tokens if isinstance(t, NumberToken)]
        if numbers:
            negative, number_text = self._render_number(numbers[0], value, mode)
        else:
            negative, number_text = False, ""

        parts: list[str] = []
        sign_pending = negative
        for token in self._tokens:
            if isinstance(token, LiteralToken):
                parts.append(token.text)
                continue
            if sign_pending:
                parts.append("-")
                sign_pending = False
            if isinstance(token, NumberToken):
                parts.append(number_text)
            elif isinstance(token, SymbolToken):
                parts.append(value.currency.display_symbol)
            else:
                parts.append(value.currency.code)
        return "".join(parts)

    def __repr__(self) -> str:
        return f"FormatMask({self._mask!r})"


def format_money(value: Money, mask: str, mode: RoundingMode = RoundingMode.HALF_EVEN) -> str:
    """One-shot FormatMask(mask).render(value, mode)."""
    return FormatMask(mask).render(value, mode)
