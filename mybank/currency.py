"""
Currency Module

Money value type and localized display formatting. All amounts are Decimal;
floats never enter balance arithmetic.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation, getcontext, localcontext
from dataclasses import dataclass
from typing import Optional, Union
from enum import Enum
import re

# High precision for financial calculations
getcontext().prec = 28


class Currency(Enum):
    """ISO 4217 currencies with display conventions"""
    BRL = ("BRL", 2, "R$", ".", ",")  # Brazilian Real, pt-BR grouping
    USD = ("USD", 2, "$", ",", ".")
    EUR = ("EUR", 2, "€", ".", ",")

    def __init__(self, code: str, precision: int, symbol: str,
                 thousands_sep: str, decimal_sep: str):
        self.code = code
        self.precision = precision
        self.symbol = symbol
        self.thousands_sep = thousands_sep
        self.decimal_sep = decimal_sep


DEFAULT_CURRENCY = Currency.BRL


@dataclass(frozen=True)
class Money:
    """
    Immutable money representation with currency and proper precision.
    """
    amount: Decimal
    currency: Currency = DEFAULT_CURRENCY

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))

        object.__setattr__(self, 'amount', quantize_amount(self.amount, self.currency))

    def is_negative(self) -> bool:
        """Check if amount is negative"""
        return self.amount < Decimal('0')

    def to_string(self) -> str:
        """
        Format for display using the currency's locale conventions,
        e.g. ``R$ 1.234,56`` or ``-R$ 8,00``.
        """
        grouped = f"{abs(self.amount):,.{self.currency.precision}f}"
        # Swap through a placeholder so "," and "." can trade places
        localized = (
            grouped.replace(",", "\0")
            .replace(".", self.currency.decimal_sep)
            .replace("\0", self.currency.thousands_sep)
        )
        sign = "-" if self.is_negative() else ""
        return f"{sign}{self.currency.symbol} {localized}"


def format_money(value: Optional[Union[Decimal, int, str]],
                 currency: Currency = DEFAULT_CURRENCY) -> Optional[str]:
    """
    Render an amount as a localized currency string.

    Args:
        value: Amount to render; None passes through unchanged
        currency: Display currency (BRL by default)

    Returns:
        Display string such as ``R$ 1.234,56``, or None
    """
    if value is None:
        return None
    return Money(value, currency).to_string()


def quantize_amount(value: Decimal, currency: Currency = DEFAULT_CURRENCY) -> Decimal:
    """Round a Decimal to the currency's precision (half up), whatever its magnitude"""
    with localcontext() as ctx:
        # quantize fails when the result has more digits than the context precision
        ctx.prec = max(ctx.prec, value.adjusted() + currency.precision + 2)
        return value.quantize(
            Decimal('0.1') ** currency.precision,
            rounding=ROUND_HALF_UP
        )


def decimal_from_string(value: str) -> Decimal:
    """
    Safely convert string to Decimal, handling common formats

    Accepts plain numbers (``1234.56``), pt-BR display strings
    (``R$ 1.234,56``) and US grouping (``1,234.56``).

    Raises:
        ValueError: If string cannot be converted to a valid Decimal
    """
    if not value or not isinstance(value, str):
        raise ValueError("Value must be a non-empty string")

    # Remove currency symbols and whitespace
    clean_value = re.sub(r'[^\d.,\-+]', '', value.strip())

    if ',' in clean_value and '.' in clean_value:
        # Whichever separator comes last is the decimal one
        if clean_value.rfind(',') > clean_value.rfind('.'):
            clean_value = clean_value.replace('.', '').replace(',', '.')
        else:
            clean_value = clean_value.replace(',', '')
    elif ',' in clean_value and clean_value.count(',') == 1:
        parts = clean_value.split(',')
        if len(parts[1]) <= 2:
            clean_value = clean_value.replace(',', '.')
        else:
            clean_value = clean_value.replace(',', '')

    try:
        return Decimal(clean_value)
    except InvalidOperation:
        raise ValueError(f"Cannot convert '{value}' to Decimal")
