"""Input masks and display formatting for checkout fields.

Every function here is total: bad input never raises. When the digit count
exceeds what a mask expects, the raw input is handed back untouched.
"""
import re
from decimal import Decimal

_NON_DIGIT = re.compile(r"\D")

CURRENCY_SYMBOLS = {
    "BRL": "R$",
}


def strip_digits(value: str) -> str:
    """Remove every non-digit character."""
    return _NON_DIGIT.sub("", value or "")


def format_document(value: str) -> str:
    """Mask a CPF as ###.###.###-##."""
    digits = strip_digits(value)
    if len(digits) > 11:
        return value
    if len(digits) == 11:
        return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"
    return digits


def format_phone(value: str) -> str:
    """Mask a phone number as (##) #####-#### or (##) ####-####."""
    digits = strip_digits(value)
    if len(digits) > 11:
        return value
    if len(digits) == 11:
        return f"({digits[:2]}) {digits[2:7]}-{digits[7:]}"
    if len(digits) == 10:
        return f"({digits[:2]}) {digits[2:6]}-{digits[6:]}"
    return digits


def format_postal_code(value: str) -> str:
    """Mask a CEP as #####-###."""
    digits = strip_digits(value)
    if len(digits) > 8:
        return value
    if len(digits) == 8:
        return f"{digits[:5]}-{digits[5:]}"
    return digits


def format_card_number(value: str) -> str:
    """Group card digits in blocks of four."""
    digits = strip_digits(value)
    if len(digits) > 19:
        return value
    return " ".join(digits[i:i + 4] for i in range(0, len(digits), 4))


def format_expiration_date(value: str) -> str:
    """Split a four-digit expiry into MM/YY."""
    digits = strip_digits(value)
    if len(digits) > 4:
        return value
    if len(digits) == 4:
        return f"{digits[:2]}/{digits[2:]}"
    return digits


def format_state(value: str) -> str:
    return (value or "").strip().upper()


def format_currency(cents: int, currency: str = "BRL") -> str:
    """
    Render an amount in minor units as pt-BR currency text.

    123456 -> "R$\\xa01.234,56"
    """
    amount = (Decimal(int(cents)) / 100).quantize(Decimal("0.01"))
    sign = "-" if amount < 0 else ""
    whole, fraction = f"{abs(amount):.2f}".split(".")
    grouped = f"{int(whole):,}".replace(",", ".")
    symbol = CURRENCY_SYMBOLS.get(currency, currency)
    return f"{sign}{symbol}\xa0{grouped},{fraction}"
