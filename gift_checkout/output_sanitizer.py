"""Output sanitization: redact card numbers, CPFs, and credentials before returning tool output."""
import re

from .formatters import strip_digits
from .validators import validate_document

_SECRET_PATTERNS = [
    re.compile(r"sk_(?:test|live)_[a-zA-Z0-9]{16,}"),   # Pagar.me secret keys
    re.compile(r"(?i)\b(api[_-]?key|secret|token|authorization|password)\b\s*[=:]\s*\S+"),
]

# 13 to 19 digits, optionally split by single spaces or dashes
_CARD_NUMBER_PATTERN = re.compile(r"(?<![\d.-])\d(?:[ -]?\d){12,18}(?![\d-])")

# Masked CPF (###.###.###-##)
_MASKED_CPF_PATTERN = re.compile(r"\b\d{3}\.\d{3}\.\d{3}-\d{2}\b")

# Bare 11-digit run; only redacted when the CPF check digits match
_BARE_CPF_PATTERN = re.compile(r"(?<!\d)\d{11}(?!\d)")

_ANSI_PATTERN = re.compile(r"\x1b\[[0-9;]*m")


def _redact_bare_cpf(match: re.Match) -> str:
    return "[CPF REDACTED]" if validate_document(match.group()) else match.group()


def redact_card_number(number: str) -> str:
    """Mask a card number to show only last 4 digits."""
    digits = strip_digits(number)
    if len(digits) < 4:
        return "****"
    return f"**** **** **** {digits[-4:]}"


def redact_document(document: str) -> str:
    """Mask a CPF, keeping only the two check digits."""
    digits = strip_digits(document)
    if len(digits) < 2:
        return "***"
    return f"***.***.***-{digits[-2:]}"


def redact_email(email: str) -> str:
    local, sep, domain = email.partition("@")
    if not sep:
        return email
    return f"{local[:1]}***@{domain}"


def sanitize_output(text: str, max_chars: int = 50000) -> str:
    """
    Scrub tool output before it leaves the server.

    Gateway keys and auth values become [REDACTED], card-length digit runs
    become [CARD REDACTED], and masked or checksum-valid bare CPFs become
    [CPF REDACTED]. Shorter digit runs (partial CPFs, phones, CEPs, amounts)
    are left as typed. Output longer than max_chars is truncated.
    """
    text = _ANSI_PATTERN.sub("", text)

    for pattern in _SECRET_PATTERNS:
        text = pattern.sub("[REDACTED]", text)

    text = _MASKED_CPF_PATTERN.sub("[CPF REDACTED]", text)
    text = _BARE_CPF_PATTERN.sub(_redact_bare_cpf, text)
    text = _CARD_NUMBER_PATTERN.sub("[CARD REDACTED]", text)

    if len(text) > max_chars:
        text = text[:max_chars] + f"\n\n[... truncated at {max_chars} chars]"
    return text
