"""Field validation rules for the checkout form.

Each field has exactly one rule in FIELD_RULES. Real-time (per-field) and
per-step validation both go through check_field.
"""
import re
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from .formatters import (
    format_card_number,
    format_document,
    format_phone,
    format_postal_code,
    format_state,
    strip_digits,
)

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NAME_PATTERN = re.compile(r"^[a-zA-ZÀ-ÿ\s]+$")

BRAZILIAN_STATES = {
    "AC": "Acre",
    "AL": "Alagoas",
    "AP": "Amapá",
    "AM": "Amazonas",
    "BA": "Bahia",
    "CE": "Ceará",
    "DF": "Distrito Federal",
    "ES": "Espírito Santo",
    "GO": "Goiás",
    "MA": "Maranhão",
    "MT": "Mato Grosso",
    "MS": "Mato Grosso do Sul",
    "MG": "Minas Gerais",
    "PA": "Pará",
    "PB": "Paraíba",
    "PR": "Paraná",
    "PE": "Pernambuco",
    "PI": "Piauí",
    "RJ": "Rio de Janeiro",
    "RN": "Rio Grande do Norte",
    "RS": "Rio Grande do Sul",
    "RO": "Rondônia",
    "RR": "Roraima",
    "SC": "Santa Catarina",
    "SP": "São Paulo",
    "SE": "Sergipe",
    "TO": "Tocantins",
}


def _cpf_check_digit(digits: str, first_weight: int) -> int:
    total = sum(int(d) * (first_weight - i) for i, d in enumerate(digits))
    remainder = (total * 10) % 11
    return 0 if remainder >= 10 else remainder


def validate_document(document: str) -> bool:
    """Validate a CPF: 11 digits, not all equal, both check digits match."""
    digits = strip_digits(document)
    if len(digits) != 11 or len(set(digits)) == 1:
        return False
    if _cpf_check_digit(digits[:9], 10) != int(digits[9]):
        return False
    return _cpf_check_digit(digits[:10], 11) == int(digits[10])


def validate_email(email: str) -> bool:
    return bool(_EMAIL_PATTERN.match(email or ""))


def validate_phone(phone: str) -> bool:
    return len(strip_digits(phone)) in (10, 11)


def validate_postal_code(postal_code: str) -> bool:
    return len(strip_digits(postal_code)) == 8


def validate_card_number(number: str) -> bool:
    """Length in [13, 19] and a passing Luhn checksum."""
    digits = strip_digits(number)
    if not 13 <= len(digits) <= 19:
        return False

    total = 0
    for position, char in enumerate(reversed(digits)):
        digit = int(char)
        if position % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def validate_cvv(cvv: str) -> bool:
    return len(strip_digits(cvv)) in (3, 4)


def validate_expiration_date(month: str, year: str, today: Optional[date] = None) -> bool:
    """Reject missing, malformed, out-of-range, or already expired month/year pairs."""
    if not month or not year:
        return False
    try:
        exp_month = int(month)
        exp_year = int(year)
    except ValueError:
        return False

    today = today or date.today()
    if exp_year < today.year:
        return False
    if exp_year == today.year and exp_month < today.month:
        return False
    return 1 <= exp_month <= 12


def validate_name(name: str) -> bool:
    return len(name.strip()) >= 2 and bool(_NAME_PATTERN.match(name))


def validate_street(street: str) -> bool:
    return len(street.strip()) >= 3


def validate_street_number(number: str) -> bool:
    return len(number.strip()) >= 1


def validate_neighborhood(neighborhood: str) -> bool:
    return len(neighborhood.strip()) >= 2


def validate_city(city: str) -> bool:
    return len(city.strip()) >= 2


def validate_state(state: str) -> bool:
    """Two-letter code from BRAZILIAN_STATES."""
    return (state or "").strip().upper() in BRAZILIAN_STATES


# ---------------------------------------------------------------------------
# Field rule table
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldRule:
    """How one form field is formatted and checked."""
    key: str
    attr: str
    step: int
    required_message: str
    invalid_message: str
    check: Callable[[str, dict], bool]
    formatter: Optional[Callable[[str], str]] = None
    required: bool = True


def _check_expiration_month(value: str, card: dict) -> bool:
    digits = strip_digits(value)
    if not digits or not 1 <= int(digits) <= 12:
        return False
    year = card.get("expirationYear")
    return validate_expiration_date(digits, year) if year else True


def _check_expiration_year(value: str, card: dict) -> bool:
    if len(strip_digits(value)) != 4:
        return False
    month = card.get("expirationMonth")
    return validate_expiration_date(month, value) if month else True


_RULES = [
    # Step 1: buyer
    FieldRule("name", "name", 1,
              "Nome é obrigatório",
              "Nome deve ter ao menos 2 letras e conter apenas letras",
              lambda v, _: validate_name(v)),
    FieldRule("email", "email", 1,
              "Email é obrigatório",
              "Email inválido",
              lambda v, _: validate_email(v),
              formatter=str.strip),
    FieldRule("document", "document", 1,
              "CPF é obrigatório",
              "CPF inválido",
              lambda v, _: validate_document(v),
              formatter=format_document),
    FieldRule("phone", "phone", 1,
              "Telefone é obrigatório",
              "Telefone deve ter 10 ou 11 dígitos",
              lambda v, _: validate_phone(v),
              formatter=format_phone),

    # Step 2: address
    FieldRule("zipcode", "zipcode", 2,
              "CEP é obrigatório",
              "CEP deve ter 8 dígitos",
              lambda v, _: validate_postal_code(v),
              formatter=format_postal_code),
    FieldRule("street", "street", 2,
              "Logradouro é obrigatório",
              "Logradouro deve ter ao menos 3 caracteres",
              lambda v, _: validate_street(v)),
    FieldRule("streetNumber", "street_number", 2,
              "Número é obrigatório",
              "Número é obrigatório",
              lambda v, _: validate_street_number(v)),
    FieldRule("neighborhood", "neighborhood", 2,
              "Bairro é obrigatório",
              "Bairro deve ter ao menos 2 caracteres",
              lambda v, _: validate_neighborhood(v)),
    FieldRule("city", "city", 2,
              "Cidade é obrigatória",
              "Cidade deve ter ao menos 2 caracteres",
              lambda v, _: validate_city(v)),
    FieldRule("state", "state", 2,
              "Estado é obrigatório",
              "Estado inválido",
              lambda v, _: validate_state(v),
              formatter=format_state),
    FieldRule("country", "country", 2,
              "País é obrigatório",
              "País deve ser um código de 2 letras",
              lambda v, _: len(v.strip()) == 2,
              formatter=format_state),
    FieldRule("complement", "complement", 2,
              "",
              "",
              lambda v, _: True,
              required=False),

    # Step 3: card
    FieldRule("holderName", "holder_name", 3,
              "Nome no cartão é obrigatório",
              "Nome no cartão inválido",
              lambda v, _: validate_name(v)),
    FieldRule("number", "number", 3,
              "Número do cartão é obrigatório",
              "Número do cartão inválido",
              lambda v, _: validate_card_number(v),
              formatter=format_card_number),
    FieldRule("expirationMonth", "expiration_month", 3,
              "Mês é obrigatório",
              "Mês inválido ou cartão vencido",
              _check_expiration_month,
              formatter=strip_digits),
    FieldRule("expirationYear", "expiration_year", 3,
              "Ano é obrigatório",
              "Ano inválido ou cartão vencido",
              _check_expiration_year,
              formatter=strip_digits),
    FieldRule("cvv", "cvv", 3,
              "CVV é obrigatório",
              "CVV deve ter 3 ou 4 dígitos",
              lambda v, _: validate_cvv(v),
              formatter=strip_digits),
]

FIELD_RULES: dict[str, FieldRule] = {rule.key: rule for rule in _RULES}


def rules_for_step(step: int) -> list[FieldRule]:
    return [rule for rule in _RULES if rule.step == step]


def check_field(key: str, value: Optional[str], record: Optional[dict] = None) -> Optional[str]:
    """Return the error message for one field, or None when it is valid."""
    rule = FIELD_RULES.get(key)
    if rule is None:
        raise ValueError(f"Unknown checkout field: {key}")

    value = value or ""
    if not value.strip():
        return rule.required_message if rule.required else None
    if not rule.check(value, record or {}):
        return rule.invalid_message
    return None
