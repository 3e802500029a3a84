"""Tests for field validators and the shared field-rule table."""
from datetime import date

import pytest

from gift_checkout.validators import (
    BRAZILIAN_STATES,
    FIELD_RULES,
    check_field,
    rules_for_step,
    validate_card_number,
    validate_city,
    validate_cvv,
    validate_document,
    validate_email,
    validate_expiration_date,
    validate_name,
    validate_neighborhood,
    validate_phone,
    validate_postal_code,
    validate_state,
    validate_street,
    validate_street_number,
)


class TestDocument:
    def test_known_valid_cpf(self):
        assert validate_document("52998224725")

    def test_masked_valid_cpf(self):
        assert validate_document("529.982.247-25")

    @pytest.mark.parametrize("digit", "0123456789")
    def test_rejects_repeated_digits(self, digit):
        assert not validate_document(digit * 11)

    def test_rejects_wrong_first_check_digit(self):
        assert not validate_document("52998224735")

    def test_rejects_wrong_second_check_digit(self):
        assert not validate_document("52998224724")

    def test_rejects_wrong_length(self):
        assert not validate_document("5299822472")
        assert not validate_document("529982247250")


class TestEmail:
    @pytest.mark.parametrize("email", ["a@b.co", "maria.silva@example.com", "x+tag@mail.com.br"])
    def test_valid(self, email):
        assert validate_email(email)

    @pytest.mark.parametrize("email", ["", "maria@example", "ma ria@example.com", "@example.com", "maria@@x.com"])
    def test_invalid(self, email):
        assert not validate_email(email)


class TestPhoneAndPostalCode:
    def test_phone_lengths(self):
        assert validate_phone("(11) 3456-7890")
        assert validate_phone("(11) 98765-4321")
        assert not validate_phone("987654321")
        assert not validate_phone("119876543210")

    def test_postal_code(self):
        assert validate_postal_code("01310-100")
        assert not validate_postal_code("0131010")
        assert not validate_postal_code("013101000")


class TestCardNumber:
    def test_luhn_valid(self):
        assert validate_card_number("4532015112830366")

    def test_luhn_invalid(self):
        assert not validate_card_number("4532015112830367")

    def test_formatted_number(self):
        assert validate_card_number("4111 1111 1111 1111")

    def test_too_short(self):
        assert not validate_card_number("411111111111")

    def test_too_long(self):
        assert not validate_card_number("41111111111111111111")


class TestCvv:
    @pytest.mark.parametrize("cvv,expected", [("12", False), ("123", True), ("1234", True), ("12345", False)])
    def test_lengths(self, cvv, expected):
        assert validate_cvv(cvv) is expected


class TestExpirationDate:
    today = date(2026, 10, 17)

    def test_past_year(self):
        assert not validate_expiration_date("01", "2020")

    def test_current_month_is_valid(self):
        now = date.today()
        assert validate_expiration_date(f"{now.month:02d}", str(now.year))

    def test_earlier_month_this_year(self):
        assert not validate_expiration_date("09", "2026", today=self.today)

    def test_same_month(self):
        assert validate_expiration_date("10", "2026", today=self.today)

    def test_month_out_of_range(self):
        assert not validate_expiration_date("13", "2030", today=self.today)
        assert not validate_expiration_date("00", "2030", today=self.today)

    def test_missing_parts(self):
        assert not validate_expiration_date("", "2030")
        assert not validate_expiration_date("12", "")

    def test_non_numeric(self):
        assert not validate_expiration_date("ab", "2030")


class TestTextFields:
    def test_name(self):
        assert validate_name("Maria")
        assert validate_name("João da Silva")
        assert not validate_name("M")
        assert not validate_name("Maria123")
        assert not validate_name("   ")

    def test_street(self):
        assert validate_street("Rua")
        assert not validate_street("Ru ")

    def test_street_number(self):
        assert validate_street_number("s/n")
        assert not validate_street_number(" ")

    def test_neighborhood_and_city(self):
        assert validate_neighborhood("Sé")
        assert not validate_neighborhood("S")
        assert validate_city("Rio")
        assert not validate_city(" ")


class TestState:
    def test_known_codes(self):
        assert validate_state("SP")
        assert validate_state("df")

    def test_unknown_two_letter_code(self):
        assert not validate_state("XX")

    def test_wrong_length(self):
        assert not validate_state("SPX")

    def test_all_27_units_listed(self):
        assert len(BRAZILIAN_STATES) == 27


class TestFieldRules:
    def test_cvv_too_short(self):
        assert check_field("cvv", "12") == "CVV deve ter 3 ou 4 dígitos"

    def test_cvv_valid(self):
        assert check_field("cvv", "123") is None

    def test_required_message_for_blank(self):
        assert check_field("cvv", "") == "CVV é obrigatório"
        assert check_field("email", "   ") == "Email é obrigatório"

    def test_optional_field_may_be_blank(self):
        assert check_field("complement", "") is None
        assert check_field("complement", None) is None

    def test_unknown_field(self):
        with pytest.raises(ValueError):
            check_field("favorite_color", "blue")

    def test_month_checked_against_sibling_year(self):
        error = check_field("expirationMonth", "01", {"expirationYear": "2020"})
        assert error == FIELD_RULES["expirationMonth"].invalid_message

    def test_month_alone(self):
        assert check_field("expirationMonth", "06", {}) is None
        assert check_field("expirationMonth", "13", {}) is not None

    def test_year_needs_four_digits(self):
        assert check_field("expirationYear", "30", {}) is not None
        assert check_field("expirationYear", "2030", {"expirationMonth": "12"}) is None

    def test_rules_grouped_by_step(self):
        assert [r.key for r in rules_for_step(1)] == ["name", "email", "document", "phone"]
        assert {r.key for r in rules_for_step(3)} == {
            "holderName", "number", "expirationMonth", "expirationYear", "cvv",
        }

    def test_every_rule_has_messages_when_required(self):
        for rule in FIELD_RULES.values():
            if rule.required:
                assert rule.required_message
                assert rule.invalid_message
