"""Tests for output sanitizer: PII and credential redaction."""
from gift_checkout.output_sanitizer import (
    redact_card_number,
    redact_document,
    redact_email,
    sanitize_output,
)


class TestCardRedaction:
    def test_redact_full_card_number(self):
        assert redact_card_number("4532015112830366") == "**** **** **** 0366"

    def test_redact_masked_card(self):
        assert redact_card_number("4532 0151 1283 0366") == "**** **** **** 0366"

    def test_short_number_returns_stars(self):
        assert redact_card_number("123") == "****"


class TestDocumentRedaction:
    def test_masked_cpf(self):
        assert redact_document("529.982.247-25") == "***.***.***-25"

    def test_raw_cpf(self):
        assert redact_document("52998224725") == "***.***.***-25"

    def test_empty(self):
        assert redact_document("") == "***"


class TestEmailRedaction:
    def test_redact_email(self):
        assert redact_email("maria.silva@example.com") == "m***@example.com"

    def test_no_at_sign(self):
        assert redact_email("not-an-email") == "not-an-email"


class TestSanitizeOutput:
    def test_redacts_card_numbers(self):
        text = "Cartão 4532 0151 1283 0366 aprovado."
        result = sanitize_output(text)
        assert "0151 1283" not in result
        assert "[CARD REDACTED]" in result

    def test_redacts_masked_cpf(self):
        result = sanitize_output('"document": "529.982.247-25"')
        assert "529.982" not in result
        assert "[CPF REDACTED]" in result

    def test_redacts_pagarme_keys(self):
        result = sanitize_output("key sk_test_5ad1ae64dc3648c7ad8711325a43db49")
        assert "sk_test_5ad1" not in result
        assert "[REDACTED]" in result

    def test_redacts_api_key_assignment(self):
        result = sanitize_output("api_key=abc123")
        assert "abc123" not in result

    def test_strips_ansi(self):
        result = sanitize_output("\x1b[31mred text\x1b[0m normal")
        assert "\x1b" not in result
        assert "red text normal" in result

    def test_truncates_long_output(self):
        result = sanitize_output("x" * 60000, max_chars=1000)
        assert len(result) < 1100
        assert "truncated" in result

    def test_passes_clean_text(self):
        text = "Total: R$ 139,70 | CEP 01310-100 | Telefone (11) 98765-4321"
        assert sanitize_output(text) == text


class TestDigitRuns:
    def test_partial_cpf_is_kept(self):
        text = '{"field": "document", "value": "5299822472"}'
        assert sanitize_output(text) == text

    def test_bare_valid_cpf_is_redacted(self):
        result = sanitize_output('"value": "52998224725"')
        assert "52998224725" not in result
        assert "[CPF REDACTED]" in result

    def test_bare_eleven_digits_without_cpf_checksum_are_kept(self):
        text = "telefone 11987654321"
        assert sanitize_output(text) == text

    def test_twelve_digit_card_prefix_is_kept(self):
        text = "4532 0151 1283"
        assert sanitize_output(text) == text

    def test_dashed_card_is_redacted(self):
        assert sanitize_output("4532-0151-1283-0366") == "[CARD REDACTED]"

    def test_nineteen_digit_card_is_redacted(self):
        assert sanitize_output("6011 0000 0000 0000 004") == "[CARD REDACTED]"

    def test_timestamps_and_amounts_are_kept(self):
        text = "expires_at 2026-10-17T12:30:00Z amount 13970"
        assert sanitize_output(text) == text
