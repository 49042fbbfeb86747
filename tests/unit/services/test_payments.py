"""Tests for payment fee, validation and messaging helpers."""
import pytest

from contractoros.services.payments import (
    DEFAULT_DECLINE_MESSAGE,
    DEFAULT_ERROR_MESSAGE,
    calculate_deposit,
    calculate_processing_fee,
    cents_to_dollars,
    dollars_to_cents,
    format_cents,
    parse_stripe_error,
    validate_payment_amount,
)


class TestProcessingFee:
    def test_card_fee(self):
        fee = calculate_processing_fee(10_000, "card")
        assert fee.fee == 320
        assert fee.net == 9_680

    def test_ach_fee(self):
        fee = calculate_processing_fee(10_000, "ach")
        assert fee.fee == 80
        assert fee.net == 9_920

    def test_ach_fee_is_capped_at_five_dollars(self):
        assert calculate_processing_fee(1_000_000, "ach").fee == 500


class TestAmountValidation:
    def test_valid(self):
        assert validate_payment_amount(5_000).valid

    @pytest.mark.parametrize("amount", [0, -100, 12.5, None, True])
    def test_invalid(self, amount):
        result = validate_payment_amount(amount)
        assert not result.valid
        assert result.error == "Invalid payment amount"

    def test_minimum(self):
        assert validate_payment_amount(49).error == "Minimum payment amount is $0.50"
        assert validate_payment_amount(50).valid

    def test_maximum(self):
        assert validate_payment_amount(100_000_000).error == "Maximum payment amount is $999,999.99"
        assert validate_payment_amount(99_999_999).valid


def test_deposit_split():
    deposit = calculate_deposit(10_001)
    assert deposit.deposit == 5_001
    assert deposit.balance == 5_000
    assert calculate_deposit(20_000, percent=25).deposit == 5_000


def test_conversions():
    assert dollars_to_cents(19.99) == 1999
    assert dollars_to_cents("0.5") == 50
    assert cents_to_dollars(1999) == 19.99
    assert format_cents(123456) == "$1,234.56"


class TestStripeErrors:
    def test_known_decline_code(self):
        assert parse_stripe_error(decline_code="insufficient_funds") == "Your card has insufficient funds."

    def test_unknown_decline_code(self):
        assert parse_stripe_error(decline_code="mystery") == DEFAULT_DECLINE_MESSAGE

    def test_decline_code_wins_over_code(self):
        assert (
            parse_stripe_error(code="card_declined", decline_code="expired_card")
            == "Your card has expired. Please use a different card."
        )

    def test_error_code(self):
        assert parse_stripe_error(code="rate_limit") == "Too many requests. Please try again later."

    def test_unknown_code_falls_back_to_message(self):
        assert parse_stripe_error(code="weird", message="Raw processor text") == "Raw processor text"
        assert parse_stripe_error() == DEFAULT_ERROR_MESSAGE
