"""Payment helpers: card/ACH fees, amount validation, deposits and
user-facing messages for processor decline and error codes.

All amounts are integer cents unless a name says otherwise.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

MIN_PAYMENT_CENTS = 50
MAX_PAYMENT_CENTS = 99_999_999

DEFAULT_DECLINE_MESSAGE = "Your card was declined. Please try a different card."
DEFAULT_ERROR_MESSAGE = "An error occurred processing your payment."

DECLINE_MESSAGES: dict[str, str] = {
    "authentication_required": "This card requires authentication. Please try again.",
    "approve_with_id": "Payment cannot be authorized. Please try a different card.",
    "call_issuer": "Your card was declined. Please contact your card issuer.",
    "card_not_supported": "This card does not support this type of purchase.",
    "card_velocity_exceeded": "Too many transactions. Please try again later.",
    "currency_not_supported": "This currency is not supported.",
    "do_not_honor": "Your card was declined. Please try a different card.",
    "do_not_try_again": "Your card was declined. Please contact your card issuer.",
    "duplicate_transaction": "A duplicate transaction was submitted.",
    "expired_card": "Your card has expired. Please use a different card.",
    "fraudulent": "Your card was declined.",
    "generic_decline": "Your card was declined. Please try a different card.",
    "incorrect_cvc": "The CVC number is incorrect.",
    "incorrect_number": "The card number is incorrect.",
    "incorrect_zip": "The ZIP/postal code is incorrect.",
    "insufficient_funds": "Your card has insufficient funds.",
    "invalid_account": "The card is not valid. Please try a different card.",
    "invalid_amount": "The payment amount is invalid.",
    "invalid_cvc": "The CVC number is invalid.",
    "invalid_expiry_month": "The expiration month is invalid.",
    "invalid_expiry_year": "The expiration year is invalid.",
    "invalid_number": "The card number is invalid.",
    "issuer_not_available": "Your card issuer is not available. Please try again.",
    "lost_card": "Your card was declined. Please contact your card issuer.",
    "merchant_blacklist": "Your card was declined.",
    "new_account_information_available": "Your card information has changed. Please update your card.",
    "no_action_taken": "Your card was declined. Please try again.",
    "not_permitted": "This payment is not permitted.",
    "offline_pin_required": "Your card requires a PIN. Please use a different card.",
    "online_or_offline_pin_required": "Your card requires a PIN.",
    "pickup_card": "Your card was declined. Please contact your card issuer.",
    "pin_try_exceeded": "Too many PIN attempts. Please contact your card issuer.",
    "processing_error": "An error occurred while processing. Please try again.",
    "reenter_transaction": "Please re-enter the transaction.",
    "restricted_card": "This card is restricted. Please try a different card.",
    "revocation_of_all_authorizations": "Your card was declined.",
    "revocation_of_authorization": "Your card was declined.",
    "security_violation": "Your card was declined for security reasons.",
    "service_not_allowed": "This service is not allowed.",
    "stolen_card": "Your card was declined. Please contact your card issuer.",
    "stop_payment_order": "Your card was declined.",
    "testmode_decline": "A test card was declined.",
    "transaction_not_allowed": "This transaction is not allowed.",
    "try_again_later": "Your card was temporarily declined. Please try again.",
    "withdrawal_count_limit_exceeded": "Transaction limit exceeded. Please try again later.",
}

ERROR_CODE_MESSAGES: dict[str, str] = {
    "amount_too_large": "The payment amount is too large.",
    "amount_too_small": "The payment amount is too small.",
    "balance_insufficient": "Your account has insufficient funds.",
    "bank_account_declined": "Your bank account was declined.",
    "bank_account_unusable": "This bank account cannot be used.",
    "bank_account_unverified": "This bank account has not been verified.",
    "card_declined": "Your card was declined.",
    "expired_card": "Your card has expired.",
    "incorrect_address": "The address is incorrect.",
    "incorrect_cvc": "The CVC is incorrect.",
    "incorrect_number": "The card number is incorrect.",
    "incorrect_zip": "The ZIP code is incorrect.",
    "invalid_card_type": "This card type is not supported.",
    "invalid_expiry_month": "The expiration month is invalid.",
    "invalid_expiry_year": "The expiration year is invalid.",
    "invalid_number": "The card number is invalid.",
    "postal_code_invalid": "The postal code is invalid.",
    "processing_error": "An error occurred during processing. Please try again.",
    "rate_limit": "Too many requests. Please try again later.",
}


@dataclass(frozen=True)
class ProcessingFee:
    fee: int
    net: int


@dataclass(frozen=True)
class AmountValidation:
    valid: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class Deposit:
    deposit: int
    balance: int


def _round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def cents_to_dollars(cents: int) -> float:
    return cents / 100


def dollars_to_cents(dollars) -> int:
    return _round_half_up(float(dollars) * 100)


def format_cents(cents: int) -> str:
    return f"${cents / 100:,.2f}"


def parse_stripe_error(
    code: Optional[str] = None,
    decline_code: Optional[str] = None,
    message: Optional[str] = None,
) -> str:
    """Friendly text for a processor failure. Decline codes take precedence."""
    if decline_code:
        return DECLINE_MESSAGES.get(decline_code, DEFAULT_DECLINE_MESSAGE)
    if code:
        return ERROR_CODE_MESSAGES.get(code) or message or DEFAULT_ERROR_MESSAGE
    return message or DEFAULT_ERROR_MESSAGE


def calculate_processing_fee(amount_cents: int, method: str) -> ProcessingFee:
    # Card: 2.9% + 30c. ACH: 0.8% capped at $5.
    if method == "card":
        fee = _round_half_up(amount_cents * 0.029 + 30)
    else:
        fee = min(_round_half_up(amount_cents * 0.008), 500)
    return ProcessingFee(fee=fee, net=amount_cents - fee)


def validate_payment_amount(
    amount_cents,
    minimum: int = MIN_PAYMENT_CENTS,
    maximum: int = MAX_PAYMENT_CENTS,
) -> AmountValidation:
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int) or amount_cents <= 0:
        return AmountValidation(False, "Invalid payment amount")
    if amount_cents < minimum:
        return AmountValidation(False, f"Minimum payment amount is {format_cents(minimum)}")
    if amount_cents > maximum:
        return AmountValidation(False, f"Maximum payment amount is {format_cents(maximum)}")
    return AmountValidation(True)


def calculate_deposit(total_cents: int, percent: float = 50) -> Deposit:
    deposit = _round_half_up(total_cents * (percent / 100))
    return Deposit(deposit=deposit, balance=total_cents - deposit)
