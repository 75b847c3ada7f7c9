from __future__ import annotations

import re
from datetime import date

from commerce.core.errors import ValidationError
from commerce.domain.payments.models import PaymentRequest

MIN_CARD_DIGITS = 13
MAX_CARD_DIGITS = 19
MIN_HOLDER_NAME_LENGTH = 2

_NON_DIGIT = re.compile(r"[^0-9]")
_EXPIRY = re.compile(r"([0-9]{2})/([0-9]{2})")
_CVV = re.compile(r"[0-9]{3,4}")


def sanitize_card_number(card_number: str | None) -> str:
    if card_number is None:
        return ""
    return _NON_DIGIT.sub("", card_number)


def is_valid_luhn(card_number: str | None) -> bool:
    digits = sanitize_card_number(card_number)
    if len(digits) < MIN_CARD_DIGITS or len(digits) > MAX_CARD_DIGITS:
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


def is_valid_expiry(expiry: str | None, today: date | None = None) -> bool:
    if expiry is None:
        return False
    match = _EXPIRY.fullmatch(expiry)
    if match is None:
        return False

    month = int(match.group(1))
    year = int(match.group(2)) + 2000
    if month < 1 or month > 12:
        return False

    today = today or date.today()
    # The current month counts as expired.
    return (year, month) > (today.year, today.month)


def is_valid_cvv(cvv: str | None) -> bool:
    return cvv is not None and _CVV.fullmatch(cvv) is not None


def card_last_four(card_number: str | None) -> str | None:
    digits = sanitize_card_number(card_number)
    if len(digits) < 4:
        return None
    return digits[-4:]


def validate_card_details(request: PaymentRequest, today: date | None = None) -> bool:
    if not is_valid_luhn(request.card_number):
        raise ValidationError("invalid card number")

    if not is_valid_expiry(request.card_expiry, today=today):
        raise ValidationError(f"card expired or expiry malformed: {request.card_expiry!r}")

    if not is_valid_cvv(request.card_cvv):
        raise ValidationError("invalid CVV")

    holder = (request.card_holder_name or "").strip()
    if len(holder) < MIN_HOLDER_NAME_LENGTH:
        raise ValidationError("invalid cardholder name")

    return True
