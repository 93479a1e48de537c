import re
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import AfterValidator

from utils import to_jkt_naive

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
PHONE_PATTERN = re.compile(r"^(\+62|62|0)[0-9]{9,12}$")


def non_negative(message: str) -> AfterValidator:
    def _check(value: Optional[Decimal]):
        if value is not None and value < 0:
            raise ValueError(message)
        return value
    return AfterValidator(_check)


def at_least(minimum: int, message: str) -> AfterValidator:
    def _check(value):
        if value is not None and value < minimum:
            raise ValueError(message)
        return value
    return AfterValidator(_check)


def required_text(message: str, max_length: int) -> AfterValidator:
    def _check(value: Optional[str]):
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError(message)
        if len(value) > max_length:
            raise ValueError(f"Maksimal {max_length} karakter")
        return value
    return AfterValidator(_check)


def optional_text(max_length: int) -> AfterValidator:
    def _check(value: Optional[str]):
        if value is None:
            return value
        value = value.strip()
        if len(value) > max_length:
            raise ValueError(f"Maksimal {max_length} karakter")
        return value or None
    return AfterValidator(_check)


def valid_email(value: str) -> str:
    value = value.strip().lower()
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Format email tidak valid")
    return value


def wib_datetime(value: Optional[datetime]) -> Optional[datetime]:
    return to_jkt_naive(value)
