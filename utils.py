from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional, Tuple, Union

import jwt
import pytz
from passlib.context import CryptContext

from config import Config

password_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=Config.BCRYPT_ROUNDS,
)

JAKARTA_TZ = pytz.timezone(Config.TIMEZONE)

ID_MONTHS_SHORT = ["Jan", "Feb", "Mar", "Apr", "Mei", "Jun", "Jul", "Agu", "Sep", "Okt", "Nov", "Des"]
ID_MONTHS_LONG = [
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
]


def get_hashed_password(password: str) -> str:
    return password_context.hash(password)


def verify_password(password: str, hashed_pass: str) -> bool:
    return password_context.verify(password, hashed_pass)


def _encode(subject: Union[str, Any], name: str, secret: str, expires_delta: timedelta) -> str:
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {"exp": expire, "sub": str(subject), "un": name}
    return jwt.encode(to_encode, secret, algorithm=Config.ALGORITHM)


def create_access_token(subject: Union[str, Any], name: str, expires_delta: Optional[timedelta] = None) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=Config.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(subject, name, Config.JWT_SECRET_KEY, expires_delta)


def create_refresh_token(subject: Union[str, Any], name: str, expires_delta: Optional[timedelta] = None) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=Config.REFRESH_TOKEN_EXPIRE_MINUTES)
    return _encode(subject, name, Config.JWT_REFRESH_SECRET_KEY, expires_delta)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, Config.JWT_SECRET_KEY, algorithms=[Config.ALGORITHM])


def decode_refresh_token(token: str) -> dict:
    return jwt.decode(token, Config.JWT_REFRESH_SECRET_KEY, algorithms=[Config.ALGORITHM])


def get_jkt_now() -> datetime:
    """
    Current wall-clock time in WIB (UTC+7) as a naive datetime.
    All timestamps are stored naive in WIB.
    """
    return datetime.now(JAKARTA_TZ).replace(tzinfo=None)


def to_jkt_naive(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(JAKARTA_TZ).replace(tzinfo=None)


def month_range(year: int, month: int) -> Tuple[datetime, datetime]:
    """Returns [start, next_month_start) for the given calendar month."""
    start = datetime(year, month, 1)
    if month == 12:
        return start, datetime(year + 1, 1, 1)
    return start, datetime(year, month + 1, 1)


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def format_number_id(value) -> str:
    """
    Formats a number the way id-ID locales print it: '.' groups thousands,
    ',' separates at most three decimals (1234567.5 -> '1.234.567,5').
    """
    d = Decimal(str(value or 0)).quantize(Decimal("0.001"), rounding=ROUND_HALF_UP)
    sign = "-" if d < 0 else ""
    integer, _, fraction = f"{abs(d):f}".partition(".")
    fraction = fraction.rstrip("0")
    grouped = f"{int(integer):,}".replace(",", ".")
    if fraction:
        return f"{sign}{grouped},{fraction}"
    return f"{sign}{grouped}"
