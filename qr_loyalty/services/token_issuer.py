import math
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation, ROUND_FLOOR

from qr_loyalty.errors import InvalidAmount
from qr_loyalty.services.token_codec import encode_payload


# Shared with redemption_service; issuer and redeemer must agree on both.
QR_VALIDITY = timedelta(minutes=5)
POINTS_PER_CURRENCY_UNIT = 10

# largest value amount_spent (Numeric(10, 2)) can hold
MAX_AMOUNT = Decimal("99999999.99")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(now: datetime | None) -> datetime:
    """Current time when None; naive values are taken as UTC."""
    if now is None:
        return utcnow()
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def validate_amount(amount) -> Decimal:
    if isinstance(amount, bool) or not isinstance(amount, (int, float, Decimal)):
        raise InvalidAmount()
    if isinstance(amount, float) and not math.isfinite(amount):
        raise InvalidAmount()
    try:
        value = Decimal(str(amount))
    except InvalidOperation as e:
        raise InvalidAmount() from e
    if not value.is_finite() or value <= 0:
        raise InvalidAmount()
    if value > MAX_AMOUNT:
        raise InvalidAmount(f"Amount must not exceed {MAX_AMOUNT}")
    return value


def compute_points(amount) -> int:
    """floor(amount * 10), computed on the decimal text of the amount."""
    value = validate_amount(amount) * POINTS_PER_CURRENCY_UNIT
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


def _new_token_value(customer_id) -> str:
    return f"{customer_id}:{time.time_ns()}:{secrets.token_urlsafe(12)}"


@dataclass(frozen=True)
class IssuedToken:
    token: str
    customer_id: str
    display_name: str
    issued_at: datetime
    expires_at: datetime

    @property
    def payload(self) -> str:
        return encode_payload(self.customer_id, self.token, self.issued_at, self.display_name)

    def is_expired(self, now: datetime | None = None) -> bool:
        return as_utc(now) > self.expires_at

    def seconds_remaining(self, now: datetime | None = None) -> int:
        remaining = (self.expires_at - as_utc(now)).total_seconds()
        return max(0, int(remaining))


def issue_token(customer_id, display_name: str, now: datetime | None = None) -> IssuedToken:
    if not customer_id:
        raise ValueError("customer_id is required to issue a QR token")
    if not display_name or not display_name.strip():
        raise ValueError("display_name is required to issue a QR token")

    issued_at = as_utc(now)
    # payload timestamps carry millisecond precision
    issued_at = issued_at.replace(microsecond=(issued_at.microsecond // 1000) * 1000)

    return IssuedToken(
        token=_new_token_value(customer_id),
        customer_id=str(customer_id),
        display_name=display_name,
        issued_at=issued_at,
        expires_at=issued_at + QR_VALIDITY,
    )


class QrTokenIssuer:
    """
    Holds the token a customer's device is currently displaying.

    The token is re-minted once the refresh interval (the validity window)
    has elapsed, so a displayed code is never past its expiry, and on demand
    through refresh().
    """

    def __init__(self, customer_id, display_name: str, refresh_interval: timedelta = QR_VALIDITY):
        self.customer_id = customer_id
        self.display_name = display_name
        self.refresh_interval = refresh_interval
        self._current: IssuedToken | None = None

    def current(self, now: datetime | None = None) -> IssuedToken:
        now = as_utc(now)
        if self._current is None or now - self._current.issued_at >= self.refresh_interval:
            self._current = issue_token(self.customer_id, self.display_name, now=now)
        return self._current

    def refresh(self, now: datetime | None = None) -> IssuedToken:
        self._current = issue_token(self.customer_id, self.display_name, now=now)
        return self._current
