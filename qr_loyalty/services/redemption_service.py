import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from qr_loyalty.errors import (
    IncompleteToken,
    LoyaltyError,
    MalformedPayload,
    PartialCommit,
    StorageFailure,
    TokenAlreadyUsed,
    TokenExpired,
)
from qr_loyalty.models.customer import Customer
from qr_loyalty.models.used_qr_code import UsedQrCode
from qr_loyalty.services import ledger_service
from qr_loyalty.services.token_codec import EPOCH, decode_payload
from qr_loyalty.services.token_issuer import (
    QR_VALIDITY,
    as_utc,
    compute_points,
    validate_amount,
)


logger = logging.getLogger(__name__)

# tolerated clock drift between the customer's device and this service
MAX_CLOCK_SKEW = timedelta(seconds=60)

_CENTS = Decimal("0.01")


@dataclass(frozen=True)
class RedemptionResult:
    customer_id: str
    customer_name: str | None
    amount_spent: Decimal
    points_added: int
    new_total: int

    def as_response(self) -> dict:
        return {
            "success": True,
            "points_added": self.points_added,
            "new_total": self.new_total,
            "amount_spent": float(self.amount_spent),
            "customer_name": self.customer_name,
        }


def _find_used_token(db: Session, token: str):
    try:
        return db.query(UsedQrCode.id).filter(UsedQrCode.qr_token == token).first()
    except SQLAlchemyError as e:
        logger.exception("used QR lookup failed", extra={"qr_token": token})
        raise StorageFailure() from e


def _find_customer(db: Session, customer_id: str) -> Customer:
    try:
        return ledger_service.get_customer(db, customer_id)
    except SQLAlchemyError as e:
        logger.exception("customer lookup failed", extra={"customer_id": customer_id})
        raise StorageFailure() from e


def redeem_qr(db: Session, qr_data, amount, now: datetime | None = None) -> RedemptionResult:
    """
    Credit a purchase to the customer a scanned QR code belongs to.

    All validation happens before any write. The used-token row is then
    committed on its own: its unique key decides which of two concurrent
    redemptions of the same code wins. The point credit follows; if it fails
    the token stays consumed and PartialCommit is raised for reconciliation.
    """
    now = as_utc(now)

    try:
        # 1. amount
        amount_value = validate_amount(amount)

        # 2. payload shape
        payload = decode_payload(qr_data)

        # 3. required values
        if not payload.customer_id or not payload.token or payload.issued_at == EPOCH:
            raise IncompleteToken()

        # 4. single use
        if _find_used_token(db, payload.token):
            raise TokenAlreadyUsed()

        # 5. validity window
        age = now - payload.issued_at
        if age > QR_VALIDITY:
            raise TokenExpired()
        if age < -MAX_CLOCK_SKEW:
            raise MalformedPayload("QR timestamp is in the future")

        # 6. customer
        customer = _find_customer(db, payload.customer_id)
    except LoyaltyError as e:
        logger.warning(
            "QR redemption rejected",
            extra={"reason": type(e).__name__, "amount": str(amount)},
        )
        raise

    points = compute_points(amount_value)
    amount_spent = amount_value.quantize(_CENTS)
    log_ctx = {
        "qr_token": payload.token,
        "customer_id": str(customer.id),
        "amount": str(amount_spent),
        "points": points,
    }

    # A. consume the token
    db.add(
        UsedQrCode(
            qr_token=payload.token,
            customer_id=customer.id,
            amount_spent=amount_spent,
            points_awarded=points,
        )
    )
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning("QR redemption lost race on used token", extra=log_ctx)
        raise TokenAlreadyUsed() from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("failed to mark QR code as used", extra={**log_ctx, "step": "mark_used"})
        raise StorageFailure() from e

    # B. credit the points
    try:
        new_total = ledger_service.apply_delta(
            db,
            customer.id,
            points,
            ledger_service.purchase_description(amount_spent),
            qr_token=payload.token,
        )
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(
            "QR code consumed but points were not credited; needs reconciliation",
            extra={**log_ctx, "step": "credit_points", "error": repr(e)},
            exc_info=True,
        )
        raise PartialCommit(qr_token=payload.token, customer_id=customer.id, step="credit_points") from e

    logger.info("QR redemption credited", extra={**log_ctx, "new_total": new_total})

    return RedemptionResult(
        customer_id=str(customer.id),
        customer_name=payload.display_name,
        amount_spent=amount_spent,
        points_added=points,
        new_total=new_total,
    )
