import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from qr_loyalty.db import utcnow
from qr_loyalty.errors import (
    CustomerNotFound,
    InsufficientPoints,
    ReconciliationConflict,
    StorageFailure,
    TokenNotRedeemed,
)
from qr_loyalty.models.customer import Customer
from qr_loyalty.models.transaction import PointTransaction
from qr_loyalty.models.used_qr_code import UsedQrCode


logger = logging.getLogger(__name__)

# compare-and-swap attempts before giving up on a contended balance
MAX_BALANCE_UPDATE_ATTEMPTS = 5


@dataclass(frozen=True)
class LedgerCheck:
    customer_id: uuid.UUID
    balance: int
    transactions_total: int

    @property
    def consistent(self) -> bool:
        return self.balance == self.transactions_total


def parse_customer_id(customer_id) -> uuid.UUID:
    if isinstance(customer_id, uuid.UUID):
        return customer_id
    try:
        return uuid.UUID(str(customer_id))
    except (TypeError, ValueError) as e:
        raise CustomerNotFound() from e


def get_customer(db: Session, customer_id) -> Customer:
    customer = db.get(Customer, parse_customer_id(customer_id))
    if not customer:
        raise CustomerNotFound()
    return customer


def ensure_customer(db: Session, customer_id, display_name: str = "") -> Customer:
    """Return the customer, creating it with zero points on first access."""
    customer_id = parse_customer_id(customer_id)
    customer = db.get(Customer, customer_id)
    if customer:
        return customer

    customer = Customer(id=customer_id, display_name=display_name or "", points=0)
    db.add(customer)
    try:
        db.commit()
    except IntegrityError:
        # created concurrently by another request
        db.rollback()
        return get_customer(db, customer_id)
    db.refresh(customer)
    return customer


def get_balance(db: Session, customer_id) -> int:
    points = (
        db.query(Customer.points)
        .filter(Customer.id == parse_customer_id(customer_id))
        .scalar()
    )
    if points is None:
        raise CustomerNotFound()
    return int(points)


def apply_delta(
    db: Session,
    customer_id,
    delta: int,
    description: str,
    *,
    qr_token: str | None = None,
    reward_id=None,
) -> int:
    """
    Move a customer's balance by ``delta`` and append the matching
    transaction row. Flushes only; the caller owns the commit.

    The balance is written with ``UPDATE ... WHERE points = <read value>`` so
    concurrent mutations for one customer cannot overwrite each other.
    """
    customer_id = parse_customer_id(customer_id)
    delta = int(delta)

    for _ in range(MAX_BALANCE_UPDATE_ATTEMPTS):
        current = get_balance(db, customer_id)
        new_points = current + delta
        if new_points < 0:
            raise InsufficientPoints(
                f"Not enough points: {current} available, {-delta} required"
            )

        updated = (
            db.query(Customer)
            .filter(Customer.id == customer_id, Customer.points == current)
            .update(
                {Customer.points: new_points, Customer.updated_at: utcnow()},
                synchronize_session=False,
            )
        )
        if updated == 1:
            break

        logger.debug(
            "balance changed concurrently; retrying",
            extra={"customer_id": str(customer_id), "read_points": current},
        )
    else:
        raise StorageFailure("Balance is being updated concurrently, try again")

    db.add(
        PointTransaction(
            customer_id=customer_id,
            points_change=delta,
            description=description,
            qr_token=qr_token,
            reward_id=reward_id,
        )
    )
    db.flush()

    # keep any loaded Customer in step with the row we just wrote
    customer = db.get(Customer, customer_id)
    if customer is not None:
        db.expire(customer, ["points", "updated_at"])

    return new_points


def list_transactions(db: Session, customer_id, limit: int = 50, offset: int = 0):
    customer = get_customer(db, customer_id)

    limit = max(1, min(limit, 200))
    offset = max(0, offset)

    return (
        db.query(PointTransaction)
        .filter(PointTransaction.customer_id == customer.id)
        .order_by(PointTransaction.created_at.desc(), PointTransaction.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def check_ledger(db: Session, customer_id) -> LedgerCheck:
    customer_id = parse_customer_id(customer_id)
    balance = get_balance(db, customer_id)

    total = (
        db.query(func.coalesce(func.sum(PointTransaction.points_change), 0))
        .filter(PointTransaction.customer_id == customer_id)
        .scalar()
    )

    return LedgerCheck(customer_id=customer_id, balance=balance, transactions_total=int(total or 0))


# ============================================================
# RECONCILIATION (used QR codes whose credit never landed)
# ============================================================

def find_unapplied_redemptions(db: Session):
    return (
        db.query(UsedQrCode)
        .outerjoin(PointTransaction, PointTransaction.qr_token == UsedQrCode.qr_token)
        .filter(PointTransaction.id.is_(None))
        .order_by(UsedQrCode.used_at.asc())
        .all()
    )


def purchase_description(amount) -> str:
    return f"Purchase: {amount}"


def reconcile_redemption(db: Session, qr_token: str) -> int:
    """
    Apply the credit for a used QR code that has none.

    Returns the customer's new balance. Raises TokenNotRedeemed when the
    token was never redeemed and ReconciliationConflict when its credit
    already exists.
    """
    used = db.query(UsedQrCode).filter(UsedQrCode.qr_token == qr_token).first()
    if not used:
        raise TokenNotRedeemed(f"QR token {qr_token!r} was never redeemed")

    already = db.query(PointTransaction.id).filter(PointTransaction.qr_token == qr_token).first()
    if already:
        raise ReconciliationConflict(f"QR token {qr_token!r} is already credited")

    try:
        new_total = apply_delta(
            db,
            used.customer_id,
            used.points_awarded,
            purchase_description(used.amount_spent),
            qr_token=qr_token,
        )
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ReconciliationConflict(f"QR token {qr_token!r} is already credited") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("reconciliation failed", extra={"qr_token": qr_token})
        raise StorageFailure() from e

    logger.info(
        "redemption reconciled",
        extra={
            "qr_token": qr_token,
            "customer_id": str(used.customer_id),
            "points_added": used.points_awarded,
            "new_total": new_total,
        },
    )
    return new_total
