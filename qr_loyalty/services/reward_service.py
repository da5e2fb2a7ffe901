import logging
import uuid
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from qr_loyalty.errors import InsufficientPoints, RewardNotFound, StorageFailure
from qr_loyalty.models.reward import Reward
from qr_loyalty.services import ledger_service


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RewardRedemption:
    customer_id: uuid.UUID
    reward_id: uuid.UUID
    reward_name: str
    points_spent: int
    new_total: int


def get_active_reward(db: Session, reward_id) -> Reward:
    try:
        reward_id = uuid.UUID(str(reward_id))
    except ValueError as e:
        raise RewardNotFound() from e

    reward = (
        db.query(Reward)
        .filter(
            Reward.id == reward_id,
            Reward.active.is_(True),
        )
        .first()
    )
    if not reward:
        raise RewardNotFound()
    return reward


# ============================================================
# REDEEM REWARD (debit points against the catalog price)
# ============================================================
def redeem_reward(db: Session, customer_id, reward_id) -> RewardRedemption:
    customer = ledger_service.get_customer(db, customer_id)
    reward = get_active_reward(db, reward_id)

    balance = ledger_service.get_balance(db, customer.id)
    if balance < reward.points_cost:
        raise InsufficientPoints(
            f"You need {reward.points_cost - balance} more points for this reward"
        )

    try:
        new_total = ledger_service.apply_delta(
            db,
            customer.id,
            -reward.points_cost,
            f"Reward used: {reward.name}",
            reward_id=reward.id,
        )
        db.commit()
    except (InsufficientPoints, StorageFailure):
        # balance dropped or kept changing between the check and the update
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(
            "reward redemption failed",
            extra={"customer_id": str(customer.id), "reward_id": str(reward.id)},
        )
        raise StorageFailure() from e

    logger.info(
        "reward redeemed",
        extra={
            "customer_id": str(customer.id),
            "reward_id": str(reward.id),
            "points_spent": reward.points_cost,
            "new_total": new_total,
        },
    )

    return RewardRedemption(
        customer_id=customer.id,
        reward_id=reward.id,
        reward_name=reward.name,
        points_spent=reward.points_cost,
        new_total=new_total,
    )
