from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from qr_loyalty.db import get_db
from qr_loyalty.models.reward import Reward
from qr_loyalty.schemas.reward import RewardCreate, RewardOut, RewardRedeemOut, RewardRedeemRequest
from qr_loyalty.services.reward_service import get_active_reward, redeem_reward


router = APIRouter(prefix="/rewards", tags=["rewards"])


@router.post("", response_model=RewardOut)
def create_reward(payload: RewardCreate, db: Session = Depends(get_db)):
    reward = Reward(
        name=payload.name,
        description=payload.description,
        points_cost=payload.points_cost,
        active=payload.active,
    )
    db.add(reward)
    db.commit()
    db.refresh(reward)
    return reward


@router.post("/redeem", response_model=RewardRedeemOut)
def redeem(payload: RewardRedeemRequest, db: Session = Depends(get_db)):
    result = redeem_reward(db, payload.customer_id, payload.reward_id)
    return {
        "success": True,
        "reward_name": result.reward_name,
        "points_spent": result.points_spent,
        "new_total": result.new_total,
    }


@router.get("/{reward_id}", response_model=RewardOut)
def get_reward(reward_id: str, db: Session = Depends(get_db)):
    return get_active_reward(db, reward_id)
