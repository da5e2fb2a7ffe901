from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel, Field


class RewardCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    points_cost: int = Field(gt=0)
    active: bool = True


class RewardOut(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    points_cost: int
    active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RewardRedeemRequest(BaseModel):
    customer_id: UUID
    reward_id: UUID


class RewardRedeemOut(BaseModel):
    success: bool = True
    reward_name: str
    points_spent: int
    new_total: int
