from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel


class PointTransactionOut(BaseModel):
    id: UUID
    customer_id: UUID

    points_change: int
    description: str

    qr_token: Optional[str] = None
    reward_id: Optional[UUID] = None

    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
