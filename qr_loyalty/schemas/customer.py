from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel, Field


class CustomerEnsure(BaseModel):
    id: UUID
    display_name: str = Field(default="", max_length=100)


class CustomerOut(BaseModel):
    id: UUID
    display_name: str
    points: int

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LedgerCheckOut(BaseModel):
    customer_id: UUID
    balance: int
    transactions_total: int
    consistent: bool
