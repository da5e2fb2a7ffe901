from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Union

from uuid import UUID

from pydantic import BaseModel


class RedemptionRequest(BaseModel):
    # parsed object or the raw text read from the QR code
    qr_data: Union[Dict[str, Any], str]
    # checked by validate_amount; lax float coercion would accept true and "12.5"
    amount: Any = None


class RedemptionOut(BaseModel):
    success: bool = True
    points_added: int
    new_total: int
    amount_spent: float
    customer_name: Optional[str] = None


class QrTokenOut(BaseModel):
    customer_id: UUID
    token: str
    issued_at: datetime
    expires_at: datetime
    payload: str
    image_png_base64: Optional[str] = None


class UsedQrCodeOut(BaseModel):
    qr_token: str
    customer_id: UUID
    amount_spent: Decimal
    points_awarded: int
    used_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReconcileOut(BaseModel):
    qr_token: str
    new_total: int
