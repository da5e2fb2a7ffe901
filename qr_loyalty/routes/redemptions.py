from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from qr_loyalty.db import get_db
from qr_loyalty.schemas.redemption import RedemptionOut, RedemptionRequest
from qr_loyalty.services.redemption_service import redeem_qr


router = APIRouter(tags=["redemptions"])


@router.post("/redemptions", response_model=RedemptionOut)
def redeem(payload: RedemptionRequest, db: Session = Depends(get_db)):
    result = redeem_qr(db, payload.qr_data, payload.amount)
    return result.as_response()


# route name used by existing operator clients
router.add_api_route(
    "/add-points",
    redeem,
    methods=["POST"],
    response_model=RedemptionOut,
    include_in_schema=False,
)
