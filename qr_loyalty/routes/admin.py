from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from qr_loyalty.db import get_db
from qr_loyalty.schemas.redemption import ReconcileOut, UsedQrCodeOut
from qr_loyalty.services.ledger_service import find_unapplied_redemptions, reconcile_redemption


router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/reconciliation", response_model=list[UsedQrCodeOut])
def list_unapplied_redemptions(db: Session = Depends(get_db)):
    return find_unapplied_redemptions(db)


@router.post("/reconciliation/{qr_token}", response_model=ReconcileOut)
def reconcile(qr_token: str, db: Session = Depends(get_db)):
    new_total = reconcile_redemption(db, qr_token)
    return {"qr_token": qr_token, "new_total": new_total}
