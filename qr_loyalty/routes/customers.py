import base64

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from qr_loyalty.db import get_db
from qr_loyalty.schemas.customer import CustomerEnsure, CustomerOut, LedgerCheckOut
from qr_loyalty.schemas.redemption import QrTokenOut
from qr_loyalty.schemas.transaction import PointTransactionOut
from qr_loyalty.services import ledger_service
from qr_loyalty.services.token_codec import render_qr_png
from qr_loyalty.services.token_issuer import issue_token


router = APIRouter(prefix="/customers", tags=["customers"])


@router.post("", response_model=CustomerOut)
def ensure_customer(payload: CustomerEnsure, db: Session = Depends(get_db)):
    return ledger_service.ensure_customer(db, payload.id, payload.display_name)


@router.get("/{customer_id}", response_model=CustomerOut)
def get_customer(customer_id: str, db: Session = Depends(get_db)):
    return ledger_service.get_customer(db, customer_id)


@router.get("/{customer_id}/transactions", response_model=list[PointTransactionOut])
def list_customer_transactions(
    customer_id: str,
    limit: int = 50,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    return ledger_service.list_transactions(db, customer_id, limit=limit, offset=offset)


@router.get("/{customer_id}/ledger-check", response_model=LedgerCheckOut)
def check_customer_ledger(customer_id: str, db: Session = Depends(get_db)):
    check = ledger_service.check_ledger(db, customer_id)
    return {
        "customer_id": check.customer_id,
        "balance": check.balance,
        "transactions_total": check.transactions_total,
        "consistent": check.consistent,
    }


@router.get("/{customer_id}/qr", response_model=QrTokenOut)
def issue_customer_qr(customer_id: str, image: bool = False, db: Session = Depends(get_db)):
    customer = ledger_service.get_customer(db, customer_id)

    issued = issue_token(customer.id, customer.display_name or "Customer")
    payload = issued.payload

    return {
        "customer_id": customer.id,
        "token": issued.token,
        "issued_at": issued.issued_at,
        "expires_at": issued.expires_at,
        "payload": payload,
        "image_png_base64": base64.b64encode(render_qr_png(payload)).decode() if image else None,
    }
