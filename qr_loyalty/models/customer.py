import uuid
from sqlalchemy import CheckConstraint, Column, Integer, String, TIMESTAMP, Uuid
from qr_loyalty.db import Base, utcnow


class Customer(Base):
    __tablename__ = "customers"

    __table_args__ = (CheckConstraint("points >= 0", name="ck_customers_points_non_negative"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    display_name = Column(String(100), nullable=False, default="")

    # running total; every change goes through ledger_service.apply_delta
    points = Column(Integer, nullable=False, default=0)

    created_at = Column(TIMESTAMP, default=utcnow)
    updated_at = Column(TIMESTAMP, default=utcnow, onupdate=utcnow)
