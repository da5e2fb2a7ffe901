import uuid
from sqlalchemy import Column, ForeignKey, Integer, Numeric, String, TIMESTAMP, UniqueConstraint, Uuid
from qr_loyalty.db import Base, utcnow


class UsedQrCode(Base):
    __tablename__ = "used_qr_codes"

    # the unique key is what makes a token single-use under concurrent redemption
    __table_args__ = (UniqueConstraint("qr_token", name="uq_used_qr_codes_qr_token"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    qr_token = Column(String(200), nullable=False)
    customer_id = Column(Uuid(as_uuid=True), ForeignKey("customers.id"), nullable=False)

    amount_spent = Column(Numeric(10, 2), nullable=False)
    points_awarded = Column(Integer, nullable=False)

    used_at = Column(TIMESTAMP, nullable=False, default=utcnow)
