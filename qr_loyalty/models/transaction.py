import uuid
from sqlalchemy import Column, ForeignKey, Index, Integer, String, TIMESTAMP, Uuid
from qr_loyalty.db import Base, utcnow


class PointTransaction(Base):
    __tablename__ = "transactions"

    __table_args__ = (Index("ix_transactions_customer_created", "customer_id", "created_at"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    customer_id = Column(Uuid(as_uuid=True), ForeignKey("customers.id"), nullable=False)

    points_change = Column(Integer, nullable=False)  # signed: credit > 0, debit < 0
    description = Column(String(255), nullable=False)

    # set for purchase credits, matches used_qr_codes.qr_token
    qr_token = Column(String(200), nullable=True, unique=True)
    # set for reward debits
    reward_id = Column(Uuid(as_uuid=True), ForeignKey("rewards.id"), nullable=True)

    created_at = Column(TIMESTAMP, nullable=False, default=utcnow)
