import uuid
from sqlalchemy import Column, String, Integer, Boolean, TIMESTAMP, Uuid
from qr_loyalty.db import Base, utcnow


class Reward(Base):
    __tablename__ = "rewards"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    name = Column(String(100), nullable=False)
    description = Column(String(255))

    points_cost = Column(Integer, nullable=False)

    active = Column(Boolean, nullable=False, default=True)

    created_at = Column(TIMESTAMP, default=utcnow)
