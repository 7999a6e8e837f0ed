import uuid
from sqlalchemy import Column, String, Boolean, DECIMAL, Integer, ForeignKey, Text, Uuid
from sqlalchemy.orm import relationship
from cinema.db.session import Base
from cinema.db.types import UTCDateTime, utcnow


class PromoCode(Base):
    __tablename__ = "promo_codes"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code = Column(String(50), unique=True, nullable=False, index=True)  # stored upper-case
    description = Column(Text, nullable=True)
    discount_percent = Column(DECIMAL(5, 2), nullable=False)  # 0-100
    max_discount_amount = Column(DECIMAL(10, 2), nullable=True)
    max_uses = Column(Integer, nullable=True)  # NULL = unlimited
    current_uses = Column(Integer, nullable=False, default=0)
    min_purchase_amount = Column(DECIMAL(10, 2), nullable=True)
    valid_from = Column(UTCDateTime, nullable=True)
    expires_at = Column(UTCDateTime, nullable=True)
    is_active = Column(Boolean, default=True)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    created_at = Column(UTCDateTime, default=utcnow)

    creator = relationship("User")
