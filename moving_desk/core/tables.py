"""
SQL 테이블 정의

SQLRepository가 사용하는 SQLAlchemy 모델
"""
from sqlalchemy import (
    Column, String, Integer, DateTime, Text, Boolean,
    ForeignKey, JSON, Index
)
from sqlalchemy.orm import declarative_base

from .models import (
    utcnow,
    new_id,
    BookingStatus,
    PaymentStatus,
    DEFAULT_BASE_FEE,
    DEFAULT_PER_KM,
    DEFAULT_PER_FLOOR,
    default_volume_coeff,
)

Base = declarative_base()


class MerchantRow(Base):
    """이사업체"""
    __tablename__ = "merchants"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<MerchantRow(id={self.id}, name={self.name})>"


class PricingRuleRow(Base):
    """요금 규칙 (업체당 하나)"""
    __tablename__ = "pricing_rules"

    merchant_id = Column(String(36), ForeignKey("merchants.id"), primary_key=True)
    base_fee = Column(Integer, nullable=False, default=DEFAULT_BASE_FEE)
    per_km = Column(Integer, nullable=False, default=DEFAULT_PER_KM)
    per_floor = Column(Integer, nullable=False, default=DEFAULT_PER_FLOOR)
    volume_coeff = Column(JSON, nullable=False, default=default_volume_coeff)
    surge_rules = Column(JSON, nullable=False, default=dict)


class LeadRow(Base):
    """고객 문의"""
    __tablename__ = "leads"

    id = Column(String(36), primary_key=True, default=new_id)
    merchant_id = Column(String(36), ForeignKey("merchants.id"), nullable=False, index=True)
    channel = Column(String(20), nullable=False)
    name = Column(Text)
    phone = Column(Text)

    # 주소 (자유 형식 JSON)
    origin = Column(JSON)
    dest = Column(JSON)

    floor_from = Column(Integer)
    floor_to = Column(Integer)
    elev_from = Column(Boolean)
    elev_to = Column(Boolean)
    volume = Column(String(1))
    preferred_ts = Column(DateTime)

    created_at = Column(DateTime, default=utcnow, index=True)

    __table_args__ = (
        Index('idx_lead_merchant_created', 'merchant_id', 'created_at'),
    )


class BookingRow(Base):
    """예약 (lead_id는 약한 참조, cascade 없음)"""
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=new_id)
    lead_id = Column(String(36), ForeignKey("leads.id"), nullable=True, index=True)
    price_min = Column(Integer)
    price_max = Column(Integer)
    slot_start = Column(DateTime)
    slot_end = Column(DateTime)
    status = Column(String(20), default=BookingStatus.TENTATIVE.value)
    deposit_amount = Column(Integer)
    deposit_tx_id = Column(Text)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        Index('idx_booking_status', 'status'),
    )


class PaymentRow(Base):
    """결제"""
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=new_id)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    amount = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    toss_payment_key = Column(Text)
    toss_order_id = Column(String(100), index=True)
    created_at = Column(DateTime, default=utcnow)


class ActivityRow(Base):
    """활동 피드"""
    __tablename__ = "activities"

    # 같은 시각 활동의 기록 순서
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), unique=True, nullable=False, default=new_id)
    merchant_id = Column(String(36), ForeignKey("merchants.id"), nullable=False)
    type = Column(String(50), nullable=False)
    description = Column(Text, nullable=False)
    entity_id = Column(String(36))
    entity_type = Column(String(30))
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        Index('idx_activity_merchant_created', 'merchant_id', 'created_at'),
    )
