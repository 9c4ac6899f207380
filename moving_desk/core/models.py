"""
이사 업무 도메인 모델 정의

저장소 구현과 무관하게 사용하는 레코드(dataclass)와 상태 Enum
"""
import uuid
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any


def utcnow() -> datetime:
    """naive UTC 현재 시각"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


class LeadChannel(str, Enum):
    """리드 유입 채널"""
    KAKAO = "kakao"         # 카카오톡 채널
    WEBSITE = "website"     # 홈페이지 문의
    PHONE = "phone"         # 전화 문의
    REFERRAL = "referral"   # 지인 소개


class VolumeCategory(str, Enum):
    """이삿짐 규모"""
    S = "S"
    M = "M"
    L = "L"


class BookingStatus(str, Enum):
    """예약 상태"""
    TENTATIVE = "tentative"   # 가예약 (견적 전)
    QUOTED = "quoted"         # 견적 발송됨
    CONFIRMED = "confirmed"   # 예약 확정 (계약금 입금 등)
    CANCELLED = "cancelled"   # 취소


class PaymentStatus(str, Enum):
    """결제 상태"""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


DEFAULT_BASE_FEE = 200000
DEFAULT_PER_KM = 2000
DEFAULT_PER_FLOOR = 10000


def default_volume_coeff() -> Dict[str, float]:
    return {"S": 1, "M": 1.15, "L": 1.35}


@dataclass
class Merchant:
    """이사업체 (테넌트)"""
    name: str
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PricingRule:
    """
    업체별 요금 규칙

    업체당 하나만 존재하며 삭제되지 않습니다.
    """
    merchant_id: str
    base_fee: int = DEFAULT_BASE_FEE
    per_km: int = DEFAULT_PER_KM
    per_floor: int = DEFAULT_PER_FLOOR
    volume_coeff: Dict[str, float] = field(default_factory=default_volume_coeff)
    surge_rules: Dict[str, Any] = field(default_factory=dict)  # 예약 필드 (미사용)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Lead:
    """고객 문의 (견적 요청 전 단계)"""
    merchant_id: str
    channel: str
    name: Optional[str] = None
    phone: Optional[str] = None

    # 출발지/도착지 (주소 등 자유 형식)
    origin: Optional[Dict[str, Any]] = None
    dest: Optional[Dict[str, Any]] = None

    # 층수 / 엘리베이터
    floor_from: Optional[int] = None
    floor_to: Optional[int] = None
    elev_from: Optional[bool] = None
    elev_to: Optional[bool] = None

    volume: Optional[str] = None
    preferred_ts: Optional[datetime] = None

    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Booking:
    """
    예약

    리드와 약한 참조(lead_id) 관계입니다. 견적 경로에서는 리드당
    예약이 하나라고 가정합니다.
    """
    lead_id: Optional[str] = None
    price_min: Optional[int] = None
    price_max: Optional[int] = None
    slot_start: Optional[datetime] = None
    slot_end: Optional[datetime] = None
    status: str = BookingStatus.TENTATIVE.value
    deposit_amount: Optional[int] = None
    deposit_tx_id: Optional[str] = None

    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)

    @property
    def is_quoted(self) -> bool:
        return self.price_min is not None and self.price_max is not None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Payment:
    """결제 (토스 결제 연동)"""
    booking_id: str
    amount: int
    status: str = PaymentStatus.PENDING.value
    toss_payment_key: Optional[str] = None
    toss_order_id: Optional[str] = None

    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Activity:
    """활동 피드 항목 (추가 전용)"""
    merchant_id: str
    type: str
    description: str
    entity_id: Optional[str] = None
    entity_type: Optional[str] = None

    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
