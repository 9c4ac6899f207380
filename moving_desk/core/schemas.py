"""
Pydantic 스키마 정의

API 요청/응답 스키마 및 경계 검증
"""

from datetime import datetime
from typing import Optional, Dict, Any, Type, TypeVar, Union
from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .models import LeadChannel, VolumeCategory, BookingStatus, PaymentStatus
from .exceptions import ValidationError

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def parse_payload(
    schema: Type[SchemaT],
    data: Union[SchemaT, Dict[str, Any], None],
) -> SchemaT:
    """
    요청 데이터를 스키마로 검증

    pydantic 검증 오류는 첫 번째 위반 필드를 담은 ValidationError로 변환합니다.
    """
    if isinstance(data, schema):
        return data
    if data is None:
        data = {}
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        errors = e.errors()
        first = errors[0] if errors else {}
        loc = first.get("loc") or ()
        field = ".".join(str(part) for part in loc) or None
        raise ValidationError(field, first.get("msg", "invalid payload")) from e


# =============================================================================
# Lead
# =============================================================================

class LeadCreate(BaseModel):
    """리드 생성 요청 (접수 폼)"""
    channel: LeadChannel = Field(..., description="유입 채널")
    name: str = Field(..., min_length=1, description="고객 이름")
    phone: str = Field(..., min_length=1, description="연락처")
    origin: Optional[Dict[str, Any]] = Field(default=None, description="출발지")
    dest: Optional[Dict[str, Any]] = Field(default=None, description="도착지")
    floor_from: Optional[int] = Field(default=None, ge=0, description="출발지 층수")
    floor_to: Optional[int] = Field(default=None, ge=0, description="도착지 층수")
    elev_from: Optional[bool] = Field(default=None, description="출발지 엘리베이터 유무")
    elev_to: Optional[bool] = Field(default=None, description="도착지 엘리베이터 유무")
    volume: Optional[VolumeCategory] = Field(default=None, description="이삿짐 규모 (S/M/L)")
    preferred_ts: Optional[datetime] = Field(default=None, description="희망 일시")

    class Config:
        use_enum_values = True
        json_schema_extra = {
            "example": {
                "channel": "kakao",
                "name": "김소영",
                "phone": "010-1234-5678",
                "origin": {"address": "서울시 강남구"},
                "dest": {"address": "서울시 서초구"},
                "floor_from": 3,
                "floor_to": 5,
                "elev_from": False,
                "elev_to": True,
                "volume": "M",
            }
        }


class LeadUpdate(BaseModel):
    """리드 부분 수정 요청"""
    channel: Optional[LeadChannel] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    origin: Optional[Dict[str, Any]] = None
    dest: Optional[Dict[str, Any]] = None
    floor_from: Optional[int] = Field(default=None, ge=0)
    floor_to: Optional[int] = Field(default=None, ge=0)
    elev_from: Optional[bool] = None
    elev_to: Optional[bool] = None
    volume: Optional[VolumeCategory] = None
    preferred_ts: Optional[datetime] = None

    class Config:
        use_enum_values = True


class LeadResponse(BaseModel):
    """리드 응답"""
    id: str
    merchant_id: str
    channel: str
    name: Optional[str] = None
    phone: Optional[str] = None
    origin: Optional[Dict[str, Any]] = None
    dest: Optional[Dict[str, Any]] = None
    floor_from: Optional[int] = None
    floor_to: Optional[int] = None
    elev_from: Optional[bool] = None
    elev_to: Optional[bool] = None
    volume: Optional[str] = None
    preferred_ts: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


# =============================================================================
# Booking
# =============================================================================

class BookingCreate(BaseModel):
    """예약 직접 생성 요청"""
    lead_id: Optional[str] = None
    price_min: Optional[int] = None
    price_max: Optional[int] = None
    slot_start: Optional[datetime] = None
    slot_end: Optional[datetime] = None
    status: BookingStatus = BookingStatus.TENTATIVE
    deposit_amount: Optional[int] = Field(default=None, ge=0)
    deposit_tx_id: Optional[str] = None

    class Config:
        use_enum_values = True
        validate_default = True


class BookingUpdate(BaseModel):
    """예약 부분 수정 요청"""
    price_min: Optional[int] = None
    price_max: Optional[int] = None
    slot_start: Optional[datetime] = None
    slot_end: Optional[datetime] = None
    status: Optional[BookingStatus] = None
    deposit_amount: Optional[int] = Field(default=None, ge=0)
    deposit_tx_id: Optional[str] = None

    class Config:
        use_enum_values = True


class BookingResponse(BaseModel):
    """예약 응답"""
    id: str
    lead_id: Optional[str] = None
    price_min: Optional[int] = None
    price_max: Optional[int] = None
    slot_start: Optional[datetime] = None
    slot_end: Optional[datetime] = None
    status: str
    deposit_amount: Optional[int] = None
    deposit_tx_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


# =============================================================================
# Quote
# =============================================================================

class QuoteRequest(BaseModel):
    """견적 생성 요청"""
    lead_id: str = Field(..., min_length=1, description="리드 ID")


class QuoteResponse(BaseModel):
    """견적 응답 (원 단위 정수)"""
    min: int
    max: int


# =============================================================================
# Payment
# =============================================================================

class PaymentCreate(BaseModel):
    """결제 생성 요청"""
    booking_id: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0, description="금액 (원)")
    status: PaymentStatus = PaymentStatus.PENDING
    toss_payment_key: Optional[str] = None
    toss_order_id: Optional[str] = None

    class Config:
        use_enum_values = True
        validate_default = True


class PaymentUpdate(BaseModel):
    """결제 부분 수정 요청"""
    amount: Optional[int] = Field(default=None, ge=0)
    status: Optional[PaymentStatus] = None
    toss_payment_key: Optional[str] = None
    toss_order_id: Optional[str] = None

    class Config:
        use_enum_values = True


class PaymentCallback(BaseModel):
    """토스 결제 승인 콜백 (paymentKey/orderId 표기도 허용)"""
    payment_key: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("payment_key", "paymentKey")
    )
    order_id: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("order_id", "orderId")
    )
    amount: int = Field(..., ge=0)


class PaymentResponse(BaseModel):
    """결제 응답"""
    id: str
    booking_id: str
    amount: int
    status: str
    toss_payment_key: Optional[str] = None
    toss_order_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


# =============================================================================
# Pricing rule
# =============================================================================

class PricingRuleUpdate(BaseModel):
    """요금 규칙 수정 요청"""
    base_fee: Optional[int] = Field(default=None, ge=0)
    per_km: Optional[int] = Field(default=None, ge=0)
    per_floor: Optional[int] = Field(default=None, ge=0)
    volume_coeff: Optional[Dict[str, float]] = None
    surge_rules: Optional[Dict[str, Any]] = None

    @field_validator("volume_coeff")
    @classmethod
    def check_volume_coeff(cls, value):
        if value is None:
            return value
        allowed = {v.value for v in VolumeCategory}
        for key, coeff in value.items():
            if key not in allowed:
                raise ValueError(f"unknown volume category: {key}")
            if coeff < 0:
                raise ValueError(f"coefficient for {key} must be >= 0")
        return value


class PricingRuleResponse(BaseModel):
    """요금 규칙 응답"""
    merchant_id: str
    base_fee: int
    per_km: int
    per_floor: int
    volume_coeff: Dict[str, float]
    surge_rules: Dict[str, Any] = {}

    class Config:
        from_attributes = True


# =============================================================================
# Activity / Metrics
# =============================================================================

class ActivityResponse(BaseModel):
    """활동 피드 항목"""
    id: str
    type: str
    description: str
    entity_id: Optional[str] = None
    entity_type: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class MetricsResponse(BaseModel):
    """대시보드 지표"""
    total_leads: int = Field(default=0, description="전체 리드 수")
    confirmed_bookings: int = Field(default=0, description="확정 예약 수")
    revenue: int = Field(default=0, description="결제 완료 금액 (원)")
    conversion_rate: int = Field(default=0, description="전환율 (%)")
    leads_growth: int = Field(default=0, description="리드 증감률 (%)")
    bookings_growth: int = Field(default=0, description="확정 예약 증감률 (%)")
    revenue_growth: int = Field(default=0, description="매출 증감률 (%)")
    conversion_change: int = Field(default=0, description="전환율 변화 (%p)")

    class Config:
        from_attributes = True

