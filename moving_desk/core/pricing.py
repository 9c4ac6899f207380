"""
견적 엔진

리드 정보와 업체 요금 규칙으로 가격 범위를 계산합니다.
순수 함수이며 부수효과가 없습니다.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from .models import Lead, PricingRule, VolumeCategory

# 견적 밴드 (-10% / +15%), 고정 영업 정책
QUOTE_BAND_MIN = Decimal("0.9")
QUOTE_BAND_MAX = Decimal("1.15")

DEFAULT_VOLUME = VolumeCategory.M.value

Number = Union[int, float, Decimal]


@dataclass(frozen=True)
class Quote:
    """견적 범위 (원 단위 정수)"""
    min: int
    max: int

    def to_dict(self) -> dict:
        return {"min": self.min, "max": self.max}


@dataclass(frozen=True)
class QuoteBreakdown:
    """견적 계산 내역"""
    billable_floors: int
    volume: str
    volume_coeff: Decimal
    distance_km: Decimal
    base_price: Decimal
    final_price: Decimal
    quote: Quote


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # float는 문자열을 거쳐 변환해야 1.15 같은 값이 정확히 표현됨
    return Decimal(str(value))


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def billable_floors(lead: Lead) -> int:
    """
    할증 대상 층수

    엘리베이터가 있는 쪽은 1층씩 차감합니다. 0 미만으로 내려갈 수 있으며
    별도로 보정하지 않습니다.
    """
    floors = (lead.floor_from or 0) + (lead.floor_to or 0)
    if lead.elev_from:
        floors -= 1
    if lead.elev_to:
        floors -= 1
    return floors


def volume_coefficient(lead: Lead, rule: PricingRule) -> Decimal:
    """
    짐 규모 계수

    규모가 없으면 "M"으로 조회하고, 조회 결과가 없으면 1을 사용합니다.
    """
    key = lead.volume or DEFAULT_VOLUME
    coeff: Optional[Number] = (rule.volume_coeff or {}).get(key)
    if coeff is None:
        return Decimal("1")
    return _to_decimal(coeff)


def explain_quote(lead: Lead, rule: PricingRule, distance_km: Number) -> QuoteBreakdown:
    """견적 계산 (내역 포함)"""
    floors = billable_floors(lead)
    coeff = volume_coefficient(lead, rule)
    distance = _to_decimal(distance_km)

    base_price = (
        Decimal(rule.base_fee)
        + distance * Decimal(rule.per_km)
        + Decimal(floors) * Decimal(rule.per_floor)
    )
    final_price = base_price * coeff

    quote = Quote(
        min=round_half_up(final_price * QUOTE_BAND_MIN),
        max=round_half_up(final_price * QUOTE_BAND_MAX),
    )
    return QuoteBreakdown(
        billable_floors=floors,
        volume=lead.volume or DEFAULT_VOLUME,
        volume_coeff=coeff,
        distance_km=distance,
        base_price=base_price,
        final_price=final_price,
        quote=quote,
    )


def compute_quote(lead: Lead, rule: PricingRule, distance_km: Number) -> Quote:
    """
    견적 계산

    Args:
        lead: 리드 (층수, 엘리베이터, 짐 규모 사용)
        rule: 업체 요금 규칙
        distance_km: 출발지-도착지 거리 (km)

    Returns:
        Quote: min/max 가격 (원)
    """
    return explain_quote(lead, rule, distance_km).quote
