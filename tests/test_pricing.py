"""
견적 엔진 테스트

순수 함수이므로 저장소 없이 동작합니다.
"""

import pytest
from decimal import Decimal

from moving_desk.core.models import Lead, PricingRule
from moving_desk.core.pricing import (
    Quote,
    billable_floors,
    compute_quote,
    explain_quote,
    volume_coefficient,
)


def make_lead(**kwargs) -> Lead:
    defaults = {
        "merchant_id": "m1",
        "channel": "kakao",
        "floor_from": 0,
        "floor_to": 0,
        "elev_from": False,
        "elev_to": False,
        "volume": "M",
    }
    defaults.update(kwargs)
    return Lead(**defaults)


@pytest.fixture
def rule() -> PricingRule:
    return PricingRule(merchant_id="m1")


class TestComputeQuote:
    """견적 계산 테스트"""

    def test_ground_floor_medium_volume(self, rule):
        """기본 요금 + 거리, 중형 이사"""
        quote = compute_quote(make_lead(), rule, 10)

        # 220000 * 1.15 = 253000
        assert quote == Quote(min=227700, max=290950)

    def test_large_volume_with_elevators(self, rule):
        """2층 → 7층, 양쪽 엘리베이터, 대형"""
        lead = make_lead(floor_from=2, floor_to=7, elev_from=True, elev_to=True, volume="L")

        quote = compute_quote(lead, rule, 10)

        # (200000 + 20000 + 7 * 10000) * 1.35 = 391500
        assert quote.min == 352350
        assert quote.max == 450225

    def test_quote_values_are_int(self, rule):
        quote = compute_quote(make_lead(volume="S"), rule, 12.5)

        assert isinstance(quote.min, int)
        assert isinstance(quote.max, int)
        assert quote.min <= quote.max

    def test_rounds_half_up(self):
        """밴드 계산 결과 .5는 올림"""
        rule = PricingRule(merchant_id="m1", base_fee=5, per_km=0, per_floor=0, volume_coeff={"M": 1})

        quote = compute_quote(make_lead(), rule, 0)

        # 5 * 0.9 = 4.5 -> 5, 5 * 1.15 = 5.75 -> 6
        assert quote == Quote(min=5, max=6)

    def test_distance_monotonic(self, rule):
        """거리가 늘어나면 견적이 줄지 않음"""
        lead = make_lead(floor_from=3, floor_to=1)
        previous = compute_quote(lead, rule, 0)

        for km in [0.5, 1, 7.3, 10, 25, 100]:
            quote = compute_quote(lead, rule, km)
            assert quote.min >= previous.min
            assert quote.max >= previous.max
            previous = quote

    def test_to_dict(self, rule):
        assert compute_quote(make_lead(), rule, 10).to_dict() == {"min": 227700, "max": 290950}


class TestBillableFloors:
    """할증 층수 테스트"""

    def test_no_elevator(self):
        assert billable_floors(make_lead(floor_from=3, floor_to=5)) == 8

    def test_elevator_each_side_subtracts_one(self):
        assert billable_floors(make_lead(floor_from=3, floor_to=5, elev_to=True)) == 7
        assert billable_floors(make_lead(floor_from=3, floor_to=5, elev_from=True, elev_to=True)) == 6

    def test_negative_floors_not_clamped(self, rule):
        """1층 미만 + 엘리베이터는 음수 층수 (할인 효과)"""
        lead = make_lead(elev_from=True, elev_to=True)

        assert billable_floors(lead) == -2

        # (200000 + 20000 - 20000) * 1.15 = 230000
        assert compute_quote(lead, rule, 10) == Quote(min=207000, max=264500)

    def test_missing_floors_count_as_zero(self):
        assert billable_floors(make_lead(floor_from=None, floor_to=None)) == 0


class TestVolumeCoefficient:
    """짐 규모 계수 테스트"""

    def test_missing_volume_uses_medium(self, rule):
        assert volume_coefficient(make_lead(volume=None), rule) == Decimal("1.15")
        assert compute_quote(make_lead(volume=None), rule, 10) == compute_quote(make_lead(), rule, 10)

    def test_unknown_volume_uses_one(self, rule):
        """테이블에 없는 규모는 계수 1"""
        quote = compute_quote(make_lead(volume="X"), rule, 10)

        assert quote == Quote(min=198000, max=253000)
        assert quote.max < compute_quote(make_lead(volume="M"), rule, 10).max

    def test_missing_medium_in_table(self):
        """M 계수가 없는 규칙에서 규모 미지정은 계수 1"""
        rule = PricingRule(merchant_id="m1", volume_coeff={"S": 1, "L": 1.35})

        assert volume_coefficient(make_lead(volume=None), rule) == Decimal("1")


class TestExplainQuote:
    """견적 내역 테스트"""

    def test_breakdown(self, rule):
        lead = make_lead(floor_from=2, floor_to=7, elev_from=True, elev_to=True, volume="L")

        breakdown = explain_quote(lead, rule, 10)

        assert breakdown.billable_floors == 7
        assert breakdown.volume == "L"
        assert breakdown.volume_coeff == Decimal("1.35")
        assert breakdown.base_price == Decimal("290000")
        assert breakdown.final_price == Decimal("391500")
        assert breakdown.quote == compute_quote(lead, rule, 10)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
