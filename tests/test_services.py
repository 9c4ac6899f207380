"""
리드/결제/업체/활동 서비스 테스트
"""

import pytest
from datetime import datetime, timedelta

from moving_desk.core.exceptions import NotFoundError, ValidationError, ConflictError
from moving_desk.core.models import Booking
from moving_desk.services import ActivityType


class TestMerchantManager:
    """업체 관리자 테스트"""

    @pytest.mark.asyncio
    async def test_create_merchant_with_default_rule(self, desk):
        merchant = await desk.merchants.create_merchant("무빙프로")

        rule = await desk.merchants.get_pricing_rule(merchant.id)
        assert rule.base_fee == 200000
        assert rule.volume_coeff["L"] == 1.35

        assert (await desk.merchants.get_merchant(merchant.id)).name == "무빙프로"
        assert [m.id for m in await desk.merchants.list_merchants()] == [merchant.id]

    @pytest.mark.asyncio
    async def test_create_merchant_with_overrides(self, desk):
        merchant = await desk.merchants.create_merchant("Busan Movers", per_km=2500)

        rule = await desk.merchants.get_pricing_rule(merchant.id)
        assert rule.per_km == 2500
        assert rule.per_floor == 10000

    @pytest.mark.asyncio
    async def test_create_merchant_requires_name(self, desk):
        with pytest.raises(ValidationError) as exc_info:
            await desk.merchants.create_merchant("  ")
        assert exc_info.value.field == "name"

    @pytest.mark.asyncio
    async def test_update_pricing_rule(self, desk, merchant):
        rule = await desk.merchants.update_pricing_rule(merchant.id, {
            "base_fee": 250000,
            "volume_coeff": {"S": 1, "M": 1.2, "L": 1.5},
        })

        assert rule.base_fee == 250000
        assert rule.per_km == 2000
        assert rule.volume_coeff == {"S": 1, "M": 1.2, "L": 1.5}

    @pytest.mark.asyncio
    async def test_update_pricing_rule_changes_quote(self, desk, merchant, sample_lead):
        await desk.merchants.update_pricing_rule(merchant.id, {"volume_coeff": {"L": 1}})

        quote = await desk.workflow.generate_quote(sample_lead.id)
        # 290000 * 1
        assert quote.min == 261000

    @pytest.mark.asyncio
    async def test_unknown_merchant(self, desk):
        with pytest.raises(NotFoundError):
            await desk.merchants.get_merchant("missing")
        with pytest.raises(NotFoundError):
            await desk.merchants.get_pricing_rule("missing")
        with pytest.raises(NotFoundError):
            await desk.merchants.update_pricing_rule("missing", {"base_fee": 1})


class TestLeadService:
    """리드 서비스 테스트"""

    @pytest.mark.asyncio
    async def test_create_lead_records_activity(self, desk, merchant, lead_payload):
        lead = await desk.leads.create_lead(merchant.id, lead_payload)

        assert lead.merchant_id == merchant.id
        assert lead.channel == "kakao"
        assert lead.volume == "L"

        activities = await desk.activities.recent(merchant.id)
        assert len(activities) == 1
        assert activities[0].type == "lead_created"
        assert activities[0].description == "New lead from kakao channel"
        assert activities[0].entity_id == lead.id

    @pytest.mark.asyncio
    async def test_create_lead_invalid(self, desk, merchant):
        with pytest.raises(ValidationError) as exc_info:
            await desk.leads.create_lead(merchant.id, {"channel": "kakao", "name": "김"})
        assert exc_info.value.field == "phone"

        assert await desk.leads.list_leads(merchant.id) == []
        assert await desk.activities.recent(merchant.id) == []

    @pytest.mark.asyncio
    async def test_create_lead_unknown_merchant(self, desk, lead_payload):
        with pytest.raises(NotFoundError):
            await desk.leads.create_lead("missing", lead_payload)

    @pytest.mark.asyncio
    async def test_list_leads_newest_first(self, desk, merchant, lead_payload):
        first = await desk.leads.create_lead(merchant.id, lead_payload)
        second = await desk.leads.create_lead(merchant.id, {**lead_payload, "name": "김소영"})
        await desk.repo.update_lead(first.id, {"created_at": datetime(2026, 1, 1)})

        leads = await desk.leads.list_leads(merchant.id)
        assert [lead.id for lead in leads] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_update_lead(self, desk, sample_lead):
        lead = await desk.leads.update_lead(sample_lead.id, {"floor_to": 3, "elev_to": False})

        assert lead.floor_to == 3
        assert lead.elev_to is False
        assert lead.name == sample_lead.name

    @pytest.mark.asyncio
    async def test_update_unknown_lead(self, desk):
        with pytest.raises(NotFoundError):
            await desk.leads.update_lead("missing", {"name": "x"})


class TestPaymentService:
    """결제 서비스 테스트"""

    async def _quoted_booking(self, desk, sample_lead) -> Booking:
        await desk.workflow.generate_quote(sample_lead.id)
        return await desk.repo.get_booking_by_lead_id(sample_lead.id)

    @pytest.mark.asyncio
    async def test_create_payment(self, desk, merchant, sample_lead):
        booking = await self._quoted_booking(desk, sample_lead)

        payment = await desk.payments.create_payment({
            "booking_id": booking.id,
            "amount": 50000,
            "toss_order_id": "order_1",
        })

        assert payment.status == "pending"
        assert [p.id for p in await desk.payments.list_payments(merchant.id)] == [payment.id]

        latest = (await desk.activities.recent(merchant.id, 1))[0]
        assert latest.type == ActivityType.PAYMENT_CREATED.value
        assert latest.entity_id == payment.id

    @pytest.mark.asyncio
    async def test_create_payment_unknown_booking(self, desk, merchant):
        with pytest.raises(NotFoundError):
            await desk.payments.create_payment({"booking_id": "missing", "amount": 1000})

    @pytest.mark.asyncio
    async def test_create_payment_negative_amount(self, desk, merchant, sample_lead):
        booking = await self._quoted_booking(desk, sample_lead)

        with pytest.raises(ValidationError) as exc_info:
            await desk.payments.create_payment({"booking_id": booking.id, "amount": -1})
        assert exc_info.value.field == "amount"

    @pytest.mark.asyncio
    async def test_gateway_callback(self, desk, merchant, sample_lead):
        """승인 콜백: 결제 완료 + 예약 계약금 기록"""
        booking = await self._quoted_booking(desk, sample_lead)
        await desk.payments.create_payment({
            "booking_id": booking.id,
            "amount": 50000,
            "toss_order_id": "order_1",
        })

        payment = await desk.payments.handle_gateway_callback("pk_123", "order_1", 50000)

        assert payment.status == "completed"
        assert payment.toss_payment_key == "pk_123"

        booking = await desk.repo.get_booking(booking.id)
        assert booking.deposit_amount == 50000
        assert booking.deposit_tx_id == "pk_123"

        latest = (await desk.activities.recent(merchant.id, 1))[0]
        assert latest.type == "payment_confirmed"
        assert latest.description == "Payment confirmed for ₩50,000"

        metrics = await desk.metrics.get_metrics(merchant.id)
        assert metrics.revenue == 50000

    @pytest.mark.asyncio
    async def test_gateway_callback_is_idempotent(self, desk, merchant, sample_lead):
        booking = await self._quoted_booking(desk, sample_lead)
        await desk.payments.create_payment({
            "booking_id": booking.id,
            "amount": 50000,
            "toss_order_id": "order_1",
        })

        await desk.payments.handle_gateway_callback("pk_123", "order_1", 50000)
        await desk.payments.handle_gateway_callback("pk_123", "order_1", 50000)

        types = [a.type for a in await desk.activities.recent(merchant.id, 50)]
        assert types.count("payment_confirmed") == 1

    @pytest.mark.asyncio
    async def test_gateway_callback_amount_mismatch(self, desk, sample_lead):
        booking = await self._quoted_booking(desk, sample_lead)
        payment = await desk.payments.create_payment({
            "booking_id": booking.id,
            "amount": 50000,
            "toss_order_id": "order_1",
        })

        with pytest.raises(ValidationError) as exc_info:
            await desk.payments.handle_gateway_callback("pk_123", "order_1", 5000)
        assert exc_info.value.field == "amount"

        assert (await desk.repo.get_payment(payment.id)).status == "pending"

    @pytest.mark.asyncio
    async def test_gateway_callback_unknown_order(self, desk):
        with pytest.raises(NotFoundError):
            await desk.payments.handle_gateway_callback("pk_123", "missing", 50000)

    @pytest.mark.asyncio
    async def test_fail_payment(self, desk, merchant, sample_lead):
        booking = await self._quoted_booking(desk, sample_lead)
        await desk.payments.create_payment({
            "booking_id": booking.id,
            "amount": 50000,
            "toss_order_id": "order_1",
        })

        payment = await desk.payments.fail_payment("order_1", "card declined")

        assert payment.status == "failed"
        latest = (await desk.activities.recent(merchant.id, 1))[0]
        assert latest.type == "payment_failed"
        assert latest.description == "Payment failed: card declined"

    @pytest.mark.asyncio
    async def test_fail_completed_payment(self, desk, sample_lead):
        booking = await self._quoted_booking(desk, sample_lead)
        await desk.payments.create_payment({
            "booking_id": booking.id,
            "amount": 50000,
            "toss_order_id": "order_1",
        })
        await desk.payments.handle_gateway_callback("pk_123", "order_1", 50000)

        with pytest.raises(ConflictError):
            await desk.payments.fail_payment("order_1")

    @pytest.mark.asyncio
    async def test_update_payment(self, desk, sample_lead):
        booking = await self._quoted_booking(desk, sample_lead)
        payment = await desk.payments.create_payment({"booking_id": booking.id, "amount": 50000})

        updated = await desk.payments.update_payment(payment.id, {"toss_order_id": "order_9"})
        assert updated.toss_order_id == "order_9"
        assert (await desk.repo.get_payment_by_order_id("order_9")).id == payment.id


class TestActivityLog:
    """활동 로그 테스트"""

    @pytest.mark.asyncio
    async def test_recent_sorted_by_created_at(self, desk, merchant):
        """늦게 추가된 과거 활동도 시간순 위치에 정렬"""
        now = datetime(2026, 3, 1, 9, 0, 0)
        await desk.activities.record(merchant.id, "a", "first", created_at=now)
        await desk.activities.record(merchant.id, "b", "third", created_at=now + timedelta(minutes=10))
        await desk.activities.record(merchant.id, "c", "second", created_at=now + timedelta(minutes=5))

        activities = await desk.activities.recent(merchant.id)
        assert [a.description for a in activities] == ["third", "second", "first"]

    @pytest.mark.asyncio
    async def test_same_timestamp_newest_insert_first(self, desk, merchant):
        now = datetime(2026, 3, 1, 9, 0, 0)
        for i in range(3):
            await desk.activities.record(merchant.id, "x", f"entry {i}", created_at=now)

        activities = await desk.activities.recent(merchant.id)
        assert [a.description for a in activities] == ["entry 2", "entry 1", "entry 0"]

    @pytest.mark.asyncio
    async def test_default_limit(self, desk, merchant):
        for i in range(15):
            await desk.activities.record(merchant.id, ActivityType.BOOKING_UPDATED, f"entry {i}")

        assert len(await desk.activities.recent(merchant.id)) == 10
        assert len(await desk.activities.recent(merchant.id, 3)) == 3

    @pytest.mark.asyncio
    async def test_scoped_by_merchant(self, desk, merchant):
        other = await desk.merchants.create_merchant("Other Movers")
        await desk.activities.record(other.id, "lead_created", "other")

        assert await desk.activities.recent(merchant.id) == []

    @pytest.mark.asyncio
    async def test_negative_limit(self, desk, merchant):
        with pytest.raises(ValidationError):
            await desk.activities.recent(merchant.id, -1)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
