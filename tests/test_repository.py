"""
저장소 테스트

InMemoryRepository와 SQLRepository(SQLite/aiosqlite)가 같은 동작을 하는지 검증합니다.
"""

import pytest
import pytest_asyncio
from datetime import datetime, timedelta

from moving_desk.core.database import DatabaseManager
from moving_desk.core.models import Merchant, PricingRule, Lead, Booking, Payment, Activity
from moving_desk.repository import InMemoryRepository, SQLRepository

T0 = datetime(2026, 2, 1, 10, 0, 0)


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def repo(request, tmp_path):
    """인메모리 / SQLite 저장소"""
    if request.param == "memory":
        yield InMemoryRepository()
        return

    pytest.importorskip("aiosqlite")
    db = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'moving_desk.db'}", echo=False)
    repository = SQLRepository(db)
    await repository.init()
    yield repository
    await repository.close()


async def seed_merchant(repo, name="Moving Pro Co.", created_at=T0) -> Merchant:
    merchant = await repo.create_merchant(Merchant(name=name, created_at=created_at))
    await repo.save_pricing_rule(PricingRule(merchant_id=merchant.id))
    return merchant


class TestMerchants:
    """업체/요금 규칙 저장 테스트"""

    @pytest.mark.asyncio
    async def test_merchant_and_rule(self, repo):
        merchant = await seed_merchant(repo)

        assert (await repo.get_merchant(merchant.id)).name == "Moving Pro Co."
        rule = await repo.get_pricing_rule(merchant.id)
        assert rule.base_fee == 200000
        assert rule.volume_coeff == {"S": 1, "M": 1.15, "L": 1.35}

    @pytest.mark.asyncio
    async def test_save_pricing_rule_overwrites(self, repo):
        merchant = await seed_merchant(repo)

        await repo.save_pricing_rule(PricingRule(merchant_id=merchant.id, per_km=3000))

        assert (await repo.get_pricing_rule(merchant.id)).per_km == 3000

    @pytest.mark.asyncio
    async def test_list_merchants_in_creation_order(self, repo):
        second = await seed_merchant(repo, "B", created_at=T0 + timedelta(days=1))
        first = await seed_merchant(repo, "A", created_at=T0)

        assert [m.id for m in await repo.list_merchants()] == [first.id, second.id]

    @pytest.mark.asyncio
    async def test_missing(self, repo):
        assert await repo.get_merchant("missing") is None
        assert await repo.get_pricing_rule("missing") is None


class TestLeadsAndBookings:
    """리드/예약 저장 테스트"""

    @pytest.mark.asyncio
    async def test_lead_round_trip(self, repo):
        merchant = await seed_merchant(repo)
        lead = await repo.create_lead(Lead(
            merchant_id=merchant.id,
            channel="kakao",
            name="김소영",
            origin={"address": "서울시 강남구"},
            floor_from=3,
            elev_to=True,
            volume="M",
        ))

        stored = await repo.get_lead(lead.id)
        assert stored.name == "김소영"
        assert stored.origin == {"address": "서울시 강남구"}
        assert stored.floor_from == 3
        assert stored.elev_to is True

        updated = await repo.update_lead(lead.id, {"phone": "010-0000-0000"})
        assert updated.phone == "010-0000-0000"
        assert await repo.update_lead("missing", {"phone": "x"}) is None

    @pytest.mark.asyncio
    async def test_leads_scoped_and_newest_first(self, repo):
        merchant = await seed_merchant(repo)
        other = await seed_merchant(repo, "Other")
        old = await repo.create_lead(Lead(merchant_id=merchant.id, channel="phone", created_at=T0))
        new = await repo.create_lead(
            Lead(merchant_id=merchant.id, channel="phone", created_at=T0 + timedelta(hours=1))
        )
        await repo.create_lead(Lead(merchant_id=other.id, channel="phone", created_at=T0))

        assert [lead.id for lead in await repo.get_leads(merchant.id)] == [new.id, old.id]

    @pytest.mark.asyncio
    async def test_booking_by_lead_and_update(self, repo):
        merchant = await seed_merchant(repo)
        lead = await repo.create_lead(Lead(merchant_id=merchant.id, channel="kakao"))
        booking = await repo.create_booking(Booking(lead_id=lead.id, price_min=1, price_max=2))

        found = await repo.get_booking_by_lead_id(lead.id)
        assert found.id == booking.id
        assert found.status == "tentative"

        updated = await repo.update_booking(booking.id, {"status": "quoted", "price_max": 3})
        assert updated.status == "quoted"
        assert updated.price_max == 3
        assert (await repo.get_booking(booking.id)).price_max == 3

        assert await repo.get_booking_by_lead_id("missing") is None
        assert await repo.update_booking("missing", {"status": "quoted"}) is None

    @pytest.mark.asyncio
    async def test_bookings_scoped_through_leads(self, repo):
        merchant = await seed_merchant(repo)
        other = await seed_merchant(repo, "Other")
        mine = await repo.create_lead(Lead(merchant_id=merchant.id, channel="kakao"))
        theirs = await repo.create_lead(Lead(merchant_id=other.id, channel="kakao"))

        booking = await repo.create_booking(Booking(lead_id=mine.id))
        await repo.create_booking(Booking(lead_id=theirs.id))
        await repo.create_booking(Booking())

        assert [b.id for b in await repo.get_bookings(merchant.id)] == [booking.id]


class TestPayments:
    """결제 저장 테스트"""

    @pytest.mark.asyncio
    async def test_payment_by_order_id(self, repo):
        merchant = await seed_merchant(repo)
        lead = await repo.create_lead(Lead(merchant_id=merchant.id, channel="kakao"))
        booking = await repo.create_booking(Booking(lead_id=lead.id))
        payment = await repo.create_payment(
            Payment(booking_id=booking.id, amount=50000, toss_order_id="order_1")
        )

        assert (await repo.get_payment_by_order_id("order_1")).id == payment.id
        assert await repo.get_payment_by_order_id("order_2") is None

        updated = await repo.update_payment(payment.id, {"status": "completed"})
        assert updated.status == "completed"
        assert [p.id for p in await repo.get_payments(merchant.id)] == [payment.id]


class TestActivities:
    """활동 저장 테스트"""

    @pytest.mark.asyncio
    async def test_newest_first_with_limit(self, repo):
        merchant = await seed_merchant(repo)
        for minutes in [0, 30, 10, 20]:
            await repo.create_activity(Activity(
                merchant_id=merchant.id,
                type="booking_updated",
                description=f"at {minutes}",
                created_at=T0 + timedelta(minutes=minutes),
            ))

        activities = await repo.get_activities(merchant.id, limit=3)
        assert [a.description for a in activities] == ["at 30", "at 20", "at 10"]

    @pytest.mark.asyncio
    async def test_same_timestamp_latest_insert_first(self, repo):
        """같은 시각이면 나중에 기록된 활동이 먼저"""
        merchant = await seed_merchant(repo)

        async with repo.transaction():
            for activity_type in ["lead_created", "booking_created", "quote_generated"]:
                await repo.create_activity(Activity(
                    merchant_id=merchant.id,
                    type=activity_type,
                    description=activity_type,
                    created_at=T0,
                ))

        activities = await repo.get_activities(merchant.id)
        assert [a.type for a in activities] == [
            "quote_generated",
            "booking_created",
            "lead_created",
        ]


class TestTransaction:
    """트랜잭션 테스트"""

    @pytest.mark.asyncio
    async def test_rollback_on_error(self, repo):
        merchant = await seed_merchant(repo)

        with pytest.raises(RuntimeError):
            async with repo.transaction():
                await repo.create_lead(Lead(id="lead-1", merchant_id=merchant.id, channel="kakao"))
                await repo.create_activity(Activity(
                    merchant_id=merchant.id, type="lead_created", description="New lead"
                ))
                raise RuntimeError("boom")

        assert await repo.get_lead("lead-1") is None
        assert await repo.get_activities(merchant.id) == []

    @pytest.mark.asyncio
    async def test_nested_transaction_joins_outer(self, repo):
        merchant = await seed_merchant(repo)

        async with repo.transaction():
            async with repo.transaction():
                await repo.create_lead(Lead(id="lead-1", merchant_id=merchant.id, channel="kakao"))
            assert (await repo.get_lead("lead-1")) is not None

        assert (await repo.get_lead("lead-1")).merchant_id == merchant.id

    @pytest.mark.asyncio
    async def test_commit(self, repo):
        merchant = await seed_merchant(repo)

        async with repo.transaction():
            await repo.create_lead(Lead(id="lead-1", merchant_id=merchant.id, channel="kakao"))

        assert (await repo.get_lead("lead-1")).channel == "kakao"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
