"""
데모 데이터 및 데모 서버

대시보드 화면 확인용 샘플 업체/리드/예약/활동을 만듭니다.

Usage:
    from moving_desk.demo import create_demo_app

    app = create_demo_app()
    uvicorn.run(app, port=11020)
"""

import logging
from datetime import timedelta
from typing import Optional, Dict, Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import MovingDeskConfig, get_config
from .core.models import (
    Merchant,
    PricingRule,
    Lead,
    Booking,
    Payment,
    BookingStatus,
    PaymentStatus,
    utcnow,
)
from .services.activity import ActivityType
from .setup import MovingDesk, setup_moving_desk

logger = logging.getLogger(__name__)

DEMO_MERCHANT_NAME = "Moving Pro Co."


async def seed_demo_data(desk: MovingDesk) -> Dict[str, Any]:
    """
    샘플 데이터 생성

    업체가 이미 있으면 아무것도 만들지 않습니다.

    Returns:
        생성된 레코드 ({"merchant", "leads", "bookings", "payments"})
    """
    existing = await desk.merchants.list_merchants()
    if existing:
        logger.info(f"Demo data skipped: {len(existing)} merchant(s) already exist")
        return {"merchant": existing[0], "leads": [], "bookings": [], "payments": []}

    now = utcnow()
    repo = desk.repo

    async with repo.transaction():
        merchant = await repo.create_merchant(Merchant(name=DEMO_MERCHANT_NAME))
        await repo.save_pricing_rule(PricingRule(merchant_id=merchant.id))

        kim = await repo.create_lead(Lead(
            merchant_id=merchant.id,
            channel="kakao",
            name="김소영",
            phone="010-1234-5678",
            origin={"address": "서울시 강남구"},
            dest={"address": "서울시 서초구"},
            floor_from=3,
            floor_to=5,
            elev_from=False,
            elev_to=True,
            volume="M",
            preferred_ts=now + timedelta(days=7),
        ))
        lee = await repo.create_lead(Lead(
            merchant_id=merchant.id,
            channel="website",
            name="이민수",
            phone="010-9876-5432",
            origin={"address": "서울시 마포구"},
            dest={"address": "서울시 종로구"},
            floor_from=2,
            floor_to=7,
            elev_from=True,
            elev_to=True,
            volume="L",
            preferred_ts=now + timedelta(days=3),
        ))

        quoted = await repo.create_booking(Booking(
            lead_id=kim.id,
            price_min=320000,
            price_max=380000,
            slot_start=now,
            slot_end=now + timedelta(hours=2),
            status=BookingStatus.QUOTED.value,
        ))
        confirmed = await repo.create_booking(Booking(
            lead_id=lee.id,
            price_min=450000,
            price_max=520000,
            slot_start=now,
            slot_end=now + timedelta(hours=2),
            status=BookingStatus.CONFIRMED.value,
            deposit_amount=50000,
            deposit_tx_id="toss_tx_123",
        ))
        deposit = await repo.create_payment(Payment(
            booking_id=confirmed.id,
            amount=50000,
            status=PaymentStatus.COMPLETED.value,
            toss_payment_key="toss_tx_123",
            toss_order_id="order_demo_0001",
        ))

        await desk.activities.record(
            merchant.id,
            ActivityType.LEAD_CREATED,
            "New lead from kakao channel",
            entity_id=kim.id,
            entity_type="lead",
            created_at=now - timedelta(minutes=2),
        )
        await desk.activities.record(
            merchant.id,
            ActivityType.PAYMENT_CONFIRMED,
            f"Payment confirmed for ₩{deposit.amount:,}",
            entity_id=deposit.id,
            entity_type="payment",
            created_at=now - timedelta(minutes=15),
        )
        await desk.activities.record(
            merchant.id,
            ActivityType.CALENDAR_BLOCKED,
            "Calendar slot blocked for tomorrow",
            entity_type="calendar",
            created_at=now - timedelta(hours=1),
        )

    logger.info(f"Demo data created for merchant {merchant.id}")
    return {
        "merchant": merchant,
        "leads": [kim, lee],
        "bookings": [quoted, confirmed],
        "payments": [deposit],
    }


def create_demo_app(config: Optional[MovingDeskConfig] = None, seed: bool = True) -> FastAPI:
    """데모 서버 앱 생성 (시작 시 샘플 데이터 생성)"""
    cfg = config or get_config()

    app = FastAPI(
        title="Moving Desk",
        description="이사업체 백오피스 API (리드, 견적, 예약, 결제)",
        version=cfg.version,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    desk = setup_moving_desk(app, config=cfg)

    @app.on_event("startup")
    async def startup():
        await desk.init()
        if seed:
            await seed_demo_data(desk)

    @app.on_event("shutdown")
    async def shutdown():
        await desk.close()

    return app
