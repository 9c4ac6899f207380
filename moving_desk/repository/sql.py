"""
SQL 저장소

SQLAlchemy 비동기 세션 기반 저장소 구현 (PostgreSQL/asyncpg, SQLite/aiosqlite)
"""

import logging
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Optional, List, Dict, Any

from sqlalchemy import select

from ..core.database import DatabaseManager
from ..core.models import Merchant, PricingRule, Lead, Booking, Payment, Activity
from ..core.tables import (
    MerchantRow,
    PricingRuleRow,
    LeadRow,
    BookingRow,
    PaymentRow,
    ActivityRow,
)
from .base import Repository

logger = logging.getLogger(__name__)


# 레코드 <-> 테이블 매핑
_LEAD_FIELDS = (
    "id", "merchant_id", "channel", "name", "phone", "origin", "dest",
    "floor_from", "floor_to", "elev_from", "elev_to", "volume",
    "preferred_ts", "created_at",
)
_BOOKING_FIELDS = (
    "id", "lead_id", "price_min", "price_max", "slot_start", "slot_end",
    "status", "deposit_amount", "deposit_tx_id", "created_at",
)
_PAYMENT_FIELDS = (
    "id", "booking_id", "amount", "status", "toss_payment_key",
    "toss_order_id", "created_at",
)
_ACTIVITY_FIELDS = (
    "id", "merchant_id", "type", "description", "entity_id",
    "entity_type", "created_at",
)
_RULE_FIELDS = (
    "merchant_id", "base_fee", "per_km", "per_floor", "volume_coeff", "surge_rules",
)


def _copy(source, fields, target_cls):
    return target_cls(**{name: getattr(source, name) for name in fields})


def _apply(row, patch: Dict[str, Any]) -> None:
    for key, value in patch.items():
        if not hasattr(row, key):
            raise AttributeError(f"{type(row).__name__} has no column {key}")
        setattr(row, key, value)


class SQLRepository(Repository):
    """
    SQL 저장소

    Usage:
        db = DatabaseManager("sqlite+aiosqlite:///moving_desk.db")
        repo = SQLRepository(db)
        await repo.init()

        async with repo.transaction():
            await repo.create_booking(...)
            await repo.create_activity(...)
    """

    def __init__(self, db: DatabaseManager):
        self.db = db
        self._current_session: ContextVar = ContextVar(
            f"sql_session_{id(self)}", default=None
        )

    async def init(self, create_tables: bool = True) -> None:
        """DB 초기화"""
        await self.db.init()
        if create_tables:
            await self.db.create_tables()
        logger.info("SQL repository initialized")

    async def close(self) -> None:
        await self.db.close()

    @asynccontextmanager
    async def _session(self):
        """진행 중인 트랜잭션 세션이 있으면 재사용"""
        session = self._current_session.get()
        if session is not None:
            yield session
            return

        async with self.db.get_session() as session:
            yield session

    @asynccontextmanager
    async def transaction(self):
        if self._current_session.get() is not None:
            yield
            return

        async with self.db.get_session() as session:
            token = self._current_session.set(session)
            try:
                yield
            finally:
                self._current_session.reset(token)

    # =========================================================================
    # Merchants / Pricing rules
    # =========================================================================

    async def get_merchant(self, merchant_id: str) -> Optional[Merchant]:
        async with self._session() as session:
            row = await session.get(MerchantRow, merchant_id)
            return _copy(row, ("id", "name", "created_at"), Merchant) if row else None

    async def list_merchants(self) -> List[Merchant]:
        async with self._session() as session:
            result = await session.execute(
                select(MerchantRow).order_by(MerchantRow.created_at)
            )
            return [
                _copy(row, ("id", "name", "created_at"), Merchant)
                for row in result.scalars().all()
            ]

    async def create_merchant(self, merchant: Merchant) -> Merchant:
        async with self._session() as session:
            session.add(_copy(merchant, ("id", "name", "created_at"), MerchantRow))
            await session.flush()
            return merchant

    async def get_pricing_rule(self, merchant_id: str) -> Optional[PricingRule]:
        async with self._session() as session:
            row = await session.get(PricingRuleRow, merchant_id)
            return _copy(row, _RULE_FIELDS, PricingRule) if row else None

    async def save_pricing_rule(self, rule: PricingRule) -> PricingRule:
        async with self._session() as session:
            row = await session.get(PricingRuleRow, rule.merchant_id)
            if row is None:
                session.add(_copy(rule, _RULE_FIELDS, PricingRuleRow))
            else:
                _apply(row, {name: getattr(rule, name) for name in _RULE_FIELDS[1:]})
            await session.flush()
            return rule

    # =========================================================================
    # Leads
    # =========================================================================

    async def get_leads(self, merchant_id: str) -> List[Lead]:
        async with self._session() as session:
            result = await session.execute(
                select(LeadRow)
                .where(LeadRow.merchant_id == merchant_id)
                .order_by(LeadRow.created_at.desc())
            )
            return [_copy(row, _LEAD_FIELDS, Lead) for row in result.scalars().all()]

    async def get_lead(self, lead_id: str) -> Optional[Lead]:
        async with self._session() as session:
            row = await session.get(LeadRow, lead_id)
            return _copy(row, _LEAD_FIELDS, Lead) if row else None

    async def create_lead(self, lead: Lead) -> Lead:
        async with self._session() as session:
            session.add(_copy(lead, _LEAD_FIELDS, LeadRow))
            await session.flush()
            return lead

    async def update_lead(self, lead_id: str, patch: Dict[str, Any]) -> Optional[Lead]:
        async with self._session() as session:
            row = await session.get(LeadRow, lead_id)
            if not row:
                return None
            _apply(row, patch)
            await session.flush()
            return _copy(row, _LEAD_FIELDS, Lead)

    # =========================================================================
    # Bookings
    # =========================================================================

    async def get_bookings(self, merchant_id: str) -> List[Booking]:
        async with self._session() as session:
            result = await session.execute(
                select(BookingRow)
                .join(LeadRow, BookingRow.lead_id == LeadRow.id)
                .where(LeadRow.merchant_id == merchant_id)
                .order_by(BookingRow.created_at.desc())
            )
            return [_copy(row, _BOOKING_FIELDS, Booking) for row in result.scalars().all()]

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        async with self._session() as session:
            row = await session.get(BookingRow, booking_id)
            return _copy(row, _BOOKING_FIELDS, Booking) if row else None

    async def get_booking_by_lead_id(self, lead_id: str) -> Optional[Booking]:
        async with self._session() as session:
            result = await session.execute(
                select(BookingRow)
                .where(BookingRow.lead_id == lead_id)
                .order_by(BookingRow.created_at)
                .limit(1)
            )
            row = result.scalar_one_or_none()
            return _copy(row, _BOOKING_FIELDS, Booking) if row else None

    async def create_booking(self, booking: Booking) -> Booking:
        async with self._session() as session:
            session.add(_copy(booking, _BOOKING_FIELDS, BookingRow))
            await session.flush()
            return booking

    async def update_booking(self, booking_id: str, patch: Dict[str, Any]) -> Optional[Booking]:
        async with self._session() as session:
            row = await session.get(BookingRow, booking_id)
            if not row:
                return None
            _apply(row, patch)
            await session.flush()
            return _copy(row, _BOOKING_FIELDS, Booking)

    # =========================================================================
    # Payments
    # =========================================================================

    async def get_payments(self, merchant_id: str) -> List[Payment]:
        async with self._session() as session:
            result = await session.execute(
                select(PaymentRow)
                .join(BookingRow, PaymentRow.booking_id == BookingRow.id)
                .join(LeadRow, BookingRow.lead_id == LeadRow.id)
                .where(LeadRow.merchant_id == merchant_id)
                .order_by(PaymentRow.created_at.desc())
            )
            return [_copy(row, _PAYMENT_FIELDS, Payment) for row in result.scalars().all()]

    async def get_payment(self, payment_id: str) -> Optional[Payment]:
        async with self._session() as session:
            row = await session.get(PaymentRow, payment_id)
            return _copy(row, _PAYMENT_FIELDS, Payment) if row else None

    async def get_payment_by_order_id(self, order_id: str) -> Optional[Payment]:
        async with self._session() as session:
            result = await session.execute(
                select(PaymentRow).where(PaymentRow.toss_order_id == order_id).limit(1)
            )
            row = result.scalar_one_or_none()
            return _copy(row, _PAYMENT_FIELDS, Payment) if row else None

    async def create_payment(self, payment: Payment) -> Payment:
        async with self._session() as session:
            session.add(_copy(payment, _PAYMENT_FIELDS, PaymentRow))
            await session.flush()
            return payment

    async def update_payment(self, payment_id: str, patch: Dict[str, Any]) -> Optional[Payment]:
        async with self._session() as session:
            row = await session.get(PaymentRow, payment_id)
            if not row:
                return None
            _apply(row, patch)
            await session.flush()
            return _copy(row, _PAYMENT_FIELDS, Payment)

    # =========================================================================
    # Activities
    # =========================================================================

    async def create_activity(self, activity: Activity) -> Activity:
        async with self._session() as session:
            session.add(_copy(activity, _ACTIVITY_FIELDS, ActivityRow))
            await session.flush()
            return activity

    async def get_activities(self, merchant_id: str, limit: int = 10) -> List[Activity]:
        async with self._session() as session:
            result = await session.execute(
                select(ActivityRow)
                .where(ActivityRow.merchant_id == merchant_id)
                .order_by(ActivityRow.created_at.desc(), ActivityRow.seq.desc())
                .limit(limit)
            )
            return [_copy(row, _ACTIVITY_FIELDS, Activity) for row in result.scalars().all()]
