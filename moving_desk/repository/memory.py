"""
인메모리 저장소

dict 기반 저장소. 테스트와 데모 서버에서 사용합니다.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import replace
from typing import Optional, List, Dict, Any

from ..core.models import Merchant, PricingRule, Lead, Booking, Payment, Activity
from .base import Repository

logger = logging.getLogger(__name__)


class InMemoryRepository(Repository):
    """
    인메모리 저장소

    Usage:
        repo = InMemoryRepository()
        merchant = await repo.create_merchant(Merchant(name="무빙프로"))
        await repo.save_pricing_rule(PricingRule(merchant_id=merchant.id))
    """

    def __init__(self):
        self.merchants: Dict[str, Merchant] = {}
        self.pricing_rules: Dict[str, PricingRule] = {}
        self.leads: Dict[str, Lead] = {}
        self.bookings: Dict[str, Booking] = {}
        self.payments: Dict[str, Payment] = {}
        self.activities: Dict[str, Activity] = {}

        # 같은 created_at 끼리는 삽입 순서로 정렬
        self._activity_seq: Dict[str, int] = {}
        self._seq = 0

        self._lock = asyncio.Lock()
        self._in_transaction: ContextVar[bool] = ContextVar(
            f"memory_tx_{id(self)}", default=False
        )

    # =========================================================================
    # Transaction
    # =========================================================================

    def _snapshot(self) -> Dict[str, Dict[str, Any]]:
        return {
            "merchants": dict(self.merchants),
            "pricing_rules": dict(self.pricing_rules),
            "leads": dict(self.leads),
            "bookings": dict(self.bookings),
            "payments": dict(self.payments),
            "activities": dict(self.activities),
            "_activity_seq": dict(self._activity_seq),
        }

    def _restore(self, snapshot: Dict[str, Dict[str, Any]]) -> None:
        for name, value in snapshot.items():
            setattr(self, name, value)

    @asynccontextmanager
    async def transaction(self):
        if self._in_transaction.get():
            yield
            return

        async with self._lock:
            snapshot = self._snapshot()
            token = self._in_transaction.set(True)
            try:
                yield
            except Exception:
                self._restore(snapshot)
                logger.debug("In-memory transaction rolled back")
                raise
            finally:
                self._in_transaction.reset(token)

    # =========================================================================
    # Merchants / Pricing rules
    # =========================================================================

    async def get_merchant(self, merchant_id: str) -> Optional[Merchant]:
        return self.merchants.get(merchant_id)

    async def list_merchants(self) -> List[Merchant]:
        return sorted(self.merchants.values(), key=lambda m: m.created_at)

    async def create_merchant(self, merchant: Merchant) -> Merchant:
        self.merchants[merchant.id] = merchant
        return merchant

    async def get_pricing_rule(self, merchant_id: str) -> Optional[PricingRule]:
        return self.pricing_rules.get(merchant_id)

    async def save_pricing_rule(self, rule: PricingRule) -> PricingRule:
        self.pricing_rules[rule.merchant_id] = rule
        return rule

    # =========================================================================
    # Leads
    # =========================================================================

    async def get_leads(self, merchant_id: str) -> List[Lead]:
        leads = [lead for lead in self.leads.values() if lead.merchant_id == merchant_id]
        return sorted(leads, key=lambda lead: lead.created_at, reverse=True)

    async def get_lead(self, lead_id: str) -> Optional[Lead]:
        return self.leads.get(lead_id)

    async def create_lead(self, lead: Lead) -> Lead:
        self.leads[lead.id] = lead
        return lead

    async def update_lead(self, lead_id: str, patch: Dict[str, Any]) -> Optional[Lead]:
        lead = self.leads.get(lead_id)
        if not lead:
            return None
        updated = replace(lead, **patch)
        self.leads[lead_id] = updated
        return updated

    # =========================================================================
    # Bookings
    # =========================================================================

    async def get_bookings(self, merchant_id: str) -> List[Booking]:
        lead_ids = {lead.id for lead in await self.get_leads(merchant_id)}
        bookings = [
            b for b in self.bookings.values()
            if b.lead_id and b.lead_id in lead_ids
        ]
        return sorted(bookings, key=lambda b: b.created_at, reverse=True)

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        return self.bookings.get(booking_id)

    async def get_booking_by_lead_id(self, lead_id: str) -> Optional[Booking]:
        for booking in self.bookings.values():
            if booking.lead_id == lead_id:
                return booking
        return None

    async def create_booking(self, booking: Booking) -> Booking:
        self.bookings[booking.id] = booking
        return booking

    async def update_booking(self, booking_id: str, patch: Dict[str, Any]) -> Optional[Booking]:
        booking = self.bookings.get(booking_id)
        if not booking:
            return None
        updated = replace(booking, **patch)
        self.bookings[booking_id] = updated
        return updated

    # =========================================================================
    # Payments
    # =========================================================================

    async def get_payments(self, merchant_id: str) -> List[Payment]:
        booking_ids = {b.id for b in await self.get_bookings(merchant_id)}
        payments = [p for p in self.payments.values() if p.booking_id in booking_ids]
        return sorted(payments, key=lambda p: p.created_at, reverse=True)

    async def get_payment(self, payment_id: str) -> Optional[Payment]:
        return self.payments.get(payment_id)

    async def get_payment_by_order_id(self, order_id: str) -> Optional[Payment]:
        for payment in self.payments.values():
            if payment.toss_order_id == order_id:
                return payment
        return None

    async def create_payment(self, payment: Payment) -> Payment:
        self.payments[payment.id] = payment
        return payment

    async def update_payment(self, payment_id: str, patch: Dict[str, Any]) -> Optional[Payment]:
        payment = self.payments.get(payment_id)
        if not payment:
            return None
        updated = replace(payment, **patch)
        self.payments[payment_id] = updated
        return updated

    # =========================================================================
    # Activities
    # =========================================================================

    async def create_activity(self, activity: Activity) -> Activity:
        self._seq += 1
        self.activities[activity.id] = activity
        self._activity_seq[activity.id] = self._seq
        return activity

    async def get_activities(self, merchant_id: str, limit: int = 10) -> List[Activity]:
        activities = [a for a in self.activities.values() if a.merchant_id == merchant_id]
        activities.sort(
            key=lambda a: (a.created_at, self._activity_seq.get(a.id, 0)),
            reverse=True,
        )
        return activities[:limit]
