"""
저장소 추상 클래스

견적 엔진과 예약 워크플로우는 이 인터페이스에만 의존합니다.
인메모리/SQL 구현을 교체해도 비즈니스 로직은 바뀌지 않습니다.
"""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any, AsyncContextManager

from ..core.models import Merchant, PricingRule, Lead, Booking, Payment, Activity


class Repository(ABC):
    """
    저장소 인터페이스

    Example:
        repo = InMemoryRepository()

        async with repo.transaction():
            booking = await repo.create_booking(Booking(lead_id=lead.id))
            await repo.create_activity(Activity(...))
    """

    # =========================================================================
    # Transaction
    # =========================================================================

    @abstractmethod
    def transaction(self) -> AsyncContextManager[None]:
        """
        하나의 논리 트랜잭션

        블록 안의 쓰기는 모두 반영되거나 모두 취소됩니다.
        중첩 호출은 바깥 트랜잭션에 합류합니다.
        """

    # =========================================================================
    # Merchants / Pricing rules
    # =========================================================================

    @abstractmethod
    async def get_merchant(self, merchant_id: str) -> Optional[Merchant]:
        pass

    @abstractmethod
    async def list_merchants(self) -> List[Merchant]:
        """생성 순 업체 목록"""

    @abstractmethod
    async def create_merchant(self, merchant: Merchant) -> Merchant:
        pass

    @abstractmethod
    async def get_pricing_rule(self, merchant_id: str) -> Optional[PricingRule]:
        pass

    @abstractmethod
    async def save_pricing_rule(self, rule: PricingRule) -> PricingRule:
        """요금 규칙 저장 (업체당 하나, 있으면 교체)"""

    # =========================================================================
    # Leads
    # =========================================================================

    @abstractmethod
    async def get_leads(self, merchant_id: str) -> List[Lead]:
        """업체 리드 목록 (최신순)"""

    @abstractmethod
    async def get_lead(self, lead_id: str) -> Optional[Lead]:
        pass

    @abstractmethod
    async def create_lead(self, lead: Lead) -> Lead:
        pass

    @abstractmethod
    async def update_lead(self, lead_id: str, patch: Dict[str, Any]) -> Optional[Lead]:
        pass

    # =========================================================================
    # Bookings
    # =========================================================================

    @abstractmethod
    async def get_bookings(self, merchant_id: str) -> List[Booking]:
        """업체 리드에 연결된 예약 목록 (최신순)"""

    @abstractmethod
    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        pass

    @abstractmethod
    async def get_booking_by_lead_id(self, lead_id: str) -> Optional[Booking]:
        pass

    @abstractmethod
    async def create_booking(self, booking: Booking) -> Booking:
        pass

    @abstractmethod
    async def update_booking(self, booking_id: str, patch: Dict[str, Any]) -> Optional[Booking]:
        pass

    # =========================================================================
    # Payments
    # =========================================================================

    @abstractmethod
    async def get_payments(self, merchant_id: str) -> List[Payment]:
        """업체 예약에 연결된 결제 목록 (최신순)"""

    @abstractmethod
    async def get_payment(self, payment_id: str) -> Optional[Payment]:
        pass

    @abstractmethod
    async def get_payment_by_order_id(self, order_id: str) -> Optional[Payment]:
        pass

    @abstractmethod
    async def create_payment(self, payment: Payment) -> Payment:
        pass

    @abstractmethod
    async def update_payment(self, payment_id: str, patch: Dict[str, Any]) -> Optional[Payment]:
        pass

    # =========================================================================
    # Activities
    # =========================================================================

    @abstractmethod
    async def create_activity(self, activity: Activity) -> Activity:
        pass

    @abstractmethod
    async def get_activities(self, merchant_id: str, limit: int = 10) -> List[Activity]:
        """최근 활동 (created_at 내림차순)"""

    async def close(self) -> None:
        """리소스 정리"""
        pass
