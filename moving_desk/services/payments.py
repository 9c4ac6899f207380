"""
결제 서비스

계약금 결제 생성과 토스 결제 승인 콜백을 처리합니다.
"""

import logging
from typing import Optional, List, Dict, Any

from ..core.exceptions import NotFoundError, ValidationError, ConflictError
from ..core.models import Payment, PaymentStatus
from ..core.schemas import PaymentCreate, PaymentUpdate, PaymentCallback, parse_payload
from ..repository.base import Repository
from .activity import ActivityLog, ActivityType, merchant_for_booking

logger = logging.getLogger(__name__)


class PaymentService:
    """
    결제 서비스

    Example:
        payments = PaymentService(repository)

        payment = await payments.create_payment({
            "booking_id": booking.id,
            "amount": 50000,
            "toss_order_id": "order_1234",
        })

        # 토스 승인 콜백
        await payments.handle_gateway_callback("pay_key", "order_1234", 50000)
    """

    def __init__(self, repository: Repository, activity_log: Optional[ActivityLog] = None):
        self.repo = repository
        self.activities = activity_log or ActivityLog(repository)

    async def _merchant_of(self, payment: Payment, fallback: Optional[str]) -> str:
        booking = await self.repo.get_booking(payment.booking_id)
        if not booking:
            raise NotFoundError("Booking", payment.booking_id)
        return await merchant_for_booking(self.repo, booking, fallback)

    async def create_payment(self, data: Any, merchant_id: Optional[str] = None) -> Payment:
        """결제 생성 (예약이 있어야 함)"""
        payload = parse_payload(PaymentCreate, data)

        async with self.repo.transaction():
            booking = await self.repo.get_booking(payload.booking_id)
            if not booking:
                raise NotFoundError("Booking", payload.booking_id)
            owner = await merchant_for_booking(self.repo, booking, merchant_id)

            payment = await self.repo.create_payment(Payment(**payload.model_dump()))
            await self.activities.record(
                owner,
                ActivityType.PAYMENT_CREATED,
                f"Payment requested for ₩{payment.amount:,}",
                entity_id=payment.id,
                entity_type="payment",
            )

        logger.info(f"Payment created: {payment.id} (booking {payment.booking_id})")
        return payment

    async def list_payments(self, merchant_id: str) -> List[Payment]:
        """업체 결제 목록 (최신순)"""
        return await self.repo.get_payments(merchant_id)

    async def update_payment(self, payment_id: str, patch: Optional[Dict[str, Any]]) -> Payment:
        data = parse_payload(PaymentUpdate, patch).model_dump(exclude_unset=True, exclude_none=True)

        payment = await self.repo.update_payment(payment_id, data)
        if not payment:
            raise NotFoundError("Payment", payment_id)
        return payment

    async def _get_by_order_id(self, order_id: str) -> Payment:
        payment = await self.repo.get_payment_by_order_id(order_id)
        if not payment:
            raise NotFoundError("Payment", order_id)
        return payment

    async def handle_gateway_callback(
        self,
        payment_key: str,
        order_id: str,
        amount: int,
        merchant_id: Optional[str] = None,
    ) -> Payment:
        """
        토스 결제 승인 콜백

        결제를 completed로 바꾸고 예약에 계약금을 기록합니다.
        이미 완료된 결제는 그대로 반환합니다 (재전송 대응).

        Raises:
            NotFoundError: 주문 ID에 해당하는 결제가 없음
            ValidationError: 콜백 금액이 결제 금액과 다름
        """
        callback = parse_payload(PaymentCallback, {
            "payment_key": payment_key,
            "order_id": order_id,
            "amount": amount,
        })
        logger.info(f"Payment callback received: order {callback.order_id}, amount {callback.amount}")

        async with self.repo.transaction():
            payment = await self._get_by_order_id(callback.order_id)

            if payment.status == PaymentStatus.COMPLETED.value:
                logger.info(f"Payment {payment.id} already completed, ignoring callback")
                return payment

            if callback.amount != payment.amount:
                raise ValidationError(
                    "amount",
                    f"callback amount {callback.amount} does not match payment amount {payment.amount}",
                )

            owner = await self._merchant_of(payment, merchant_id)

            payment = await self.repo.update_payment(payment.id, {
                "status": PaymentStatus.COMPLETED.value,
                "toss_payment_key": callback.payment_key,
            })
            await self.repo.update_booking(payment.booking_id, {
                "deposit_amount": payment.amount,
                "deposit_tx_id": callback.payment_key,
            })
            await self.activities.record(
                owner,
                ActivityType.PAYMENT_CONFIRMED,
                f"Payment confirmed for ₩{callback.amount:,}",
                entity_id=payment.id,
                entity_type="payment",
            )

        logger.info(f"Payment completed: {payment.id}")
        return payment

    async def fail_payment(
        self,
        order_id: str,
        reason: Optional[str] = None,
        merchant_id: Optional[str] = None,
    ) -> Payment:
        """결제 실패 처리 (완료된 결제는 ConflictError)"""
        async with self.repo.transaction():
            payment = await self._get_by_order_id(order_id)
            if payment.status == PaymentStatus.COMPLETED.value:
                raise ConflictError(f"Payment {payment.id} is already completed")

            owner = await self._merchant_of(payment, merchant_id)
            payment = await self.repo.update_payment(
                payment.id, {"status": PaymentStatus.FAILED.value}
            )

            description = "Payment failed"
            if reason:
                description = f"Payment failed: {reason}"
            await self.activities.record(
                owner,
                ActivityType.PAYMENT_FAILED,
                description,
                entity_id=payment.id,
                entity_type="payment",
            )

        logger.warning(f"Payment failed: {payment.id} ({reason})")
        return payment
