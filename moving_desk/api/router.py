"""
moving_desk API 라우터 생성기

리드, 견적/예약, 결제, 활동 피드, 대시보드 지표 API를 제공합니다.
"""

from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, TYPE_CHECKING

from fastapi import APIRouter, Body, HTTPException, Query, Request, Depends

from ..core.exceptions import (
    MovingDeskError,
    NotFoundError,
    ValidationError,
    ConflictError,
    InvalidTransitionError,
)
from ..core.schemas import (
    LeadResponse,
    BookingResponse,
    BookingCreate,
    QuoteRequest,
    QuoteResponse,
    PaymentCallback,
    PaymentCreate,
    PaymentResponse,
    PricingRuleResponse,
    ActivityResponse,
    MetricsResponse,
    parse_payload,
)
from ..middleware.merchant import get_merchant_id
from ..services.activity import merchant_for_booking
from .models import HealthResponse, CallbackResponse, ErrorResponse, ErrorCodes

if TYPE_CHECKING:
    from ..setup import MovingDesk


def to_http_exception(error: MovingDeskError) -> HTTPException:
    """도메인 예외를 HTTPException으로 변환"""
    if isinstance(error, NotFoundError):
        status_code, code, field = 404, ErrorCodes.NOT_FOUND, None
    elif isinstance(error, ValidationError):
        status_code, code, field = 422, ErrorCodes.INVALID_REQUEST, error.field
    elif isinstance(error, InvalidTransitionError):
        status_code, code, field = 409, ErrorCodes.INVALID_TRANSITION, None
    elif isinstance(error, ConflictError):
        status_code, code, field = 409, ErrorCodes.CONFLICT, None
    else:
        status_code, code, field = 500, ErrorCodes.INTERNAL_ERROR, None

    return HTTPException(
        status_code=status_code,
        detail={
            "success": False,
            "error": code,
            "message": str(error),
            "field": field,
        }
    )


_ERRORS = {
    404: {"model": ErrorResponse, "description": "Not found"},
    422: {"model": ErrorResponse, "description": "Invalid request"},
}
_TRANSITION_ERRORS = {
    **_ERRORS,
    409: {"model": ErrorResponse, "description": "Invalid status transition"},
}


def create_moving_router(desk: "MovingDesk", prefix: str = "/api") -> APIRouter:
    """
    moving_desk API 라우터 생성

    Args:
        desk: MovingDesk 통합 객체
        prefix: API 경로 prefix (기본: /api)

    Returns:
        APIRouter: FastAPI 라우터

    Example:
        desk = MovingDesk()
        app.include_router(create_moving_router(desk))
    """

    router = APIRouter(prefix=prefix, tags=["Moving Desk API"])

    # =========================================================================
    # 업체 식별 의존성
    # =========================================================================

    async def current_merchant(request: Request) -> str:
        """요청 업체 ID (미들웨어 > 기본 업체)"""
        merchant_id = getattr(request.state, "merchant_id", None) or get_merchant_id()
        try:
            return await desk.resolve_merchant_id(merchant_id)
        except MovingDeskError as e:
            raise to_http_exception(e)

    async def owned_lead(lead_id: str, merchant_id: str):
        lead = await desk.leads.get_lead(lead_id)
        if lead.merchant_id != merchant_id:
            raise NotFoundError("Lead", lead_id)
        return lead

    async def owned_booking(booking_id: str, merchant_id: str):
        """다른 업체의 예약은 없는 것으로 취급 (리드가 없는 예약은 요청 업체 소유)"""
        booking = await desk.repo.get_booking(booking_id)
        if not booking:
            raise NotFoundError("Booking", booking_id)
        owner = await merchant_for_booking(desk.repo, booking, merchant_id)
        if owner != merchant_id:
            raise NotFoundError("Booking", booking_id)
        return booking

    # =========================================================================
    # Health Check
    # =========================================================================

    @router.get("/health", response_model=HealthResponse, summary="헬스체크")
    async def health_check() -> HealthResponse:
        return HealthResponse(
            status="healthy",
            version=desk.config.version,
            timestamp=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        )

    # =========================================================================
    # Leads
    # =========================================================================

    @router.get("/leads", response_model=List[LeadResponse], summary="리드 목록")
    async def list_leads(merchant_id: str = Depends(current_merchant)):
        leads = await desk.leads.list_leads(merchant_id)
        return [LeadResponse.model_validate(lead) for lead in leads]

    @router.post(
        "/leads",
        response_model=LeadResponse,
        responses=_ERRORS,
        summary="리드 등록",
        description="접수 폼/채널에서 들어온 문의를 등록합니다. lead_created 활동이 기록됩니다."
    )
    async def create_lead(
        payload: Dict[str, Any] = Body(...),
        merchant_id: str = Depends(current_merchant),
    ):
        try:
            lead = await desk.leads.create_lead(merchant_id, payload)
        except MovingDeskError as e:
            raise to_http_exception(e)
        return LeadResponse.model_validate(lead)

    @router.get("/leads/{lead_id}", response_model=LeadResponse, responses=_ERRORS, summary="리드 조회")
    async def get_lead(lead_id: str, merchant_id: str = Depends(current_merchant)):
        try:
            lead = await owned_lead(lead_id, merchant_id)
        except MovingDeskError as e:
            raise to_http_exception(e)
        return LeadResponse.model_validate(lead)

    @router.patch("/leads/{lead_id}", response_model=LeadResponse, responses=_ERRORS, summary="리드 수정")
    async def update_lead(
        lead_id: str,
        patch: Optional[Dict[str, Any]] = Body(default=None),
        merchant_id: str = Depends(current_merchant),
    ):
        try:
            await owned_lead(lead_id, merchant_id)
            lead = await desk.leads.update_lead(lead_id, patch)
        except MovingDeskError as e:
            raise to_http_exception(e)
        return LeadResponse.model_validate(lead)

    # =========================================================================
    # Bookings
    # =========================================================================

    @router.get("/bookings", response_model=List[BookingResponse], summary="예약 목록")
    async def list_bookings(merchant_id: str = Depends(current_merchant)):
        bookings = await desk.repo.get_bookings(merchant_id)
        return [BookingResponse.model_validate(b) for b in bookings]

    @router.post("/bookings", response_model=BookingResponse, responses=_ERRORS, summary="예약 직접 생성")
    async def create_booking(
        payload: Dict[str, Any] = Body(...),
        merchant_id: str = Depends(current_merchant),
    ):
        try:
            request = parse_payload(BookingCreate, payload)
            if request.lead_id:
                await owned_lead(request.lead_id, merchant_id)
            booking = await desk.workflow.create_booking(merchant_id, request)
        except MovingDeskError as e:
            raise to_http_exception(e)
        return BookingResponse.model_validate(booking)

    @router.patch(
        "/bookings/{booking_id}",
        response_model=BookingResponse,
        responses=_TRANSITION_ERRORS,
        summary="예약 수정",
        description="status 변경 시 상태 전이 규칙을 검사합니다."
    )
    async def update_booking(
        booking_id: str,
        patch: Optional[Dict[str, Any]] = Body(default=None),
        merchant_id: str = Depends(current_merchant),
    ):
        try:
            await owned_booking(booking_id, merchant_id)
            booking = await desk.workflow.update_booking(booking_id, patch, merchant_id=merchant_id)
        except MovingDeskError as e:
            raise to_http_exception(e)
        return BookingResponse.model_validate(booking)

    @router.post(
        "/bookings/{booking_id}/confirm",
        response_model=BookingResponse,
        responses=_TRANSITION_ERRORS,
        summary="예약 확정"
    )
    async def confirm_booking(booking_id: str, merchant_id: str = Depends(current_merchant)):
        try:
            await owned_booking(booking_id, merchant_id)
            booking = await desk.workflow.confirm_booking(booking_id, merchant_id=merchant_id)
        except MovingDeskError as e:
            raise to_http_exception(e)
        return BookingResponse.model_validate(booking)

    @router.post(
        "/bookings/{booking_id}/cancel",
        response_model=BookingResponse,
        responses=_TRANSITION_ERRORS,
        summary="예약 취소"
    )
    async def cancel_booking(booking_id: str, merchant_id: str = Depends(current_merchant)):
        try:
            await owned_booking(booking_id, merchant_id)
            booking = await desk.workflow.cancel_booking(booking_id, merchant_id=merchant_id)
        except MovingDeskError as e:
            raise to_http_exception(e)
        return BookingResponse.model_validate(booking)

    # =========================================================================
    # Quote
    # =========================================================================

    @router.post(
        "/quote",
        response_model=QuoteResponse,
        responses=_TRANSITION_ERRORS,
        summary="견적 생성",
        description="리드의 예약을 quoted 상태로 만들거나 가격을 갱신합니다."
    )
    async def generate_quote(
        payload: Dict[str, Any] = Body(...),
        merchant_id: str = Depends(current_merchant),
    ):
        try:
            request = parse_payload(QuoteRequest, payload)
            await owned_lead(request.lead_id, merchant_id)
            quote = await desk.workflow.generate_quote(request.lead_id)
        except MovingDeskError as e:
            raise to_http_exception(e)
        return QuoteResponse(min=quote.min, max=quote.max)

    # =========================================================================
    # Payments
    # =========================================================================

    @router.get("/payments", response_model=List[PaymentResponse], summary="결제 목록")
    async def list_payments(merchant_id: str = Depends(current_merchant)):
        payments = await desk.payments.list_payments(merchant_id)
        return [PaymentResponse.model_validate(p) for p in payments]

    @router.post("/payments", response_model=PaymentResponse, responses=_ERRORS, summary="결제 생성")
    async def create_payment(
        payload: Dict[str, Any] = Body(...),
        merchant_id: str = Depends(current_merchant),
    ):
        try:
            request = parse_payload(PaymentCreate, payload)
            await owned_booking(request.booking_id, merchant_id)
            payment = await desk.payments.create_payment(request, merchant_id=merchant_id)
        except MovingDeskError as e:
            raise to_http_exception(e)
        return PaymentResponse.model_validate(payment)

    @router.post(
        "/payment/callback",
        response_model=CallbackResponse,
        responses=_ERRORS,
        summary="토스 결제 승인 콜백"
    )
    async def payment_callback(
        payload: Dict[str, Any] = Body(...),
        merchant_id: str = Depends(current_merchant),
    ):
        try:
            callback = parse_payload(PaymentCallback, payload)
            # 결제 승인 URL에 merchant_id 쿼리를 붙여 업체를 식별
            existing = await desk.repo.get_payment_by_order_id(callback.order_id)
            if existing:
                await owned_booking(existing.booking_id, merchant_id)
            payment = await desk.payments.handle_gateway_callback(
                callback.payment_key,
                callback.order_id,
                callback.amount,
                merchant_id=merchant_id,
            )
        except MovingDeskError as e:
            raise to_http_exception(e)
        return CallbackResponse(success=True, payment_id=payment.id, status=payment.status)

    # =========================================================================
    # Activities / Metrics
    # =========================================================================

    @router.get("/activities", response_model=List[ActivityResponse], responses=_ERRORS, summary="최근 활동")
    async def recent_activities(
        limit: Optional[int] = Query(None, description="조회 개수 (기본 10)"),
        merchant_id: str = Depends(current_merchant),
    ):
        try:
            activities = await desk.activities.recent(merchant_id, limit)
        except MovingDeskError as e:
            raise to_http_exception(e)
        return [ActivityResponse.model_validate(a) for a in activities]

    @router.get("/metrics", response_model=MetricsResponse, summary="대시보드 지표")
    async def get_metrics(merchant_id: str = Depends(current_merchant)):
        metrics = await desk.metrics.get_metrics(merchant_id)
        return MetricsResponse.model_validate(metrics)

    # =========================================================================
    # Pricing rule
    # =========================================================================

    @router.get("/pricing-rule", response_model=PricingRuleResponse, responses=_ERRORS, summary="요금 규칙 조회")
    async def get_pricing_rule(merchant_id: str = Depends(current_merchant)):
        try:
            rule = await desk.merchants.get_pricing_rule(merchant_id)
        except MovingDeskError as e:
            raise to_http_exception(e)
        return PricingRuleResponse.model_validate(rule)

    @router.patch("/pricing-rule", response_model=PricingRuleResponse, responses=_ERRORS, summary="요금 규칙 수정")
    async def update_pricing_rule(
        patch: Optional[Dict[str, Any]] = Body(default=None),
        merchant_id: str = Depends(current_merchant),
    ):
        try:
            rule = await desk.merchants.update_pricing_rule(merchant_id, patch)
        except MovingDeskError as e:
            raise to_http_exception(e)
        return PricingRuleResponse.model_validate(rule)

    return router
