"""
moving_desk 구성 요소를 한 번에 만드는 헬퍼
"""
import logging
from typing import Optional, List

from fastapi import FastAPI

from moving_desk.api.router import create_moving_router
from moving_desk.config import MovingDeskConfig, get_config
from moving_desk.core.database import DatabaseManager
from moving_desk.core.exceptions import ValidationError
from moving_desk.geo import DistanceProvider, create_distance_provider
from moving_desk.middleware.merchant import MerchantMiddleware
from moving_desk.repository import Repository, InMemoryRepository, SQLRepository
from moving_desk.services import (
    ActivityLog,
    BookingWorkflow,
    LeadService,
    MerchantManager,
    MetricsAggregator,
    PaymentService,
    QuoteService,
)

logger = logging.getLogger(__name__)


def create_repository(config: MovingDeskConfig) -> Repository:
    """DB URL이 있으면 SQL 저장소, 없으면 인메모리 저장소"""
    if config.database.enabled:
        return SQLRepository(DatabaseManager(config.database.url, echo=config.database.echo))
    return InMemoryRepository()


class MovingDesk:
    """
    moving_desk 통합 객체

    저장소와 서비스들에 대한 단일 진입점을 제공합니다.

    Example:
        desk = MovingDesk()
        await desk.init()

        merchant = await desk.merchants.create_merchant("무빙프로")
        lead = await desk.leads.create_lead(merchant.id, {...})
        quote = await desk.workflow.generate_quote(lead.id)
    """

    def __init__(
        self,
        config: Optional[MovingDeskConfig] = None,
        repository: Optional[Repository] = None,
        distance_provider: Optional[DistanceProvider] = None,
    ):
        self.config = config or get_config()
        self.repo = repository or create_repository(self.config)
        self.distance = distance_provider or create_distance_provider(self.config.pricing)

        self.activities = ActivityLog(self.repo, default_limit=self.config.activity_limit)
        self.merchants = MerchantManager(self.repo)
        self.leads = LeadService(self.repo, self.activities)
        self.quotes = QuoteService(self.repo, self.distance)
        self.workflow = BookingWorkflow(
            self.repo,
            self.activities,
            quotes=self.quotes,
            strict_requote=self.config.strict_requote,
        )
        self.payments = PaymentService(self.repo, self.activities)
        self.metrics = MetricsAggregator(self.repo, window_days=self.config.metrics_window_days)

    async def init(self) -> None:
        """초기화 (SQL 저장소면 테이블 생성)"""
        if isinstance(self.repo, SQLRepository):
            await self.repo.init()
        logger.info(f"moving_desk initialized ({type(self.repo).__name__})")

    async def close(self) -> None:
        """리소스 정리"""
        await self.distance.close()
        await self.repo.close()
        logger.info("moving_desk closed")

    async def resolve_merchant_id(self, merchant_id: Optional[str] = None) -> str:
        """
        요청 업체 ID 결정

        명시된 ID, 설정의 기본 업체, 첫 번째 업체 순으로 사용합니다.
        """
        if merchant_id:
            return merchant_id
        if self.config.default_merchant_id:
            return self.config.default_merchant_id

        merchants = await self.merchants.list_merchants()
        if not merchants:
            raise ValidationError("merchant_id", "no merchant configured")
        return merchants[0].id


def setup_moving_desk(
    app: FastAPI,
    config: Optional[MovingDeskConfig] = None,
    desk: Optional[MovingDesk] = None,
    prefix: str = "/api",
    merchant_header_name: str = "X-Merchant-ID",
    exclude_paths: Optional[List[str]] = None,
) -> MovingDesk:
    """
    FastAPI 앱에 moving_desk API를 설정합니다.

    Args:
        app: FastAPI 앱 인스턴스
        config: 설정 (None이면 환경변수에서 로드)
        desk: 미리 만든 MovingDesk (테스트용)
        prefix: API 경로 prefix
        merchant_header_name: 업체 ID를 담는 HTTP 헤더 이름
        exclude_paths: 업체 식별 제외 경로

    Returns:
        MovingDesk: 통합 객체

    Example:
        ```python
        from fastapi import FastAPI
        from moving_desk import setup_moving_desk

        app = FastAPI()
        desk = setup_moving_desk(app)

        @app.on_event("startup")
        async def startup():
            await desk.init()

        @app.on_event("shutdown")
        async def shutdown():
            await desk.close()
        ```
    """
    desk = desk or MovingDesk(config)

    app.add_middleware(
        MerchantMiddleware,
        header_name=merchant_header_name,
        exclude_paths=exclude_paths or [
            f"{prefix}/health",
            "/docs",
            "/openapi.json",
            "/redoc",
            "/favicon.ico",
        ],
    )
    app.include_router(create_moving_router(desk, prefix=prefix))

    # 앱 상태에 저장 (다른 곳에서 접근 가능하도록)
    app.state.moving_desk = desk

    logger.info(f"moving_desk setup complete (API port: {desk.config.api_port})")
    return desk


def get_moving_desk(app: FastAPI) -> Optional[MovingDesk]:
    """FastAPI 앱에서 MovingDesk 객체 가져오기"""
    return getattr(app.state, "moving_desk", None)
