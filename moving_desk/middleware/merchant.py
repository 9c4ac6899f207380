"""
업체 컨텍스트 미들웨어

요청별로 업체(merchant)를 식별하고 컨텍스트에 저장합니다.
"""

from contextvars import ContextVar
from dataclasses import dataclass
from typing import Optional, List

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

# 현재 요청의 업체 컨텍스트
_current_merchant: ContextVar[Optional["MerchantContext"]] = ContextVar(
    "current_merchant", default=None
)


@dataclass
class MerchantContext:
    """업체 컨텍스트 정보"""
    merchant_id: str


def get_current_merchant() -> Optional[MerchantContext]:
    """현재 요청의 업체 컨텍스트 반환"""
    return _current_merchant.get()


def get_merchant_id() -> Optional[str]:
    """현재 업체 ID 반환"""
    ctx = _current_merchant.get()
    return ctx.merchant_id if ctx else None


def set_current_merchant(context: Optional[MerchantContext]) -> None:
    _current_merchant.set(context)


class MerchantMiddleware(BaseHTTPMiddleware):
    """
    업체 식별 미들웨어

    식별 방법 (우선순위):
    1. X-Merchant-ID 헤더
    2. merchant_id 쿼리 파라미터

    식별되지 않으면 컨텍스트를 비워 두고, 라우터가 기본 업체를 사용합니다.

    Example:
        from fastapi import FastAPI
        from moving_desk.middleware import MerchantMiddleware

        app = FastAPI()
        app.add_middleware(MerchantMiddleware, exclude_paths=["/api/health"])
    """

    def __init__(
        self,
        app,
        header_name: str = "X-Merchant-ID",
        query_param: str = "merchant_id",
        exclude_paths: Optional[List[str]] = None,
    ):
        super().__init__(app)
        self.header_name = header_name
        self.query_param = query_param
        self.exclude_paths = exclude_paths or [
            "/api/health",
            "/docs",
            "/openapi.json",
            "/redoc",
        ]

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if any(path.startswith(exc) for exc in self.exclude_paths):
            return await call_next(request)

        merchant_id = self._extract_merchant_id(request)
        if merchant_id:
            set_current_merchant(MerchantContext(merchant_id=merchant_id))
            request.state.merchant_id = merchant_id

        try:
            return await call_next(request)
        finally:
            # 요청 완료 후 컨텍스트 정리
            set_current_merchant(None)

    def _extract_merchant_id(self, request: Request) -> Optional[str]:
        """요청에서 업체 ID 추출"""
        merchant_id = request.headers.get(self.header_name)
        if merchant_id:
            return merchant_id.strip() or None

        merchant_id = request.query_params.get(self.query_param)
        if merchant_id:
            return merchant_id.strip() or None

        return None
