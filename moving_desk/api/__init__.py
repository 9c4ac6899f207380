"""
API 모듈 - moving_desk HTTP 경계

사용 예시:
    from moving_desk.api import create_moving_router

    app.include_router(create_moving_router(desk, prefix="/api"))
"""
from .router import create_moving_router, to_http_exception
from .models import HealthResponse, CallbackResponse, ErrorResponse, ErrorCodes

__all__ = [
    "create_moving_router",
    "to_http_exception",
    "HealthResponse",
    "CallbackResponse",
    "ErrorResponse",
    "ErrorCodes",
]
