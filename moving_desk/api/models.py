"""
HTTP API 응답 모델

요청/도메인 스키마는 core.schemas에 있고, 여기에는 HTTP 경계 전용 모델만 둡니다.
"""

from typing import Optional
from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """헬스체크 응답"""
    status: str = Field(..., description="healthy, unhealthy")
    version: str = Field(..., description="서비스 버전")
    timestamp: str = Field(..., description="ISO 8601 형식 타임스탬프")

    class Config:
        json_schema_extra = {
            "example": {
                "status": "healthy",
                "version": "0.1.0",
                "timestamp": "2026-01-03T12:00:00Z"
            }
        }


class CallbackResponse(BaseModel):
    """결제 콜백 응답"""
    success: bool = True
    payment_id: Optional[str] = None
    status: Optional[str] = None


class ErrorResponse(BaseModel):
    """에러 응답 (HTTPException detail)"""
    success: bool = Field(default=False, description="항상 False")
    error: str = Field(..., description="에러 코드")
    message: str = Field(..., description="에러 메시지")
    field: Optional[str] = Field(default=None, description="검증 실패 필드")

    class Config:
        json_schema_extra = {
            "example": {
                "success": False,
                "error": "NOT_FOUND",
                "message": "Lead 3f6c... not found",
                "field": None
            }
        }


class ErrorCodes:
    """표준 에러 코드"""
    NOT_FOUND = "NOT_FOUND"
    INVALID_REQUEST = "INVALID_REQUEST"
    CONFLICT = "CONFLICT"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    INTERNAL_ERROR = "INTERNAL_ERROR"
