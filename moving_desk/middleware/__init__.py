"""
미들웨어 모듈

업체 컨텍스트 관리 미들웨어
"""
from .merchant import MerchantMiddleware, MerchantContext, get_current_merchant, get_merchant_id

__all__ = [
    "MerchantMiddleware",
    "MerchantContext",
    "get_current_merchant",
    "get_merchant_id",
]
