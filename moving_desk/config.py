"""
moving_desk 설정

데이터베이스, 견적, 지표 설정 관리
"""

import os
from dataclasses import dataclass, field
from typing import Optional


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class DatabaseConfig:
    """데이터베이스 설정"""
    # None이면 인메모리 저장소 사용
    url: Optional[str] = None
    echo: bool = False

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """환경변수에서 설정 로드"""
        return cls(
            url=os.getenv("MOVING_DATABASE_URL") or None,
            echo=_env_bool("SQL_ECHO", "false"),
        )


@dataclass
class PricingConfig:
    """견적/거리 설정"""
    # 거리 조회 실패 또는 미설정 시 사용하는 거리 (km)
    default_distance_km: float = 10.0

    # 외부 거리 조회 API (없으면 고정 거리 사용)
    distance_api_url: Optional[str] = None
    distance_api_key: Optional[str] = None
    distance_api_timeout: float = 5.0

    @classmethod
    def from_env(cls) -> "PricingConfig":
        """환경변수에서 설정 로드"""
        return cls(
            default_distance_km=float(os.getenv("MOVING_DEFAULT_DISTANCE_KM", "10")),
            distance_api_url=os.getenv("MOVING_DISTANCE_API_URL") or None,
            distance_api_key=os.getenv("MOVING_DISTANCE_API_KEY") or None,
            distance_api_timeout=float(os.getenv("MOVING_DISTANCE_API_TIMEOUT", "5")),
        )


@dataclass
class MovingDeskConfig:
    """moving_desk 전체 설정"""

    # 서비스 정보
    service_name: str = "moving_desk"
    version: str = "0.1.0"
    environment: str = "development"
    debug: bool = True

    # 하위 설정
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)

    # 지표 증감률 비교 기간 (일)
    metrics_window_days: int = 30

    # 활동 피드 기본 조회 개수
    activity_limit: int = 10

    # 확정/취소된 예약 재견적 거부 여부
    strict_requote: bool = True

    # X-Merchant-ID 헤더가 없을 때 사용할 업체
    default_merchant_id: Optional[str] = None

    api_port: int = 11020

    @classmethod
    def from_env(cls) -> "MovingDeskConfig":
        """환경변수에서 전체 설정 로드"""
        return cls(
            service_name=os.getenv("MOVING_SERVICE_NAME", "moving_desk"),
            version=os.getenv("MOVING_VERSION", "0.1.0"),
            environment=os.getenv("MOVING_ENVIRONMENT", "development"),
            debug=_env_bool("MOVING_DEBUG", "true"),
            database=DatabaseConfig.from_env(),
            pricing=PricingConfig.from_env(),
            metrics_window_days=int(os.getenv("MOVING_METRICS_WINDOW_DAYS", "30")),
            activity_limit=int(os.getenv("MOVING_ACTIVITY_LIMIT", "10")),
            strict_requote=_env_bool("MOVING_STRICT_REQUOTE", "true"),
            default_merchant_id=os.getenv("MOVING_DEFAULT_MERCHANT_ID") or None,
            api_port=int(os.getenv("MOVING_API_PORT", "11020")),
        )


# 전역 설정 인스턴스
_config: Optional[MovingDeskConfig] = None


def get_config() -> MovingDeskConfig:
    """전역 설정 반환"""
    global _config
    if _config is None:
        _config = MovingDeskConfig.from_env()
    return _config


def set_config(config: Optional[MovingDeskConfig]) -> None:
    """전역 설정 지정 (None이면 다음 조회 시 환경변수에서 다시 로드)"""
    global _config
    _config = config
