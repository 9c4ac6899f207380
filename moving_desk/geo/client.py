"""
거리 조회 클라이언트

출발지-도착지 거리(km)를 외부 경로 API에서 조회합니다.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Dict, Any
import httpx

logger = logging.getLogger(__name__)


class DistanceProvider(ABC):
    """거리 조회 인터페이스"""

    @abstractmethod
    async def distance_km(
        self,
        origin: Optional[Dict[str, Any]],
        dest: Optional[Dict[str, Any]],
    ) -> float:
        """출발지-도착지 거리 (km)"""

    async def close(self) -> None:
        pass


class FixedDistanceProvider(DistanceProvider):
    """고정 거리 (외부 API 미연동 시)"""

    def __init__(self, km: float = 10.0):
        self.km = km

    async def distance_km(self, origin, dest) -> float:
        return self.km


class HttpDistanceClient(DistanceProvider):
    """
    경로 API 클라이언트

    Example:
        client = HttpDistanceClient(
            base_url="https://route.example.com",
            api_key="your-api-key",
            fallback_km=10.0,
        )

        km = await client.distance_km(
            {"address": "서울시 강남구"},
            {"address": "서울시 서초구"},
        )
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        api_key_header: str = "X-API-Key",
        timeout: float = 5.0,
        fallback_km: float = 10.0,
        endpoint: str = "/v1/distance",
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.api_key_header = api_key_header
        self.timeout = timeout
        self.fallback_km = fallback_km
        self.endpoint = endpoint
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """HTTP 클라이언트 반환"""
        if self._client is None:
            headers = {}
            if self.api_key:
                headers[self.api_key_header] = self.api_key
            self._client = httpx.AsyncClient(timeout=self.timeout, headers=headers)
        return self._client

    async def close(self):
        """클라이언트 종료"""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _url(self) -> str:
        return f"{self.base_url}{self.endpoint}"

    async def distance_km(self, origin, dest) -> float:
        """
        거리 조회

        응답 형식: {"distance_km": 12.3}
        조회 실패 시 fallback_km 반환
        """
        if not origin or not dest:
            return self.fallback_km

        client = await self._get_client()

        try:
            response = await client.post(
                self._url(),
                json={"origin": origin, "dest": dest},
            )
            response.raise_for_status()
            km = float(response.json()["distance_km"])
            if km < 0:
                raise ValueError(f"negative distance: {km}")
            return km
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Distance lookup failed, using {self.fallback_km}km: {e}")
            return self.fallback_km
