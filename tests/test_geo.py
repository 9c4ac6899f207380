"""
거리 조회 클라이언트 테스트

HTTP 호출은 Mock으로 대체합니다.
"""

import pytest
import httpx
from unittest.mock import AsyncMock, MagicMock, patch

from moving_desk.config import PricingConfig
from moving_desk.geo import (
    FixedDistanceProvider,
    HttpDistanceClient,
    create_distance_provider,
)


def make_response(payload=None, status_code=200) -> httpx.Response:
    request = httpx.Request("POST", "https://route.example.com/v1/distance")
    return httpx.Response(status_code, json=payload, request=request)


class TestFixedDistanceProvider:
    """고정 거리 테스트"""

    @pytest.mark.asyncio
    async def test_returns_configured_km(self):
        provider = FixedDistanceProvider(7.5)
        assert await provider.distance_km({"address": "a"}, {"address": "b"}) == 7.5

    def test_factory_without_api(self):
        provider = create_distance_provider(PricingConfig(default_distance_km=12))
        assert isinstance(provider, FixedDistanceProvider)
        assert provider.km == 12

    def test_factory_with_api(self):
        provider = create_distance_provider(PricingConfig(
            distance_api_url="https://route.example.com/",
            distance_api_key="secret",
        ))
        assert isinstance(provider, HttpDistanceClient)
        assert provider.base_url == "https://route.example.com"
        assert provider.fallback_km == 10.0


class TestHttpDistanceClient:
    """경로 API 클라이언트 테스트"""

    @pytest.mark.asyncio
    async def test_distance_lookup(self):
        client = HttpDistanceClient("https://route.example.com", api_key="secret")
        origin = {"address": "서울시 강남구"}
        dest = {"address": "서울시 서초구"}

        with patch.object(
            httpx.AsyncClient,
            "post",
            new_callable=AsyncMock,
            return_value=make_response({"distance_km": 12.3}),
        ) as mock_post:
            km = await client.distance_km(origin, dest)

        assert km == 12.3
        mock_post.assert_awaited_once_with(
            "https://route.example.com/v1/distance",
            json={"origin": origin, "dest": dest},
        )
        assert (await client._get_client()).headers["X-API-Key"] == "secret"
        await client.close()

    @pytest.mark.asyncio
    async def test_fallback_on_http_error(self):
        client = HttpDistanceClient("https://route.example.com", fallback_km=8.0)

        with patch.object(
            httpx.AsyncClient,
            "post",
            new_callable=AsyncMock,
            return_value=make_response({"error": "unavailable"}, status_code=503),
        ):
            assert await client.distance_km({"a": 1}, {"b": 2}) == 8.0
        await client.close()

    @pytest.mark.asyncio
    async def test_fallback_on_connection_error(self, caplog):
        client = HttpDistanceClient("https://route.example.com", fallback_km=8.0)

        with patch.object(
            httpx.AsyncClient,
            "post",
            new_callable=AsyncMock,
            side_effect=httpx.ConnectError("connection refused"),
        ):
            with caplog.at_level("WARNING"):
                assert await client.distance_km({"a": 1}, {"b": 2}) == 8.0

        assert "Distance lookup failed" in caplog.text
        await client.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {},
        {"distance_km": "far"},
        {"distance_km": -3},
    ])
    async def test_fallback_on_bad_payload(self, payload):
        client = HttpDistanceClient("https://route.example.com", fallback_km=10.0)

        with patch.object(
            httpx.AsyncClient,
            "post",
            new_callable=AsyncMock,
            return_value=make_response(payload),
        ):
            assert await client.distance_km({"a": 1}, {"b": 2}) == 10.0
        await client.close()

    @pytest.mark.asyncio
    async def test_missing_address_skips_request(self):
        client = HttpDistanceClient("https://route.example.com", fallback_km=10.0)
        client._get_client = MagicMock()

        assert await client.distance_km(None, {"address": "b"}) == 10.0
        client._get_client.assert_not_called()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
