"""
Geo 모듈 - 이동 거리 조회

Example:
    from moving_desk.geo import HttpDistanceClient, create_distance_provider

    provider = create_distance_provider(config.pricing)
    km = await provider.distance_km(lead.origin, lead.dest)
"""

from .client import DistanceProvider, FixedDistanceProvider, HttpDistanceClient


def create_distance_provider(pricing_config) -> DistanceProvider:
    """설정에 따라 거리 조회기 생성"""
    if pricing_config.distance_api_url:
        return HttpDistanceClient(
            base_url=pricing_config.distance_api_url,
            api_key=pricing_config.distance_api_key,
            timeout=pricing_config.distance_api_timeout,
            fallback_km=pricing_config.default_distance_km,
        )
    return FixedDistanceProvider(pricing_config.default_distance_km)


__all__ = [
    "DistanceProvider",
    "FixedDistanceProvider",
    "HttpDistanceClient",
    "create_distance_provider",
]
