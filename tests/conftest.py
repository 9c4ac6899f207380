"""
Moving Desk - Pytest Configuration

테스트에서 사용할 공통 fixture들을 정의합니다.
"""

import sys
from pathlib import Path

import pytest
import pytest_asyncio

# 프로젝트 루트를 Python 경로에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from moving_desk.config import MovingDeskConfig, set_config
from moving_desk.geo import FixedDistanceProvider
from moving_desk.repository import InMemoryRepository
from moving_desk.setup import MovingDesk


@pytest.fixture(autouse=True)
def reset_global_config():
    """테스트 사이 전역 설정 초기화"""
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def config() -> MovingDeskConfig:
    """인메모리 저장소, 고정 거리 10km 설정"""
    return MovingDeskConfig(environment="test", debug=False)


@pytest.fixture
def repository() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def desk(config, repository) -> MovingDesk:
    """
    MovingDesk fixture

    Usage:
        async def test_quote(desk, sample_lead):
            quote = await desk.workflow.generate_quote(sample_lead.id)
    """
    return MovingDesk(
        config,
        repository=repository,
        distance_provider=FixedDistanceProvider(10.0),
    )


@pytest_asyncio.fixture
async def merchant(desk):
    """기본 요금 규칙을 가진 업체"""
    return await desk.merchants.create_merchant("Moving Pro Co.")


@pytest.fixture
def lead_payload() -> dict:
    """2층 → 7층, 양쪽 엘리베이터, 대형 이사"""
    return {
        "channel": "kakao",
        "name": "이민수",
        "phone": "010-9876-5432",
        "origin": {"address": "서울시 마포구"},
        "dest": {"address": "서울시 종로구"},
        "floor_from": 2,
        "floor_to": 7,
        "elev_from": True,
        "elev_to": True,
        "volume": "L",
    }


@pytest_asyncio.fixture
async def sample_lead(desk, merchant, lead_payload):
    return await desk.leads.create_lead(merchant.id, lead_payload)
