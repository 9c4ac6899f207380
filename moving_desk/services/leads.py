"""
리드 서비스

접수 폼/채널에서 들어온 고객 문의를 등록하고 관리합니다.
"""

import logging
from typing import Optional, List, Dict, Any

from ..core.exceptions import NotFoundError
from ..core.models import Lead
from ..core.schemas import LeadCreate, LeadUpdate, parse_payload
from ..repository.base import Repository
from .activity import ActivityLog, ActivityType

logger = logging.getLogger(__name__)


class LeadService:
    """리드 등록/조회/수정"""

    def __init__(self, repository: Repository, activity_log: Optional[ActivityLog] = None):
        self.repo = repository
        self.activities = activity_log or ActivityLog(repository)

    async def create_lead(self, merchant_id: str, data: Any) -> Lead:
        """
        리드 등록

        Args:
            merchant_id: 업체 ID
            data: LeadCreate 또는 dict (name, phone, channel 필수)

        Returns:
            저장된 Lead
        """
        payload = parse_payload(LeadCreate, data)

        async with self.repo.transaction():
            if not await self.repo.get_merchant(merchant_id):
                raise NotFoundError("Merchant", merchant_id)

            lead = await self.repo.create_lead(Lead(merchant_id=merchant_id, **payload.model_dump()))
            await self.activities.record(
                merchant_id,
                ActivityType.LEAD_CREATED,
                f"New lead from {lead.channel} channel",
                entity_id=lead.id,
                entity_type="lead",
            )

        logger.info(f"Lead created: {lead.id} ({lead.channel})")
        return lead

    async def get_lead(self, lead_id: str) -> Lead:
        lead = await self.repo.get_lead(lead_id)
        if not lead:
            raise NotFoundError("Lead", lead_id)
        return lead

    async def list_leads(self, merchant_id: str) -> List[Lead]:
        """업체 리드 목록 (최신순)"""
        return await self.repo.get_leads(merchant_id)

    async def update_lead(self, lead_id: str, patch: Optional[Dict[str, Any]]) -> Lead:
        """리드 부분 수정 (활동 기록 없음)"""
        data = parse_payload(LeadUpdate, patch).model_dump(exclude_unset=True)

        lead = await self.repo.update_lead(lead_id, data)
        if not lead:
            raise NotFoundError("Lead", lead_id)
        return lead
