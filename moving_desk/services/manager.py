"""
업체 관리자

업체 생성(프로비저닝) 및 요금 규칙 관리
"""

import logging
from dataclasses import replace
from typing import Optional, List, Dict, Any

from ..core.exceptions import NotFoundError, ValidationError
from ..core.models import Merchant, PricingRule
from ..core.schemas import PricingRuleUpdate, parse_payload
from ..repository.base import Repository

logger = logging.getLogger(__name__)


class MerchantManager:
    """
    업체 관리자

    업체는 생성 시 기본 요금 규칙을 하나 갖습니다.

    Example:
        manager = MerchantManager(repository)

        merchant = await manager.create_merchant("무빙프로", per_km=2500)
        rule = await manager.get_pricing_rule(merchant.id)
    """

    def __init__(self, repository: Repository):
        self.repo = repository

    async def create_merchant(self, name: str, **rule_overrides: Any) -> Merchant:
        """
        새 업체 생성

        Args:
            name: 업체 이름
            **rule_overrides: 기본 요금 규칙 대신 사용할 값
                (base_fee, per_km, per_floor, volume_coeff, surge_rules)

        Returns:
            생성된 Merchant 객체
        """
        if not name or not name.strip():
            raise ValidationError("name", "Merchant name is required")

        overrides = parse_payload(PricingRuleUpdate, rule_overrides).model_dump(
            exclude_unset=True, exclude_none=True
        )

        merchant = Merchant(name=name.strip())
        rule = PricingRule(merchant_id=merchant.id, **overrides)

        async with self.repo.transaction():
            await self.repo.create_merchant(merchant)
            await self.repo.save_pricing_rule(rule)

        logger.info(f"Merchant created: {merchant.id} ({merchant.name})")
        return merchant

    async def get_merchant(self, merchant_id: str) -> Merchant:
        """업체 조회"""
        merchant = await self.repo.get_merchant(merchant_id)
        if not merchant:
            raise NotFoundError("Merchant", merchant_id)
        return merchant

    async def list_merchants(self) -> List[Merchant]:
        """업체 목록 (생성 순)"""
        return await self.repo.list_merchants()

    async def get_pricing_rule(self, merchant_id: str) -> PricingRule:
        """요금 규칙 조회"""
        rule = await self.repo.get_pricing_rule(merchant_id)
        if not rule:
            raise NotFoundError("PricingRule", merchant_id)
        return rule

    async def update_pricing_rule(
        self,
        merchant_id: str,
        patch: Optional[Dict[str, Any]],
    ) -> PricingRule:
        """
        요금 규칙 수정

        volume_coeff는 통째로 교체됩니다.
        """
        data = parse_payload(PricingRuleUpdate, patch).model_dump(
            exclude_unset=True, exclude_none=True
        )

        async with self.repo.transaction():
            rule = await self.get_pricing_rule(merchant_id)
            updated = await self.repo.save_pricing_rule(replace(rule, **data))

        logger.info(f"Pricing rule updated: {merchant_id} {sorted(data)}")
        return updated
