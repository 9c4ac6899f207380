"""
대시보드 지표 집계

호출할 때마다 저장소에서 다시 계산합니다. 캐시는 없습니다.
"""

import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional, Iterable, Tuple, Dict, Any

from ..core.models import BookingStatus, PaymentStatus, utcnow
from ..core.pricing import round_half_up
from ..repository.base import Repository

logger = logging.getLogger(__name__)


@dataclass
class DashboardMetrics:
    """대시보드 지표 (정수)"""
    total_leads: int = 0
    confirmed_bookings: int = 0
    revenue: int = 0
    conversion_rate: int = 0
    leads_growth: int = 0
    bookings_growth: int = 0
    revenue_growth: int = 0
    conversion_change: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def percent_change(current: int, previous: int) -> int:
    """
    증감률 (%)

    이전 값이 0이면 현재 값이 있을 때 100, 없으면 0
    """
    if previous == 0:
        return 100 if current > 0 else 0
    return round_half_up(Decimal(current - previous) / Decimal(previous) * 100)


def conversion_rate(confirmed: int, leads: int) -> int:
    """전환율 (%), 리드가 없으면 0"""
    if leads == 0:
        return 0
    return round_half_up(Decimal(confirmed) / Decimal(leads) * 100)


def _in_window(ts: Optional[datetime], window: Tuple[datetime, datetime]) -> bool:
    start, end = window
    return ts is not None and start < ts <= end


def _count(items: Iterable, window: Tuple[datetime, datetime]) -> int:
    return sum(1 for item in items if _in_window(item.created_at, window))


class MetricsAggregator:
    """
    지표 집계기

    증감률은 최근 window_days 일과 그 직전 window_days 일을 비교합니다.

    Example:
        aggregator = MetricsAggregator(repository, window_days=30)
        metrics = await aggregator.get_metrics(merchant_id)
    """

    def __init__(self, repository: Repository, window_days: int = 30):
        if window_days <= 0:
            raise ValueError("window_days must be positive")
        self.repo = repository
        self.window_days = window_days

    def windows(self, now: datetime) -> Tuple[Tuple[datetime, datetime], Tuple[datetime, datetime]]:
        """(현재 구간, 이전 구간), 각각 (시작, 끝] 형태"""
        width = timedelta(days=self.window_days)
        current = (now - width, now)
        previous = (now - 2 * width, now - width)
        return current, previous

    async def get_metrics(self, merchant_id: str, now: Optional[datetime] = None) -> DashboardMetrics:
        leads = await self.repo.get_leads(merchant_id)
        bookings = await self.repo.get_bookings(merchant_id)
        payments = await self.repo.get_payments(merchant_id)

        confirmed = [b for b in bookings if b.status == BookingStatus.CONFIRMED.value]
        completed = [p for p in payments if p.status == PaymentStatus.COMPLETED.value]

        current, previous = self.windows(now or utcnow())

        cur_leads, prev_leads = _count(leads, current), _count(leads, previous)
        cur_confirmed, prev_confirmed = _count(confirmed, current), _count(confirmed, previous)
        cur_revenue = sum(p.amount for p in completed if _in_window(p.created_at, current))
        prev_revenue = sum(p.amount for p in completed if _in_window(p.created_at, previous))

        metrics = DashboardMetrics(
            total_leads=len(leads),
            confirmed_bookings=len(confirmed),
            revenue=sum(p.amount for p in completed),
            conversion_rate=conversion_rate(len(confirmed), len(leads)),
            leads_growth=percent_change(cur_leads, prev_leads),
            bookings_growth=percent_change(cur_confirmed, prev_confirmed),
            revenue_growth=percent_change(cur_revenue, prev_revenue),
            conversion_change=(
                conversion_rate(cur_confirmed, cur_leads)
                - conversion_rate(prev_confirmed, prev_leads)
            ),
        )
        logger.debug(f"Metrics computed for {merchant_id}: {metrics}")
        return metrics
