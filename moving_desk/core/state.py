"""
예약 상태 머신

tentative → quoted → confirmed, 그리고 cancelled
"""
from typing import Dict, FrozenSet, Union

from .models import BookingStatus
from .exceptions import InvalidTransitionError

TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.TENTATIVE: frozenset({BookingStatus.QUOTED, BookingStatus.CANCELLED}),
    # quoted → quoted 는 재견적
    BookingStatus.QUOTED: frozenset({
        BookingStatus.QUOTED,
        BookingStatus.CONFIRMED,
        BookingStatus.CANCELLED,
    }),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
}

TERMINAL_STATES = frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED})


def can_transition(
    current: Union[BookingStatus, str],
    target: Union[BookingStatus, str],
) -> bool:
    """전이 가능 여부"""
    return BookingStatus(target) in TRANSITIONS[BookingStatus(current)]


def ensure_transition(
    booking_id: str,
    current: Union[BookingStatus, str],
    target: Union[BookingStatus, str],
) -> BookingStatus:
    """전이 검증 후 목표 상태 반환"""
    if not can_transition(current, target):
        raise InvalidTransitionError(
            booking_id,
            BookingStatus(current).value,
            BookingStatus(target).value,
        )
    return BookingStatus(target)


def is_terminal(status: Union[BookingStatus, str]) -> bool:
    return BookingStatus(status) in TERMINAL_STATES
