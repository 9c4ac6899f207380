"""
도메인 예외 정의

서비스 계층에서 발생하고 API 경계에서 HTTP 응답으로 변환됩니다.
"""
from typing import Optional


class MovingDeskError(Exception):
    """moving_desk 기본 예외"""


class NotFoundError(MovingDeskError):
    """리드, 요금 규칙, 예약 등을 찾을 수 없을 때 발생"""
    def __init__(self, entity: str, entity_id: Optional[str]):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class ValidationError(MovingDeskError):
    """요청 데이터가 잘못되었을 때 발생"""
    def __init__(self, field: Optional[str], message: str):
        self.field = field
        self.message = message
        if field:
            super().__init__(f"{field}: {message}")
        else:
            super().__init__(message)


class ConflictError(MovingDeskError):
    """중복/충돌 (향후 유일성 제약용)"""


class InvalidTransitionError(ConflictError):
    """허용되지 않는 예약 상태 전이"""
    def __init__(self, booking_id: str, current: str, target: str):
        self.booking_id = booking_id
        self.current = current
        self.target = target
        super().__init__(
            f"Booking {booking_id} cannot move from {current} to {target}"
        )
