"""
Repository 모듈 - 저장소 추상화

- Repository: 저장소 인터페이스
- InMemoryRepository: dict 기반 구현 (테스트/데모)
- SQLRepository: SQLAlchemy 비동기 구현
"""
from .base import Repository
from .memory import InMemoryRepository
from .sql import SQLRepository

__all__ = [
    "Repository",
    "InMemoryRepository",
    "SQLRepository",
]
