"""세션 단위 가변 상태. 스케줄러·장부·레지스트리가 전역 대신 이 객체를 공유."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING

from src.viewers.economy import VIEWER_COUNT_BASE, VIEWER_COUNT_SPREAD

if TYPE_CHECKING:
    from src.storage.state_store import StateStore


@dataclass
class SessionState:
    total_donations: int = 0  # 세션 내 단조 증가
    viewer_count: int = VIEWER_COUNT_BASE  # 표시용 시청자 수 (저장 안 함)
    unlocked_viewer_ids: set[str] = field(default_factory=set)
    last_fire_at: Optional[float] = None  # 모든 트리거 공유 쿨다운 기준
    last_error_fire_at: Optional[float] = None  # 진단 에러 전용 간격

    @classmethod
    def restore(cls, store: "StateStore", rng: Optional[random.Random] = None) -> "SessionState":
        """저장된 후원 합계·해금 목록 복원. viewer_count는 세션마다 새로 뽑음."""
        rng = rng or random.Random()
        return cls(
            total_donations=store.load_total_donations(),
            viewer_count=VIEWER_COUNT_BASE + rng.randrange(VIEWER_COUNT_SPREAD),
            unlocked_viewer_ids=store.load_unlocked_ids(),
        )
