"""
후원 장부
누적 후원액(영속, 단조 증가)과 표시용 시청자 수(세션마다 새로, 랜덤 변동)를 관리합니다.
"""

from __future__ import annotations

import logging
import random
from typing import Iterable, List, Optional, Tuple, TYPE_CHECKING

from src.storage.state_store import TOTAL_DONATIONS_KEY

if TYPE_CHECKING:
    from src.chat.models import ChatMessage
    from src.storage.state_store import StateStore
    from src.stream.state import SessionState
    from src.viewers.models import Viewer
    from src.viewers.registry import ViewerRegistry

logger = logging.getLogger(__name__)

VIEWER_COUNT_BASE = 1205
VIEWER_COUNT_SPREAD = 200
VIEWER_COUNT_FLOOR = 100
DRIFT_MIN = -2
DRIFT_MAX = 2


class EconomyLedger:
    def __init__(
        self,
        state: "SessionState",
        store: Optional["StateStore"] = None,
        rng: Optional[random.Random] = None,
    ):
        self.state = state
        self.store = store
        self.rng = rng or random.Random()

    @property
    def total_donations(self) -> int:
        return self.state.total_donations

    @property
    def viewer_count(self) -> int:
        return self.state.viewer_count

    def apply_messages(self, messages: Iterable["ChatMessage"]) -> int:
        """후원이 있는 메시지 합산. 새 누적액 반환 (감소하지 않음)."""
        added = 0
        for m in messages:
            if m.donation is not None and m.donation > 0:
                added += m.donation
        if added:
            self.state.total_donations += added
            logger.info("후원 +%d → 누적 %d", added, self.state.total_donations)
        return self.state.total_donations

    def settle(
        self,
        messages: Iterable["ChatMessage"],
        registry: "ViewerRegistry",
    ) -> Tuple[int, List["Viewer"]]:
        """
        후원 합산 → 해금 검사 → 저장을 한 번에 (중간에 await 없음).
        합계만 바뀌고 해금이 안 된 상태를 밖에서 볼 수 없게 함.
        """
        before = self.state.total_donations
        total = self.apply_messages(messages)
        newly_unlocked = registry.check_unlock(total)
        if total != before and self.store is not None:
            try:
                self.store.set(TOTAL_DONATIONS_KEY, total)
            except OSError as e:
                logger.warning("후원 합계 저장 실패 (누적 %d): %s", total, e)
        return total, newly_unlocked

    def drift(self) -> int:
        """시청자 수 소폭 랜덤 변동 (하한 VIEWER_COUNT_FLOOR)."""
        count = self.state.viewer_count + self.rng.randint(DRIFT_MIN, DRIFT_MAX)
        self.state.viewer_count = max(VIEWER_COUNT_FLOOR, count)
        return self.state.viewer_count
