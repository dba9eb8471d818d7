"""오버레이용 공유 상태. 세션이 OverlayFeed로 갱신하고, 서버가 /api/state 로 반환."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Iterable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from src.chat.models import ChatMessage

logger = logging.getLogger(__name__)

MAX_MESSAGES = 50
MAX_NOTICES = 20
NOTICE_LEVELS = ("info", "warning")


def new_overlay_state() -> dict[str, Any]:
    # messages: [{ChatMessage.to_dict(), "ts": float}, ...]
    # notices: [{"id": int, "level": "info"|"warning", "text": str, "ts": float}, ...]
    return {
        "messages": [],
        "notices": [],
        "total_donations": 0,
        "viewer_count": 0,
        "_next_notice_id": 0,
    }


overlay_state: dict[str, Any] = new_overlay_state()


class OverlayFeed:
    """표시 계층에 쓰는 쪽. 리스트는 최근 N개만 유지."""

    def __init__(self, state: Optional[dict[str, Any]] = None, clock: Callable[[], float] = time.time):
        self.state = overlay_state if state is None else state
        self._clock = clock

    def add_messages(self, messages: Iterable["ChatMessage"]) -> int:
        now = self._clock()
        added = [dict(m.to_dict(), ts=now) for m in messages]
        if not added:
            return 0
        items = self.state.setdefault("messages", [])
        items.extend(added)
        del items[:-MAX_MESSAGES]
        logger.debug("오버레이 메시지 +%d (총 %d)", len(added), len(items))
        return len(added)

    def add_notice(self, level: str, text: str) -> dict[str, Any]:
        if level not in NOTICE_LEVELS:
            level = "info"
        notice_id = int(self.state.get("_next_notice_id") or 0)
        self.state["_next_notice_id"] = notice_id + 1
        notice = {"id": notice_id, "level": level, "text": text, "ts": self._clock()}
        items = self.state.setdefault("notices", [])
        items.append(notice)
        del items[:-MAX_NOTICES]
        return notice

    def update_stats(self, total_donations: int, viewer_count: int) -> None:
        self.state["total_donations"] = int(total_donations)
        self.state["viewer_count"] = int(viewer_count)

    def clear(self) -> None:
        self.state["messages"] = []
        self.state["notices"] = []
