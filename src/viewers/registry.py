"""
시청자 카탈로그 관리
config/viewers.json 로드, 해금 상태 추적·저장, 채팅 작성자 이름 → 시청자 매칭.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional, TYPE_CHECKING

from src.storage.state_store import UNLOCKED_VIEWERS_KEY
from .models import Viewer

if TYPE_CHECKING:
    from src.storage.state_store import StateStore
    from src.stream.state import SessionState

logger = logging.getLogger(__name__)


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent.parent


def names_match(author: str, name: str) -> bool:
    """작성자 이름 ↔ 시청자 이름: 일치 또는 양방향 부분 문자열 포함. 빈 이름은 불일치."""
    if not author or not name:
        return False
    return author == name or author in name or name in author


def default_viewers() -> List[Viewer]:
    """카탈로그 파일이 없거나 깨졌을 때 쓰는 기본 시청자 (무료 1, 유료 2)."""
    return [
        Viewer(
            id="viewer_anonymous",
            name="지나가던행인",
            emoji="🔘",
            price=0,
            unlocked=True,
            avatar="👤",
            description="무료 시청자",
            prompts=["코드 깔끔하네요", "배워갑니다", "ㄷㄷ"],
            tag="뉴비",
        ),
        Viewer(
            id="viewer_linus",
            name="리누스",
            emoji="⚪",
            price=2000,
            avatar="🐧",
            description="리눅스와 Git의 아버지",
            prompts=["이 구현은 더 줄일 수 있음", "성능도 생각해 보세요", "구조는 괜찮은데 더 단순하게"],
            tag="고수",
        ),
        Viewer(
            id="viewer_jobs",
            name="잡스",
            emoji="✅",
            price=1000,
            avatar="🍎",
            description="애플 창업자",
            prompts=["디자인이 간결하네요", "사용자 경험이 제일 중요합니다", "단순하게 가세요"],
            tag="VIP",
        ),
    ]


class ViewerRegistry:
    """
    시청자 카탈로그의 단일 소유자.
    초기 해금 상태 = 카탈로그 unlocked OR price == 0 OR 저장된 해금 id 목록.
    """

    def __init__(
        self,
        state: "SessionState",
        store: Optional["StateStore"] = None,
        catalog_path: Optional[Path] = None,
    ):
        self.state = state
        self.store = store
        self.catalog_path = Path(catalog_path) if catalog_path else _project_root() / "config" / "viewers.json"
        self._viewers: List[Viewer] = []

    @property
    def viewers(self) -> List[Viewer]:
        return self._viewers

    def load(self) -> List[Viewer]:
        """카탈로그 로드. 없거나 잘못된 파일이면 기본 카탈로그."""
        viewers = self._read_catalog()
        if not viewers:
            viewers = default_viewers()
        for v in viewers:
            if v.price == 0 or v.id in self.state.unlocked_viewer_ids:
                v.unlocked = True
        self._viewers = viewers
        logger.info(
            "시청자 카탈로그 로드: %d명 (해금 %d명)",
            len(viewers),
            sum(1 for v in viewers if v.unlocked),
        )
        return viewers

    def refresh(self) -> List[Viewer]:
        """카탈로그 다시 읽기. 이미 해금된 시청자는 저장된 id 목록으로 유지."""
        return self.load()

    def _read_catalog(self) -> List[Viewer]:
        p = self.catalog_path
        if not p.exists():
            logger.warning("시청자 카탈로그 없음 %s → 기본 카탈로그 사용", p)
            return []
        try:
            config = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("시청자 카탈로그 로드 실패 %s: %s → 기본 카탈로그 사용", p, e)
            return []
        raw_list = config.get("viewers") if isinstance(config, dict) else None
        if not isinstance(raw_list, list):
            logger.warning("시청자 카탈로그 형식 오류 %s: viewers 리스트 없음", p)
            return []
        out: List[Viewer] = []
        seen: set[str] = set()
        for raw in raw_list:
            v = Viewer.from_dict(raw)
            if v is None:
                logger.debug("시청자 항목 무시 (id/name 없음): %r", raw)
                continue
            if v.id in seen:
                logger.warning("중복 시청자 id 무시: %s", v.id)
                continue
            seen.add(v.id)
            out.append(v)
        return out

    def get(self, viewer_id: str) -> Optional[Viewer]:
        for v in self._viewers:
            if v.id == viewer_id:
                return v
        return None

    def find_for_author(self, name: str) -> Optional[Viewer]:
        """
        작성자 이름으로 시청자 찾기 (최선 추정, 보장 아님).
        정확히 일치 우선, 없으면 카탈로그 순서상 첫 부분 문자열 포함(양방향).
        짧은 이름이 여러 시청자에 포함되면 첫 항목으로 귀속됨.
        """
        if not name:
            return None
        for v in self._viewers:
            if v.name == name:
                return v
        for v in self._viewers:
            if names_match(name, v.name):
                return v
        return None

    def check_unlock(self, total_donations: int) -> List[Viewer]:
        """누적 후원액으로 새로 해금된 시청자 반환. 변경 있으면 즉시 저장."""
        newly_unlocked: List[Viewer] = []
        for v in self._viewers:
            if not v.unlocked and v.price > 0 and v.price <= total_donations:
                v.unlocked = True
                self.state.unlocked_viewer_ids.add(v.id)
                newly_unlocked.append(v)
        if newly_unlocked:
            logger.info(
                "시청자 해금: %s (누적 후원 %d)",
                ", ".join(v.name for v in newly_unlocked),
                total_donations,
            )
            if self.store is not None:
                try:
                    self.store.set(UNLOCKED_VIEWERS_KEY, sorted(self.state.unlocked_viewer_ids))
                except OSError as e:
                    # 메모리 해금은 유지, 다음 저장 때 전체 목록이 다시 기록됨
                    logger.warning("해금 목록 저장 실패: %s", e)
        return newly_unlocked

    def unlocked_viewers(self, limit: Optional[int] = None) -> List[Viewer]:
        out = [v for v in self._viewers if v.unlocked]
        return out if limit is None else out[: max(0, limit)]

    def list_unlocked_names(self, limit: int) -> List[str]:
        """프롬프트 길이 제한용. 카탈로그 순서."""
        return [v.name for v in self.unlocked_viewers(limit)]
