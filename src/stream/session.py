"""
방송 세션
설정·저장소·시청자 레지스트리·장부·생성 클라이언트·필러·오버레이·스케줄러를 한 곳에서 조립합니다.
트리거 발사 → 생성 → 메시지 변환 → 후원 정산/해금 → 오버레이 반영.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Callable, Iterable, List, Optional

from src.ai.filler import FillerGenerator, PersonaBook
from src.ai.generation_client import GenerationClient
from src.chat.message_builder import build_messages, unlock_message
from src.chat.models import ChatMessage, MessageCandidate
from src.overlay.state import OverlayFeed
from src.storage.state_store import StateStore
from src.trigger.events import TriggerEvent
from src.trigger.scheduler import TriggerScheduler
from src.utils.errors import NeedConfig, UnparsableResponse
from src.utils.settings import StreamerSettings
from src.viewers.economy import EconomyLedger
from src.viewers.models import Viewer
from src.viewers.registry import ViewerRegistry, names_match
from .state import SessionState

logger = logging.getLogger(__name__)

DRIFT_INTERVAL_SEC = 5.0
REFRESH_INTERVAL_SEC = 3600.0


class StreamSession:
    def __init__(
        self,
        settings: StreamerSettings,
        store: Optional[StateStore] = None,
        feed: Optional[OverlayFeed] = None,
        rng: Optional[random.Random] = None,
        client_factory: Optional[Callable[[StreamerSettings], Any]] = None,
        important_authors: Optional[Iterable[str]] = None,
        **scheduler_hooks: Any,
    ):
        """
        Args:
            settings: StreamerSettings.from_env() 결과
            store: 후원 합계·해금 목록 저장소 (기본: settings.state_path)
            feed: 오버레이 출력 (기본: 모듈 공유 overlay_state)
            rng: 시청자 수·필러용 랜덤 소스
            client_factory: GenerationClient에 넘길 클라이언트 팩토리 (테스트용)
            important_authors: 알림으로 한 번 더 띄울 작성자 이름. None이면 유료 시청자 이름
            scheduler_hooks: TriggerScheduler의 clock / call_later / spawn
        """
        self.settings = settings
        self.rng = rng or random.Random()
        self.store = store or StateStore(settings.state_path)
        self.state = SessionState.restore(self.store, self.rng)

        self.registry = ViewerRegistry(self.state, self.store, settings.viewers_path)
        self.registry.load()
        self.ledger = EconomyLedger(self.state, self.store, self.rng)
        self.client = GenerationClient(settings, self.registry, client_factory=client_factory)
        self.filler = FillerGenerator(self.registry, PersonaBook(settings.personas_path), self.rng)
        self.feed = feed or OverlayFeed()
        self._important_authors = set(important_authors) if important_authors is not None else None

        self.scheduler = TriggerScheduler(
            self.state,
            self.handle_trigger,
            debounce_ms=settings.debounce_ms,
            enabled=settings.enabled,
            on_warning=self.warn,
            **scheduler_hooks,
        )
        self.feed.update_stats(self.ledger.total_donations, self.ledger.viewer_count)
        logger.info(
            "세션 시작: enabled=%s, configured=%s, 누적 후원 %d, 시청자 %d",
            settings.enabled,
            settings.is_configured,
            self.ledger.total_donations,
            self.ledger.viewer_count,
        )

    @property
    def important_authors(self) -> set[str]:
        if self._important_authors is not None:
            return self._important_authors
        return {v.name for v in self.registry.viewers if v.price > 0}

    # ----- 트리거 처리

    async def handle_trigger(self, event: TriggerEvent) -> List[ChatMessage]:
        """
        스케줄러 on_fire. 파싱 실패는 필러로 조용히 대체.
        NeedConfig는 필러를 내보낸 뒤 다시 올려서 스케줄러가 경고 정책을 적용하게 함.
        """
        try:
            candidates = await self.client.generate(event.code, event.language_id, event.reason)
        except UnparsableResponse as e:
            logger.info("응답 파싱 실패 → 필러 대체: %s", e.reason)
            return self.publish(self.filler.generate())
        except NeedConfig:
            self.publish(self.filler.generate())
            raise
        return self.publish(candidates)

    def publish(self, candidates: Iterable[MessageCandidate]) -> List[ChatMessage]:
        """변환 → 정산 → 해금 안내 → 오버레이. 중간에 await 없음."""
        messages = build_messages(candidates, self.registry)
        if not messages:
            return []
        total, newly_unlocked = self.ledger.settle(messages, self.registry)
        out = messages + [unlock_message(v, total) for v in newly_unlocked]
        self.feed.add_messages(out)
        self._notify_important(messages)
        self.feed.update_stats(total, self.ledger.viewer_count)
        return out

    def _notify_important(self, messages: Iterable[ChatMessage]) -> None:
        names = self.important_authors
        for m in messages:
            if any(names_match(m.author, n) for n in names):
                self.feed.add_notice("info", f"{m.author}: {m.text}")

    def warn(self, message: str) -> None:
        """high 우선순위 실패 경고 (화면 알림, 막지 않음)."""
        self.feed.add_notice("warning", message)

    # ----- 주기 작업

    def tick_drift(self) -> int:
        count = self.ledger.drift()
        self.feed.update_stats(self.ledger.total_donations, count)
        return count

    def refresh_viewers(self) -> List[Viewer]:
        viewers = self.registry.refresh()
        self.filler.personas.reload()
        return viewers

    async def run_drift(self, interval: float = DRIFT_INTERVAL_SEC) -> None:
        while True:
            await asyncio.sleep(interval)
            self.tick_drift()

    async def run_refresh(self, interval: float = REFRESH_INTERVAL_SEC) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                self.refresh_viewers()
            except Exception as e:
                logger.exception("시청자 카탈로그 갱신 실패: %s", e)

    async def close(self) -> None:
        self.scheduler.cancel_idle()
        await self.scheduler.drain()
        logger.info("세션 종료: 누적 후원 %d", self.ledger.total_donations)
