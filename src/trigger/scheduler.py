"""
트리거 스케줄러
에디터 이벤트(타이핑/붙여넣기/저장/진단)를 받아 언제 채팅 생성을 요청할지 결정합니다.

- idle: 마지막 편집 후 디바운스(기본·최소 3000ms) 동안 조용하면 normal
- paste: 한 번에 50자 초과 + 줄바꿈 삽입 → 즉시 high
- save: 저장마다 high
- diagnosticError: 에러 등장 시 high, 별도 30초 간격
쿨다운: 공유 "마지막 발사 시각" 기준 normal 15초, high 5초. 통과 못 하면 버림(큐·재시도 없음).
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Set, TYPE_CHECKING

from src.utils.errors import GenerationFailed, NeedConfig, UnparsableResponse
from .context import extract_context, is_meaningful, is_paste
from .events import DocumentSnapshot, Priority, TextChange, TriggerEvent, TriggerKind, KIND_PRIORITY

if TYPE_CHECKING:
    from src.stream.state import SessionState

logger = logging.getLogger(__name__)

DEBOUNCE_FLOOR_MS = 3000
COOLDOWN_SEC = {
    Priority.NORMAL: 15.0,
    Priority.HIGH: 5.0,
}
ERROR_SPACING_SEC = 30.0


class FireDecision(str, Enum):
    FIRED = "fired"
    COOLDOWN = "cooldown"
    ERROR_SPACING = "error_spacing"
    EMPTY_CONTEXT = "empty_context"
    DISABLED = "disabled"


class TriggerScheduler:
    """세션당 1개. 모든 콜백은 이벤트 루프 스레드에서 순차 실행."""

    def __init__(
        self,
        state: "SessionState",
        on_fire: Callable[[TriggerEvent], Awaitable[Any]],
        debounce_ms: int = DEBOUNCE_FLOOR_MS,
        enabled: bool = True,
        on_warning: Optional[Callable[[str], None]] = None,
        clock: Callable[[], float] = time.monotonic,
        call_later: Optional[Callable[[float, Callable[[], None]], Any]] = None,
        spawn: Optional[Callable[[Awaitable[Any]], Any]] = None,
    ):
        """
        Args:
            state: 세션 공유 상태 (last_fire_at 등)
            on_fire: 발사 시 호출할 코루틴 함수 (생성 → 정규화 → 장부 반영)
            debounce_ms: idle 디바운스. 3000 미만은 3000으로 올림
            on_warning: high 우선순위 실패 시 화면 경고 (non-blocking)
            clock / call_later / spawn: 테스트용 주입 (기본: monotonic, 실행 중 루프)
        """
        self.state = state
        self._on_fire = on_fire
        self.debounce_ms = debounce_ms
        self.enabled = enabled
        self._on_warning = on_warning
        self._clock = clock
        self._call_later = call_later
        self._spawn = spawn
        self._idle_handle: Any = None
        self._idle_document: Optional[DocumentSnapshot] = None
        self._error_counts: Dict[str, int] = {}
        self._tasks: Set[asyncio.Task] = set()

    @property
    def debounce_ms(self) -> int:
        return self._debounce_ms

    @debounce_ms.setter
    def debounce_ms(self, value: int) -> None:
        try:
            value = int(value)
        except (TypeError, ValueError):
            value = DEBOUNCE_FLOOR_MS
        self._debounce_ms = max(DEBOUNCE_FLOOR_MS, value)

    # ----- 에디터 이벤트 입력

    def on_text_change(self, document: DocumentSnapshot, change: Optional[TextChange] = None) -> Optional[FireDecision]:
        """편집마다 idle 타이머 재설정. 붙여넣기면 즉시 high 발사 시도."""
        if not self.enabled:
            return FireDecision.DISABLED
        self._schedule_idle(document)
        if is_paste(change):
            return self.submit(TriggerKind.PASTE, document)
        return None

    def on_save(self, document: DocumentSnapshot) -> FireDecision:
        return self.submit(TriggerKind.SAVE, document)

    def on_diagnostics(self, document: DocumentSnapshot, error_count: int) -> Optional[FireDecision]:
        """에러 수가 늘어났을 때(0→N 포함)만 발사 시도. 줄어들면 기록만."""
        key = document.uri or "<active>"
        previous = self._error_counts.get(key, 0)
        self._error_counts[key] = max(0, error_count)
        if error_count > previous:
            return self.submit(TriggerKind.DIAGNOSTIC_ERROR, document)
        return None

    # ----- idle 디바운스

    def _schedule_idle(self, document: DocumentSnapshot) -> None:
        """새 타이머가 이전 타이머를 대체 (마지막 것만 살아있음)."""
        self.cancel_idle()
        self._idle_document = document
        call_later = self._call_later or asyncio.get_running_loop().call_later
        self._idle_handle = call_later(self._debounce_ms / 1000.0, self._on_idle_timeout)

    def cancel_idle(self) -> None:
        if self._idle_handle is not None:
            self._idle_handle.cancel()
            self._idle_handle = None

    @property
    def idle_pending(self) -> bool:
        return self._idle_handle is not None

    def _on_idle_timeout(self) -> None:
        self._idle_handle = None
        document, self._idle_document = self._idle_document, None
        if document is not None:
            self.submit(TriggerKind.IDLE, document)

    # ----- 발사 판정

    def submit(self, kind: TriggerKind, document: DocumentSnapshot) -> FireDecision:
        """
        발사 여부 결정. 쿨다운 확인과 갱신 사이에 await가 없으므로
        거의 동시에 들어온 두 이벤트가 둘 다 통과하지 않음.
        """
        if not self.enabled:
            return FireDecision.DISABLED
        code = extract_context(document.text, document.cursor_line)
        if not is_meaningful(code):
            logger.debug("트리거 무시 (코드 너무 짧음): kind=%s", kind.value)
            return FireDecision.EMPTY_CONTEXT

        now = self._clock()
        priority = KIND_PRIORITY[kind]
        last = self.state.last_fire_at
        if last is not None and now - last < COOLDOWN_SEC[priority]:
            logger.debug("트리거 버림 (쿨다운 %.1fs 남음): kind=%s", COOLDOWN_SEC[priority] - (now - last), kind.value)
            return FireDecision.COOLDOWN
        if kind is TriggerKind.DIAGNOSTIC_ERROR:
            last_err = self.state.last_error_fire_at
            if last_err is not None and now - last_err < ERROR_SPACING_SEC:
                logger.debug("진단 트리거 버림 (에러 간격 %.1fs 남음)", ERROR_SPACING_SEC - (now - last_err))
                return FireDecision.ERROR_SPACING
            self.state.last_error_fire_at = now
        self.state.last_fire_at = now

        event = TriggerEvent(
            kind=kind,
            code=code,
            language_id=document.language_id,
            uri=document.uri,
            fired_at=now,
        )
        logger.info("트리거 발사: kind=%s, priority=%s, code_len=%d", kind.value, priority.value, len(code))
        self._dispatch(event)
        return FireDecision.FIRED

    def _dispatch(self, event: TriggerEvent) -> None:
        coro = self._run(event)
        if self._spawn is not None:
            self._spawn(coro)
            return
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, event: TriggerEvent) -> None:
        """실패해도 재시도하지 않음. 쿨다운은 이미 소모된 상태로 둠."""
        try:
            await self._on_fire(event)
        except UnparsableResponse as e:
            logger.warning("응답 파싱 실패 (필러 미처리): %s", e.reason)
        except NeedConfig as e:
            self._surface_failure(event, str(e))
        except GenerationFailed as e:
            self._surface_failure(event, f"AI 채팅 생성 실패: {e.reason}")
        except Exception as e:
            logger.exception("트리거 처리 오류: %s", e)

    def _surface_failure(self, event: TriggerEvent, message: str) -> None:
        """idle은 조용히, 저장·붙여넣기·에러는 경고 표시."""
        if event.priority is Priority.HIGH and self._on_warning is not None:
            logger.warning("트리거 실패 (%s): %s", event.kind.value, message)
            self._on_warning(message)
        else:
            logger.info("트리거 실패 무시 (%s): %s", event.kind.value, message)

    async def drain(self) -> None:
        """진행 중인 발사 작업 대기 (종료 시)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
