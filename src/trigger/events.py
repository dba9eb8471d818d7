"""
에디터 이벤트 → 트리거 이벤트 타입
idle / paste / save / diagnosticError 네 종류, 우선순위는 normal / high.
"""

from dataclasses import dataclass
from enum import Enum


class TriggerKind(str, Enum):
    IDLE = "idle"
    PASTE = "paste"
    SAVE = "save"
    DIAGNOSTIC_ERROR = "diagnosticError"


class Priority(str, Enum):
    NORMAL = "normal"
    HIGH = "high"


KIND_PRIORITY = {
    TriggerKind.IDLE: Priority.NORMAL,
    TriggerKind.PASTE: Priority.HIGH,
    TriggerKind.SAVE: Priority.HIGH,
    TriggerKind.DIAGNOSTIC_ERROR: Priority.HIGH,
}

# 프롬프트에 넣는 트리거 사유
KIND_REASON = {
    TriggerKind.IDLE: "스트리머가 코드를 치다가 잠시 멈췄습니다.",
    TriggerKind.PASTE: "스트리머가 큰 코드 덩어리를 붙여넣었습니다.",
    TriggerKind.SAVE: "스트리머가 파일을 저장했습니다.",
    TriggerKind.DIAGNOSTIC_ERROR: "에디터에 에러(빨간 줄)가 떴습니다.",
}


@dataclass(frozen=True)
class DocumentSnapshot:
    """에디터 문서 상태 (외부 에디터가 넘겨줌)."""
    text: str
    language_id: str = "plaintext"
    cursor_line: int = 0  # 0부터
    uri: str = ""


@dataclass(frozen=True)
class TextChange:
    """편집 1회분. inserted_text가 50자 초과 + 줄바꿈 포함이면 붙여넣기로 판단."""
    inserted_text: str = ""
    removed_length: int = 0


@dataclass(frozen=True)
class TriggerEvent:
    kind: TriggerKind
    code: str  # 커서 주변 코드 창
    language_id: str = "plaintext"
    uri: str = ""
    fired_at: float = 0.0

    @property
    def priority(self) -> Priority:
        return KIND_PRIORITY[self.kind]

    @property
    def reason(self) -> str:
        return KIND_REASON[self.kind]
