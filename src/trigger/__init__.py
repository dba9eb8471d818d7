"""에디터 이벤트 → 채팅 생성 트리거"""

from .events import TriggerKind, Priority, TriggerEvent, DocumentSnapshot, TextChange
from .context import extract_context, is_paste
from .scheduler import TriggerScheduler, FireDecision

__all__ = [
    "TriggerKind",
    "Priority",
    "TriggerEvent",
    "DocumentSnapshot",
    "TextChange",
    "extract_context",
    "is_paste",
    "TriggerScheduler",
    "FireDecision",
]
