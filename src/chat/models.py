"""
채팅(탄막) 데이터 모델.
LLM 응답 → MessageCandidate(정규화 결과) → ChatMessage(화면 표시용, 시청자 정보 보강)
"""

from dataclasses import dataclass
from typing import Optional


VALID_KINDS = frozenset({"newbie", "hater", "pro", "system"})
DEFAULT_KIND = "newbie"  # 알 수 없는 type은 가장 신뢰도 낮은 newbie로
ANONYMOUS_AUTHOR = "익명 시청자"
PLACEHOLDER_TEXT = "..."
MAX_TEXT_LENGTH = 120  # 한 줄 탄막으로 안전하게 보일 길이
MAX_DONATION = 100


@dataclass(frozen=True)
class MessageCandidate:
    """정규화된 LLM 응답 항목 1개. id·시청자 정보는 아직 없음."""
    text: str
    kind: str = DEFAULT_KIND
    author: str = ANONYMOUS_AUTHOR
    donation: Optional[int] = None


@dataclass(frozen=True)
class ChatMessage:
    """화면에 내보내는 채팅 1줄. 생성 후 변경하지 않음."""
    id: str
    text: str
    kind: str
    author: str = ANONYMOUS_AUTHOR
    donation: Optional[int] = None
    avatar: str = ""
    tag: str = ""
    message_background: str = ""

    def __post_init__(self):
        if self.kind not in VALID_KINDS:
            object.__setattr__(self, "kind", DEFAULT_KIND)

    def to_dict(self) -> dict:
        """오버레이 JSON 직렬화용 (camelCase 키는 표시 측 규격)."""
        out = {
            "id": self.id,
            "text": self.text,
            "type": self.kind,
            "author": self.author,
            "avatar": self.avatar,
            "tag": self.tag,
            "messageBackground": self.message_background,
        }
        if self.donation is not None:
            out["donation"] = self.donation
        return out
