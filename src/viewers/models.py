"""
시청자(페르소나) 카탈로그 항목
config/viewers.json 의 "viewers" 리스트 한 항목에 해당합니다.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass
class Viewer:
    """카탈로그 시청자. unlocked는 한 번 True가 되면 되돌리지 않음."""
    id: str
    name: str
    price: int = 0  # 해금에 필요한 누적 후원액 (0이면 항상 해금)
    unlocked: bool = False
    avatar: str = ""
    tag: str = ""
    description: str = ""
    emoji: str = ""
    message_background: str = ""
    prompts: List[str] = field(default_factory=list)  # 생성기 미설정/필러용 예시 대사

    @classmethod
    def from_dict(cls, raw: Any) -> Optional["Viewer"]:
        """
        JSON 항목을 정규화해 Viewer로 변환. 선택 필드는 빈 값으로 채움.
        id와 name이 모두 없으면 None.
        """
        if not isinstance(raw, dict):
            return None
        name = _text(raw.get("name"))
        vid = _text(raw.get("id")) or name
        if not vid or not name:
            return None
        try:
            price = max(0, int(raw.get("price") or 0))
        except (TypeError, ValueError):
            price = 0
        prompts = raw.get("prompts")
        return cls(
            id=vid,
            name=name,
            price=price,
            unlocked=raw.get("unlocked") is True,
            avatar=_text(raw.get("avatar")),
            tag=_text(raw.get("tag")),
            description=_text(raw.get("description")),
            emoji=_text(raw.get("emoji")),
            message_background=_text(raw.get("messageBackground")),
            prompts=[p for p in prompts if isinstance(p, str) and p.strip()] if isinstance(prompts, list) else [],
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "unlocked": self.unlocked,
            "avatar": self.avatar,
            "tag": self.tag,
            "description": self.description,
            "emoji": self.emoji,
            "messageBackground": self.message_background,
            "prompts": list(self.prompts),
        }


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""
