"""
로컬 필러 채팅
생성기 미설정이거나 응답을 파싱하지 못했을 때, 해금된 시청자의 예시 대사(prompts)나
config/personas.json 템플릿으로 채팅을 채웁니다. 후원은 절대 붙이지 않음.
"""

from __future__ import annotations

import json
import logging
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, TYPE_CHECKING

from src.chat.models import DEFAULT_KIND, VALID_KINDS, MessageCandidate

if TYPE_CHECKING:
    from src.viewers.registry import ViewerRegistry

logger = logging.getLogger(__name__)


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent.parent


@dataclass
class Persona:
    name: str
    kind: str = DEFAULT_KIND
    templates: List[str] = field(default_factory=list)


def default_personas() -> List[Persona]:
    return [
        Persona("코린이", "newbie", ["와 이거 엄청 고급스럽게 짜시네요!"]),
        Persona("악플러", "hater", ["또 버그 만드는 중?"]),
        Persona("고인물", "pro", ["여기 좀 최적화하면 좋을 듯"]),
    ]


class PersonaBook:
    """config/personas.json: {"personas": [{"name", "type", "templates"}]}"""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else _project_root() / "config" / "personas.json"
        self.personas: List[Persona] = []
        self.reload()

    def reload(self) -> List[Persona]:
        self.personas = self._read() or default_personas()
        return self.personas

    def _read(self) -> List[Persona]:
        if not self.path.exists():
            logger.debug("페르소나 설정 없음 %s → 기본값", self.path)
            return []
        try:
            config = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("페르소나 로드 실패 %s: %s", self.path, e)
            return []
        raw_list = config.get("personas") if isinstance(config, dict) else None
        out: List[Persona] = []
        for raw in raw_list if isinstance(raw_list, list) else []:
            if not isinstance(raw, dict):
                continue
            name = str(raw.get("name") or "").strip()
            templates = [t for t in raw.get("templates") or [] if isinstance(t, str) and t.strip()]
            if not name or not templates:
                continue
            kind = raw.get("type") if raw.get("type") in VALID_KINDS else DEFAULT_KIND
            out.append(Persona(name, kind, templates))
        return out


class FillerGenerator:
    """랜덤 소스 주입 가능 (테스트에서 결정적 시퀀스)."""

    def __init__(
        self,
        registry: "ViewerRegistry",
        personas: Optional[PersonaBook] = None,
        rng: Optional[random.Random] = None,
        max_messages: int = 2,
    ):
        self.registry = registry
        self.personas = personas or PersonaBook()
        self.rng = rng or random.Random()
        self.max_messages = max(1, max_messages)

    def generate(self, count: Optional[int] = None) -> List[MessageCandidate]:
        if count is None:
            count = self.rng.randint(1, self.max_messages)
        pool = self._pool()
        if not pool:
            return []
        return [self.rng.choice(pool) for _ in range(max(0, count))]

    def _pool(self) -> List[MessageCandidate]:
        """해금 시청자 대사 우선, 없으면 페르소나 템플릿."""
        pool = [
            MessageCandidate(text=line, kind=_kind_for_tag(v.tag), author=v.name)
            for v in self.registry.unlocked_viewers()
            for line in v.prompts
        ]
        if pool:
            return pool
        return [
            MessageCandidate(text=t, kind=p.kind, author=p.name)
            for p in self.personas.personas
            for t in p.templates
        ]


def _kind_for_tag(tag: str) -> str:
    # 태그로 대충 성향 추정
    if tag in ("고수", "VIP", "대가", "pro"):
        return "pro"
    if tag in ("악플러", "hater"):
        return "hater"
    return DEFAULT_KIND
