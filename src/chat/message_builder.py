"""MessageCandidate → ChatMessage 변환 (id 부여, 작성자 → 시청자 표시 정보 보강)"""

from __future__ import annotations

import secrets
from typing import Callable, Iterable, List, Optional, TYPE_CHECKING

from .models import MAX_TEXT_LENGTH, ChatMessage, MessageCandidate

if TYPE_CHECKING:
    from src.viewers.models import Viewer
    from src.viewers.registry import ViewerRegistry


def new_message_id() -> str:
    return secrets.token_hex(4)


def truncate_text(text: str, max_len: int = MAX_TEXT_LENGTH) -> str:
    text = " ".join(text.split())
    if len(text) > max_len:
        return text[: max_len - 1].rstrip() + "…"
    return text


def from_candidate(
    candidate: MessageCandidate,
    viewer: Optional["Viewer"] = None,
    id_factory: Callable[[], str] = new_message_id,
) -> ChatMessage:
    return ChatMessage(
        id=id_factory(),
        text=truncate_text(candidate.text) or "...",
        kind=candidate.kind,
        author=candidate.author,
        donation=candidate.donation,
        avatar=viewer.avatar if viewer else "",
        tag=viewer.tag if viewer else "",
        message_background=viewer.message_background if viewer else "",
    )


def build_messages(
    candidates: Iterable[MessageCandidate],
    registry: Optional["ViewerRegistry"] = None,
    id_factory: Callable[[], str] = new_message_id,
) -> List[ChatMessage]:
    """작성자 이름이 카탈로그와 안 맞으면 아바타/태그 없이 그대로."""
    out: List[ChatMessage] = []
    for c in candidates:
        viewer = registry.find_for_author(c.author) if registry is not None else None
        out.append(from_candidate(c, viewer, id_factory))
    return out


def system_message(
    text: str,
    viewer: Optional["Viewer"] = None,
    id_factory: Callable[[], str] = new_message_id,
) -> ChatMessage:
    return ChatMessage(
        id=id_factory(),
        text=truncate_text(text),
        kind="system",
        author="시스템",
        avatar=viewer.avatar if viewer else "📢",
        tag=viewer.tag if viewer else "",
        message_background=viewer.message_background if viewer else "",
    )


def unlock_message(viewer: "Viewer", total_donations: int, id_factory: Callable[[], str] = new_message_id) -> ChatMessage:
    return system_message(f"🎉 {viewer.name} 입장! (누적 후원 {total_donations:,})", viewer, id_factory)
