"""
가상 채팅 메시지 모듈
생성기 응답 정규화 → 표시용 메시지 변환
"""

from .models import ChatMessage, MessageCandidate, VALID_KINDS, DEFAULT_KIND, ANONYMOUS_AUTHOR, MAX_TEXT_LENGTH
from .normalizer import ResponseNormalizer, normalize, MAX_CANDIDATES
from .message_builder import build_messages, new_message_id, system_message

__all__ = [
    "ChatMessage",
    "MessageCandidate",
    "VALID_KINDS",
    "DEFAULT_KIND",
    "ANONYMOUS_AUTHOR",
    "MAX_TEXT_LENGTH",
    "ResponseNormalizer",
    "normalize",
    "MAX_CANDIDATES",
    "build_messages",
    "new_message_id",
    "system_message",
]
