"""
LLM 응답 정규화
신뢰할 수 없는 자유 형식 텍스트를 최대 3개의 MessageCandidate로 변환합니다.

파싱 전략은 순서대로 시도하고, 1개 이상 나오는 첫 전략에서 멈춥니다.
  1) 전체를 JSON으로 파싱
  2) ``` 코드펜스 제거 후 파싱
  3) 첫 '[' ~ 마지막 ']' 구간만 잘라 파싱
모두 실패하면 UnparsableResponse.
"""

import json
import logging
import math
from typing import Any, Callable, List, Optional, Sequence

from src.utils.errors import UnparsableResponse
from .models import (
    ANONYMOUS_AUTHOR,
    DEFAULT_KIND,
    MAX_DONATION,
    PLACEHOLDER_TEXT,
    VALID_KINDS,
    MessageCandidate,
)

logger = logging.getLogger(__name__)

MAX_CANDIDATES = 3

# {"danmaku": [...]} 처럼 감싼 형태에서 먼저 볼 키
WRAPPER_KEYS = ("danmaku", "messages", "comments", "replies", "items")

Strategy = Callable[[str], Optional[List[dict]]]


def _unwrap(data: Any) -> Optional[List[Any]]:
    """파싱 결과를 항목 리스트로. 배열/객체가 아니면 None(다음 전략)."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in WRAPPER_KEYS:
            if _has_dict(data.get(key)):
                return data[key]
        for value in data.values():
            if _has_dict(value):
                return value
        # tags 같은 스칼라 리스트 필드는 감싼 형태가 아님 → 객체 1개
        return [data]
    return None


def _has_dict(value: Any) -> bool:
    return isinstance(value, list) and any(isinstance(item, dict) for item in value)


def _dict_items(items: Optional[List[Any]]) -> Optional[List[dict]]:
    if items is None:
        return None
    out = [item for item in items if isinstance(item, dict)]
    return out or None


def _loads(text: str) -> Optional[List[dict]]:
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError, ValueError):
        return None
    return _dict_items(_unwrap(data))


def parse_whole(raw: str) -> Optional[List[dict]]:
    return _loads(raw.strip())


def parse_fenced(raw: str) -> Optional[List[dict]]:
    """```json ... ``` 로 감싼 응답."""
    text = raw.strip()
    if not text.startswith("```"):
        return None
    text = text.split("\n", 1)[-1] if "\n" in text else text[3:]
    if text.rstrip().endswith("```"):
        text = text.rstrip().rsplit("```", 1)[0]
    return _loads(text.strip())


def parse_bracket_slice(raw: str) -> Optional[List[dict]]:
    """앞뒤 설명 문장이 붙은 경우: 첫 '[' ~ 마지막 ']'."""
    start, end = raw.find("["), raw.rfind("]")
    if start < 0 or end <= start:
        return None
    return _loads(raw[start : end + 1])


DEFAULT_STRATEGIES: Sequence[Strategy] = (parse_whole, parse_fenced, parse_bracket_slice)


def coerce_text(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return PLACEHOLDER_TEXT


def coerce_kind(value: Any) -> str:
    if isinstance(value, str):
        kind = value.strip().lower()
        if kind in VALID_KINDS:
            return kind
    return DEFAULT_KIND


def coerce_author(value: Any) -> str:
    if isinstance(value, bool):
        return ANONYMOUS_AUTHOR
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return ANONYMOUS_AUTHOR


def coerce_donation(value: Any) -> Optional[int]:
    """0보다 큰 숫자만 인정 → 상한 100, 내림. 그 외 형태는 무시."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value) or value <= 0:
        return None
    amount = math.floor(min(value, MAX_DONATION))
    return amount if amount >= 1 else None


def to_candidate(item: dict) -> MessageCandidate:
    return MessageCandidate(
        text=coerce_text(item.get("text")),
        kind=coerce_kind(item.get("kind", item.get("type"))),
        author=coerce_author(item.get("author")),
        donation=coerce_donation(item.get("donation")),
    )


class ResponseNormalizer:
    """LLM 원문 → MessageCandidate 리스트 (최대 3개)"""

    def __init__(
        self,
        strategies: Optional[Sequence[Strategy]] = None,
        max_candidates: int = MAX_CANDIDATES,
    ):
        self.strategies = tuple(strategies or DEFAULT_STRATEGIES)
        self.max_candidates = max_candidates

    def normalize(self, raw: str) -> List[MessageCandidate]:
        """
        Args:
            raw: LLM 응답 content (신뢰 불가)

        Returns:
            1~max_candidates개의 MessageCandidate

        Raises:
            UnparsableResponse: 어떤 전략으로도 항목을 얻지 못한 경우
        """
        text = raw if isinstance(raw, str) else ""
        for strategy in self.strategies:
            items = strategy(text)
            if items:
                if len(items) > self.max_candidates:
                    logger.debug("응답 항목 %d개 → %d개로 자름", len(items), self.max_candidates)
                return [to_candidate(item) for item in items[: self.max_candidates]]
        logger.warning("AI 응답 파싱 실패, raw=%r", text[:200])
        raise UnparsableResponse(raw=text)


_default_normalizer = ResponseNormalizer()


def normalize(raw: str) -> List[MessageCandidate]:
    """기본 전략으로 정규화."""
    return _default_normalizer.normalize(raw)
