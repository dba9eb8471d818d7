"""커서 주변 코드 창 추출, 붙여넣기 판정."""

from typing import Optional

from .events import TextChange

LINES_BEFORE = 30
LINES_AFTER = 5
MIN_CONTEXT_CHARS = 10
PASTE_MIN_CHARS = 50


def extract_context(
    text: str,
    cursor_line: int,
    lines_before: int = LINES_BEFORE,
    lines_after: int = LINES_AFTER,
) -> str:
    """커서 30줄 위 ~ 5줄 아래 (문서 범위로 자름)."""
    lines = (text or "").splitlines()
    if not lines:
        return ""
    cursor = min(max(0, cursor_line), len(lines) - 1)
    start = max(0, cursor - lines_before)
    end = min(len(lines), cursor + lines_after + 1)
    return "\n".join(lines[start:end])


def is_meaningful(context: str, min_chars: int = MIN_CONTEXT_CHARS) -> bool:
    return len(context.strip()) >= min_chars


def is_paste(change: Optional[TextChange]) -> bool:
    if change is None:
        return False
    inserted = change.inserted_text or ""
    return len(inserted) > PASTE_MIN_CHARS and ("\n" in inserted or "\r" in inserted)
