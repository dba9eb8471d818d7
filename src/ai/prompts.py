"""
채팅 생성 프롬프트
코드 일부 + 언어 + 트리거 사유 + 해금된 시청자 역할표(최대 15명)로 구성합니다.
"""

import re
from typing import Any, List, Optional, Sequence

MAX_CODE_CHARS = 2000
MAX_ROLE_VIEWERS = 15
MAX_EXAMPLE_LINES = 3

PROMPT_TEMPLATE = """당신은 코딩 생방송 채팅창의 시청자 채팅 생성기입니다.
아래 코드를 읽고 짧은 채팅 1~3개를 만드세요 (구어체, 드립 OK, 저속한 말 금지).

상황: {reason}
언어: {language}

코드:
```{language}
{code}
```

{roles}

규칙:
- type은 newbie | hater | pro 중 하나
- {author_rule}
- donation은 선택 정수(1~100). 정말 감탄스럽거나 웃길 때만 넣기
- JSON 배열만 출력. 설명 문장 금지

출력 예시:
[
  {{"text": "채팅 내용", "type": "newbie", "author": "지나가던행인", "donation": 0}}
]"""


def _sanitize(value: Any, max_len: int) -> str:
    """프롬프트 삽입 전 제어문자 제거 + 길이 제한."""
    s = str(value or "")
    s = re.sub(r"[\x00-\x08\x0b-\x1f\x7f]", " ", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s[:max_len]


def build_role_sheet(viewers: Sequence[Any], limit: int = MAX_ROLE_VIEWERS) -> str:
    """시청자별 이름·태그·설명·예시 대사(최대 3줄)."""
    lines: List[str] = []
    for v in list(viewers)[:limit]:
        name = _sanitize(getattr(v, "name", ""), 40)
        if not name:
            continue
        head = f"- {name}"
        tag = _sanitize(getattr(v, "tag", ""), 20)
        if tag:
            head += f" [{tag}]"
        desc = _sanitize(getattr(v, "description", ""), 120)
        if desc:
            head += f": {desc}"
        lines.append(head)
        for example in (getattr(v, "prompts", None) or [])[:MAX_EXAMPLE_LINES]:
            ex = _sanitize(example, 80)
            if ex:
                lines.append(f'    예) "{ex}"')
    if not lines:
        return ""
    return "시청자 역할표:\n" + "\n".join(lines)


def build_prompt(
    code: str,
    language_id: str = "plaintext",
    reason: str = "",
    viewers: Optional[Sequence[Any]] = None,
    author_names: Optional[Sequence[str]] = None,
) -> str:
    """author_names 없으면 viewers 이름으로 author 규칙을 만듦."""
    viewers = list(viewers or [])[:MAX_ROLE_VIEWERS]
    if author_names is None:
        author_names = [getattr(v, "name", "") for v in viewers]
    names = [n for n in author_names[:MAX_ROLE_VIEWERS] if n]
    if names:
        author_rule = "author는 반드시 다음 중 하나: " + ", ".join(names)
    else:
        author_rule = "author는 아무 닉네임이나 가능"
    roles = build_role_sheet(viewers)
    return PROMPT_TEMPLATE.format(
        reason=reason or "스트리머가 코드를 작성 중입니다.",
        language=_sanitize(language_id, 30) or "plaintext",
        code=(code or "")[:MAX_CODE_CHARS],
        roles=roles or "(역할표 없음)",
        author_rule=author_rule,
    )
