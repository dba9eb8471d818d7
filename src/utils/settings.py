"""
환경 변수 설정 (.env는 실행 스크립트에서 load_dotenv).

- LLM_BASE_URL / LLM_API_KEY / LLM_MODEL: OpenAI 호환 엔드포인트
- CODE_STREAMER_ENABLED: 0/false면 모든 트리거 무시
- CODE_STREAMER_DEBOUNCE_MS: idle 디바운스 (최소 3000)
- CODE_STREAMER_VIEWERS_PATH / CODE_STREAMER_PERSONAS_PATH / CODE_STREAMER_STATE_PATH
- OVERLAY_PORT: 로컬 오버레이/이벤트 API 포트
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_DEBOUNCE_MS = 3000
DEFAULT_OVERLAY_PORT = 8765


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent.parent


def _flag(value: Optional[str], default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _int(value: Optional[str], default: int) -> int:
    try:
        return int((value or "").strip())
    except ValueError:
        return default


def _path(value: Optional[str], default: Path) -> Path:
    v = (value or "").strip()
    if not v:
        return default
    p = Path(v)
    return p if p.is_absolute() else _project_root() / p


@dataclass(frozen=True)
class StreamerSettings:
    base_url: str = ""
    api_key: str = ""
    model: str = DEFAULT_MODEL
    enabled: bool = True
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    viewers_path: Path = _project_root() / "config" / "viewers.json"
    personas_path: Path = _project_root() / "config" / "personas.json"
    state_path: Path = _project_root() / "state" / "stream_state.json"
    overlay_port: int = DEFAULT_OVERLAY_PORT

    def __post_init__(self):
        object.__setattr__(self, "base_url", (self.base_url or "").strip().rstrip("/"))
        object.__setattr__(self, "api_key", (self.api_key or "").strip())
        object.__setattr__(self, "model", (self.model or "").strip() or DEFAULT_MODEL)
        object.__setattr__(self, "debounce_ms", max(DEFAULT_DEBOUNCE_MS, int(self.debounce_ms)))

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "StreamerSettings":
        env = os.environ if env is None else env
        root = _project_root()
        return cls(
            base_url=env.get("LLM_BASE_URL", ""),
            api_key=env.get("LLM_API_KEY", ""),
            model=env.get("LLM_MODEL", ""),
            enabled=_flag(env.get("CODE_STREAMER_ENABLED"), True),
            debounce_ms=_int(env.get("CODE_STREAMER_DEBOUNCE_MS"), DEFAULT_DEBOUNCE_MS),
            viewers_path=_path(env.get("CODE_STREAMER_VIEWERS_PATH"), root / "config" / "viewers.json"),
            personas_path=_path(env.get("CODE_STREAMER_PERSONAS_PATH"), root / "config" / "personas.json"),
            state_path=_path(env.get("CODE_STREAMER_STATE_PATH"), root / "state" / "stream_state.json"),
            overlay_port=_int(env.get("OVERLAY_PORT"), DEFAULT_OVERLAY_PORT),
        )
