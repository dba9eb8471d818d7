"""
영속 상태 저장소 (키-값, JSON 파일 1개).
키: totalDonations (int), unlockedViewers (시청자 id 리스트). 변경 즉시 기록(write-through).
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

TOTAL_DONATIONS_KEY = "totalDonations"
UNLOCKED_VIEWERS_KEY = "unlockedViewers"


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent.parent


class StateStore:
    """state/stream_state.json 기반 키-값 저장소."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else _project_root() / "state" / "stream_state.json"
        self._data: Dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("상태 파일 로드 실패 %s: %s (빈 상태로 시작)", self.path, e)
            return
        if isinstance(data, dict):
            self._data = data
        else:
            logger.warning("상태 파일 형식 오류 %s: 객체가 아님", self.path)

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._flush()

    def _flush(self) -> None:
        """임시 파일에 쓴 뒤 교체 (중간에 죽어도 기존 파일 유지)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".state_", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, ensure_ascii=False, indent=0)
            os.replace(tmp, self.path)
        except OSError:
            logger.exception("상태 저장 실패: %s", self.path)
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise

    def load_total_donations(self) -> int:
        try:
            return max(0, int(self.get(TOTAL_DONATIONS_KEY, 0) or 0))
        except (TypeError, ValueError):
            return 0

    def load_unlocked_ids(self) -> set[str]:
        raw = self.get(UNLOCKED_VIEWERS_KEY, [])
        if not isinstance(raw, list):
            return set()
        return {str(v) for v in raw if isinstance(v, (str, int))}
