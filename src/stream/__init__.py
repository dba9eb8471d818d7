# 방송 세션 조립

from .state import SessionState
from .session import StreamSession

__all__ = ["SessionState", "StreamSession"]
