"""
방송 오버레이: 생성된 채팅·알림·통계를 OBS 브라우저 소스로 노출.

- overlay_state: 세션이 OverlayFeed로 갱신, 서버가 /api/state 로 반환.
- OBS에서 브라우저 소스 URL을 http://127.0.0.1:8765/ 로 설정.
"""

from src.overlay.state import overlay_state, OverlayFeed

__all__ = ["overlay_state", "OverlayFeed"]
