"""
코딩 방송용 가상 채팅 실행기

.env에 LLM_BASE_URL, LLM_API_KEY (선택: LLM_MODEL) 설정 후 실행.
미설정이어도 실행은 되며, 저장/붙여넣기 등 high 트리거 때 설정 안내 알림 + 필러 채팅이 나옵니다.
실행: python examples/code_streamer_example.py  (프로젝트 루트에서)

- 방송 오버레이: OBS 브라우저 소스 → http://127.0.0.1:8765/ (포트 변경 시 .env에 OVERLAY_PORT)
- 에디터 연동: 에디터 확장에서 POST /api/events/change | save | diagnostics 로 이벤트 전달
- 시청자 카탈로그: config/viewers.json (1시간마다 자동 갱신, POST /api/viewers/refresh 로 즉시)
- 후원 누적/해금 상태: state/stream_state.json
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import asyncio
import logging

import uvicorn
from dotenv import load_dotenv

from src.overlay.server import app, attach_session
from src.stream import StreamSession
from src.utils import StreamerSettings, setup_logging

load_dotenv(Path(__file__).resolve().parent.parent / ".env")
LOG_DIR = setup_logging()
logger = logging.getLogger(__name__)


async def main():
    settings = StreamerSettings.from_env()
    if not settings.is_configured:
        print("⚠️ .env에 LLM_BASE_URL, LLM_API_KEY가 없습니다. 필러 채팅만 나옵니다.")
    if not settings.enabled:
        print("⚠️ CODE_STREAMER_ENABLED=0 → 모든 트리거를 무시합니다.")

    session = StreamSession(settings)
    attach_session(session)

    config = uvicorn.Config(app, host="127.0.0.1", port=settings.overlay_port, log_level="warning")
    server = uvicorn.Server(config)
    workers = [
        asyncio.create_task(session.run_drift()),
        asyncio.create_task(session.run_refresh()),
    ]

    print(f"방송 오버레이: http://127.0.0.1:{settings.overlay_port}/ (OBS 브라우저 소스에 추가)")
    print(f"시청자 {len(session.registry.viewers)}명 로드, 누적 후원 {session.ledger.total_donations:,}")
    print(f"로그 저장 경로: {LOG_DIR}")
    print("에디터 이벤트 대기 중... (종료: Ctrl+C)\n")
    try:
        await server.serve()
    except KeyboardInterrupt:
        pass
    finally:
        for t in workers:
            t.cancel()
        for t in workers:
            try:
                await t
            except asyncio.CancelledError:
                pass
        await session.close()
        attach_session(None)


if __name__ == "__main__":
    asyncio.run(main())
