"""
채팅 생성 엔드포인트 동작 확인 예제

.env에 LLM_BASE_URL, LLM_API_KEY (선택: LLM_MODEL) 설정 후 실행.
실행: python examples/llm_test_example.py  (프로젝트 루트에서)
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import asyncio

from dotenv import load_dotenv

from src.ai import GenerationClient
from src.stream import SessionState
from src.utils import GenerationFailed, NeedConfig, StreamerSettings
from src.viewers import ViewerRegistry

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

SAMPLE_CODE = '''def fib(n):
    if n < 2:
        return n
    return fib(n - 1) + fib(n - 2)
'''


async def main():
    settings = StreamerSettings.from_env()
    registry = ViewerRegistry(SessionState(), catalog_path=settings.viewers_path)
    registry.load()
    client = GenerationClient(settings, registry)

    print(f"엔드포인트 호출 중... ({settings.base_url or '미설정'}, model={settings.model})")
    try:
        candidates = await client.generate(SAMPLE_CODE, "python", "스트리머가 코드를 저장했습니다.")
    except NeedConfig as e:
        print(f"오류: {e}")
        sys.exit(1)
    except GenerationFailed as e:
        print(f"오류: 생성 실패 ({e.reason})")
        sys.exit(1)

    for c in candidates:
        donation = f" 💰{c.donation}" if c.donation else ""
        print(f"[{c.kind}] {c.author}: {c.text}{donation}")
    print("채팅 생성 엔드포인트 정상 동작합니다.")


if __name__ == "__main__":
    asyncio.run(main())
