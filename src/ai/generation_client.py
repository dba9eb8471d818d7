"""
채팅 생성 클라이언트 (OpenAI 호환 /chat/completions)
코드 컨텍스트 + 시청자 역할표로 프롬프트를 만들고, 응답 content를 ResponseNormalizer에 넘깁니다.
실패는 모두 GenerationFailed 하나로 (부분 결과 없음). 미설정이면 네트워크 시도 전에 NeedConfig.
"""

import asyncio
import logging
import time
from typing import Any, Callable, List, Optional, TYPE_CHECKING

import openai
from openai import AsyncOpenAI

from src.chat.models import MessageCandidate
from src.chat.normalizer import ResponseNormalizer
from src.utils.errors import GenerationFailed, NeedConfig
from src.utils.settings import StreamerSettings
from .prompts import MAX_ROLE_VIEWERS, build_prompt

if TYPE_CHECKING:
    from src.viewers.registry import ViewerRegistry

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SEC = 12.0
TEMPERATURE = 0.8
MAX_TOKENS = 300


def _first_choice_message(response: Any, where: str):
    """OpenAI 응답에서 첫 message를 안전하게 추출."""
    choices = getattr(response, "choices", None) or []
    if not choices:
        logger.warning("%s: response.choices가 비어 있습니다.", where)
        return None
    msg = getattr(choices[0], "message", None)
    if msg is None:
        logger.warning("%s: response.choices[0].message가 없습니다.", where)
    return msg


def _first_choice_content(response: Any, where: str) -> str:
    """OpenAI 응답 첫 message.content를 안전하게 문자열로 반환."""
    msg = _first_choice_message(response, where)
    if msg is None:
        return ""
    content = getattr(msg, "content", "")
    if content is None:
        return ""
    return str(content).strip()


def _status_detail(err: "openai.APIStatusError") -> str:
    detail = ""
    try:
        detail = err.response.text or ""
    except Exception:
        detail = str(err)
    detail = " ".join(detail.split())
    return f"HTTP {err.status_code}" + (f": {detail[:160]}" if detail else "")


class GenerationClient:
    """트리거 1회당 generate() 1회. 재시도 없음."""

    def __init__(
        self,
        settings: StreamerSettings,
        registry: "ViewerRegistry",
        normalizer: Optional[ResponseNormalizer] = None,
        client_factory: Optional[Callable[[StreamerSettings], Any]] = None,
        timeout: float = REQUEST_TIMEOUT_SEC,
    ):
        """
        Args:
            settings: base_url / api_key / model
            registry: 역할표에 쓸 해금 시청자
            client_factory: AsyncOpenAI 대체 (테스트용). settings를 받아 chat.completions.create를 가진 객체 반환
            timeout: 요청 전체 하드 타임아웃 (초)
        """
        self.settings = settings
        self.registry = registry
        self.normalizer = normalizer or ResponseNormalizer()
        self._client_factory = client_factory or self._default_client
        self.timeout = timeout
        self._client: Any = None
        self._client_key: Optional[tuple] = None

    def _default_client(self, settings: StreamerSettings) -> AsyncOpenAI:
        return AsyncOpenAI(
            api_key=settings.api_key,
            base_url=settings.base_url,
            timeout=self.timeout,
            max_retries=0,
        )

    def _get_client(self) -> Any:
        key = (self.settings.base_url, self.settings.api_key)
        if self._client is None or self._client_key != key:
            self._client = self._client_factory(self.settings)
            self._client_key = key
            logger.info("생성 클라이언트 준비: base_url=%s, model=%s", self.settings.base_url, self.settings.model)
        return self._client

    def build_request_prompt(self, code: str, language_id: str = "plaintext", reason: str = "") -> str:
        viewers = self.registry.unlocked_viewers(MAX_ROLE_VIEWERS)
        names = self.registry.list_unlocked_names(MAX_ROLE_VIEWERS)
        return build_prompt(code, language_id, reason, viewers, names)

    async def generate(
        self,
        code: str,
        language_id: str = "plaintext",
        reason: str = "",
    ) -> List[MessageCandidate]:
        """
        Returns:
            정규화된 MessageCandidate (1~3개)

        Raises:
            NeedConfig: base_url/api_key 없음 (네트워크 시도 안 함)
            GenerationFailed: 타임아웃, 전송 오류, 비정상 상태 코드
            UnparsableResponse: 응답 content에서 JSON 항목 추출 실패 (GenerationFailed 하위)
        """
        if not self.settings.is_configured:
            raise NeedConfig()

        prompt = self.build_request_prompt(code, language_id, reason)
        client = self._get_client()
        logger.debug("generate 요청: lang=%s, code_len=%d, prompt_len=%d", language_id, len(code or ""), len(prompt))

        start = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                client.chat.completions.create(
                    model=self.settings.model,
                    messages=[{"role": "user", "content": prompt}],
                    temperature=TEMPERATURE,
                    max_tokens=MAX_TOKENS,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("생성 요청 타임아웃 (%.0fs)", self.timeout)
            raise GenerationFailed(f"timeout ({self.timeout:.0f}s)") from None
        except openai.APITimeoutError:
            logger.warning("생성 요청 타임아웃 (SDK)")
            raise GenerationFailed(f"timeout ({self.timeout:.0f}s)") from None
        except openai.APIStatusError as e:
            reason_text = _status_detail(e)
            logger.warning("생성 요청 실패: %s", reason_text)
            raise GenerationFailed(reason_text) from e
        except openai.APIConnectionError as e:
            logger.warning("생성 요청 전송 오류: %s", e)
            raise GenerationFailed(f"transport error: {str(e)[:120]}") from e
        except Exception as e:
            logger.exception("생성 요청 실패: %s", e)
            raise GenerationFailed(f"{type(e).__name__}: {str(e)[:120]}") from e

        elapsed = time.perf_counter() - start
        raw = _first_choice_content(response, "generate")
        candidates = self.normalizer.normalize(raw)
        logger.info("generate 완료: messages=%d, elapsed=%.3fs", len(candidates), elapsed)
        return candidates
