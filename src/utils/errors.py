"""
생성(LLM) 경로 예외 정의.

- NeedConfig: Base URL / API Key 미설정. 네트워크 시도 전에 발생.
- GenerationFailed: 타임아웃, 전송 오류, 2xx 아닌 응답 등.
- UnparsableResponse: 응답은 왔지만 채팅 배열로 추출 불가. 로컬 필러로 대체되며 화면에 에러로 노출하지 않음.
"""


class StreamerError(Exception):
    """코드 스트리머 공통 예외."""


class NeedConfig(StreamerError):
    """AI 채팅 미설정 (LLM_BASE_URL, LLM_API_KEY)."""

    def __init__(self, message: str = "AI 채팅 미설정: .env에 LLM_BASE_URL과 LLM_API_KEY를 입력하세요."):
        super().__init__(message)


class GenerationFailed(StreamerError):
    """생성 요청 실패. reason은 짧은 진단 문자열."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class UnparsableResponse(GenerationFailed):
    """응답 본문에서 JSON 배열/객체를 찾지 못함."""

    def __init__(self, reason: str = "AI 응답 형식 오류 (JSON 배열을 찾지 못함)", raw: str = ""):
        super().__init__(reason)
        self.raw = raw
