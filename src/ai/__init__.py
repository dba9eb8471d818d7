# AI 채팅 생성 모듈

from .prompts import build_prompt, build_role_sheet
from .generation_client import GenerationClient
from .filler import FillerGenerator, PersonaBook

__all__ = ["build_prompt", "build_role_sheet", "GenerationClient", "FillerGenerator", "PersonaBook"]
