"""LangChain 기반 p5.js 스케치 생성기.

- 생성/수정 각각 ChatPromptTemplate | chat_model | StrOutputParser 체인을 쓴다.
- 호출은 프로세스 공용 executor 에서 실행하고 timeout_seconds 를 넘기면 AdapterUnavailable.
- 벤더 예외는 여기서 RateLimited / AdapterUnavailable / AdapterError 로 분류한다.
- 자동 재시도는 하지 않는다.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser
from langchain_core.runnables import Runnable

from common.llm.errors import is_rate_limit_error, is_temporarily_unavailable_error
from common.llm.factory import create_chat_model

from ..config import GeneratorConfig
from ..exceptions import AdapterError, AdapterUnavailable, RateLimited
from .prompts import build_generation_prompt, build_modification_prompt


logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8


class SketchGenerator:
    """프롬프트 -> 원시 응답 텍스트. 정리/검증은 sanitizer 가 맡는다."""

    def __init__(
        self,
        generation_model: BaseChatModel,
        modification_model: BaseChatModel,
        *,
        timeout_seconds: float,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        self._generation_chain: Runnable = (
            build_generation_prompt() | generation_model | StrOutputParser()
        )
        self._modification_chain: Runnable = (
            build_modification_prompt() | modification_model | StrOutputParser()
        )
        self._timeout_seconds = timeout_seconds
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="sketch-llm"
        )

    @classmethod
    def from_config(cls, config: GeneratorConfig) -> "SketchGenerator":
        return cls(
            create_chat_model(config.generation),
            create_chat_model(config.modification),
            timeout_seconds=config.timeout_seconds,
        )

    def generate(self, prompt: str) -> str:
        return self._invoke(self._generation_chain, {"prompt": prompt}, "generate")

    def modify(self, existing_code: str, prompt: str) -> str:
        return self._invoke(
            self._modification_chain,
            {"existing_code": existing_code, "prompt": prompt},
            "modify",
        )

    def close(self) -> None:
        # 타임아웃으로 버려진 호출은 기다리지 않는다.
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _invoke(self, chain: Runnable, inputs: dict[str, Any], operation: str) -> str:
        future = self._executor.submit(chain.invoke, inputs)
        try:
            return future.result(timeout=self._timeout_seconds)
        except FutureTimeoutError as exc:
            future.cancel()
            logger.warning(
                "sketch %s timed out after %.1fs", operation, self._timeout_seconds
            )
            raise AdapterUnavailable() from exc
        except Exception as exc:
            logger.exception("sketch %s failed", operation)

            if is_rate_limit_error(exc):
                raise RateLimited() from exc

            if is_temporarily_unavailable_error(exc):
                raise AdapterUnavailable() from exc

            raise AdapterError() from exc
