"""LLM 벤더 예외 분류 유틸.

벤더 SDK 마다 예외 타입이 달라서, status_code 속성과 메시지 문자열을 함께 보고 판단한다.
"""

from __future__ import annotations


_UNAVAILABLE_STATUS_CODES = frozenset({500, 502, 503, 504})


def _status_codes(exc: BaseException) -> set[int]:
    codes: set[int] = set()
    for candidate in (
        getattr(exc, "status_code", None),
        getattr(exc, "code", None),
        getattr(getattr(exc, "response", None), "status_code", None),
    ):
        if isinstance(candidate, int):
            codes.add(candidate)
    return codes


def is_rate_limit_error(exc: BaseException) -> bool:
    if 429 in _status_codes(exc):
        return True

    try:
        from google.api_core.exceptions import ResourceExhausted  # type: ignore

        if isinstance(exc, ResourceExhausted):
            return True
    except ImportError:
        pass

    message = str(exc).lower()
    return (
        "rate limit" in message
        or "too many requests" in message
        or "resource exhausted" in message
        or "resource_exhausted" in message
        or " 429" in message
        or "(429" in message
    )


def is_temporarily_unavailable_error(exc: BaseException) -> bool:
    if isinstance(exc, TimeoutError):
        return True

    if _status_codes(exc) & _UNAVAILABLE_STATUS_CODES:
        return True

    message = str(exc).lower()
    return (
        "service unavailable" in message
        or "temporarily unavailable" in message
        or "deadline exceeded" in message
        or "gateway" in message
        or "timeout" in message
        or "timed out" in message
    )
