"""모델 응답 텍스트를 스케치 코드로 정리한다.

서버에서는 코드를 파싱하거나 실행하지 않는다. 앞뒤 마크다운 펜스를 제거하고,
진입점 함수 두 개가 모두 있는지만 확인한다 (없으면 실패로 처리).
"""

from __future__ import annotations

import re

from ..exceptions import InvalidGeneratedCode


# 펜스 뒤 같은 줄의 언어 태그(js, p5.js 등)는 개행이 이어질 때만 태그로 본다.
_LEADING_FENCE = re.compile(r"^\s*```(?:[ \t]*[\w.+#-]*[ \t]*\r?\n)?")
_TRAILING_FENCE = re.compile(r"\r?\n?[ \t]*```\s*$")

_SETUP_ENTRY = re.compile(r"function\s+setup\s*\(")
_DRAW_ENTRY = re.compile(r"function\s+draw\s*\(")


def strip_code_fences(text: str) -> str:
    stripped = _LEADING_FENCE.sub("", text, count=1)
    stripped = _TRAILING_FENCE.sub("", stripped, count=1)
    return stripped.strip()


def has_entry_points(code: str) -> bool:
    return bool(_SETUP_ENTRY.search(code)) and bool(_DRAW_ENTRY.search(code))


def sanitize_sketch(raw_text: str) -> str:
    """펜스를 벗긴 코드를 반환한다. setup()/draw() 중 하나라도 없으면 InvalidGeneratedCode."""

    code = strip_code_fences(raw_text or "")
    if not has_entry_points(code):
        raise InvalidGeneratedCode()
    return code
