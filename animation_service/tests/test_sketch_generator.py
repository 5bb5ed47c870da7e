from __future__ import annotations

from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.runnables import RunnableLambda
import pytest

from animation_service.app.exceptions import (
    AdapterError,
    AdapterUnavailable,
    RateLimited,
)
from animation_service.app.generator.sketch_generator import SketchGenerator
from fakes import VALID_SKETCH


class VendorError(Exception):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _failing_model(exc: Exception) -> RunnableLambda:
    def _raise(_):
        raise exc

    return RunnableLambda(_raise)


def test_generate_returns_raw_model_text():
    generation = FakeListChatModel(responses=[f"```js\n{VALID_SKETCH}\n```"])
    modification = FakeListChatModel(responses=["unused"])
    generator = SketchGenerator(generation, modification, timeout_seconds=5)
    try:
        assert generator.generate("a ball") == f"```js\n{VALID_SKETCH}\n```"
    finally:
        generator.close()


def test_modify_uses_modification_model():
    generation = FakeListChatModel(responses=["unused"])
    modification = FakeListChatModel(responses=[VALID_SKETCH])
    generator = SketchGenerator(generation, modification, timeout_seconds=5)
    try:
        assert generator.modify("function setup() { }", "add {braces}") == VALID_SKETCH
    finally:
        generator.close()


def test_timeout_maps_to_adapter_unavailable():
    slow = FakeListChatModel(responses=[VALID_SKETCH], sleep=1.0)
    generator = SketchGenerator(slow, slow, timeout_seconds=0.05)
    try:
        with pytest.raises(AdapterUnavailable):
            generator.generate("a slow ball")
    finally:
        generator.close()


@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (VendorError("quota", status_code=429), RateLimited),
        (VendorError("Resource exhausted for model"), RateLimited),
        (VendorError("upstream", status_code=503), AdapterUnavailable),
        (VendorError("Deadline Exceeded"), AdapterUnavailable),
        (VendorError("invalid api key", status_code=401), AdapterError),
        (ValueError("model not found"), AdapterError),
    ],
)
def test_vendor_errors_are_classified(exc, expected):
    failing = _failing_model(exc)
    generator = SketchGenerator(failing, failing, timeout_seconds=5)
    try:
        with pytest.raises(expected):
            generator.generate("anything")
    finally:
        generator.close()
