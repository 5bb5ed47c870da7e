from __future__ import annotations

from dataclasses import dataclass

import pytest

from animation_service.app.exceptions import (
    AdapterUnavailable,
    InsufficientCredits,
    InvalidGeneratedCode,
    MissingField,
    NotFound,
    RateLimited,
    ValidationError,
)
from animation_service.app.models.animation import (
    GENERATED_NOTE,
    MODIFIED_NOTE,
    MessageRole,
)
from animation_service.app.sandbox.document import P5_SCRIPT_URL
from animation_service.app.services.credit_service import CreditService
from animation_service.app.services.generation_service import GenerationService
from fakes import (
    VALID_SKETCH,
    FakeAnimationRepository,
    FakeCreditTransactionRepository,
    FakeSketchGenerator,
    FakeUserRepository,
)


IDENTITY = "user_alice"
OTHER_IDENTITY = "user_bob"

MODIFIED_SKETCH = VALID_SKETCH.replace("background(220)", "background(0)")


@dataclass
class GenerationFixture:
    service: GenerationService
    user_repo: FakeUserRepository
    animation_repo: FakeAnimationRepository
    transaction_repo: FakeCreditTransactionRepository
    generator: FakeSketchGenerator


def _build_fixture(credits: int = 5) -> GenerationFixture:
    user_repo = FakeUserRepository()
    user_repo.seed(IDENTITY, credits)
    animation_repo = FakeAnimationRepository()
    transaction_repo = FakeCreditTransactionRepository()
    generator = FakeSketchGenerator()
    credit_service = CreditService(user_repo, transaction_repo)
    service = GenerationService(animation_repo, credit_service, generator)
    return GenerationFixture(
        service=service,
        user_repo=user_repo,
        animation_repo=animation_repo,
        transaction_repo=transaction_repo,
        generator=generator,
    )


def test_create_persists_one_record_with_two_messages_and_debits_one_credit():
    fixture = _build_fixture(credits=5)

    animation = fixture.service.create(IDENTITY, "a bouncing red ball")

    assert len(fixture.animation_repo.animations) == 1
    assert animation.current_code == VALID_SKETCH
    assert animation.title == "a bouncing red ball"
    assert [m.role for m in animation.messages] == [MessageRole.USER, MessageRole.SYSTEM]
    assert animation.messages[0].content == "a bouncing red ball"
    assert animation.messages[1].content == GENERATED_NOTE
    assert fixture.user_repo.balance(IDENTITY) == 4
    assert fixture.transaction_repo.types() == ["consume"]
    assert fixture.transaction_repo.created[0].metadata == {"animation_id": animation.id}


def test_create_truncates_long_prompt_for_title():
    fixture = _build_fixture()
    prompt = "x" * 60

    animation = fixture.service.create(IDENTITY, prompt)

    assert animation.title == "x" * 50 + "..."
    assert animation.initial_prompt == prompt


def test_create_lazily_creates_user_with_default_credits():
    fixture = _build_fixture()

    fixture.service.create("user_new", "stars")

    assert fixture.user_repo.balance("user_new") == 19


@pytest.mark.parametrize("prompt", ["", "   ", "\n\t", None])
def test_blank_prompt_is_rejected_without_side_effects(prompt):
    fixture = _build_fixture(credits=5)

    with pytest.raises(ValidationError):
        fixture.service.create(IDENTITY, prompt)

    assert fixture.animation_repo.animations == {}
    assert fixture.user_repo.balance(IDENTITY) == 5
    assert fixture.generator.generate_calls == []


def test_create_with_zero_credits_fails_before_generation():
    fixture = _build_fixture(credits=0)

    with pytest.raises(InsufficientCredits):
        fixture.service.create(IDENTITY, "rain")

    assert fixture.generator.generate_calls == []
    assert fixture.animation_repo.animations == {}
    assert fixture.user_repo.balance(IDENTITY) == 0


def test_invalid_generated_code_persists_nothing_and_restores_credit():
    fixture = _build_fixture(credits=3)
    fixture.generator.response = "I cannot draw that."

    with pytest.raises(InvalidGeneratedCode):
        fixture.service.create(IDENTITY, "a cat")

    assert fixture.animation_repo.animations == {}
    assert fixture.user_repo.balance(IDENTITY) == 3
    assert fixture.transaction_repo.types() == ["refund"]


@pytest.mark.parametrize("error", [RateLimited(), AdapterUnavailable()])
def test_adapter_failure_does_not_debit(error):
    fixture = _build_fixture(credits=2)
    fixture.generator.error = error

    with pytest.raises(type(error)):
        fixture.service.create(IDENTITY, "waves")

    assert fixture.user_repo.balance(IDENTITY) == 2
    assert fixture.animation_repo.animations == {}


def test_persistence_failure_restores_credit():
    fixture = _build_fixture(credits=2)
    fixture.animation_repo.fail_on_insert = RuntimeError("write failed")

    with pytest.raises(RuntimeError):
        fixture.service.create(IDENTITY, "waves")

    assert fixture.user_repo.balance(IDENTITY) == 2


def test_modify_appends_two_messages_and_overwrites_code():
    fixture = _build_fixture(credits=5)
    created = fixture.service.create(IDENTITY, "a circle")
    fixture.generator.response = f"```javascript\n{MODIFIED_SKETCH}\n```"

    modified = fixture.service.modify(IDENTITY, created.id, "make the background black")

    assert modified.current_code == MODIFIED_SKETCH
    assert len(modified.messages) == 4
    assert modified.messages[:2] == created.messages
    assert modified.messages[2].role is MessageRole.USER
    assert modified.messages[2].content == "make the background black"
    assert modified.messages[3].content == MODIFIED_NOTE
    assert modified.initial_prompt == "a circle"
    assert fixture.generator.modify_calls == [(VALID_SKETCH, "make the background black")]
    assert fixture.user_repo.balance(IDENTITY) == 3


def test_modify_of_foreign_animation_is_not_found_before_any_ai_call():
    fixture = _build_fixture(credits=5)
    fixture.user_repo.seed(OTHER_IDENTITY, 5)
    created = fixture.service.create(OTHER_IDENTITY, "a square")

    with pytest.raises(NotFound):
        fixture.service.modify(IDENTITY, created.id, "make it blue")

    assert fixture.generator.modify_calls == []
    assert fixture.user_repo.balance(IDENTITY) == 5


def test_modify_with_zero_credits_leaves_record_unchanged():
    fixture = _build_fixture(credits=1)
    created = fixture.service.create(IDENTITY, "a circle")

    with pytest.raises(InsufficientCredits):
        fixture.service.modify(IDENTITY, created.id, "bigger")

    stored = fixture.animation_repo.animations[created.id]
    assert len(stored.messages) == 2
    assert stored.current_code == VALID_SKETCH


def test_modify_with_invalid_output_keeps_previous_code():
    fixture = _build_fixture(credits=5)
    created = fixture.service.create(IDENTITY, "a circle")
    fixture.generator.response = "function setup() {}"

    with pytest.raises(InvalidGeneratedCode):
        fixture.service.modify(IDENTITY, created.id, "remove draw")

    stored = fixture.animation_repo.animations[created.id]
    assert stored.current_code == VALID_SKETCH
    assert len(stored.messages) == 2
    assert fixture.user_repo.balance(IDENTITY) == 4


def test_list_returns_only_owned_summaries_newest_first():
    fixture = _build_fixture(credits=5)
    fixture.user_repo.seed(OTHER_IDENTITY, 5)
    first = fixture.service.create(IDENTITY, "first")
    second = fixture.service.create(IDENTITY, "second")
    fixture.service.create(OTHER_IDENTITY, "not mine")
    fixture.service.modify(IDENTITY, first.id, "tweak")

    summaries = fixture.service.list_animations(IDENTITY)

    assert [s.id for s in summaries] == [first.id, second.id]


def test_save_video_requires_url_and_ownership():
    fixture = _build_fixture()
    created = fixture.service.create(IDENTITY, "clouds")

    with pytest.raises(MissingField):
        fixture.service.save_video(IDENTITY, created.id, "  ")
    with pytest.raises(NotFound):
        fixture.service.save_video(OTHER_IDENTITY, created.id, "blob:abc")

    fixture.service.save_video(IDENTITY, created.id, "https://cdn/video.webm", "thumb.png")

    stored = fixture.animation_repo.animations[created.id]
    assert stored.video_url == "https://cdn/video.webm"
    assert stored.thumbnail == "thumb.png"
    assert fixture.user_repo.balance(IDENTITY) == 4


def test_delete_and_get_enforce_ownership():
    fixture = _build_fixture()
    created = fixture.service.create(IDENTITY, "clouds")

    with pytest.raises(NotFound):
        fixture.service.get_animation(OTHER_IDENTITY, created.id)
    with pytest.raises(NotFound):
        fixture.service.delete(OTHER_IDENTITY, created.id)

    fixture.service.delete(IDENTITY, created.id)

    with pytest.raises(NotFound):
        fixture.service.get_animation(IDENTITY, created.id)
    with pytest.raises(NotFound):
        fixture.service.delete(IDENTITY, created.id)


def test_render_preview_embeds_stored_code():
    fixture = _build_fixture()
    created = fixture.service.create(IDENTITY, "clouds")

    document = fixture.service.render_preview(IDENTITY, created.id)

    assert VALID_SKETCH in document
    assert P5_SCRIPT_URL in document
