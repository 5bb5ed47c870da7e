from __future__ import annotations

from dataclasses import dataclass

import pytest
from fastapi.testclient import TestClient

from animation_service.app.auth import get_auth_config, get_current_identity
from animation_service.app.config import AuthConfig
from animation_service.app.main import create_app
from animation_service.app.services.credit_service import (
    CreditService,
    get_credit_service,
)
from animation_service.app.services.generation_service import (
    GenerationService,
    get_generation_service,
)
from animation_service.app.services.payment_service import (
    PaymentService,
    get_payment_service,
)
from fakes import (
    VALID_SKETCH,
    FakeAnimationRepository,
    FakeCreditTransactionRepository,
    FakePaymentGateway,
    FakePaymentOrderRepository,
    FakeSketchGenerator,
    FakeUserRepository,
)


IDENTITY = "user_alice"


@dataclass
class ApiFixture:
    client: TestClient
    user_repo: FakeUserRepository
    animation_repo: FakeAnimationRepository
    generator: FakeSketchGenerator
    gateway: FakePaymentGateway


@pytest.fixture
def api() -> ApiFixture:
    user_repo = FakeUserRepository()
    user_repo.seed(IDENTITY, 3)
    animation_repo = FakeAnimationRepository()
    transaction_repo = FakeCreditTransactionRepository()
    generator = FakeSketchGenerator()
    gateway = FakePaymentGateway()
    order_repo = FakePaymentOrderRepository()
    credit_service = CreditService(user_repo, transaction_repo)

    app = create_app()
    app.dependency_overrides[get_current_identity] = lambda: IDENTITY
    app.dependency_overrides[get_credit_service] = lambda: credit_service
    app.dependency_overrides[get_generation_service] = lambda: GenerationService(
        animation_repo, credit_service, generator
    )
    app.dependency_overrides[get_payment_service] = lambda: PaymentService(
        order_repo, credit_service, gateway
    )

    return ApiFixture(
        client=TestClient(app),
        user_repo=user_repo,
        animation_repo=animation_repo,
        generator=generator,
        gateway=gateway,
    )


def test_health():
    client = TestClient(create_app())
    assert client.get("/api/health").json() == {"status": "ok"}


def test_requests_without_bearer_token_are_unauthorized():
    app = create_app()
    app.dependency_overrides[get_auth_config] = lambda: AuthConfig(public_key="unused")
    app.dependency_overrides[get_credit_service] = lambda: CreditService(
        FakeUserRepository(), FakeCreditTransactionRepository()
    )
    client = TestClient(app)

    response = client.get("/api/user/credits")

    assert response.status_code == 401
    assert response.json()["detail"]["code"] == "unauthorized"
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_create_animation_returns_201_with_camel_case_body(api: ApiFixture):
    response = api.client.post("/api/animations", json={"prompt": "a spinning cube"})

    assert response.status_code == 201
    animation = response.json()["animation"]
    assert set(animation) == {"id", "title", "code", "messages"}
    assert animation["code"] == VALID_SKETCH
    assert [m["role"] for m in animation["messages"]] == ["user", "system"]
    assert api.user_repo.balance(IDENTITY) == 2


def test_blank_prompt_is_400(api: ApiFixture):
    response = api.client.post("/api/animations", json={"prompt": "  "})

    assert response.status_code == 400
    assert response.json()["detail"] == {
        "code": "validation_error",
        "message": "Valid prompt is required.",
    }


def test_out_of_credits_is_403(api: ApiFixture):
    api.user_repo.users[IDENTITY].credits = 0

    response = api.client.post("/api/animations", json={"prompt": "rain"})

    assert response.status_code == 403
    assert response.json()["detail"]["code"] == "insufficient_credits"


def test_invalid_generated_code_is_500_with_friendly_message(api: ApiFixture):
    api.generator.response = "no sketch here"

    response = api.client.post("/api/animations", json={"prompt": "rain"})

    assert response.status_code == 500
    assert "different prompt" in response.json()["detail"]["message"]
    assert api.user_repo.balance(IDENTITY) == 3


def test_history_detail_modify_preview_and_delete(api: ApiFixture):
    created = api.client.post("/api/animations", json={"prompt": "snow"}).json()
    animation_id = created["animation"]["id"]

    listing = api.client.get("/api/animations").json()["animations"]
    assert listing[0]["id"] == animation_id
    assert listing[0]["initialPrompt"] == "snow"
    assert "updatedAt" in listing[0]

    modified = api.client.put(
        f"/api/animations/{animation_id}/modify", json={"prompt": "more snow"}
    )
    assert modified.status_code == 200
    assert len(modified.json()["animation"]["messages"]) == 4

    detail = api.client.get(f"/api/animations/{animation_id}").json()["animation"]
    assert detail["initialPrompt"] == "snow"
    assert detail["videoUrl"] is None

    preview = api.client.get(f"/api/animations/{animation_id}/preview")
    assert preview.status_code == 200
    assert preview.headers["content-type"].startswith("text/html")
    assert preview.headers["Content-Security-Policy"] == "sandbox allow-scripts"

    saved = api.client.put(
        f"/api/animations/{animation_id}/save-video", json={"videoUrl": "blob:1"}
    )
    assert saved.json() == {"success": True}

    deleted = api.client.delete(f"/api/animations/{animation_id}")
    assert deleted.json() == {"success": True, "message": "Animation deleted successfully"}
    assert api.client.get(f"/api/animations/{animation_id}").status_code == 404


def test_save_video_without_url_is_400(api: ApiFixture):
    animation_id = api.client.post("/api/animations", json={"prompt": "snow"}).json()[
        "animation"
    ]["id"]

    response = api.client.put(f"/api/animations/{animation_id}/save-video", json={})

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "missing_field"


def test_unknown_animation_is_404(api: ApiFixture):
    response = api.client.put(
        "/api/animations/000000000000000000000000/modify", json={"prompt": "x"}
    )

    assert response.status_code == 404
    assert api.generator.modify_calls == []


def test_credits_and_refresh(api: ApiFixture):
    assert api.client.get("/api/user/credits").json() == {"credits": 3}

    default = api.client.post("/api/user/refresh-credits").json()
    assert default == {
        "success": True,
        "message": "10 credits added to your account",
        "credits": 13,
    }

    custom = api.client.post("/api/user/refresh-credits", json={"credits": 5}).json()
    assert custom["credits"] == 18

    rejected = api.client.post("/api/user/refresh-credits", json={"credits": 0})
    assert rejected.status_code == 400
    assert rejected.json()["detail"]["code"] == "validation_error"

    capped = api.client.post("/api/user/refresh-credits", json={"credits": 101})
    assert capped.status_code == 400
    assert api.user_repo.balance(IDENTITY) == 18

    history = api.client.get("/api/user/credits/history?page=1&page_size=1").json()
    assert history["total"] == 2
    assert history["items"][0]["amount"] == 5


def test_plans_are_public():
    client = TestClient(create_app())

    plans = client.get("/api/plans").json()["plans"]

    assert [p["id"] for p in plans] == ["basic", "standard", "premium"]
    assert plans[0] == {
        "id": "basic",
        "name": "Basic Pack",
        "credits": 20,
        "amount": 499,
        "description": "Perfect for beginners",
    }


def test_order_and_verify_flow_accepts_both_field_spellings(api: ApiFixture):
    order = api.client.post("/api/create-order", json={"planId": "basic"}).json()
    assert order["amount"] == 499
    assert order["currency"] == "INR"
    assert order["plan"]["id"] == "basic"

    payload = {
        "razorpay_order_id": order["order_id"],
        "razorpay_payment_id": "pay_1",
        "razorpay_signature": api.gateway.sign(order["order_id"], "pay_1"),
        "planId": "basic",
    }
    verified = api.client.post("/api/verify-payment", json=payload).json()
    assert verified == {
        "success": True,
        "message": "Added 20 credits to your account",
        "credits": 23,
    }

    replay = api.client.post(
        "/api/verify-payment",
        json={
            "orderHandle": order["order_id"],
            "paymentHandle": "pay_1",
            "signature": payload["razorpay_signature"],
            "planId": "basic",
        },
    ).json()
    assert replay["credits"] == 23


def test_tampered_signature_is_400(api: ApiFixture):
    order = api.client.post("/api/create-order", json={"planId": "basic"}).json()

    response = api.client.post(
        "/api/verify-payment",
        json={
            "razorpay_order_id": order["order_id"],
            "razorpay_payment_id": "pay_1",
            "razorpay_signature": "0" * 64,
            "planId": "basic",
        },
    )

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "invalid_signature"
    assert api.user_repo.balance(IDENTITY) == 3


def test_create_order_with_unknown_plan_is_400(api: ApiFixture):
    response = api.client.post("/api/create-order", json={"planId": "gold"})

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "invalid_plan"
