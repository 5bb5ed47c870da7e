from __future__ import annotations

from dataclasses import dataclass

import pytest

from animation_service.app.exceptions import (
    InvalidPlan,
    InvalidSignature,
    MissingField,
    PaymentGatewayError,
    UnknownOrder,
)
from animation_service.app.models.payment import PaymentOrderStatus
from animation_service.app.services.credit_service import CreditService
from animation_service.app.services.payment_service import PaymentService
from fakes import (
    FakeCreditTransactionRepository,
    FakePaymentGateway,
    FakePaymentOrderRepository,
    FakeUserRepository,
)


IDENTITY = "user_alice"


@dataclass
class PaymentFixture:
    service: PaymentService
    user_repo: FakeUserRepository
    order_repo: FakePaymentOrderRepository
    transaction_repo: FakeCreditTransactionRepository
    gateway: FakePaymentGateway


def _build_fixture(credits: int = 5) -> PaymentFixture:
    user_repo = FakeUserRepository()
    user_repo.seed(IDENTITY, credits)
    order_repo = FakePaymentOrderRepository()
    transaction_repo = FakeCreditTransactionRepository()
    gateway = FakePaymentGateway()
    service = PaymentService(
        order_repo, CreditService(user_repo, transaction_repo), gateway
    )
    return PaymentFixture(
        service=service,
        user_repo=user_repo,
        order_repo=order_repo,
        transaction_repo=transaction_repo,
        gateway=gateway,
    )


def _verify(fixture: PaymentFixture, order_id: str, plan_id: str, signature: str | None = None):
    return fixture.service.verify_and_credit(
        IDENTITY,
        order_id=order_id,
        payment_id="pay_1",
        signature=signature or fixture.gateway.sign(order_id, "pay_1"),
        plan_id=plan_id,
    )


def test_create_order_records_plan_and_sends_catalog_price():
    fixture = _build_fixture()

    created = fixture.service.create_order(IDENTITY, "standard")

    assert created.plan.credits == 50
    assert created.order.amount == 999
    assert created.order.currency == "INR"
    assert fixture.gateway.created == [
        (999, {"userId": IDENTITY, "planId": "standard", "credits": 50})
    ]
    assert fixture.order_repo.orders[created.order.order_id].plan_id == "standard"


def test_create_order_rejects_unknown_plan_without_calling_gateway():
    fixture = _build_fixture()

    with pytest.raises(InvalidPlan):
        fixture.service.create_order(IDENTITY, "platinum")

    assert fixture.gateway.created == []


def test_create_order_propagates_gateway_failure():
    fixture = _build_fixture()
    fixture.gateway.error = PaymentGatewayError()

    with pytest.raises(PaymentGatewayError):
        fixture.service.create_order(IDENTITY, "basic")

    assert fixture.order_repo.orders == {}


def test_valid_signature_adds_plan_credits():
    fixture = _build_fixture(credits=5)
    order = fixture.service.create_order(IDENTITY, "basic").order

    result = _verify(fixture, order.order_id, "basic")

    assert result.credited is True
    assert result.balance == 25
    assert result.message == "Added 20 credits to your account"
    assert fixture.user_repo.balance(IDENTITY) == 25
    assert fixture.order_repo.orders[order.order_id].status is PaymentOrderStatus.PAID
    assert fixture.transaction_repo.types() == ["purchase"]


def test_tampered_signature_leaves_balance_unchanged():
    fixture = _build_fixture(credits=5)
    order = fixture.service.create_order(IDENTITY, "premium").order
    forged = fixture.gateway.sign(order.order_id, "pay_other")

    with pytest.raises(InvalidSignature):
        _verify(fixture, order.order_id, "premium", signature=forged)

    assert fixture.user_repo.balance(IDENTITY) == 5
    assert fixture.order_repo.orders[order.order_id].status is PaymentOrderStatus.CREATED


def test_replayed_callback_credits_once():
    fixture = _build_fixture(credits=5)
    order = fixture.service.create_order(IDENTITY, "basic").order

    first = _verify(fixture, order.order_id, "basic")
    second = _verify(fixture, order.order_id, "basic")

    assert first.credited is True
    assert second.credited is False
    assert second.balance == 25
    assert fixture.user_repo.balance(IDENTITY) == 25
    assert fixture.transaction_repo.types() == ["purchase"]


def test_plan_must_match_the_paid_order():
    fixture = _build_fixture(credits=5)
    order = fixture.service.create_order(IDENTITY, "basic").order

    with pytest.raises(InvalidPlan):
        _verify(fixture, order.order_id, "premium")

    assert fixture.user_repo.balance(IDENTITY) == 5


def test_order_of_another_identity_is_unknown():
    fixture = _build_fixture()
    fixture.user_repo.seed("user_bob", 0)
    order = fixture.service.create_order("user_bob", "basic").order

    with pytest.raises(UnknownOrder):
        _verify(fixture, order.order_id, "basic")

    assert fixture.user_repo.balance("user_bob") == 0


def test_unknown_plan_is_rejected_after_signature_check():
    fixture = _build_fixture()

    with pytest.raises(InvalidPlan):
        _verify(fixture, "order_x", "gold")


@pytest.mark.parametrize(
    "field", ["order_id", "payment_id", "signature", "plan_id"]
)
def test_missing_fields_are_rejected(field):
    fixture = _build_fixture()
    kwargs = {
        "order_id": "order_1",
        "payment_id": "pay_1",
        "signature": "sig",
        "plan_id": "basic",
    }
    kwargs[field] = None

    with pytest.raises(MissingField):
        fixture.service.verify_and_credit(IDENTITY, **kwargs)
