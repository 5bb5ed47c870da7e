"""크레딧 구매 결제 흐름.

주문 생성 시 (order_id, identity, plan_id) 를 기록해 두고, 검증 시 서명과 함께
저장된 주문의 소유자/요금제/상태를 확인한다. 주문은 created -> paid 로 한 번만
전이되므로 같은 콜백이 다시 와도 크레딧은 한 번만 지급된다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol

from fastapi import Depends, Request
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from common.mongo.client import get_database

from ..exceptions import (
    InvalidPlan,
    InvalidSignature,
    MissingField,
    PaymentGatewayError,
    UnknownOrder,
)
from ..models.payment import PaymentOrder
from ..models.plan import CreditPlan, find_plan
from ..payments.razorpay_gateway import GatewayOrder
from ..repositories.interfaces import PaymentOrderRepositoryInterface
from ..repositories.payment_order_repository import PaymentOrderRepository
from .credit_service import CreditService, get_credit_service


logger = logging.getLogger(__name__)


class PaymentGatewayInterface(Protocol):
    def create_order(
        self, amount: int, notes: dict[str, Any]
    ) -> GatewayOrder:  # pragma: no cover - Protocol
        ...

    def verify_signature(
        self, order_id: str, payment_id: str, signature: str
    ) -> bool:  # pragma: no cover - Protocol
        ...


@dataclass(slots=True)
class CreatedOrder:
    order: PaymentOrder
    plan: CreditPlan


@dataclass(slots=True)
class VerificationResult:
    credited: bool
    credits_added: int
    balance: int

    @property
    def message(self) -> str:
        if self.credited:
            return f"Added {self.credits_added} credits to your account"
        return "Payment already processed"


class PaymentService:
    def __init__(
        self,
        order_repo: PaymentOrderRepositoryInterface,
        credit_service: CreditService,
        gateway: PaymentGatewayInterface,
    ) -> None:
        self._order_repo = order_repo
        self._credit_service = credit_service
        self._gateway = gateway

    def create_order(self, identity: str, plan_id: str | None) -> CreatedOrder:
        plan = find_plan(plan_id)
        if plan is None:
            raise InvalidPlan()

        gateway_order = self._gateway.create_order(
            plan.amount,
            notes={"userId": identity, "planId": plan.id, "credits": plan.credits},
        )

        now = datetime.now(timezone.utc)
        try:
            order = self._order_repo.create(
                PaymentOrder(
                    order_id=gateway_order.order_id,
                    identity=identity,
                    plan_id=plan.id,
                    amount=gateway_order.amount,
                    currency=gateway_order.currency,
                    created_at=now,
                    updated_at=now,
                )
            )
        except DuplicateKeyError as exc:
            logger.error("gateway returned a duplicate order id: %s", gateway_order.order_id)
            raise PaymentGatewayError() from exc

        logger.info(
            "payment order created",
            extra={"identity": identity, "order_id": order.order_id},
        )
        return CreatedOrder(order=order, plan=plan)

    def verify_and_credit(
        self,
        identity: str,
        *,
        order_id: str | None,
        payment_id: str | None,
        signature: str | None,
        plan_id: str | None,
    ) -> VerificationResult:
        if not order_id or not payment_id or not signature or not plan_id:
            raise MissingField("Missing payment verification parameters.")

        if not self._gateway.verify_signature(order_id, payment_id, signature):
            logger.warning(
                "payment signature mismatch",
                extra={"identity": identity, "order_id": order_id},
            )
            raise InvalidSignature()

        plan = find_plan(plan_id)
        if plan is None:
            raise InvalidPlan()

        order = self._order_repo.find_for_owner(order_id, identity)
        if order is None:
            raise UnknownOrder()
        if order.plan_id != plan.id:
            # 결제 금액은 주문 생성 시점의 요금제로 정해졌으므로 다른 요금제로 지급하지 않는다.
            raise InvalidPlan("Plan does not match the paid order.")

        paid = self._order_repo.mark_paid(order_id, identity, payment_id)
        if paid is None:
            logger.info(
                "payment callback replayed",
                extra={"identity": identity, "order_id": order_id},
            )
            return VerificationResult(
                credited=False,
                credits_added=0,
                balance=self._credit_service.get_balance(identity),
            )

        balance = self._credit_service.purchase(
            identity,
            plan.credits,
            metadata={"order_id": order_id, "payment_id": payment_id, "plan_id": plan.id},
        )
        logger.info(
            "payment verified and credits added",
            extra={"identity": identity, "order_id": order_id},
        )
        return VerificationResult(
            credited=True, credits_added=plan.credits, balance=balance
        )


def get_payment_gateway(request: Request) -> PaymentGatewayInterface:
    return request.app.state.payment_gateway


def get_payment_service(
    db: Database = Depends(get_database),
    credit_service: CreditService = Depends(get_credit_service),
    gateway: PaymentGatewayInterface = Depends(get_payment_gateway),
) -> PaymentService:
    """FastAPI DI용 PaymentService 팩토리."""
    return PaymentService(PaymentOrderRepository(db), credit_service, gateway)
