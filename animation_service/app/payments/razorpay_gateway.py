"""Razorpay REST 어댑터.

공식 SDK 대신 httpx 로 Orders API 를 직접 호출하고, 결제 콜백 서명은
HMAC-SHA256(key_secret, "order_id|payment_id") 로 검증한다.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx

from ..config import PaymentConfig
from ..exceptions import PaymentGatewayError


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class GatewayOrder:
    order_id: str
    amount: int
    currency: str
    receipt: str


def build_receipt() -> str:
    return f"receipt_{int(time.time() * 1000)}"


def compute_signature(key_secret: str, order_id: str, payment_id: str) -> str:
    message = f"{order_id}|{payment_id}".encode()
    return hmac.new(key_secret.encode(), message, hashlib.sha256).hexdigest()


class RazorpayGateway:
    """Orders API 클라이언트. httpx.Client 는 앱 수명 동안 하나만 유지한다."""

    def __init__(
        self, config: PaymentConfig, client: httpx.Client | None = None
    ) -> None:
        self._config = config
        self._client = client or httpx.Client(
            base_url=config.api_base_url,
            timeout=config.timeout_seconds,
            auth=(config.key_id, config.key_secret),
        )

    @property
    def currency(self) -> str:
        return self._config.currency

    def create_order(self, amount: int, notes: dict[str, Any]) -> GatewayOrder:
        payload = {
            "amount": amount,
            "currency": self._config.currency,
            "receipt": build_receipt(),
            "notes": notes,
        }
        try:
            resp = self._client.post("/orders", json=payload)
        except httpx.RequestError as exc:
            logger.error("razorpay order request failed: %s", exc)
            raise PaymentGatewayError() from exc

        if resp.status_code >= 400:
            logger.error(
                "razorpay order rejected: status=%s body=%s",
                resp.status_code,
                resp.text[:500],
            )
            raise PaymentGatewayError()

        try:
            body = resp.json()
            return GatewayOrder(
                order_id=body["id"],
                amount=int(body.get("amount", amount)),
                currency=body.get("currency", self._config.currency),
                receipt=body.get("receipt", payload["receipt"]),
            )
        except (ValueError, KeyError, TypeError) as exc:
            logger.error("unexpected razorpay order response: %s", resp.text[:500])
            raise PaymentGatewayError() from exc

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        expected = compute_signature(self._config.key_secret, order_id, payment_id)
        return hmac.compare_digest(expected.encode(), signature.encode())

    def close(self) -> None:
        self._client.close()
