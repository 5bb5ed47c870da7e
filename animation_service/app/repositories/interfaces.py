from __future__ import annotations

from datetime import datetime
from typing import Protocol

from ..models.animation import Animation, AnimationMessage, AnimationSummary
from ..models.credit import CreditTransaction
from ..models.payment import PaymentOrder
from ..models.user import UserAccount


class UserRepositoryInterface(Protocol):
    """유저/크레딧 원장 저장소 계약.

    잔액 변경은 모두 저장소 레벨의 단일 원자 연산이어야 한다.
    서비스 레이어에서 읽고-계산하고-쓰는 방식으로 잔액을 바꾸지 않는다.
    """

    def get_or_create(
        self, identity: str, *, default_credits: int, email: str, name: str
    ) -> UserAccount:  # pragma: no cover - Protocol
        """identity 레코드를 반환하고, 없으면 원자적으로 생성한다."""
        ...

    def find_by_identity(
        self, identity: str
    ) -> UserAccount | None:  # pragma: no cover - Protocol
        ...

    def try_consume(
        self, identity: str, amount: int = 1
    ) -> UserAccount | None:  # pragma: no cover - Protocol
        """잔액이 amount 이상일 때만 차감하고 차감 후 레코드를, 부족하면 None 을 반환한다."""
        ...

    def add_credits(
        self, identity: str, amount: int
    ) -> UserAccount | None:  # pragma: no cover - Protocol
        ...

    def apply_monthly_refresh(
        self, identity: str, *, floor: int, month_start: datetime
    ) -> UserAccount | None:  # pragma: no cover - Protocol
        """last_credit_refresh 가 month_start 이전일 때만 잔액을 floor 까지 올린다.

        이번 달에 이미 리필되었다면 None 을 반환한다.
        """
        ...


class AnimationRepositoryInterface(Protocol):
    """애니메이션 저장소 계약. 조회/변경은 항상 소유자(identity) 조건을 함께 건다."""

    def insert(self, animation: Animation) -> Animation:  # pragma: no cover - Protocol
        ...

    def find_for_owner(
        self, animation_id: str, identity: str
    ) -> Animation | None:  # pragma: no cover - Protocol
        ...

    def list_summaries(
        self, identity: str
    ) -> list[AnimationSummary]:  # pragma: no cover - Protocol
        ...

    def apply_modification(
        self,
        animation_id: str,
        identity: str,
        code: str,
        messages: list[AnimationMessage],
    ) -> Animation | None:  # pragma: no cover - Protocol
        """코드 교체와 메시지 추가를 하나의 업데이트로 수행한다."""
        ...

    def save_video(
        self,
        animation_id: str,
        identity: str,
        video_url: str,
        thumbnail: str | None,
    ) -> bool:  # pragma: no cover - Protocol
        ...

    def delete(
        self, animation_id: str, identity: str
    ) -> bool:  # pragma: no cover - Protocol
        ...


class CreditTransactionRepositoryInterface(Protocol):
    def create(
        self, tx: CreditTransaction
    ) -> CreditTransaction:  # pragma: no cover - Protocol
        ...

    def list_by_identity(
        self, identity: str, page: int, page_size: int
    ) -> tuple[list[CreditTransaction], int]:  # pragma: no cover - Protocol
        ...


class PaymentOrderRepositoryInterface(Protocol):
    def create(self, order: PaymentOrder) -> PaymentOrder:  # pragma: no cover - Protocol
        ...

    def find_for_owner(
        self, order_id: str, identity: str
    ) -> PaymentOrder | None:  # pragma: no cover - Protocol
        ...

    def mark_paid(
        self, order_id: str, identity: str, payment_id: str
    ) -> PaymentOrder | None:  # pragma: no cover - Protocol
        """created 상태인 주문만 paid 로 바꾼다. 이미 처리된 주문이면 None."""
        ...
