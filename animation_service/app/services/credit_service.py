"""크레딧 서비스.

유저 레코드 해석(첫 접속 시 생성), 월간 리필, 유료 작업의 예약/확정/해제,
결제/수동 충전, 트랜잭션 로깅을 처리한다.

유료 작업은 다음 순서를 따른다.
1. reserve: credits > 0 일 때만 1 차감 (원자 연산). 실패 시 InsufficientCredits.
2. 작업 성공 -> commit: consume 트랜잭션 기록.
3. 작업 실패 -> release: 1 환원 후 refund 트랜잭션 기록.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterator

from fastapi import Depends, Request
from pymongo.database import Database
from pymongo.errors import PyMongoError

from common.mongo.client import get_database

from ..config import CreditConfig
from ..exceptions import InsufficientCredits, ValidationError
from ..models.credit import CreditTransaction, CreditTransactionType
from ..models.user import UserAccount
from ..repositories.credit_transaction_repository import CreditTransactionRepository
from ..repositories.interfaces import (
    CreditTransactionRepositoryInterface,
    UserRepositoryInterface,
)
from ..repositories.user_repository import UserRepository


logger = logging.getLogger(__name__)

# 신원 공급자가 프로필을 주지 않으므로 첫 생성 시 자리표시 값을 쓴다.
PLACEHOLDER_EMAIL = "user@example.com"
PLACEHOLDER_NAME = "User"

DEFAULT_TOP_UP_CREDITS = 10
# 수동 충전 1회 상한
MAX_TOP_UP_CREDITS = 100


def month_start_of(now: datetime) -> datetime:
    """UTC 기준 해당 월 1일 00:00."""
    now = now.astimezone(timezone.utc)
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


@dataclass(slots=True)
class CreditReservation:
    identity: str
    amount: int
    reason: str
    balance_after: int
    metadata: dict[str, Any] = field(default_factory=dict)
    settled: bool = False


class CreditService:
    """크레딧 관련 비즈니스 로직."""

    def __init__(
        self,
        user_repo: UserRepositoryInterface,
        transaction_repo: CreditTransactionRepositoryInterface,
        config: CreditConfig | None = None,
    ) -> None:
        self._user_repo = user_repo
        self._transaction_repo = transaction_repo
        self._config = config or CreditConfig()

    def resolve_user(self, identity: str) -> UserAccount:
        return self._user_repo.get_or_create(
            identity,
            default_credits=self._config.default_credits,
            email=PLACEHOLDER_EMAIL,
            name=PLACEHOLDER_NAME,
        )

    def get_balance(self, identity: str, now: datetime | None = None) -> int:
        """잔액 조회. 새 달이 시작되었으면 floor 까지 리필한 뒤의 잔액을 반환한다."""
        user = self.resolve_user(identity)
        refreshed = self.apply_monthly_refresh(user, now=now)
        return (refreshed or user).credits

    def apply_monthly_refresh(
        self, user: UserAccount, now: datetime | None = None
    ) -> UserAccount | None:
        """이번 달 리필이 아직이면 잔액을 max(잔액, floor) 로 올린다. 이미 했으면 None."""
        month_start = month_start_of(now or datetime.now(timezone.utc))
        if user.last_credit_refresh >= month_start:
            return None

        refreshed = self._user_repo.apply_monthly_refresh(
            user.identity,
            floor=self._config.monthly_floor,
            month_start=month_start,
        )
        if refreshed is None:
            return None

        granted = refreshed.credits - user.credits
        if granted > 0:
            self._record(
                identity=user.identity,
                tx_type=CreditTransactionType.MONTHLY_REFRESH,
                amount=granted,
                reason="월간 무료 크레딧 리필",
                balance_after=refreshed.credits,
            )
        logger.info(
            "monthly credit refresh applied",
            extra={"identity": user.identity},
        )
        return refreshed

    def ensure_has_credits(self, identity: str) -> UserAccount:
        """유료 작업 전 사전 검사. 레코드가 없으면 만들고, 잔액이 0 이하면 InsufficientCredits."""
        user = self.resolve_user(identity)
        if user.credits <= 0:
            raise InsufficientCredits()
        return user

    def reserve(self, identity: str, reason: str, amount: int = 1) -> CreditReservation:
        updated = self._user_repo.try_consume(identity, amount)
        if updated is None:
            raise InsufficientCredits()
        return CreditReservation(
            identity=identity,
            amount=amount,
            reason=reason,
            balance_after=updated.credits,
        )

    def commit(self, reservation: CreditReservation) -> None:
        if reservation.settled:
            return
        reservation.settled = True
        self._record(
            identity=reservation.identity,
            tx_type=CreditTransactionType.CONSUME,
            amount=reservation.amount,
            reason=reservation.reason,
            balance_after=reservation.balance_after,
            metadata=reservation.metadata or None,
        )

    def release(self, reservation: CreditReservation, cause: str) -> None:
        if reservation.settled:
            return
        reservation.settled = True
        updated = self._user_repo.add_credits(reservation.identity, reservation.amount)
        self._record(
            identity=reservation.identity,
            tx_type=CreditTransactionType.REFUND,
            amount=reservation.amount,
            reason=f"{reservation.reason} 실패 환불",
            balance_after=updated.credits if updated else None,
            metadata={"cause": cause, **reservation.metadata},
        )

    @contextmanager
    def spend(self, identity: str, reason: str) -> Iterator[CreditReservation]:
        """블록이 정상 종료되면 commit, 예외로 빠져나가면 release 후 예외를 다시 던진다."""
        reservation = self.reserve(identity, reason)
        try:
            yield reservation
        except BaseException as exc:
            try:
                self.release(reservation, cause=type(exc).__name__)
            except PyMongoError:
                logger.exception(
                    "failed to release credit reservation",
                    extra={"identity": identity},
                )
            raise
        self.commit(reservation)

    def top_up(self, identity: str, credits: int = DEFAULT_TOP_UP_CREDITS) -> int:
        """수동 충전 (결제 연동 이전의 자리표시 엔드포인트용). 충전 후 잔액 반환."""
        if not 0 < credits <= MAX_TOP_UP_CREDITS:
            raise ValidationError(
                f"Credits must be between 1 and {MAX_TOP_UP_CREDITS}."
            )
        self.resolve_user(identity)
        updated = self._user_repo.add_credits(identity, credits)
        if updated is None:
            raise RuntimeError(f"user record vanished during top-up: {identity}")
        self._record(
            identity=identity,
            tx_type=CreditTransactionType.GRANT,
            amount=credits,
            reason="수동 충전",
            balance_after=updated.credits,
        )
        return updated.credits

    def purchase(
        self, identity: str, credits: int, metadata: dict[str, Any]
    ) -> int:
        """결제 검증 완료 후 크레딧 지급. 지급 후 잔액 반환."""
        self.resolve_user(identity)
        updated = self._user_repo.add_credits(identity, credits)
        if updated is None:
            raise RuntimeError(f"user record vanished during purchase: {identity}")
        self._record(
            identity=identity,
            tx_type=CreditTransactionType.PURCHASE,
            amount=credits,
            reason="크레딧 구매",
            balance_after=updated.credits,
            metadata=metadata,
        )
        return updated.credits

    def get_history(
        self, identity: str, page: int = 1, page_size: int = 20
    ) -> tuple[list[CreditTransaction], int]:
        """크레딧 변경 이력 조회 (최신순)."""
        return self._transaction_repo.list_by_identity(identity, page, page_size)

    def _record(
        self,
        *,
        identity: str,
        tx_type: CreditTransactionType,
        amount: int,
        reason: str,
        balance_after: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        # 원장(users.credits)은 이미 반영되었고, 로그는 이력 조회용이다.
        now = datetime.now(timezone.utc)
        try:
            self._transaction_repo.create(
                CreditTransaction(
                    identity=identity,
                    type=tx_type,
                    amount=amount,
                    reason=reason,
                    balance_after=balance_after,
                    metadata=metadata,
                    created_at=now,
                    updated_at=now,
                )
            )
        except PyMongoError:
            logger.exception(
                "failed to write credit transaction (type=%s)",
                tx_type.value,
                extra={"identity": identity},
            )


def get_credit_config(request: Request) -> CreditConfig:
    return request.app.state.config.credits


def get_credit_service(
    db: Database = Depends(get_database),
    config: CreditConfig = Depends(get_credit_config),
) -> CreditService:
    """FastAPI DI용 CreditService 팩토리."""
    return CreditService(
        UserRepository(db),
        CreditTransactionRepository(db),
        config,
    )
