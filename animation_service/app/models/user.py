"""유저/크레딧 원장 도메인 모델."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class UserAccount(BaseModel):
    """identity(Clerk user id) 당 하나만 존재하는 유저 레코드.

    credits 는 음수가 되지 않으며, 유료 작업(-1), 결제 검증(+plan.credits),
    월간 리필(floor 까지 상향)으로만 변한다.
    """

    id: str | None = None
    identity: str
    email: str
    name: str
    credits: int
    last_credit_refresh: datetime
    created_at: datetime
    updated_at: datetime
