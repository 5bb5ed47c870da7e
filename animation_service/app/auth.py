"""Bearer 토큰(Clerk 세션 JWT) 검증.

RS256 서명과 만료를 확인하고 sub 를 identity 로 사용한다.
"""

from __future__ import annotations

import logging

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import AuthConfig
from .exceptions import AuthError


logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def decode_identity(token: str, config: AuthConfig) -> str:
    options = {"require": ["exp", "sub"]}
    try:
        payload = jwt.decode(
            token,
            config.public_key,
            algorithms=list(config.algorithms),
            issuer=config.issuer,
            options=options,
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthError("Token expired.") from exc
    except jwt.InvalidTokenError as exc:
        logger.info("bearer token rejected: %s", exc)
        raise AuthError() from exc

    identity = payload.get("sub")
    if not isinstance(identity, str) or not identity:
        raise AuthError()
    return identity


def get_auth_config(request: Request) -> AuthConfig:
    return request.app.state.config.auth


def get_current_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    config: AuthConfig = Depends(get_auth_config),
) -> str:
    """FastAPI DI: 검증된 identity 를 반환하고 request.state 에 기록한다 (요청 로그용)."""

    if credentials is None or not credentials.credentials:
        raise AuthError("Authentication required.")

    identity = decode_identity(credentials.credentials, config)
    request.state.identity = identity
    return identity
