from __future__ import annotations

import os
from dataclasses import dataclass, replace

from common.llm.factory import ChatModelConfig, LlmProvider


ANIMATION_LLM_PROVIDER = "ANIMATION_LLM_PROVIDER"
ANIMATION_LLM_MODEL_NAME = "ANIMATION_LLM_MODEL_NAME"
ANIMATION_LLM_API_KEY = "ANIMATION_LLM_API_KEY"
ANIMATION_LLM_BASE_URL = "ANIMATION_LLM_BASE_URL"
ANIMATION_LLM_TIMEOUT_SECONDS = "ANIMATION_LLM_TIMEOUT_SECONDS"
ANIMATION_LLM_MAX_OUTPUT_TOKENS = "ANIMATION_LLM_MAX_OUTPUT_TOKENS"
CLERK_JWT_KEY = "CLERK_JWT_KEY"
CLERK_JWT_ISSUER = "CLERK_JWT_ISSUER"
RAZORPAY_KEY_ID = "RAZORPAY_KEY_ID"
RAZORPAY_KEY_SECRET = "RAZORPAY_KEY_SECRET"
RAZORPAY_API_BASE_URL = "RAZORPAY_API_BASE_URL"
ANIMATION_DEFAULT_CREDITS = "ANIMATION_DEFAULT_CREDITS"
ANIMATION_MONTHLY_CREDIT_FLOOR = "ANIMATION_MONTHLY_CREDIT_FLOOR"
ANIMATION_CORS_ORIGINS = "ANIMATION_CORS_ORIGINS"

DEFAULT_LLM_MODEL = "gemini-2.0-flash"
GENERATION_TEMPERATURE = 0.7
MODIFICATION_TEMPERATURE = 0.5


@dataclass(slots=True)
class GeneratorConfig:
    """스케치 생성/수정에 쓰는 LLM 설정.

    생성과 수정은 temperature 만 다르고 나머지는 공유한다.
    """

    generation: ChatModelConfig
    modification: ChatModelConfig
    timeout_seconds: float


@dataclass(slots=True)
class AuthConfig:
    """Clerk 가 발급한 세션 JWT 검증 설정."""

    public_key: str
    issuer: str | None = None
    algorithms: tuple[str, ...] = ("RS256",)


@dataclass(slots=True)
class PaymentConfig:
    key_id: str
    key_secret: str
    api_base_url: str = "https://api.razorpay.com/v1"
    currency: str = "INR"
    timeout_seconds: float = 15.0


@dataclass(slots=True)
class CreditConfig:
    default_credits: int = 20
    monthly_floor: int = 10


@dataclass(slots=True)
class AppConfig:
    """animation-service 전체 설정 루트."""

    generator: GeneratorConfig
    auth: AuthConfig
    payment: PaymentConfig
    credits: CreditConfig
    cors_origins: list[str]


def _require(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(
            f"{name} environment variable is required for animation-service",
        )
    return value


def _read_positive_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(
            f"{name} must be an integer if set, got: {raw!r}"
        ) from exc
    if value <= 0:
        raise RuntimeError(f"{name} must be > 0, got: {value}")
    return value


def _read_positive_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a float if set, got: {raw!r}") from exc
    if value <= 0:
        raise RuntimeError(f"{name} must be > 0, got: {value}")
    return value


def format_public_key(raw: str) -> str:
    """환경 변수에 한 줄로 들어온 PEM 키의 ``\\n`` 이스케이프를 실제 개행으로 바꾼다."""

    return raw.strip().replace("\\n", "\n")


def load_generator_config() -> GeneratorConfig:
    provider = LlmProvider.from_str(os.getenv(ANIMATION_LLM_PROVIDER) or "google")
    model = os.getenv(ANIMATION_LLM_MODEL_NAME) or DEFAULT_LLM_MODEL
    api_key = os.getenv(ANIMATION_LLM_API_KEY) or None
    base_url = os.getenv(ANIMATION_LLM_BASE_URL) or None
    timeout_seconds = _read_positive_float(ANIMATION_LLM_TIMEOUT_SECONDS, 60.0)
    max_output_tokens = _read_positive_int(ANIMATION_LLM_MAX_OUTPUT_TOKENS, 2048)

    # 자동 재시도는 하지 않는다(max_retries=0). 과금 API 에 대한 맹목적 재시도를 막는다.
    generation = ChatModelConfig(
        provider=provider,
        model=model,
        temperature=GENERATION_TEMPERATURE,
        api_key=api_key,
        base_url=base_url,
        max_retries=0,
        max_output_tokens=max_output_tokens,
        timeout_seconds=timeout_seconds,
    )
    modification = replace(generation, temperature=MODIFICATION_TEMPERATURE)

    return GeneratorConfig(
        generation=generation,
        modification=modification,
        timeout_seconds=timeout_seconds,
    )


def load_auth_config() -> AuthConfig:
    public_key = format_public_key(_require(CLERK_JWT_KEY))
    issuer = os.getenv(CLERK_JWT_ISSUER) or None
    return AuthConfig(public_key=public_key, issuer=issuer)


def load_payment_config() -> PaymentConfig:
    return PaymentConfig(
        key_id=_require(RAZORPAY_KEY_ID),
        key_secret=_require(RAZORPAY_KEY_SECRET),
        api_base_url=(
            os.getenv(RAZORPAY_API_BASE_URL) or "https://api.razorpay.com/v1"
        ).rstrip("/"),
    )


def load_credit_config() -> CreditConfig:
    return CreditConfig(
        default_credits=_read_positive_int(ANIMATION_DEFAULT_CREDITS, 20),
        monthly_floor=_read_positive_int(ANIMATION_MONTHLY_CREDIT_FLOOR, 10),
    )


def load_cors_origins() -> list[str]:
    raw = os.getenv(ANIMATION_CORS_ORIGINS) or "*"
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def load_config() -> AppConfig:
    """animation-service 설정을 환경 변수에서 로드한다."""

    return AppConfig(
        generator=load_generator_config(),
        auth=load_auth_config(),
        payment=load_payment_config(),
        credits=load_credit_config(),
        cors_origins=load_cors_origins(),
    )
