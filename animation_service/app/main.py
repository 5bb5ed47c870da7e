from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from common.logger import setup_logger
from common.middleware.request_trace import RequestTraceMiddleware
from common.mongo.client import close_client, get_client

from .api.errors import register_exception_handlers
from .api.health import router as health_router
from .api.v1 import api_router
from .config import AppConfig, load_config, load_cors_origins
from .generator.sketch_generator import SketchGenerator
from .payments.razorpay_gateway import RazorpayGateway


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """앱 생명주기 관리.

    - 시작 시: 설정 로드, MongoDB 연결(ping + 인덱스), 스케치 생성기, 결제 게이트웨이 초기화
    - 종료 시: 역순으로 정리
    """
    logger.info("animation-service starting up")

    config: AppConfig = load_config()
    app.state.config = config

    get_client()

    sketch_generator = SketchGenerator.from_config(config.generator)
    app.state.sketch_generator = sketch_generator
    logger.info(
        "sketch generator initialized (provider=%s, model=%s)",
        config.generator.generation.provider.value,
        config.generator.generation.model,
    )

    payment_gateway = RazorpayGateway(config.payment)
    app.state.payment_gateway = payment_gateway

    try:
        yield
    finally:
        logger.info("animation-service shutting down")
        payment_gateway.close()
        sketch_generator.close()
        close_client()
        logger.info("animation-service stopped")


def create_app() -> FastAPI:
    """FastAPI 앱 팩토리."""
    setup_logger()
    app = FastAPI(
        title="Animation Studio Service",
        description="프롬프트 기반 p5.js 애니메이션 생성 서비스",
        version="0.1.0",
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=load_cors_origins(),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # 공통 Request/Span ID 로그 미들웨어
    app.add_middleware(RequestTraceMiddleware)

    app.include_router(health_router, prefix="/api", tags=["health"])
    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


def main() -> None:
    """Animation Service 메인 엔트리 포인트."""
    import uvicorn

    port = int(os.getenv("ANIMATION_SERVICE_PORT", "5000"))
    uvicorn.run(
        "animation_service.app.main:app",
        host="0.0.0.0",
        port=port,
        reload=False,
        access_log=False,
    )


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    main()
