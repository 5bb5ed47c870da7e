import json
import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from urllib.parse import parse_qs


REQUEST_ID_HEADER = "X-Request-Id"
SPAN_ID_HEADER = "X-Span-Id"

# 노이즈를 줄이기 위해 로그에서 제외할 엔드포인트 경로 목록
IGNORED_LOG_PATHS: set[str] = {"/health", "/api/health"}

# 결제 서명 등 로그에 원문으로 남기면 안 되는 바디 필드
MASKED_BODY_FIELDS: frozenset[str] = frozenset(
    {
        "signature",
        "razorpay_signature",
        "razorpay_payment_id",
        "paymentHandle",
    }
)

MAX_BODY_LOG_LENGTH = 1024


def mask_body(text: str) -> str:
    """JSON 바디라면 민감 필드를 가린 문자열을, 아니면 원문을 반환한다."""

    try:
        parsed = json.loads(text)
    except ValueError:
        return text
    if not isinstance(parsed, dict):
        return text

    masked = {
        key: ("***" if key in MASKED_BODY_FIELDS else value)
        for key, value in parsed.items()
    }
    return json.dumps(masked, ensure_ascii=False)


class RequestTraceMiddleware(BaseHTTPMiddleware):
    """공통 Request/Span ID 로그 미들웨어.

    - 들어오는 요청에서 X-Request-Id, X-Span-Id 를 읽고, 없으면 request_id만 새로 생성한다.
    - request.state 에 request_id, span_id 를 저장한다.
    - 응답 헤더에 동일한 값을 설정한다.
    - inbound/outbound 요약 로그를 남기며, Authorization 헤더와 결제 서명은 기록하지 않는다.
    """

    def __init__(self, app, logger: logging.Logger | None = None) -> None:  # type: ignore[override]
        super().__init__(app)
        self._logger = logger or logging.getLogger("request_trace")

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id, span_id = self._extract_trace_ids(request)

        request.state.request_id = request_id
        request.state.span_id = span_id

        raw_body: str | None = None
        if request.method in {"POST", "PUT", "PATCH", "DELETE"}:
            try:
                body_bytes = await request.body()
            except Exception:
                body_bytes = b""
            if body_bytes:
                text = body_bytes.decode("utf-8", errors="replace")
                text = mask_body(text)
                if len(text) > MAX_BODY_LOG_LENGTH:
                    text = text[:MAX_BODY_LOG_LENGTH]
                raw_body = text

        request.state.request_body = raw_body

        should_log = request.url.path not in IGNORED_LOG_PATHS

        start = time.monotonic()

        try:
            response = await call_next(request)
        except Exception:
            if should_log:
                duration = time.monotonic() - start
                self._logger.exception(
                    "request failed",
                    extra=self._build_log_extra(
                        request, request_id, span_id, duration=duration
                    ),
                )
            raise

        response.headers.setdefault(REQUEST_ID_HEADER, request_id)
        response.headers.setdefault(SPAN_ID_HEADER, span_id)

        if should_log:
            duration = time.monotonic() - start
            self._logger.info(
                "completed request",
                extra=self._build_log_extra(
                    request,
                    request_id,
                    span_id,
                    status=response.status_code,
                    duration=duration,
                ),
            )

        return response

    def _extract_trace_ids(self, request: Request) -> tuple[str, str]:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        span_id = request.headers.get(SPAN_ID_HEADER) or "0"
        return request_id, span_id

    def _build_log_extra(
        self,
        request: Request,
        request_id: str,
        span_id: str,
        status: int | None = None,
        duration: float | None = None,
    ) -> dict[str, object]:
        extra: dict[str, object] = {
            "request_id": request_id,
            "span_id": span_id,
            "method": request.method,
            "path": request.url.path,
        }

        query = request.url.query
        if query:
            parsed = parse_qs(query, keep_blank_values=True)
            if parsed:
                extra["query_params"] = {
                    key: values[0] if len(values) == 1 else values
                    for key, values in parsed.items()
                }

        body = getattr(request.state, "request_body", None)
        if body:
            extra["body"] = body

        identity = getattr(request.state, "identity", None)
        if identity:
            extra["identity"] = identity

        if status is not None:
            extra["status"] = status

        if duration is not None:
            extra["duration"] = f"{duration * 1000:.3f}ms"

        return extra
