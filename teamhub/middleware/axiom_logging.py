"""요청 로깅 미들웨어 — structlog 요청 로그 + Axiom 전송.

Request logging middleware.
Every procedure call produces one structlog line (method, path, status,
duration). When Axiom is configured the same event, enriched with masked
query params, request body and the error code/detail of failed calls,
is ingested into the Axiom dataset.
"""

import json
import re
import time
from typing import Any

from axiom_py import Client as AxiomClient
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from teamhub.config import settings
from teamhub.utils.logging import get_logger

logger = get_logger(__name__)

# 마스킹 대상 필드 패턴 — Fields to mask in request bodies and query params
_SENSITIVE_KEYS = re.compile(
    r"(password|secret|token|authorization|api_key|apikey|credential|email)",
    re.IGNORECASE,
)

# 로깅 제외 경로 — Paths excluded from logging
_SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}


def _mask_dict(data: Any, depth: int = 0) -> Any:
    """민감 필드 자동 마스킹 — Recursively mask sensitive fields in dicts/lists."""
    if depth > 5:
        return "..."
    if isinstance(data, dict):
        return {
            k: "***" if _SENSITIVE_KEYS.search(k) else _mask_dict(v, depth + 1)
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [_mask_dict(item, depth + 1) for item in data[:20]]
    return data


async def _read_body(response: Response) -> bytes:
    body = b""
    async for chunk in response.body_iterator:
        body += chunk if isinstance(chunk, bytes) else chunk.encode("utf-8")
    return body


class AxiomLoggingMiddleware(BaseHTTPMiddleware):
    """모든 프로시저 호출을 로깅하는 미들웨어.

    Middleware logging every procedure call to structlog and, when
    AXIOM_API_TOKEN and AXIOM_DATASET are set, to Axiom.
    """

    def __init__(self, app: Any) -> None:
        super().__init__(app)
        self._client: AxiomClient | None = None
        self._dataset: str = settings.AXIOM_DATASET

        if settings.AXIOM_API_TOKEN and settings.AXIOM_DATASET:
            self._client = AxiomClient(token=settings.AXIOM_API_TOKEN)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in _SKIP_PATHS:
            return await call_next(request)

        start_time = time.time()
        method = request.method
        path = request.url.path

        request_body: Any = None
        if self._client and method == "POST":
            try:
                body_bytes = await request.body()
                if body_bytes:
                    request_body = _mask_dict(json.loads(body_bytes))
            except (json.JSONDecodeError, UnicodeDecodeError):
                request_body = "(non-json body)"

        error: dict[str, Any] | None = None
        status_code: int = 500
        try:
            response = await call_next(request)
            status_code = response.status_code

            # 실패한 호출의 code/detail 추출 — Keep the coded error of failed calls
            if status_code >= 400:
                resp_body = await _read_body(response)
                try:
                    error = json.loads(resp_body)
                except (json.JSONDecodeError, UnicodeDecodeError):
                    error = {"detail": resp_body.decode("utf-8", errors="replace")[:500]}

                # 소비한 body를 다시 응답으로 반환 — Re-wrap consumed body
                response = Response(
                    content=resp_body,
                    status_code=status_code,
                    headers=dict(response.headers),
                    media_type=response.media_type,
                )
        except Exception as exc:
            error = {"detail": f"{type(exc).__name__}: {str(exc)[:300]}"}
            raise
        finally:
            duration_ms = round((time.time() - start_time) * 1000, 2)
            code = error.get("code") if isinstance(error, dict) else None
            logger.info(
                "request",
                method=method,
                path=path,
                status_code=status_code,
                duration_ms=duration_ms,
                code=code,
            )

            if self._client:
                log_event: dict[str, Any] = {
                    "method": method,
                    "path": path,
                    "status_code": status_code,
                    "duration_ms": duration_ms,
                }
                if request.query_params:
                    log_event["query_params"] = _mask_dict(dict(request.query_params))
                if request_body is not None:
                    log_event["request_body"] = request_body
                if error:
                    log_event["error"] = error

                try:
                    self._client.ingest_events(self._dataset, [log_event])
                except Exception as exc:  # noqa: BLE001
                    # 로깅 실패로 요청을 깨뜨리지 않음 — Never break a request on log failure
                    logger.warning("axiom_ingest_failed", error=str(exc))

        return response
