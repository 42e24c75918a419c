"""FastAPI 애플리케이션 엔트리포인트 — 미들웨어, 예외 처리기, 라우터 등록.

FastAPI application entry point — Middleware, exception handlers and
router registration. Procedure failures are rendered as
{"code": "<CODE>", "detail": "<message>"}.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from teamhub.config import settings
from teamhub.middleware.axiom_logging import AxiomLoggingMiddleware
from teamhub.services.billing_service import BillingError
from teamhub.utils.exceptions import ProcedureError
from teamhub.utils.logging import get_logger, setup_logging

setup_logging()
logger = get_logger(__name__)

app: FastAPI = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# 요청 로깅 미들웨어 — Request logging (structlog + Axiom)
# CORS보다 먼저 등록하여 모든 요청을 캡처 (Registered before CORS to capture all requests)
app.add_middleware(AxiomLoggingMiddleware)

# CORS 미들웨어 — Cross-Origin Resource Sharing middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ProcedureError)
async def procedure_error_handler(request: Request, exc: ProcedureError) -> JSONResponse:
    """코드가 있는 프로시저 오류를 {code, detail}로 변환합니다."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": exc.code, "detail": exc.detail},
    )


@app.exception_handler(BillingError)
async def billing_error_handler(request: Request, exc: BillingError) -> JSONResponse:
    """결제 서비스 오류를 400 BAD_REQUEST로 변환합니다."""
    logger.warning("billing_error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=400,
        content={"code": "BAD_REQUEST", "detail": str(exc)},
    )


@app.get("/health")
async def health_check() -> dict[str, str]:
    """서버 상태 확인 엔드포인트.

    Health check endpoint for load balancers and monitoring.
    """
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# 라우터 등록 — Router registration
# ---------------------------------------------------------------------------
from teamhub.api.viewer import viewer_router  # noqa: E402

app.include_router(viewer_router, prefix="/api/v1/viewer")
