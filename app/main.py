import logging
import time
import uuid
from typing import Callable, Iterable, Sequence

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.routes_chat import router as chat_router
from app.api.routes_health import router as health_router
from app.api.routes_metrics import router as metrics_router
from app.bot.faq.engine import FaqEntry
from app.bot.faq.table import load_faq_table
from app.bot.llm.gemini import GeminiClient
from app.bot.service import AiBackend, ChatService
from app.infra.logging import configure_logging
from app.infra.metrics import Metrics
from app.infra.security import InMemoryRateLimiter, client_key, create_rate_limiter
from app.settings import settings

PROBLEM_TYPE_VALIDATION = "https://example.com/problems/validation-error"
PROBLEM_TYPE_REQUEST = "https://example.com/problems/request-error"
PROBLEM_TYPE_RATE_LIMIT = "https://example.com/problems/rate-limit"
PROBLEM_TYPE_SERVER = "https://example.com/problems/server-error"

RATE_LIMIT_EXEMPT_PATHS = {"/healthz", "/api/health"}

logger = logging.getLogger(__name__)


def problem_details(
    request: Request,
    status: int,
    title: str,
    detail: str,
    errors: list[dict[str, str]] | None = None,
    type_: str = "about:blank",
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    content = {
        "type": type_,
        "title": title,
        "status": status,
        "detail": detail,
        "request_id": getattr(request.state, "request_id", None),
        "errors": errors or [],
    }
    return JSONResponse(status_code=status, content=content, headers=headers)


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable):
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable):
        logger = logging.getLogger("app.request")
        start = time.time()
        response = await call_next(request)
        latency_ms = int((time.time() - start) * 1000)
        if response.status_code >= 500:
            app_metrics = getattr(request.app.state, "metrics", None)
            if app_metrics:
                app_metrics.record_http_5xx(request.method, request.url.path)
        logger.info(
            "request",
            extra={
                "extra": {
                    "request_id": getattr(request.state, "request_id", None),
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "latency_ms": latency_ms,
                }
            },
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("Content-Security-Policy", "default-src 'none'; frame-ancestors 'none'")
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: FastAPI, limiter: InMemoryRateLimiter) -> None:
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next: Callable):
        if request.url.path in RATE_LIMIT_EXEMPT_PATHS or not request.url.path.startswith("/api/"):
            return await call_next(request)
        if not await self.limiter.allow(client_key(request)):
            return problem_details(
                request=request,
                status=429,
                title="Too Many Requests",
                detail="Too many requests from this IP, please try again later.",
                type_=PROBLEM_TYPE_RATE_LIMIT,
                headers={"Retry-After": str(self.limiter.window_seconds)},
            )
        return await call_next(request)


def _resolve_cors_origins(app_settings) -> Iterable[str]:
    if app_settings.cors_origins:
        return app_settings.cors_origins
    if app_settings.strict_cors:
        return []
    if app_settings.app_env == "dev":
        return ["http://localhost:5173"]
    return []


def _check_prod_config(app_settings) -> None:
    if app_settings.app_env == "dev" or app_settings.testing:
        return
    if not app_settings.gemini_configured:
        logger.warning("gemini_demo_mode", extra={"extra": {"detail": "GEMINI_API_KEY is not configured"}})
    if app_settings.metrics_enabled and not app_settings.metrics_token:
        logger.warning("metrics_unprotected", extra={"extra": {"detail": "METRICS_TOKEN is not configured"}})


def create_app(
    app_settings,
    ai_backend: AiBackend | None = None,
    faq_table: Sequence[FaqEntry] | None = None,
) -> FastAPI:
    configure_logging()
    _check_prod_config(app_settings)
    app = FastAPI(title="Sathi Support Bot", version=app_settings.app_version)

    rate_limiter = create_rate_limiter(app_settings)
    app_metrics = Metrics(enabled=app_settings.metrics_enabled)
    if faq_table is None:
        faq_table = load_faq_table(app_settings.faq_table_path)
    if ai_backend is None:
        ai_backend = GeminiClient.from_settings(app_settings)

    app.state.rate_limiter = rate_limiter
    app.state.app_settings = app_settings
    app.state.metrics = app_metrics
    app.state.chat_service = ChatService(faq_table=faq_table, ai_backend=ai_backend, metrics=app_metrics)

    @app.on_event("shutdown")
    async def shutdown_limiter() -> None:
        await rate_limiter.close()

    app.add_middleware(RateLimitMiddleware, limiter=rate_limiter)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(_resolve_cors_origins(app_settings)),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )


    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = []
        for error in exc.errors():
            loc = error.get("loc", [])
            field = ".".join(str(part) for part in loc if part not in {"body", "query", "path"}) or "body"
            message = str(error.get("msg", "Invalid value")).removeprefix("Value error, ")
            errors.append({"field": field, "message": message})
        return problem_details(
            request=request,
            status=422,
            title="Validation Error",
            detail="Invalid input",
            errors=errors,
            type_=PROBLEM_TYPE_VALIDATION,
        )


    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return problem_details(
            request=request,
            status=exc.status_code,
            title=exc.detail if isinstance(exc.detail, str) else "HTTP Error",
            detail=exc.detail if isinstance(exc.detail, str) else "Request failed",
            type_=PROBLEM_TYPE_REQUEST if exc.status_code < 500 else PROBLEM_TYPE_SERVER,
            headers=exc.headers,
        )


    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "unhandled_exception",
            extra={
                "extra": {
                    "request_id": getattr(request.state, "request_id", None),
                    "path": request.url.path,
                }
            },
        )
        return problem_details(
            request=request,
            status=500,
            title="Internal Server Error",
            detail="I apologize, but something went wrong. Please try again later.",
            type_=PROBLEM_TYPE_SERVER,
        )


    app.include_router(health_router)
    app.include_router(chat_router)
    app.include_router(metrics_router)
    return app


app = create_app(settings)
