"""
FastAPI 主入口
"""
import logging
import time
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Response, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration

from app.config import get_settings
from app.database import init_db
from app.routers import auth, user, articles, comments, categories, tags
from app.services.exceptions import ServiceError
from app.utils.request_context import request_id_ctx_var, RequestIdFilter, JsonFormatter
from app.utils.metrics import REQUEST_COUNT, REQUEST_LATENCY, IN_PROGRESS, get_route_name

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    settings.validate_secrets()
    await init_db()
    yield


app = FastAPI(
    title="News API",
    description="新闻文章发布服务：账号、文章、分类、标签与评论",
    version="1.0.0",
    lifespan=lifespan,
)


def _error_body(message, error_code: str, code: int, details=None) -> dict:
    body = {
        "status": "error",
        "message": message,
        "error_code": error_code,
        "code": code,
    }
    if details:
        body["details"] = details
    return body


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error("Service error %s: %s", exc.error_code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc.error_code, exc.status_code, exc.details),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    error_code = {
        401: "UNAUTHORIZED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        429: "TOO_MANY_REQUESTS",
    }.get(exc.status_code, "HTTP_ERROR")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.detail, error_code, exc.status_code),
        headers=getattr(exc, "headers", None),
    )


def _field_errors(errors) -> list:
    details = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        # 去掉 body / query / path / form 这一层
        field = ".".join(loc[1:]) or (loc[0] if loc else "")
        message = str(error.get("msg", "")).removeprefix("Value error, ")
        details.append({"field": field, "message": message})
    return details


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(
            "Validation Error", "VALIDATION_ERROR", 400, _field_errors(exc.errors())
        ),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("Global exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Internal Server Error", "INTERNAL_ERROR", 500),
    )


@app.middleware("http")
async def request_context_middleware(request, call_next):
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    request.state.request_id = request_id
    token = request_id_ctx_var.set(request_id)
    response = None
    start = time.perf_counter()
    if settings.metrics_enabled:
        IN_PROGRESS.inc()

    try:
        response = await call_next(request)
        return response
    finally:
        duration = time.perf_counter() - start
        path = get_route_name(request.scope)
        status_code = response.status_code if response else 500
        if settings.metrics_enabled:
            REQUEST_COUNT.labels(request.method, path, str(status_code)).inc()
            REQUEST_LATENCY.labels(request.method, path).observe(duration)
            IN_PROGRESS.dec()
        request_id_ctx_var.reset(token)
        if response is not None:
            response.headers["X-Request-ID"] = request_id


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)

# 所有 API 路由都在 /api/v1/ 前缀下
API_V1_PREFIX = "/api/v1"

app.include_router(auth.router, prefix=API_V1_PREFIX, tags=["认证"])
app.include_router(user.router, prefix=API_V1_PREFIX, tags=["用户"])
app.include_router(articles.router, prefix=f"{API_V1_PREFIX}/articles", tags=["文章"])
app.include_router(comments.router, prefix=API_V1_PREFIX, tags=["评论"])
app.include_router(categories.router, prefix=f"{API_V1_PREFIX}/categories", tags=["分类"])
app.include_router(tags.router, prefix=f"{API_V1_PREFIX}/tags", tags=["标签"])


@app.get("/")
async def root():
    """根路由"""
    return {"message": "News API is running", "status": "ok", "docs_url": "/docs"}


@app.get(f"{API_V1_PREFIX}/health")
async def health_check():
    """健康检查端点"""
    return {
        "status": "ok",
        "service": "news-api",
        "version": "1.0.0",
        "api_version": "v1",
    }


@app.get("/metrics")
async def metrics():
    """Prometheus 指标端点"""
    if not settings.metrics_enabled:
        raise HTTPException(status_code=404, detail="Metrics disabled")
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


def configure_logging() -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.log_level)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = [handler]
        uvicorn_logger.setLevel(settings.log_level)
        uvicorn_logger.propagate = False


def init_sentry() -> None:
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            integrations=[FastApiIntegration()],
            traces_sample_rate=settings.sentry_traces_sample_rate,
            profiles_sample_rate=settings.sentry_profiles_sample_rate,
        )


configure_logging()
init_sentry()
