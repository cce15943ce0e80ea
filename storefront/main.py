import time
import logging
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from sqlalchemy import text

from .infrastructure import db as database
from .infrastructure.metrics import (
    metrics_endpoint,
    http_requests_total,
    http_request_duration_seconds
)
from .infrastructure.repositories import UserRepository
from .infrastructure.security import PasswordHasher
from .domain.entities import Role
from .interfaces.http.routers import auth as auth_router
from .interfaces.http.routers import areas as areas_router
from .config import settings

# Настройка структурированного логирования
log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.make_filtering_bound_logger(log_level),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

app = FastAPI(title="Storefront Auth Service", version="0.1.0")

app.state.limiter = Limiter(key_func=get_remote_address, storage_uri=settings.RATE_LIMIT_STORAGE_URI)
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# Добавляем middleware для правильной кодировки и метрик
@app.middleware("http")
async def add_charset_header(request: Request, call_next):
    start_time = time.time()
    method = request.method
    path = request.url.path

    response = await call_next(request)

    if response.headers.get("content-type", "").startswith("application/json"):
        response.headers["content-type"] = "application/json; charset=utf-8"

    # Метрики
    duration = time.time() - start_time
    status_code = response.status_code
    http_requests_total.labels(method=method, endpoint=path, status=status_code).inc()
    http_request_duration_seconds.labels(method=method, endpoint=path).observe(duration)

    # Логирование
    logger.info(
        "http_request",
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=round(duration * 1000, 2)
    )

    return response


@app.exception_handler(Exception)
async def unhandled_exception(request: Request, exc: Exception):
    logger.error("unhandled_exception", path=request.url.path, error=repr(exc))
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def ensure_admin():
    if not (settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD):
        return
    db = database.SessionLocal()
    try:
        repo = UserRepository(db)
        email = settings.ADMIN_EMAIL.strip().lower()
        existing = repo.get_by_email(email)
        if existing is None:
            repo.create(settings.ADMIN_NAME, email, PasswordHasher().hash(settings.ADMIN_PASSWORD), Role.ADMIN)
            logger.info("admin_created", email=email)
        elif existing.role != Role.ADMIN:
            logger.warning("admin_email_taken", email=email, role=existing.role.label)
    finally:
        db.close()


@app.on_event("startup")
def on_startup():
    logger.info("Starting storefront auth service", version="0.1.0")
    database.init_db()
    ensure_admin()

    with database.engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    logger.info("Database connection established")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/up")
def up():
    return {"status": "up"}


@app.get("/metrics")
def metrics():
    """Prometheus metrics endpoint"""
    return metrics_endpoint()


app.include_router(auth_router.router)
app.include_router(areas_router.router)
