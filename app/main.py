import logging
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

# Uvicorn nereden çalışırsa çalışsın .env proje kökünden yüklensin
_PROJ_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJ_ROOT / ".env")

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.automation import cron_router, router as automation_router
from app.api.campaigns import router as campaigns_router
from app.api.push import router as push_router
from app.api.subscribe import router as subscribe_router
from app.core.config import settings
from app.core.database import check_db, init_db
from app.core.exceptions import PushError
from app.core.rate_limit import limiter
from app.logging import setup_logging
from app.tasks.scheduler import start_scheduler, stop_scheduler

setup_logging(level=settings.log_level)
log = logging.getLogger("pushcast")


def _cors_origins_list() -> list[str]:
    if not settings.cors_origins or settings.cors_origins.strip() == "*":
        return ["*"]
    return [o.strip() for o in settings.cors_origins.split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    log.info("VAPID keys loaded: %s", "yes" if settings.is_push_configured else "NO (.env dosyasına VAPID_PUBLIC_KEY / VAPID_PRIVATE_KEY ekleyin)")
    if not settings.admin_secret:
        log.warning("ADMIN_SECRET is empty; operator endpoints will answer 503")
    start_scheduler()
    yield
    stop_scheduler()


app = FastAPI(
    title="Pushcast API",
    description="Web Push: toplu gönderim, A/B kampanyaları ve zamanlı otomasyon",
    lifespan=lifespan,
)
app.state.limiter = limiter


def _error_response(request: Request, status_code: int, detail: str) -> JSONResponse:
    rid = getattr(request.state, "request_id", None)
    body = {"error": detail, "status_code": status_code}
    if rid:
        body["request_id"] = rid
    return JSONResponse(status_code=status_code, content=body)


def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    log.warning("Rate limit exceeded: path=%s ip=%s", request.url.path, request.client.host if request.client else "-")
    return _error_response(request, 429, "Çok fazla istek. Lütfen bir dakika bekleyin.")


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errs = exc.errors()
    log.info(
        "Request validation error (422): path=%s method=%s detail=%s",
        request.url.path,
        request.method,
        errs,
    )
    first = errs[0] if errs else {}
    msg = first.get("msg") or "Geçersiz istek."
    rid = getattr(request.state, "request_id", None)
    body = {"error": msg, "status_code": 422, "detail": _jsonable_errors(errs)}
    if rid:
        body["request_id"] = rid
    return JSONResponse(status_code=422, content=body)


def _jsonable_errors(errs) -> list[dict]:
    """Pydantic hata listesinde ctx içinde exception nesneleri olabilir; JSON'a uygun hale getir."""
    out = []
    for e in errs:
        out.append({"loc": list(e.get("loc") or []), "msg": e.get("msg"), "type": e.get("type")})
    return out


app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)


@app.exception_handler(PushError)
def push_error_handler(request: Request, exc: PushError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error("Push error: path=%s %s", request.url.path, exc, exc_info=exc)
    return _error_response(request, exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(request, exc.status_code, exc.detail if isinstance(exc.detail, str) else str(exc.detail))


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled exception: path=%s %s", request.url.path, exc, exc_info=True)
    return JSONResponse(status_code=500, content={"error": "Beklenmeyen sunucu hatası.", "status_code": 500})


@app.middleware("http")
async def request_id_and_latency(request: Request, call_next):
    request.state.request_id = str(uuid.uuid4())
    start = time.perf_counter()
    response = await call_next(request)
    latency_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-ID"] = request.state.request_id
    log.info(
        "request_id=%s method=%s path=%s status=%s latency_ms=%.2f",
        request.state.request_id,
        request.method,
        request.url.path,
        response.status_code,
        latency_ms,
    )
    return response


app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(subscribe_router)
app.include_router(push_router)
app.include_router(campaigns_router)
app.include_router(automation_router)
app.include_router(cron_router)


@app.get("/health")
def health():
    return {
        "status": "ok",
        "push_configured": settings.is_push_configured,
        "database": "ok" if check_db() else "error",
    }
