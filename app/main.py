import logging
import time
import traceback
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root wherever uvicorn is started from
_PROJ_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJ_ROOT / ".env")

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlmodel import Session

from app.admin import admin_router
from app.api.cart import router as cart_router
from app.api.orders import router as orders_router
from app.core.config import settings
from app.core.database import check_db, engine, init_db
from app.core.rate_limit import client_ip, limiter
from app.logging import setup_logging
from app.models import ErrorLog, SecurityLog
from app.services.coupon import CouponRedemptionConflict
from app.services.pricing import PricingError, UnknownProductOrVariant

setup_logging(level=settings.log_level)
log = logging.getLogger("bazar")


def _cors_origins_list() -> list[str]:
    if not settings.cors_origins or settings.cors_origins.strip() == "*":
        return ["*"]
    return [o.strip() for o in settings.cors_origins.split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    log.info("Pricing service ready: currency=%s decimals=%s", settings.currency, settings.currency_decimals)
    if not settings.admin_secret:
        log.warning("ADMIN_SECRET is empty; /admin/coupons will answer 503")
    yield


app = FastAPI(
    title="Bazar Pricing API",
    description="Cart pricing, coupon evaluation and order totals",
    lifespan=lifespan,
)
app.state.limiter = limiter


def _error_response(request: Request, status_code: int, message: str, **extra) -> JSONResponse:
    rid = getattr(request.state, "request_id", None)
    body = {"error": message, "status_code": status_code, **extra}
    if rid:
        body["request_id"] = rid
    return JSONResponse(status_code=status_code, content=body)


def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    try:
        with Session(engine) as db:
            db.add(SecurityLog(event="rate_limit", ip=client_ip(request), endpoint=request.url.path, detail="Rate limit exceeded"))
            db.commit()
    except Exception as e:
        log.warning("SecurityLog rate_limit write failed: %s", e)
    return _error_response(request, 429, "Too many requests. Please wait a minute.")


def _validation_error_message(exc: RequestValidationError) -> str:
    errs = exc.errors()
    if not errs:
        return "Invalid request."
    first = errs[0]
    loc = list(first.get("loc") or [])
    field = str(loc[-1]) if len(loc) > 0 else None
    if first.get("type") == "missing":
        if field == "body":
            return "Request body is missing."
        return f"Missing field: {field}." if field else "Missing field."
    if field == "quantity":
        return "Quantity must be at least 1."
    return first.get("msg") or "Invalid request."


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errs = exc.errors()
    log.warning(
        "Request validation error (422): path=%s method=%s detail=%s",
        request.url.path,
        request.method,
        errs,
    )
    # ctx may hold exception objects (model validators); keep it JSON safe
    errors = [{k: v for k, v in e.items() if k != "ctx"} for e in errs]
    return _error_response(request, 422, _validation_error_message(exc), errors=errors)


app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)


@app.exception_handler(PricingError)
def pricing_exception_handler(request: Request, exc: PricingError) -> JSONResponse:
    status_code = 404 if isinstance(exc, UnknownProductOrVariant) else 400
    return _error_response(request, status_code, str(exc), code=exc.code)


@app.exception_handler(CouponRedemptionConflict)
def redemption_conflict_handler(request: Request, exc: CouponRedemptionConflict) -> JSONResponse:
    return _error_response(
        request,
        409,
        exc.reason.message,
        code=exc.reason.value,
        coupon_code=exc.code,
    )


@app.exception_handler(HTTPException)
def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error_response(request, exc.status_code, exc.detail if isinstance(exc.detail, str) else str(exc.detail))


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled exception: path=%s %s", request.url.path, exc)
    try:
        with Session(engine) as db:
            db.add(ErrorLog(
                customer_id=getattr(request.state, "customer_id", None),
                endpoint=request.url.path,
                method=request.method,
                error_message=str(exc)[:2000],
                stack_trace=traceback.format_exc()[:10000],
            ))
            db.commit()
    except Exception as e:
        log.warning("ErrorLog write failed: %s", e)
    return JSONResponse(status_code=500, content={"error": "Unexpected server error."})


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


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(cart_router)
app.include_router(orders_router)
app.include_router(admin_router)


@app.get("/health")
def health():
    return {"status": "ok", "database": "ok" if check_db() else "error", "currency": settings.currency}
