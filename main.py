import time
import traceback
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from database import ensure_indexes, get_db
from errors import ShopError, error_envelope
from logger import logger, trace_id_var
from paypal import get_payment_gateway
from routes import ROUTERS
from settings import PAYPAL_MODES, get_settings

STARTED_AT = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    for key in settings.missing_paypal_credentials():
        logger.error("PAYPAL_ENV_MISSING", {"env": key})
    if settings.paypal_mode not in PAYPAL_MODES:
        logger.error("PAYPAL_INVALID_MODE", {"mode": settings.paypal_mode, "expected": list(PAYPAL_MODES)})
        raise RuntimeError('PAYPAL_MODE must be "sandbox" or "live"')
    try:
        ensure_indexes(get_db())
        logger.info("MONGODB_CONNECTED", {"database": settings.database_name})
    except PyMongoError as e:
        logger.error("MONGODB_CONNECTION_FAILED", {"error": str(e)})
    logger.info("SERVER_STARTED", {"port": settings.port})
    yield
    if get_payment_gateway.cache_info().currsize:
        get_payment_gateway().close()
        get_payment_gateway.cache_clear()
    logger.info("SERVER_STOPPED")


# App setup
app = FastAPI(title="Shop API", version="1.0.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[get_settings().client_base_url],
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "PUT"],
    allow_headers=["Content-Type", "Authorization", "Cache-Control", "Expires", "Pragma"],
)
for router in ROUTERS:
    app.include_router(router)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Assign a trace id, write the access log and turn unhandled errors into a 500 envelope."""
    trace_id = str(uuid.uuid4())
    token = trace_id_var.set(trace_id)
    started = time.perf_counter()
    try:
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error("UNHANDLED_ERROR", {
                "method": request.method,
                "url": str(request.url.path),
                "error": str(e),
                "stack": traceback.format_exc(),
            })
            response = error_envelope(500, "Internal Server Error", traceId=trace_id)
        response.headers["X-Request-Id"] = trace_id
        logger.access(
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
            ip=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
        )
        return response
    finally:
        trace_id_var.reset(token)


@app.exception_handler(ShopError)
async def shop_error_handler(request: Request, exc: ShopError):
    return error_envelope(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning("REQUEST_VALIDATION_FAILED", {
        "url": request.url.path,
        "errors": [{"loc": list(err.get("loc", [])), "msg": err.get("msg")} for err in exc.errors()],
    })
    return error_envelope(400, "Invalid data provided!")


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        logger.warning("ROUTE_NOT_FOUND", {"method": request.method, "url": request.url.path})
        return error_envelope(404, "Route not found", traceId=trace_id_var.get())
    return error_envelope(exc.status_code, str(exc.detail))


# Health
@app.get("/")
def root():
    return {"message": "Shop API running"}


@app.get("/health")
def health(db: Database = Depends(get_db)):
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        db.command("ping")
    except PyMongoError as e:
        logger.warning("HEALTH_CHECK_DB_DOWN", {"error": str(e)})
        return JSONResponse(
            status_code=503,
            content={"status": "DOWN", "database": "DISCONNECTED", "timestamp": timestamp},
        )
    logger.info("HEALTH_CHECK_OK")
    return {
        "status": "UP",
        "database": "CONNECTED",
        "uptime": round(time.monotonic() - STARTED_AT, 3),
        "timestamp": timestamp,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
