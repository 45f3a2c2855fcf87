# carblock/main.py
"""
FastAPI application entry point.
Includes middleware, error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from carblock.routers import auth, users, user_plates, blocks, notifications, health
from carblock.database import create_tables
from carblock.config import settings
from carblock.errors import AppError, InternalError
from carblock.services.notification_dispatcher import wait_for_pending
from carblock.utils.logger import get_logger
import time

logger = get_logger(__name__)

SHUTDOWN_DRAIN_SECONDS = 5.0

app = FastAPI(
    title="CarBlock API",
    description="Tell the owner of a car you are blocking, find out who blocks yours.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (mobile apps and the web client) ────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Error Handlers ───────────────────────────────────────────────────────────
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{exc.category} on {request.url.path}: {exc.message}", exc_info=exc)
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.category}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=InternalError().to_response(),
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(auth.router,          prefix="/api", tags=["Auth"])
app.include_router(users.router,         prefix="/api", tags=["Users"])
app.include_router(user_plates.router,   prefix="/api", tags=["User plates"])
app.include_router(blocks.router,        prefix="/api", tags=["Blocks"])
app.include_router(notifications.router, prefix="/api", tags=["Notifications"])
app.include_router(health.router,        prefix="/api", tags=["Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("CarBlock backend starting up...")
    create_tables()
    logger.info("Database tables ready")
    if settings.JWT_SECRET == "CHANGE_ME":
        logger.warning("JWT_SECRET is the default value, set it in .env")
    if settings.RETURN_SMS_CODE_IN_RESPONSE:
        logger.warning("RETURN_SMS_CODE_IN_RESPONSE is on, login codes are echoed to clients")
    logger.info(f"Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("CarBlock backend shutting down, draining pending notifications...")
    await wait_for_pending(timeout=SHUTDOWN_DRAIN_SECONDS)
