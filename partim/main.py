# partim/main.py
"""
FastAPI application entry point.
Includes security middleware, domain + global error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from partim.routers import analytics, health, passes, rates, shifts, slots, status as ticket_status, tickets, vehicles
from partim.database import SessionLocal, create_tables
from partim.config import settings
from partim.exceptions import PartimError
from partim.services.rate_service import seed_default_rates
from partim.services.settlement_dispatcher import replay_pending_settlements
from partim.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="PARTIM Parking Operations API",
    description="Tickets, fines, monthly passes, loyalty, officer shifts and role-based access.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (web dashboard) ────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to dashboard origin in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional shared-secret check between the gateway and this API.
    The public plate status lookup and health check stay open.
    Set API_KEY in .env. Leave empty to disable.
    """
    open_paths = {"/api/v1/health", "/docs", "/redoc", "/openapi.json"}
    open_prefixes = ("/api/v1/status/",)

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path in self.open_paths or path.startswith(self.open_prefixes) or not settings.API_KEY:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.API_KEY:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


if settings.API_KEY:
    app.add_middleware(APIKeyMiddleware)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Domain Error Handler ─────────────────────────────────────────────────────
@app.exception_handler(PartimError)
async def domain_exception_handler(request: Request, exc: PartimError):
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(tickets.router,       prefix="/api/v1", tags=["Tickets"])
app.include_router(ticket_status.router, prefix="/api/v1", tags=["Public Status"])
app.include_router(passes.router,        prefix="/api/v1", tags=["Monthly Passes"])
app.include_router(rates.router,         prefix="/api/v1", tags=["Rates"])
app.include_router(slots.router,         prefix="/api/v1", tags=["Parking Map"])
app.include_router(shifts.router,        prefix="/api/v1", tags=["Shifts"])
app.include_router(vehicles.router,      prefix="/api/v1", tags=["Vehicles & Loyalty"])
app.include_router(analytics.router,     prefix="/api/v1", tags=["Analytics"])
app.include_router(health.router,        prefix="/api/v1", tags=["Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("PARTIM backend starting up...")
    create_tables()
    logger.info("Database tables ready")

    db = SessionLocal()
    try:
        seed_default_rates(db)
        # Finish loyalty/shift updates for settlements interrupted by a crash
        await replay_pending_settlements(db)
    except PartimError as e:
        logger.error(f"Startup maintenance failed, continuing: {e.message}")
    finally:
        db.close()

    logger.info(f"Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("PARTIM backend shutting down...")
