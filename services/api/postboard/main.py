"""
Postboard API — entry point.

Startup sequence:
  1. Configure OTel tracing (→ Jaeger via OTLP)
  2. Create tables if not present (TiDB / MySQL)
  3. Initialise the S3 / MinIO client (and bucket, if configured)
  4. Expose Prometheus /metrics endpoint

Errors raised by the stores are mapped to {"message": ...} responses here;
anything unexpected is logged and reported as a generic 500.
"""
import logging

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from postboard.clients.storage_client import storage_client
from postboard.config import settings
from postboard.database import dispose_db, init_db
from postboard.errors import ServiceError, ValidationFailed
from postboard.routers import auth, me, posts, uploader
from postboard.telemetry import instrument_app, setup_tracing

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)

# Set up tracing before the app is created so all imports are instrumented
setup_tracing()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup and shutdown of all external connections."""
    logger.info("Starting Postboard API (env=%s)", settings.environment)

    await init_db()
    storage_client.start()          # sync; boto3 is not async

    logger.info("All services connected. API ready.")
    yield

    logger.info("Shutting down...")
    await dispose_db()


app = FastAPI(
    title="Postboard API",
    description="Accounts, profiles, media uploads and a social feed of posts, comments and likes.",
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS (browser clients) ─────────────────────────────────────────────────
# Auth is a bearer header; no cookies
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ────────────────────────────────────────────────────────────────
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(me.router, prefix="/api/me", tags=["Profile"])
app.include_router(uploader.router, prefix="/api/uploader", tags=["Uploads"])
app.include_router(posts.router, prefix="/api/post", tags=["Posts"])

# ── Prometheus metrics endpoint ────────────────────────────────────────────
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# ── OTel FastAPI instrumentation ──────────────────────────────────────────
instrument_app(app)


# ── Error mapping ──────────────────────────────────────────────────────────
@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.debug("Rejected payload on %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=ValidationFailed.status_code,
        content={"message": ValidationFailed.message},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Something went wrong"},
    )


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok", "service": settings.service_name}
