"""FastAPI main application entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rbac_console.core.config import settings
from rbac_console.core.middleware import setup_middleware
from rbac_console.core.rate_limiter import limiter
from rbac_console.core.exceptions import InternalError, RBACConsoleError
from rbac_console.db.session import SessionLocal, get_db, init_db
from rbac_console.db.seeds import seed_all

from rbac_console.api.auth import router as auth_router
from rbac_console.api.users import router as users_router
from rbac_console.api.roles import router as roles_router
from rbac_console.api.permissions import router as permissions_router
from rbac_console.api.audit_logs import router as audit_logs_router
from rbac_console.api.reports import router as reports_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("rbac_console")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting RBAC Console API")
    init_db()
    if settings.SEED_ON_STARTUP:
        db = SessionLocal()
        try:
            seed_all(db)
        finally:
            db.close()

    yield

    logger.info("Shutting down RBAC Console API")


app = FastAPI(
    title="RBAC Console API",
    description="Users, roles, permissions and audit trail management",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Middleware
setup_middleware(app)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(RBACConsoleError)
async def rbac_exception_handler(request: Request, exc: RBACConsoleError):
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": "Internal server error"})
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
        headers=headers,
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return await rbac_exception_handler(request, InternalError(str(exc)))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ())[1:])
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Register routers
app.include_router(auth_router, prefix="/api")
app.include_router(users_router, prefix="/api")
app.include_router(roles_router, prefix="/api")
app.include_router(permissions_router, prefix="/api")
app.include_router(audit_logs_router, prefix="/api")
app.include_router(reports_router, prefix="/api")


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/api/health")
async def health(db: Session = Depends(get_db)):
    """Liveness plus a database round-trip."""
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except Exception:
        logger.warning("Health check could not reach the database")
        database = "error"

    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": database,
    }
