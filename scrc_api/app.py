"""
FastAPI application factory.
Builds the application context, middleware, exception handlers and routes.
"""
from typing import Optional
import logging

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from scrc_api.config import Settings, settings as default_settings
from scrc_api.context import build_context
from scrc_api.database import close_db, init_db
from scrc_api.dependencies import get_db
from scrc_api.routes import auth, gallery, members, memories, messaging, news, notices, reorder, uploads
from scrc_api.utils.rate_limit import build_limiter

logger = logging.getLogger(__name__)


def add_cors_headers(response: JSONResponse) -> JSONResponse:
    """
    Add CORS headers to responses produced outside the CORS middleware
    (unhandled exceptions are rendered by the outermost server error middleware).
    """
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, OPTIONS, PATCH"
    response.headers["Access-Control-Allow-Headers"] = "*"
    return response


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    context = build_context(settings)

    app = FastAPI(
        title=settings.API_TITLE,
        description=settings.API_DESCRIPTION,
        version=settings.API_VERSION,
    )
    app.state.context = context
    app.state.limiter = build_limiter(enabled=settings.RATE_LIMIT_ENABLED)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,  # Must be False when using wildcard origin
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["*"],  # Includes x-admin-token
        max_age=3600,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        method = request.method
        path = request.url.path
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(f"Error processing {method} {path}: {str(e)} ({type(e).__name__})", exc_info=True)
            raise
        logger.info(f"Response status: {response.status_code} for {method} {path}")
        return response

    # Routers: reorder first so /{resource}/reorder is not taken for /{resource}/{id}
    app.include_router(reorder.router, prefix="/api", tags=["reorder"])
    app.include_router(auth.router, prefix="/api", tags=["auth"])
    app.include_router(members.router, prefix="/api", tags=["members"])
    app.include_router(news.router, prefix="/api", tags=["news"])
    app.include_router(gallery.router, prefix="/api", tags=["gallery"])
    app.include_router(notices.router, prefix="/api", tags=["notices"])
    app.include_router(memories.router, prefix="/api", tags=["memories"])
    app.include_router(uploads.router, prefix="/api", tags=["uploads"])
    app.include_router(messaging.router, prefix="/api", tags=["messaging"])

    if settings.STORAGE_BACKEND.lower() == "local":
        app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

    # Exception Handlers
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Render HTTP errors (401, 404, ...) as {"error": message}."""
        if exc.status_code >= 500:
            logger.error(f"HTTPException on {request.method} {request.url.path}: {exc.status_code} {exc.detail}")
        else:
            logger.info(f"HTTPException on {request.method} {request.url.path}: {exc.status_code} {exc.detail}")

        content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
        return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Request validation errors are client errors: 400, not 422."""
        logger.warning(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Validation error", "detail": jsonable_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}: {str(exc)} ({type(exc).__name__})",
            exc_info=True
        )
        response = JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )
        return add_cors_headers(response)

    # Root Endpoints
    @app.get("/", include_in_schema=False)
    async def root():
        return RedirectResponse(url="/api/health")

    @app.get("/api/health")
    async def health_check():
        """Liveness check."""
        return {"ok": True}

    @app.get("/api/health/db")
    async def health_check_db(db: AsyncSession = Depends(get_db)):
        """Database connectivity check."""
        try:
            await db.execute(text("SELECT 1"))
        except Exception as e:
            logger.error(f"Database health check failed: {str(e)}", exc_info=True)
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"database": "error", "error": "Database connection failed"},
            )
        return {"database": "connected", "ok": True}

    @app.on_event("startup")
    async def startup_event():
        """
        Create tables and verify the database connection.
        Non-blocking: the app starts even if the database is unreachable.
        """
        try:
            await init_db(context.engine, settings.DATABASE_URL)
        except Exception as e:
            logger.error(
                f"Failed to initialize database on startup: {str(e)}\n"
                f"The application will continue to run, but database-dependent endpoints will fail."
            )

    @app.on_event("shutdown")
    async def shutdown_event():
        try:
            await close_db(context.engine)
        except Exception as e:
            logger.warning(f"Error during database shutdown: {str(e)}")

    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation error details without the raw input values."""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]
