import logging
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException
from ayasync.core.config import settings
from ayasync.core.database import get_db, init_db
from ayasync.realtime.broadcaster import Broadcaster
from ayasync.api.routes import admin, auth, boards, messages, realtime, tasks, teams, users

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage app lifecycle events.

    Startup: create database tables if they don't exist
    """
    init_db()
    logger.info("AyaSync API started")
    yield
    logger.info("AyaSync API stopped")


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Every error body carries a human-readable "error" field"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Missing, malformed or unknown fields are a 400, not FastAPI's default 422"""
    details = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Validation failed", "details": details},
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    """Log the failure server-side; the client only sees a generic message"""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Server error"},
    )


def create_app() -> FastAPI:
    logging.basicConfig(level=settings.LOG_LEVEL)

    app = FastAPI(
        title="AyaSync API",
        description="Team task boards, direct messages and realtime updates",
        version=API_VERSION,
        lifespan=lifespan,
    )

    # One hub per app instance; handlers receive it through get_broadcaster
    app.state.broadcaster = Broadcaster()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # All REST routes are prefixed with /api
    app.include_router(auth.router, prefix="/api")
    app.include_router(users.router, prefix="/api")
    app.include_router(teams.router, prefix="/api")
    app.include_router(tasks.router, prefix="/api")
    app.include_router(messages.router, prefix="/api")
    app.include_router(boards.router, prefix="/api")
    app.include_router(admin.router, prefix="/api")
    app.include_router(realtime.router)

    @app.get("/")
    async def root():
        """Root endpoint - API information"""
        return {"message": "AyaSync API", "version": API_VERSION}

    @app.get("/api/health")
    def health(db: Session = Depends(get_db)):
        """Health check endpoint - reports whether the database answers"""
        try:
            db.execute(text("SELECT 1"))
            db_ok = True
        except SQLAlchemyError as e:
            logger.warning(f"Health check database probe failed: {e}")
            db_ok = False
        return {"ok": True, "db": db_ok}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("ayasync.main:app", host=settings.HOST, port=settings.PORT)
