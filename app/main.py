import logging
import uuid

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.router import router as v1_router
from app.core.config import settings
from app.core.exceptions import (
    AuthenticationFailed,
    NotAuthorized,
)
from app.core.logging import request_id_var, setup_logging
from app.db.sessions import get_async_session

# LOGGING
setup_logging()
logger = logging.getLogger(__name__)


# APP INITIALIZATION
app = FastAPI(
    title=settings.app_name,
    version="1.0.0",
)


@app.exception_handler(AuthenticationFailed)
async def auth_exception_handler(request: Request, exc: AuthenticationFailed):
    logger.warning(f"Auth failure: {str(exc)} | RequestID: {request.state.request_id}")
    return JSONResponse(
        status_code=401,
        content={"detail": str(exc)},
    )


@app.exception_handler(NotAuthorized)
async def not_authorized_handler(request: Request, exc: NotAuthorized):
    return JSONResponse(
        status_code=403,
        content={"detail": str(exc)},
    )


# ROUTERS
app.include_router(v1_router, prefix="/api/v1")


@app.exception_handler(Exception)
async def universal_exception_handler(request: Request, exc: Exception):
    # Log the real error for the developer
    logger.error(f"Unhandled error: {str(exc)}", exc_info=True)

    # Send a polite message to the user
    return JSONResponse(
        status_code=500, content={"detail": "An unexpected error occurred."}
    )


# SECURITY MIDDLEWARES
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:8000",
        "http://localhost:3000",
    ],
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
)


# REQUEST TRACING & SECURITY HEADERS
@app.middleware("http")
async def security_and_tracing_middleware(request: Request, call_next):
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    token = request_id_var.set(request_id)

    try:
        response = await call_next(request)

        response.headers["X-Request-Id"] = request_id
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"

        if settings.environment == "production":
            response.headers["Strict-Transport-Security"] = (
                "max-age=63072000; includeSubDomains"
            )

        return response

    except Exception as e:
        # Ensure we still reset the context var even if the app crashes
        logger.error(f"Middleware caught crash: {e}", exc_info=True)
        return JSONResponse(
            status_code=500, content={"detail": "Internal Server Error"}
        )

    finally:
        request_id_var.reset(token)


# HEALTH CHECKS
@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_async_session)):
    health_status = {"status": "healthy", "dependencies": {}}

    try:
        await db.execute(text("SELECT 1"))
        health_status["dependencies"]["database"] = "ok"
    except Exception as e:
        health_status["status"] = "unhealthy"
        health_status["dependencies"]["database"] = str(e)

    return health_status
