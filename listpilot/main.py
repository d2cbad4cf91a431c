"""
Main FastAPI application entry point for Listpilot.
"""
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from listpilot.api.router import api_router
from listpilot.core.config import settings
from listpilot.core.exceptions import ListpilotException
from listpilot.core.events import startup_event_handler, shutdown_event_handler
from listpilot.utils.error_handling import ErrorResponse, log_exception, status_code_for

# Setup logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("listpilot")

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description=settings.PROJECT_DESCRIPTION,
    version=settings.VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)


# Set up CORS middleware
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Register event handlers
app.add_event_handler("startup", startup_event_handler)
app.add_event_handler("shutdown", shutdown_event_handler)


# Register exception handlers
@app.exception_handler(ListpilotException)
async def listpilot_exception_handler(request: Request, exc: ListpilotException):
    """Render application errors in the standard error format."""
    log_exception(exc)
    return JSONResponse(
        status_code=status_code_for(exc),
        content=ErrorResponse.from_exception(exc),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """HTTP exceptions in the same format."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse.from_exception(exc),
    )


# Register routers
app.include_router(api_router, prefix=settings.API_PREFIX)


# Root endpoint
@app.get("/", tags=["Health"])
async def root():
    """Root endpoint for health checks."""
    return {
        "status": "ok",
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION,
    }


if __name__ == "__main__":
    # For debugging only - use uvicorn for production
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
