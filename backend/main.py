"""FastAPI application entry point."""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from backend.config import settings
from backend.logging_config import setup_logging
from backend.api.routes import outlook
from climate_engine.errors import OutlookError

logger = logging.getLogger(__name__)

# Error kind -> HTTP status
ERROR_STATUS = {
    "invalid_parameter": 400,
    "upstream_data_error": 502,
    "insufficient_data": 422,
    "empty_sample": 422,
    "data_unavailable": 404,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging on startup."""
    setup_logging(settings.log_level)
    logger.info("Starting %s %s", settings.api_title, settings.api_version)
    yield

# Create FastAPI app with orjson for faster JSON serialization
app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    redirect_slashes=False,
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(outlook.router)


def _error_response(status: int, code: str, message: str, details: dict, retryable: bool = False) -> ORJSONResponse:
    return ORJSONResponse(
        status_code=status,
        content={
            "error": {
                "status": status,
                "code": code,
                "message": message,
                "details": details,
                "retryable": retryable,
            }
        },
    )


@app.exception_handler(OutlookError)
async def outlook_error_handler(request: Request, exc: OutlookError) -> ORJSONResponse:
    """Map structured outlook errors to the error envelope."""
    status = ERROR_STATUS.get(exc.kind, 500)
    if status >= 500:
        logger.error("%s on %s: %s", exc.kind, request.url.path, exc.message)
    return _error_response(status, exc.kind, exc.message, exc.details, exc.retryable)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> ORJSONResponse:
    """Report malformed query parameters as invalid_parameter."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    param = str(first.get("loc", ("query", "?"))[-1])
    return _error_response(
        400,
        "invalid_parameter",
        f"Invalid query parameter '{param}': {first.get('msg', 'invalid value')}",
        {
            "parameter": param,
            "errors": [{"loc": [str(p) for p in e.get("loc", ())], "msg": e.get("msg")} for e in errors],
        },
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.api_title,
        "version": settings.api_version,
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
