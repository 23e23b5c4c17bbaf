"""
Main application entry point
"""

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import structlog
import uuid
from datetime import datetime

from . import __version__
from .config import config
from .types import MessageRequest, AssistantError
from .services import audit_logger
from .container import container
from .utils.logger import setup_logging
from .error_handlers import (
    ErrorCode, ErrorHandler, assistant_exception_handler, global_exception_handler,
    http_exception_handler, validation_exception_handler
)


setup_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    # Startup
    logger.info("Starting Airline Bot API", version=__version__)

    try:
        status = await container.initialize()
        logger.info("Service container initialized", reference_data_healthy=status.healthy)
    except Exception as e:
        logger.error("Failed to initialize service container", error=str(e))
        raise

    yield

    # Shutdown
    logger.info("Shutting down Airline Bot API")
    await container.cleanup()


# Create FastAPI application
app = FastAPI(
    title="Airline Bot API",
    description="Conversational front-end for flight, airport and travel-time questions",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if config.server.debug else None,
    redoc_url="/redoc" if config.server.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if config.is_development else [],
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# Add global error handlers
app.add_exception_handler(AssistantError, assistant_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)


@app.get("/health")
async def health_check():
    """
    Health check endpoint

    Reports whether reference data loaded and the airport vocabulary synced
    """
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": __version__,
        "environment": config.server.environment,
        "components": {}
    }

    if not container.is_initialized():
        health_status["status"] = "unhealthy"
        health_status["components"]["container"] = {
            "status": "unhealthy",
            "message": "Service container not initialized"
        }
        return health_status

    reference_status = container.get_reference_loader().status
    health_status["components"]["reference_data"] = {
        "status": "healthy" if reference_status.healthy else "degraded",
        **reference_status.model_dump()
    }
    if not reference_status.healthy:
        health_status["status"] = "degraded"

    return health_status


@app.post("/api/message")
async def message(body: MessageRequest, request: Request):
    """
    Chat message endpoint

    Sends the message and the client's context to the dialog service and
    returns the dialog response completed with flight, airport or travel-time
    information. When "requestLocation" is true the client should resend the
    message with context.current_location set.
    """
    if not container.is_initialized():
        raise HTTPException(
            status_code=503,
            detail=ErrorHandler.create_error_response(
                status_code=503,
                message="Service container not initialized",
                error_code=ErrorCode.SERVICE_UNAVAILABLE,
                request_id=getattr(request.state, 'request_id', None)
            )
        )

    session = container.create_session(body.context)
    request.state.session_id = session.session_id

    user_input = body.input.model_dump(exclude_none=True) if body.input else None
    audit_logger.log_message_received(
        session.session_id,
        body.input.text if body.input else None,
        body.context,
        request_id=getattr(request.state, 'request_id', None)
    )

    result = await session.send(user_input)
    return result.to_payload()


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests"""
    start_time = datetime.now()

    # Generate request ID for tracing
    request_id = f"req_{uuid.uuid4().hex[:12]}"
    request.state.request_id = request_id

    logger.info(
        "HTTP request received",
        request_id=request_id,
        method=request.method,
        url=str(request.url),
        user_agent=request.headers.get("user-agent", "unknown")
    )

    response = await call_next(request)

    duration = (datetime.now() - start_time).total_seconds()
    logger.info(
        "HTTP request completed",
        request_id=request_id,
        status_code=response.status_code,
        duration_ms=int(duration * 1000)
    )

    response.headers["X-Request-ID"] = request_id

    return response


def main():
    """Main entry point"""
    uvicorn.run(
        "airline_bot.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.is_development,
        log_level=config.logging.level.lower(),
    )


if __name__ == "__main__":
    main()
