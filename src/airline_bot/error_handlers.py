"""
Error handling for the airline bot HTTP surface
"""

from typing import Dict, Any, Optional
from datetime import datetime
from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
import structlog

from .types import AssistantError
from .services import audit_logger

logger = structlog.get_logger()


class ErrorCode:
    """Standard error codes for the airline bot"""

    # Client errors (4xx)
    INVALID_REQUEST = "INVALID_REQUEST"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    ENDPOINT_NOT_FOUND = "ENDPOINT_NOT_FOUND"

    # Server errors (5xx)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    DIALOG_SERVICE_ERROR = "DIALOG_SERVICE_ERROR"


class ErrorHandler:
    """Centralized error response formatting"""

    @staticmethod
    def create_error_response(
        status_code: int,
        message: str,
        error_code: str,
        details: Optional[Any] = None,
        request_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Create standardized error response"""

        error_response = {
            "status": "error",
            "code": status_code,
            "message": message,
            "error_code": error_code,
            "timestamp": datetime.now().isoformat()
        }

        if details:
            error_response["details"] = details

        if request_id:
            error_response["request_id"] = request_id

        return error_response

    @staticmethod
    def http_status(code: Any, default: int = 500) -> int:
        """Use an upstream code as HTTP status when it is a valid error status"""
        if isinstance(code, int) and 400 <= code <= 599:
            return code
        return default


class ExceptionMapper:
    """Map exceptions to appropriate HTTP responses"""

    @staticmethod
    def map_exception(exception: Exception, request_id: str = None) -> HTTPException:
        """Map various exceptions to appropriate HTTP exceptions"""

        if isinstance(exception, HTTPException):
            return exception

        elif isinstance(exception, AssistantError):
            return HTTPException(
                status_code=ErrorHandler.http_status(exception.code),
                detail=exception.body
            )

        else:
            # Generic internal server error
            return HTTPException(
                status_code=500,
                detail=ErrorHandler.create_error_response(
                    status_code=500,
                    message="We're experiencing technical difficulties. Please try again later.",
                    error_code=ErrorCode.INTERNAL_ERROR,
                    details={"exception_type": type(exception).__name__},
                    request_id=request_id
                )
            )


# Global error handlers for FastAPI
async def assistant_exception_handler(request: Request, exc: AssistantError) -> JSONResponse:
    """Return dialog service failures with the upstream status and body"""

    request_id = getattr(request.state, 'request_id', None)
    logger.warning(
        "Dialog service call failed",
        error=exc.message,
        code=exc.code,
        request_id=request_id
    )
    audit_logger.log_error(
        session_id=getattr(request.state, 'session_id', None) or "unknown",
        error_type=ErrorCode.DIALOG_SERVICE_ERROR,
        error_message=exc.message,
        error_code=exc.code,
        request_id=request_id
    )

    http_exception = ExceptionMapper.map_exception(exc, request_id)
    return JSONResponse(
        status_code=http_exception.status_code,
        content=http_exception.detail
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unhandled exceptions"""

    request_id = getattr(request.state, 'request_id', None)

    logger.error(
        "Unhandled error",
        error_type=type(exc).__name__,
        error=str(exc),
        url=str(request.url),
        method=request.method,
        request_id=request_id,
        exc_info=exc
    )

    http_exception = ExceptionMapper.map_exception(exc, request_id)

    return JSONResponse(
        status_code=http_exception.status_code,
        content=http_exception.detail
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for HTTP exceptions"""

    request_id = getattr(request.state, 'request_id', None)

    if isinstance(exc.detail, dict):
        content = dict(exc.detail)
        if request_id:
            content["request_id"] = request_id
    else:
        content = ErrorHandler.create_error_response(
            status_code=exc.status_code,
            message=str(exc.detail),
            error_code=ErrorCode.ENDPOINT_NOT_FOUND if exc.status_code == 404 else ErrorCode.INVALID_REQUEST,
            request_id=request_id
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=content
    )


async def validation_exception_handler(request: Request, exc) -> JSONResponse:
    """Handler for request validation exceptions"""

    request_id = getattr(request.state, 'request_id', None)

    logger.warning(
        "Request validation failed",
        error=str(exc),
        url=str(request.url),
        request_id=request_id
    )

    return JSONResponse(
        status_code=422,
        content=ErrorHandler.create_error_response(
            status_code=422,
            message="Request validation failed. Please check your input and try again.",
            error_code=ErrorCode.VALIDATION_ERROR,
            details=jsonable_encoder(exc.errors()) if hasattr(exc, "errors") else str(exc),
            request_id=request_id
        )
    )
