"""
Structured Logging Configuration for HyperLocal

Provides:
- JSON-formatted structured logging
- Request/Response correlation IDs
- Timing for operations and AI generation calls
"""
import os
import sys
import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Optional, Callable
from functools import wraps
from contextvars import ContextVar

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Context variables for request correlation
request_id_var: ContextVar[str] = ContextVar("request_id", default="")
user_id_var: ContextVar[str] = ContextVar("user_id", default="")

_RESERVED_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "taskName", "message", "request_id", "user_id"
}


class StructuredJSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.
    Outputs logs in a format suitable for log aggregation tools.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": request_id_var.get(""),
            "user_id": user_id_var.get(""),
        }

        log_data["location"] = {
            "file": record.filename,
            "line": record.lineno,
            "function": record.funcName
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info)
            }

        extra_fields = {}
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                try:
                    json.dumps(value)  # Check if serializable
                    extra_fields[key] = value
                except (TypeError, ValueError):
                    extra_fields[key] = str(value)

        if extra_fields:
            log_data["extra"] = extra_fields

        return json.dumps(log_data)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging HTTP requests with correlation IDs.
    """

    def __init__(self, app, logger: logging.Logger = None):
        super().__init__(app)
        self.logger = logger or logging.getLogger("hyperlocal.requests")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4())[:12])
        request_id_var.set(request_id)

        start_time = time.time()

        self.logger.info(
            f"Request started: {request.method} {request.url.path}",
            extra={
                "event_type": "request_start",
                "method": request.method,
                "path": request.url.path,
                "client_ip": request.client.host if request.client else None,
            }
        )

        try:
            response = await call_next(request)

            duration_ms = (time.time() - start_time) * 1000
            self.logger.info(
                f"Request completed: {request.method} {request.url.path} - {response.status_code}",
                extra={
                    "event_type": "request_complete",
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": round(duration_ms, 2),
                }
            )

            response.headers["X-Request-ID"] = request_id
            return response

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            self.logger.error(
                f"Request failed: {request.method} {request.url.path} - {type(e).__name__}",
                extra={
                    "event_type": "request_error",
                    "method": request.method,
                    "path": request.url.path,
                    "duration_ms": round(duration_ms, 2),
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                },
                exc_info=True
            )
            raise


def log_operation(
    operation_name: str,
    logger: logging.Logger = None
) -> Callable:
    """
    Decorator to log async function execution with timing.

    Usage:
        @log_operation("seed_demo_report")
        async def seed_demo_report(...):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            op_logger = logger or logging.getLogger(f"hyperlocal.operations.{operation_name}")
            start_time = time.time()

            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                duration_ms = (time.time() - start_time) * 1000
                op_logger.error(
                    f"Operation failed: {operation_name} - {type(e).__name__}",
                    extra={
                        "event_type": "operation_error",
                        "operation": operation_name,
                        "duration_ms": round(duration_ms, 2),
                        "error_type": type(e).__name__,
                        "error_message": str(e),
                    },
                    exc_info=True
                )
                raise

            duration_ms = (time.time() - start_time) * 1000
            op_logger.info(
                f"Operation completed: {operation_name}",
                extra={
                    "event_type": "operation_complete",
                    "operation": operation_name,
                    "duration_ms": round(duration_ms, 2),
                }
            )
            return result

        return wrapper
    return decorator


def log_ai_generation(
    generation_type: str,
    model: str,
    duration_ms: Optional[float] = None,
    success: bool = True,
    error: Optional[str] = None,
    logger: logging.Logger = None
):
    """Log one model call."""
    ai_logger = logger or logging.getLogger("hyperlocal.ai.generation")

    level = logging.INFO if success else logging.ERROR

    ai_logger.log(
        level,
        f"AI generation {'completed' if success else 'failed'}: {generation_type}",
        extra={
            "event_type": "ai_generation",
            "generation_type": generation_type,
            "model": model,
            "duration_ms": duration_ms,
            "success": success,
            "error": error,
        }
    )


def setup_logging(
    level: str = None,
    json_format: bool = True
):
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR); defaults to LOG_LEVEL
        json_format: Use JSON formatting for structured logging
    """
    level = level or os.environ.get("LOG_LEVEL", "INFO")

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)

    if json_format and os.environ.get("LOG_FORMAT", "json") == "json":
        console_handler.setFormatter(StructuredJSONFormatter())
    else:
        console_handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ))

    root_logger.addHandler(console_handler)

    # Silence noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    return root_logger
