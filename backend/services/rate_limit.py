"""
Rate Limiting Configuration for HyperLocal

Protects LLM API costs on the generation endpoints.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request, Response
from fastapi.responses import JSONResponse
import logging

logger = logging.getLogger(__name__)


def get_user_id_or_ip(request: Request) -> str:
    """
    Per-user key when get_current_user_id has run for this request,
    otherwise the client IP.
    """
    user_id = getattr(request.state, 'user_id', None)
    if user_id:
        return f"user:{user_id}"

    return f"ip:{get_remote_address(request)}"


# In-memory storage; multi-worker deployments need "redis://..."
limiter = Limiter(
    key_func=get_user_id_or_ip,
    storage_uri="memory://",
    strategy="fixed-window"
)

RATE_LIMITS = {
    # AI Generation - protect LLM costs
    "ai_generate": "10/minute",
}


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Render rate limit errors in the shared {"message": ...} envelope"""
    retry_after = getattr(exc, 'retry_after', 60)

    client_id = get_user_id_or_ip(request)
    logger.warning(
        f"Rate limit exceeded for {client_id} on {request.url.path}",
        extra={
            "client_id": client_id,
            "path": request.url.path,
            "method": request.method,
            "limit": str(exc.detail) if hasattr(exc, 'detail') else "unknown"
        }
    )

    return JSONResponse(
        status_code=429,
        content={
            "message": f"Too many requests. Please wait {retry_after} seconds before trying again."
        },
        headers={
            "Retry-After": str(retry_after),
        }
    )


def limit_ai(limit: str = RATE_LIMITS["ai_generate"]):
    """Rate limit decorator for AI generation endpoints."""
    return limiter.limit(limit, key_func=get_user_id_or_ip)
