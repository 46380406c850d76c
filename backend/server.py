from fastapi import FastAPI, APIRouter, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from dotenv import load_dotenv
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware
import os
import logging
from pathlib import Path
import sys

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent))

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

from services.logging_service import setup_logging, RequestLoggingMiddleware
from services.rate_limit import limiter, rate_limit_exceeded_handler
from services.errors import AppError
from models.common import ErrorResponse

setup_logging()
logger = logging.getLogger(__name__)

# Create the main app
app = FastAPI(
    title="HyperLocal API",
    description="Hyperlocal market analysis and brand strategy",
    version="1.0.0"
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Create a router with the /api prefix
api_router = APIRouter(
    prefix="/api",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    }
)

# Import and include route modules
from routes.auth import router as auth_router
from routes.reports import router as reports_router
from routes.brand import router as brand_router
from routes.billing import router as billing_router

api_router.include_router(auth_router)
api_router.include_router(reports_router)
api_router.include_router(brand_router)
api_router.include_router(billing_router)


# Health check endpoint
@api_router.get("/")
async def root():
    return {"message": "HyperLocal API", "status": "healthy"}


@api_router.get("/health")
async def health_check():
    return {"status": "healthy", "service": "hyperlocal"}


# Include the router in the main app
app.include_router(api_router)


# ============================================
# Error envelope: every failure is {"message": ...}
# ============================================

def validation_message(exc: RequestValidationError) -> str:
    """First validation error rendered as a short human-readable message"""
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    error = errors[0]
    loc = error.get("loc", ())
    if loc and loc[0] == "path":
        return "Invalid ID"
    if loc and loc[0] == "body":
        if len(loc) < 2:
            return "Request body is required"
        field = loc[1]
        if not isinstance(field, str):
            # Unparseable JSON is reported at a character offset
            return "Invalid JSON body"
        if error.get("type") in ("missing", "string_too_short"):
            return f"{field} is required"
        return f"Invalid {field}"
    return "Invalid request"


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"message": validation_message(exc)})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


# Request logging
app.add_middleware(RequestLoggingMiddleware)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=os.environ.get('CORS_ORIGINS', '*').split(','),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    """Create tables and seed the demo report"""
    from db.database import AsyncSessionLocal, init_db
    from services.seed_service import seed_demo_data

    logger.info("Starting HyperLocal API...")
    await init_db()

    if AsyncSessionLocal:
        try:
            async with AsyncSessionLocal() as session:
                await seed_demo_data(session)
        except AppError as e:
            logger.error(f"Demo seeding failed: {e.message}")

    logger.info("HyperLocal API started successfully")


@app.on_event("shutdown")
async def shutdown_event():
    from db.database import engine
    if engine:
        await engine.dispose()
    logger.info("HyperLocal API shutdown complete")
