from fastapi import APIRouter, HTTPException, Request, Response, Depends
from datetime import datetime, timezone, timedelta
from typing import Any, Dict
import logging
import jwt
import os
import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_db
from db.models import User, UserSession
from models.user import UserResponse
from services.logging_service import user_id_var
from services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

# JWT Configuration
JWT_SECRET = os.environ.get("JWT_SECRET", "hyperlocal-secret-key-change-in-production")
JWT_ALGORITHM = "HS256"
SESSION_TTL_DAYS = int(os.environ.get("SESSION_TTL_DAYS", "7"))

SESSION_COOKIE = "session_token"


# ============================================
# Session Token Utilities
# ============================================

def generate_session_token(user_id: str) -> str:
    """Generate a JWT session token"""
    now = datetime.now(timezone.utc)
    payload = {
        "user_id": user_id,
        "exp": now + timedelta(days=SESSION_TTL_DAYS),
        "iat": now,
        "jti": uuid.uuid4().hex
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def verify_session_token(token: str) -> str | None:
    """Verify a JWT token and return user_id"""
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
        return payload.get("user_id")
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


# ============================================
# Identity provider hand-off
# ============================================

async def upsert_user_from_claims(session: AsyncSession, claims: Dict[str, Any]) -> User:
    """Called by the login flow with verified identity-provider claims"""
    return await UserService(session).upsert_from_claims(claims)


async def create_user_session(session: AsyncSession, user_id: str) -> str:
    """Issue and store a session token for user_id"""
    session_token = generate_session_token(user_id)
    user_session = UserSession(
        user_id=user_id,
        session_token=session_token,
        expires_at=datetime.now(timezone.utc) + timedelta(days=SESSION_TTL_DAYS)
    )
    session.add(user_session)
    await session.commit()
    return session_token


# ============================================
# Request authentication
# ============================================

def _extract_token(request: Request) -> str | None:
    session_token = request.cookies.get(SESSION_COOKIE)
    if not session_token:
        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            session_token = auth_header[7:]
    return session_token


async def get_current_user_id(request: Request, session: AsyncSession) -> str:
    """Extract and validate current user ID from request"""
    session_token = _extract_token(request)
    if not session_token:
        raise HTTPException(status_code=401, detail="Unauthorized")

    token_user_id = verify_session_token(session_token)
    if not token_user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")

    result = await session.execute(
        select(UserSession).where(UserSession.session_token == session_token)
    )
    user_session = result.scalar_one_or_none()

    if not user_session or user_session.user_id != token_user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")

    # Check expiry
    if user_session.expires_at.replace(tzinfo=timezone.utc) < datetime.now(timezone.utc):
        raise HTTPException(status_code=401, detail="Session expired")

    # Rate limiting and log correlation key off these
    request.state.user_id = user_session.user_id
    user_id_var.set(user_session.user_id)
    return user_session.user_id


async def current_user_id(
    request: Request,
    session: AsyncSession = Depends(get_db)
) -> str:
    """Dependency form of get_current_user_id; resolves before rate limiting"""
    return await get_current_user_id(request, session)


# ============================================
# Auth Routes
# ============================================

@router.get("/me", response_model=UserResponse)
async def get_current_user(
    user_id: str = Depends(current_user_id),
    session: AsyncSession = Depends(get_db)
):
    """Get current user from session token"""
    user = await UserService(session).get_user(user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    return UserResponse(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        profile_image_url=user.profile_image_url,
        stripe_customer_id=user.stripe_customer_id,
        stripe_subscription_id=user.stripe_subscription_id
    )


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_db)
):
    """Logout and clear session"""
    session_token = _extract_token(request)
    if session_token:
        await session.execute(
            delete(UserSession).where(UserSession.session_token == session_token)
        )
        await session.commit()

    response.delete_cookie(
        key=SESSION_COOKIE,
        path="/",
        secure=True,
        samesite="none"
    )
    return {"message": "Logged out"}
