"""
HyperLocal Database Models
SQLAlchemy 2.0 with PostgreSQL

Enforces:
- Owner scoping via user_id foreign keys on every entity
- Idempotent demo seeding via a unique seed_key
"""
from datetime import datetime, timezone
from typing import Optional, List, Any
import uuid

from sqlalchemy import (
    String, Text, Integer, DateTime, JSON,
    ForeignKey, Index, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, declared_attr
from sqlalchemy.dialects.postgresql import JSONB

from .database import Base


def generate_uuid(prefix: str = "") -> str:
    """Generate a prefixed UUID"""
    return f"{prefix}{uuid.uuid4().hex[:12]}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


# ============================================
# USER MODELS
# ============================================

class User(Base):
    __tablename__ = "users"

    # Identity provider subject ("sub" claim)
    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    profile_image_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    stripe_customer_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    stripe_subscription_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    sessions: Mapped[List["UserSession"]] = relationship(back_populates="user", cascade="all, delete-orphan")


class UserSession(Base):
    __tablename__ = "user_sessions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, default=lambda: generate_uuid("sess_"))
    user_id: Mapped[str] = mapped_column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    session_token: Mapped[str] = mapped_column(String(1000), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    user: Mapped["User"] = relationship(back_populates="sessions")

    __table_args__ = (
        Index('idx_sessions_user_id', 'user_id'),
        Index('idx_sessions_token', 'session_token'),
    )


# ============================================
# REPORT MODELS
# ============================================

class Report(Base):
    """A persisted hyperlocal market analysis"""
    __tablename__ = "analysis_reports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    business_type: Mapped[str] = mapped_column(Text, nullable=False)
    # Validated against AnalysisData on write, opaque afterwards
    data: Mapped[Any] = mapped_column(JSONDocument, nullable=False)
    # Only set on the demonstration report
    seed_key: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint('seed_key', name='uq_analysis_reports_seed_key'),
        Index('idx_analysis_reports_user_created', 'user_id', 'created_at'),
    )


# ============================================
# BRAND STRATEGY MODELS
# ============================================

class BrandStatementMixin:
    """Columns shared by the five brand-strategy tables"""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    original_input: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    @declared_attr
    def user_id(cls) -> Mapped[str]:
        return mapped_column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)


class BrandMission(BrandStatementMixin, Base):
    __tablename__ = "brand_missions"

    mission: Mapped[str] = mapped_column(Text, nullable=False)


class BrandVision(BrandStatementMixin, Base):
    __tablename__ = "brand_visions"

    vision: Mapped[str] = mapped_column(Text, nullable=False)


class BrandValue(BrandStatementMixin, Base):
    __tablename__ = "brand_values"

    value_proposition: Mapped[str] = mapped_column(Text, nullable=False)


class BrandTargetMarket(BrandStatementMixin, Base):
    __tablename__ = "brand_target_markets"

    target_market: Mapped[str] = mapped_column(Text, nullable=False)


class BrandBackground(BrandStatementMixin, Base):
    __tablename__ = "brand_backgrounds"

    background: Mapped[str] = mapped_column(Text, nullable=False)


# Brand kind key -> table
BRAND_MODELS = {
    "mission": BrandMission,
    "vision": BrandVision,
    "value": BrandValue,
    "target": BrandTargetMarket,
    "background": BrandBackground,
}
