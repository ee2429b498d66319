"""SQLAlchemy ORM models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base declarative class."""


class ProfileModel(Base):
    __tablename__ = "profiles"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    subscription_tier: Mapped[str] = mapped_column(String(32), nullable=False, default="free")
    first_item_pass_used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class UsageCreditsModel(Base):
    __tablename__ = "usage_credits"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    price_checks_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    optimizations_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    vintography_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    credits_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class ProcessingJobModel(Base):
    __tablename__ = "processing_job"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    operation: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)  # processing|completed|failed
    image_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    selfie_url: Mapped[str | None] = mapped_column(String(1024))
    parameters: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    uses_first_item_pass: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    credits_deducted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    result_url: Mapped[str | None] = mapped_column(String(1024))
    failure_reason: Mapped[str | None] = mapped_column(String(64))
    error_message: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime)
