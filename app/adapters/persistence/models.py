"""SQLAlchemy ORM models — maps to PostgreSQL tables."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.adapters.persistence.database import Base


class ProfessionalModel(Base):
    __tablename__ = "professionals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    __table_args__ = (
        Index("idx_professionals_category", "category"),
        Index("idx_professionals_lat_lon", "latitude", "longitude"),
    )


class PricingRuleModel(Base):
    __tablename__ = "pricing_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    service_category: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    base_multiplier: Mapped[float] = mapped_column(Float, nullable=False, default=1.5)
    min_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )


class UrgentRequestModel(Base):
    __tablename__ = "urgent_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    client_id: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    radius_km: Mapped[float] = mapped_column(Float, nullable=False)
    service_category: Mapped[str] = mapped_column(String(100), nullable=False)
    price_estimate: Mapped[float] = mapped_column(Float, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    assigned_professional_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("professionals.id"), nullable=True
    )
    dispatch_round: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    match_failed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_dispatched_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    candidates: Mapped[list["CandidateModel"]] = relationship(back_populates="request")

    __table_args__ = (
        Index("idx_urgent_requests_status", "status"),
        Index("idx_urgent_requests_client_created", "client_id", "created_at"),
    )


class CandidateModel(Base):
    __tablename__ = "urgent_candidates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    request_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("urgent_requests.id", ondelete="CASCADE"), nullable=False
    )
    professional_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("professionals.id"), nullable=False
    )
    distance_km: Mapped[float] = mapped_column(Float, nullable=False)
    dispatch_round: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    responded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    responded_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    notified_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    request: Mapped["UrgentRequestModel"] = relationship(back_populates="candidates")

    __table_args__ = (
        UniqueConstraint("request_id", "professional_id", name="uq_candidate_request_professional"),
        Index("idx_candidates_professional", "professional_id"),
    )


class AssignmentModel(Base):
    __tablename__ = "urgent_assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    request_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("urgent_requests.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    professional_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("professionals.id"), nullable=False
    )
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (Index("idx_assignments_professional", "professional_id"),)


class RejectionModel(Base):
    __tablename__ = "urgent_rejections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    request_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("urgent_requests.id", ondelete="CASCADE"), nullable=False
    )
    professional_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("professionals.id"), nullable=False
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    rejected_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    __table_args__ = (
        Index("idx_rejections_request", "request_id"),
        Index("idx_rejections_professional", "professional_id"),
    )


class TrackingEntryModel(Base):
    __tablename__ = "urgent_tracking"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    request_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("urgent_requests.id", ondelete="CASCADE"), nullable=False
    )
    previous_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    new_status: Mapped[str] = mapped_column(String(20), nullable=False)
    actor_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    __table_args__ = (Index("idx_tracking_request", "request_id", "id"),)
