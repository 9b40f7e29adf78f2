"""Initial schema — urgent dispatch tables.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Professionals (directory)
    op.create_table(
        "professionals",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column("is_available", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("rating", sa.Float, nullable=False, server_default="0"),
    )
    op.create_index("idx_professionals_category", "professionals", ["category"])
    op.create_index("idx_professionals_lat_lon", "professionals", ["latitude", "longitude"])

    # Pricing rules
    op.create_table(
        "pricing_rules",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("service_category", sa.String(100), unique=True, nullable=False),
        sa.Column("base_multiplier", sa.Float, nullable=False, server_default="1.5"),
        sa.Column("min_price", sa.Float, nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )

    # Urgent requests
    op.create_table(
        "urgent_requests",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("client_id", sa.Integer, nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("latitude", sa.Float, nullable=False),
        sa.Column("longitude", sa.Float, nullable=False),
        sa.Column("radius_km", sa.Float, nullable=False),
        sa.Column("service_category", sa.String(100), nullable=False),
        sa.Column("price_estimate", sa.Float, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column(
            "assigned_professional_id",
            sa.Integer,
            sa.ForeignKey("professionals.id"),
            nullable=True,
        ),
        sa.Column("dispatch_round", sa.Integer, nullable=False, server_default="0"),
        sa.Column("match_failed", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("last_dispatched_at", sa.DateTime, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("completed_at", sa.DateTime, nullable=True),
        sa.CheckConstraint(
            "status IN ('pending', 'assigned', 'completed', 'cancelled')",
            name="ck_urgent_requests_status",
        ),
    )
    op.create_index("idx_urgent_requests_status", "urgent_requests", ["status"])
    op.create_index(
        "idx_urgent_requests_client_created", "urgent_requests", ["client_id", "created_at"]
    )

    # Candidate pool
    op.create_table(
        "urgent_candidates",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "request_id",
            sa.Integer,
            sa.ForeignKey("urgent_requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "professional_id", sa.Integer, sa.ForeignKey("professionals.id"), nullable=False
        ),
        sa.Column("distance_km", sa.Float, nullable=False),
        sa.Column("dispatch_round", sa.Integer, nullable=False, server_default="1"),
        sa.Column("responded", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("responded_at", sa.DateTime, nullable=True),
        sa.Column("notified_at", sa.DateTime, nullable=True),
        sa.UniqueConstraint(
            "request_id", "professional_id", name="uq_candidate_request_professional"
        ),
    )
    op.create_index("idx_candidates_professional", "urgent_candidates", ["professional_id"])

    # Assignments (at most one per request)
    op.create_table(
        "urgent_assignments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "request_id",
            sa.Integer,
            sa.ForeignKey("urgent_requests.id", ondelete="CASCADE"),
            unique=True,
            nullable=False,
        ),
        sa.Column(
            "professional_id", sa.Integer, sa.ForeignKey("professionals.id"), nullable=False
        ),
        sa.Column("assigned_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("completed_at", sa.DateTime, nullable=True),
        sa.Column("rating", sa.Integer, nullable=True),
        sa.Column("comment", sa.Text, nullable=True),
    )
    op.create_index(
        "idx_assignments_professional", "urgent_assignments", ["professional_id"]
    )

    # Rejections (audit)
    op.create_table(
        "urgent_rejections",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "request_id",
            sa.Integer,
            sa.ForeignKey("urgent_requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "professional_id", sa.Integer, sa.ForeignKey("professionals.id"), nullable=False
        ),
        sa.Column("reason", sa.Text, nullable=False),
        sa.Column("rejected_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_rejections_request", "urgent_rejections", ["request_id"])
    op.create_index("idx_rejections_professional", "urgent_rejections", ["professional_id"])

    # Tracking ledger
    op.create_table(
        "urgent_tracking",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "request_id",
            sa.Integer,
            sa.ForeignKey("urgent_requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("previous_status", sa.String(20), nullable=True),
        sa.Column("new_status", sa.String(20), nullable=False),
        sa.Column("actor_id", sa.Integer, nullable=True),
        sa.Column("note", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_tracking_request", "urgent_tracking", ["request_id", "id"])


def downgrade() -> None:
    op.drop_table("urgent_tracking")
    op.drop_table("urgent_rejections")
    op.drop_table("urgent_assignments")
    op.drop_table("urgent_candidates")
    op.drop_table("urgent_requests")
    op.drop_table("pricing_rules")
    op.drop_table("professionals")
