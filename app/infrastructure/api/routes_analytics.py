"""Analytics endpoints — urgent service statistics."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.database import get_session
from app.adapters.persistence.models import (
    ProfessionalModel,
    RejectionModel,
    UrgentRequestModel,
)
from app.domain.value_objects.enums import RequestStatus, UserRole
from app.infrastructure.api.dependencies import require_role

router = APIRouter(prefix="/analytics", tags=["analytics"])

TOP_REJECTERS_LIMIT = 10


@router.get("/urgent", dependencies=[Depends(require_role(UserRole.ADMIN))])
async def urgent_stats(session: AsyncSession = Depends(get_session)):
    """Aggregate stats for the urgent service dashboard."""
    # By status
    status_rows = (
        await session.execute(
            select(UrgentRequestModel.status, func.count(UrgentRequestModel.id)).group_by(
                UrgentRequestModel.status
            )
        )
    ).all()
    by_status = {s.value: 0 for s in RequestStatus}
    by_status.update({row[0]: row[1] for row in status_rows})
    total = sum(by_status.values())

    # Failed to match
    failed_to_match = (
        await session.execute(
            select(func.count(UrgentRequestModel.id)).where(
                UrgentRequestModel.match_failed.is_(True)
            )
        )
    ).scalar() or 0

    # Average completion time in hours
    avg_seconds = (
        await session.execute(
            select(
                func.avg(
                    func.extract(
                        "epoch",
                        UrgentRequestModel.completed_at - UrgentRequestModel.created_at,
                    )
                )
            ).where(
                UrgentRequestModel.status == RequestStatus.COMPLETED.value,
                UrgentRequestModel.completed_at.is_not(None),
            )
        )
    ).scalar()
    avg_completion_hours = round(float(avg_seconds) / 3600, 2) if avg_seconds else 0.0

    # Rejection reasons
    reason_rows = (
        await session.execute(
            select(RejectionModel.reason, func.count(RejectionModel.id))
            .group_by(RejectionModel.reason)
            .order_by(func.count(RejectionModel.id).desc())
        )
    ).all()
    rejection_reasons = {row[0]: row[1] for row in reason_rows}

    # Top rejecting professionals
    rejecter_rows = (
        await session.execute(
            select(
                RejectionModel.professional_id,
                ProfessionalModel.name,
                func.count(RejectionModel.id).label("rejections"),
            )
            .join(ProfessionalModel, ProfessionalModel.id == RejectionModel.professional_id)
            .group_by(RejectionModel.professional_id, ProfessionalModel.name)
            .order_by(func.count(RejectionModel.id).desc(), RejectionModel.professional_id)
            .limit(TOP_REJECTERS_LIMIT)
        )
    ).all()

    completed = by_status[RequestStatus.COMPLETED.value]
    return {
        "total_requests": total,
        "by_status": by_status,
        "failed_to_match": failed_to_match,
        "completion_rate": round(completed / total * 100, 2) if total else 0.0,
        "avg_completion_hours": avg_completion_hours,
        "total_rejections": sum(rejection_reasons.values()),
        "rejection_reasons": rejection_reasons,
        "top_rejecting_professionals": [
            {"professional_id": row[0], "name": row[1], "rejections": row[2]}
            for row in rejecter_rows
        ],
    }
