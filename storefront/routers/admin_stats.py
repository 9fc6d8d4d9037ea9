# storefront/routers/admin_stats.py
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from storefront.core.auth import require_admin
from storefront.database import get_session
from storefront.routers.orders import stats_service
from storefront.schemas.stats import AdminDashboardStats

router = APIRouter(prefix="/admin/stats", tags=["Admin Stats"])


@router.get(
    "",
    response_model=AdminDashboardStats,
    dependencies=[Depends(require_admin)],
)
def get_admin_dashboard_stats(
    top: int = Query(default=5, ge=1, le=50),
    latest: int = Query(default=10, ge=1, le=50),
    session: Session = Depends(get_session),
):
    """
    Aggregated statistics for the admin dashboard.

    Query params (optional):
      - top: number of best-selling products
      - latest: number of most recent orders

    Only accessible to users with role='admin'.
    """
    return stats_service.get_admin_dashboard_stats(
        session=session,
        top_n_products=top,
        latest_n_orders=latest,
    )
