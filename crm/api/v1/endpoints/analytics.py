"""Analytics endpoints for dashboard charts and stats.

- GET /api/v1/analytics/funnel?startDate&endDate → journey funnel for leads created in the window
- GET /api/v1/analytics/conversion?mode=counts|percent → creation month x enrollment month matrix
- GET /api/v1/analytics/dashboard → headline metrics
"""

import logging
from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.database import get_db
from crm.core.errors import ValidationError
from crm.schemas.analytics import ConversionMatrixOut, ConversionRow, DashboardMetricsOut, FunnelOut
from crm.services import analytics as analytics_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/funnel", response_model=FunnelOut)
async def get_funnel(
    start_date: date = Query(..., alias="startDate", description="First creation day (YYYY-MM-DD)"),
    end_date: date = Query(..., alias="endDate", description="Last creation day, inclusive (YYYY-MM-DD)"),
    db: AsyncSession = Depends(get_db),
):
    """Count leads created in the window by every stage they have ever reached."""
    if start_date > end_date:
        raise ValidationError("startDate must not be after endDate", {"startDate": ["must not be after endDate"]})

    counts = await analytics_service.funnel_for_window(db, start_date, end_date)
    return FunnelOut(leads=counts.leads, prospects=counts.prospects, enrolled=counts.enrolled)


@router.get("/conversion", response_model=ConversionMatrixOut)
async def get_conversion(
    mode: Literal["counts", "percent"] = Query("counts"),
    db: AsyncSession = Depends(get_db),
):
    """Rows are creation months, columns are enrollment months."""
    matrix = await analytics_service.conversion_matrix(db)
    cells = matrix.percentages() if mode == "percent" else matrix.counts

    rows = [
        ConversionRow(
            month=month,
            label=analytics_service.month_label(month),
            total=matrix.totals[month],
            never_enrolled=matrix.never_enrolled[month],
            cells=cells[month],
        )
        for month in matrix.months
    ]
    return ConversionMatrixOut(
        mode=mode,
        months=matrix.months,
        labels=[analytics_service.month_label(m) for m in matrix.months],
        rows=rows,
    )


@router.get("/dashboard", response_model=DashboardMetricsOut)
async def get_dashboard(db: AsyncSession = Depends(get_db)):
    return await analytics_service.dashboard_metrics(db)
