"""Funnel, conversion and dashboard statistics.

Everything here is read-only and recomputed on every request from the
current leads and the ``Lead Stage Changed`` activity log.

Funnel semantics: a lead counts toward every stage it has *ever reached*
(its journey), not just the stage it is in now. A lead that went
Lead -> Prospect -> Enrolled -> Prospect still counts once as a prospect and
once as enrolled.

When the store cannot be read, the statistics degrade to zero values and the
failure is logged; dashboards show "no data" instead of an error.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Dict, Iterable, List, Optional, Sequence
from uuid import UUID

import pydantic
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crm.models.activity import Activity, ActivityType
from crm.models.lead import Lead, LeadStage
from crm.schemas.activity_details import StageChangeDetails, parse_activity_details

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageChange:
    """One recorded transition, reduced to what the aggregations need."""
    lead_id: UUID
    to_stage: LeadStage
    created_at: datetime


@dataclass(frozen=True)
class LeadSnapshot:
    id: UUID
    created_at: datetime
    stage: LeadStage


@dataclass
class FunnelCounts:
    leads: int = 0
    prospects: int = 0
    enrolled: int = 0


@dataclass
class ConversionMatrix:
    months: List[str] = field(default_factory=list)
    totals: Dict[str, int] = field(default_factory=dict)
    never_enrolled: Dict[str, int] = field(default_factory=dict)
    counts: Dict[str, Dict[str, int]] = field(default_factory=dict)

    def percentages(self) -> Dict[str, Dict[str, int]]:
        """Each cell as a whole percentage of its creation month's total."""
        result = {}
        for created, row in self.counts.items():
            total = self.totals.get(created, 0)
            result[created] = {
                enrolled: round(count / total * 100) if total else 0
                for enrolled, count in row.items()
            }
        return result


def month_key(value: datetime) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def month_label(key: str) -> str:
    return datetime.strptime(key, "%Y-%m").strftime("%b %Y")


def to_stage_change(activity: Activity) -> Optional[StageChange]:
    """Read a stage-change activity; malformed payloads are skipped."""
    try:
        details = parse_activity_details(activity.type, activity.details)
    except pydantic.ValidationError:
        logger.warning("Skipping malformed stage-change activity %s", activity.id)
        return None
    if not isinstance(details, StageChangeDetails):
        return None
    return StageChange(lead_id=activity.lead_id, to_stage=details.to_stage, created_at=activity.created_at)


# ---------------------------------------------------------------------------
# Pure computations
# ---------------------------------------------------------------------------

def build_journeys(lead_ids: Iterable[UUID], stage_changes: Iterable[StageChange]) -> Dict[UUID, List[LeadStage]]:
    """Ordered list of distinct stages each lead has reached.

    Every journey starts at ``Lead``; transitions are replayed oldest first
    and a stage is appended the first time it is reached.
    """
    journeys: Dict[UUID, List[LeadStage]] = {lead_id: [LeadStage.LEAD] for lead_id in lead_ids}
    for change in sorted(stage_changes, key=lambda c: c.created_at):
        journey = journeys.get(change.lead_id)
        if journey is None:
            continue
        if change.to_stage not in journey:
            journey.append(change.to_stage)
    return journeys


def compute_funnel(lead_ids: Sequence[UUID], stage_changes: Iterable[StageChange]) -> FunnelCounts:
    journeys = build_journeys(lead_ids, stage_changes)
    return FunnelCounts(
        leads=len(journeys),
        prospects=sum(1 for j in journeys.values() if LeadStage.PROSPECT in j),
        enrolled=sum(1 for j in journeys.values() if LeadStage.ENROLLED in j),
    )


def enrollment_dates(leads: Iterable[LeadSnapshot], stage_changes: Iterable[StageChange]) -> Dict[UUID, datetime]:
    """When each lead enrolled.

    The earliest transition into ``Enrolled`` wins. A lead currently in
    ``Enrolled`` with no such transition on record falls back to its
    creation date.
    """
    enrolled_at: Dict[UUID, datetime] = {}
    for change in sorted(stage_changes, key=lambda c: c.created_at):
        if change.to_stage == LeadStage.ENROLLED and change.lead_id not in enrolled_at:
            enrolled_at[change.lead_id] = change.created_at
    for lead in leads:
        if lead.stage == LeadStage.ENROLLED and lead.id not in enrolled_at:
            enrolled_at[lead.id] = lead.created_at
    return enrolled_at


def compute_conversion_matrix(leads: Sequence[LeadSnapshot], stage_changes: Iterable[StageChange]) -> ConversionMatrix:
    """Creation month x enrollment month counts over all leads.

    Every observed month (creation or enrollment) gets a row and a column,
    zero-filled. Leads that never enrolled are tallied per creation month in
    ``never_enrolled`` so each row plus that tally equals the month's total.
    """
    enrolled_at = enrollment_dates(leads, stage_changes)

    months = set()
    totals: Dict[str, int] = {}
    never: Dict[str, int] = {}
    cells: Dict[str, Dict[str, int]] = {}

    for lead in leads:
        created = month_key(lead.created_at)
        months.add(created)
        totals[created] = totals.get(created, 0) + 1
        when = enrolled_at.get(lead.id)
        if when is None:
            never[created] = never.get(created, 0) + 1
            continue
        enrolled = month_key(when)
        months.add(enrolled)
        row = cells.setdefault(created, {})
        row[enrolled] = row.get(enrolled, 0) + 1

    ordered = sorted(months)
    matrix = ConversionMatrix(months=ordered)
    for created in ordered:
        matrix.totals[created] = totals.get(created, 0)
        matrix.never_enrolled[created] = never.get(created, 0)
        row = cells.get(created, {})
        matrix.counts[created] = {enrolled: row.get(enrolled, 0) for enrolled in ordered}
    return matrix


def growth_rate(this_month: int, last_month: int) -> float:
    if last_month > 0:
        return round((this_month - last_month) / last_month * 100, 1)
    return 100.0 if this_month > 0 else 0.0


# ---------------------------------------------------------------------------
# Store reads
# ---------------------------------------------------------------------------

async def _load_stage_changes(db: AsyncSession, lead_ids: Optional[Sequence[UUID]] = None) -> List[StageChange]:
    query = select(Activity).where(Activity.type == ActivityType.STAGE_CHANGED.value)
    if lead_ids is not None:
        query = query.where(Activity.lead_id.in_(lead_ids))
    result = await db.execute(query.order_by(Activity.created_at.asc()))
    changes = (to_stage_change(activity) for activity in result.scalars().all())
    return [c for c in changes if c is not None]


async def funnel_for_window(db: AsyncSession, start: date, end: date) -> FunnelCounts:
    """Journey funnel over the leads created between ``start`` and ``end`` (inclusive days)."""
    window_start = datetime.combine(start, time.min)
    window_end = datetime.combine(end, time.max)

    try:
        result = await db.execute(
            select(Lead.id).where(Lead.created_at >= window_start, Lead.created_at <= window_end)
        )
        lead_ids = list(result.scalars().all())
    except SQLAlchemyError as e:
        logger.error("Funnel: failed to read leads for %s..%s: %s", start, end, e)
        return FunnelCounts()

    if not lead_ids:
        return FunnelCounts()

    try:
        stage_changes = await _load_stage_changes(db, lead_ids)
    except SQLAlchemyError as e:
        logger.error("Funnel: failed to read stage changes: %s", e)
        return FunnelCounts(leads=len(lead_ids))

    counts = compute_funnel(lead_ids, stage_changes)
    logger.info(
        "Funnel %s..%s: leads=%d prospects=%d enrolled=%d",
        start, end, counts.leads, counts.prospects, counts.enrolled,
    )
    return counts


async def conversion_matrix(db: AsyncSession) -> ConversionMatrix:
    try:
        result = await db.execute(select(Lead.id, Lead.created_at, Lead.stage).order_by(Lead.created_at.asc()))
        leads = [LeadSnapshot(id=row.id, created_at=row.created_at, stage=row.stage) for row in result.all()]
        stage_changes = await _load_stage_changes(db)
    except SQLAlchemyError as e:
        logger.error("Conversion matrix: failed to read leads/activities: %s", e)
        return ConversionMatrix()
    return compute_conversion_matrix(leads, stage_changes)


def _month_bounds(today: date, months_back: int) -> tuple[datetime, datetime]:
    year, month = today.year, today.month - months_back
    while month <= 0:
        month += 12
        year -= 1
    start = datetime(year, month, 1)
    end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
    return start, end


async def dashboard_metrics(db: AsyncSession, now: Optional[datetime] = None) -> dict:
    """Headline numbers for the dashboard cards."""
    now = now or datetime.utcnow()
    this_start, this_end = _month_bounds(now.date(), 0)
    last_start, last_end = _month_bounds(now.date(), 1)

    breakdown = {stage.value: 0 for stage in LeadStage}
    metrics = {
        "total_leads": 0,
        "leads_this_month": 0,
        "leads_last_month": 0,
        "enrollments_this_month": 0,
        "growth_rate": 0.0,
        "stage_breakdown": breakdown,
    }

    try:
        total = (await db.execute(select(func.count(Lead.id)))).scalar() or 0
        this_month = (await db.execute(
            select(func.count(Lead.id)).where(Lead.created_at >= this_start, Lead.created_at < this_end)
        )).scalar() or 0
        last_month = (await db.execute(
            select(func.count(Lead.id)).where(Lead.created_at >= last_start, Lead.created_at < last_end)
        )).scalar() or 0
        enrollments = (await db.execute(
            select(func.count(Lead.id)).where(
                Lead.created_at >= this_start,
                Lead.created_at < this_end,
                Lead.stage == LeadStage.ENROLLED,
            )
        )).scalar() or 0
        by_stage = await db.execute(select(Lead.stage, func.count(Lead.id)).group_by(Lead.stage))
        stage_rows = by_stage.all()
    except SQLAlchemyError as e:
        logger.error("Dashboard metrics: failed to read leads: %s", e)
        return metrics

    for stage, count in stage_rows:
        breakdown[LeadStage(stage).value] = count

    metrics.update(
        total_leads=total,
        leads_this_month=this_month,
        leads_last_month=last_month,
        enrollments_this_month=enrollments,
        growth_rate=growth_rate(this_month, last_month),
    )
    return metrics
