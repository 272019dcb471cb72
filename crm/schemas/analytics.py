"""Pydantic schemas for dashboard analytics."""

from typing import Dict, List, Literal
from pydantic import BaseModel


class FunnelOut(BaseModel):
    leads: int
    prospects: int
    enrolled: int


class ConversionRow(BaseModel):
    month: str  # "2025-01"
    label: str  # "Jan 2025"
    total: int
    never_enrolled: int
    cells: Dict[str, float]  # enrollment month -> count or percentage


class ConversionMatrixOut(BaseModel):
    mode: Literal["counts", "percent"]
    months: List[str]
    labels: List[str]
    rows: List[ConversionRow]


class DashboardMetricsOut(BaseModel):
    total_leads: int
    leads_this_month: int
    leads_last_month: int
    enrollments_this_month: int
    growth_rate: float
    stage_breakdown: Dict[str, int]
