from pydantic import BaseModel
from typing import List


class CountEntry(BaseModel):
    """Number of tickets sharing one value of a grouping field."""
    name: str
    count: int


class TimeSeriesEntry(BaseModel):
    """Tickets created and resolved in one calendar month (``YYYY-MM``)."""
    date: str
    created: int
    resolved: int


class AvgEntry(BaseModel):
    """Business-hours resolution statistics for one priority."""
    name: str
    avg_hours: float
    median_hours: float
    count: int


class SummaryStats(BaseModel):
    total_tickets: int
    open_tickets: int
    resolved_tickets: int
    avg_resolution_hours: float
    median_resolution_hours: float


class AggregationResult(BaseModel):
    """Every dashboard view, recomputed from the ticket table on demand."""
    tickets_by_status: List[CountEntry]
    tickets_by_priority: List[CountEntry]
    tickets_by_category: List[CountEntry]
    tickets_over_time: List[TimeSeriesEntry]
    resolution_time_by_priority: List[AvgEntry]
    summary: SummaryStats
