"""
Data models for projects, time entries and hour summaries.

Summaries are derived on every query and never persisted.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum


class ProjectStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    ON_HOLD = "ON_HOLD"
    ARCHIVED = "ARCHIVED"


@dataclass
class Project:
    id: str
    name: str
    hourly_rate: Decimal
    client_id: str | None = None
    client_name: str | None = None
    estimated_hours: Decimal | None = None
    status: ProjectStatus = ProjectStatus.ACTIVE
    description: str | None = None


@dataclass
class TimesheetEntry:
    """One block of logged time. `date` is a calendar day."""

    id: str
    date: date
    hours: Decimal
    project_id: str
    description: str | None = None
    project: Project | None = None
    invoice_id: str | None = None


@dataclass
class DailyHours:
    date: date
    day_name: str
    hours: Decimal


@dataclass
class WeeklyHoursSummary:
    week_number: int
    year: int
    start_date: date
    end_date: date
    total_hours: Decimal
    daily_breakdown: list[DailyHours] = field(default_factory=list)


@dataclass
class MonthlyHoursSummary:
    month: int
    year: int
    total_hours: Decimal
    weekly_breakdown: list[WeeklyHoursSummary] = field(default_factory=list)
