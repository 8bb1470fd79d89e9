"""Dashboard statistics derived from the project collection."""

from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from constants import MONTH_LABEL_FORMAT, MONTHLY_WINDOW, RECENT_PROJECTS_LIMIT
from models import DashboardStats, MonthlyDatum, Project, ProjectStatus
from utils import round_half_up


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO timestamp into an aware UTC datetime, or None."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        moment = datetime.fromisoformat(text)
    except ValueError:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def trailing_months(today: date, count: int = MONTHLY_WINDOW) -> List[Tuple[int, int]]:
    """(year, month) pairs for the ``count`` months ending at ``today``, oldest first."""
    months = []
    for offset in range(count - 1, -1, -1):
        index = today.year * 12 + (today.month - 1) - offset
        months.append((index // 12, index % 12 + 1))
    return months


def get_dashboard_stats(projects: Iterable[Project], today: Optional[date] = None) -> DashboardStats:
    """Summarise income, capacity and the monthly series.

    Income and capacity only count completed projects; the project total
    counts everything.
    """
    projects = list(projects)
    if today is None:
        today = datetime.now(timezone.utc).date()

    completed = [p for p in projects if p.status == ProjectStatus.COMPLETED]
    total_income = sum(p.calculations.total_payable_amount for p in completed)
    total_kw = sum(p.calculations.system_size for p in completed)

    buckets: Dict[Tuple[int, int], List[Project]] = {}
    for project in completed:
        created = parse_timestamp(project.created_at)
        if created is None:
            continue
        buckets.setdefault((created.year, created.month), []).append(project)

    monthly_data = []
    for year, month in trailing_months(today):
        month_projects = buckets.get((year, month), [])
        monthly_data.append(MonthlyDatum(
            month=date(year, month, 1).strftime(MONTH_LABEL_FORMAT),
            income=sum(p.calculations.total_payable_amount for p in month_projects),
            projects=len(month_projects),
        ))

    return DashboardStats(
        total_income=total_income,
        total_kw_installed=round_half_up(total_kw, 2),
        total_projects=len(projects),
        monthly_data=monthly_data,
    )


def recent_projects(projects: Iterable[Project], limit: int = RECENT_PROJECTS_LIMIT) -> List[Project]:
    """Newest projects first; undated records sort last."""
    epoch = datetime.min.replace(tzinfo=timezone.utc)
    ordered = sorted(
        projects,
        key=lambda p: parse_timestamp(p.created_at) or epoch,
        reverse=True,
    )
    return ordered[:limit]


def status_counts(projects: Iterable[Project]) -> Dict[str, int]:
    counts = {status.value: 0 for status in ProjectStatus}
    for project in projects:
        counts[project.status.value] += 1
    return counts


def monthly_frame(stats: DashboardStats) -> pd.DataFrame:
    """Monthly series as a DataFrame for charting."""
    return pd.DataFrame(
        [datum.model_dump() for datum in stats.monthly_data],
        columns=["month", "income", "projects"],
    )
