"""
Gestational week arithmetic based on a 40-week term.
"""
import math
from datetime import datetime, timedelta
from typing import Optional

from newlife.prompts.context import days_until

TERM_WEEKS = 40
MIN_WEEK = 1
MAX_WEEK = 42


def calculate_pregnancy_week(due_date: datetime, now: Optional[datetime] = None) -> int:
    """
    Current week of pregnancy, counted from a conception date 40 weeks
    before the due date and clamped to 1..42.
    """
    if now is None:
        now = datetime.now(due_date.tzinfo) if due_date.tzinfo else datetime.now()
    conception = due_date - timedelta(weeks=TERM_WEEKS)
    weeks = math.floor((now - conception) / timedelta(weeks=1))
    return max(MIN_WEEK, min(MAX_WEEK, weeks))


def days_until_due_date(due_date: datetime, now: Optional[datetime] = None) -> int:
    """Days left until the due date, rounded up; negative once overdue."""
    return days_until(due_date, now)
