from newlife.services.pregnancy.repository import PregnancyRepository
from newlife.services.pregnancy.weeks import calculate_pregnancy_week, days_until_due_date

__all__ = [
    "PregnancyRepository",
    "calculate_pregnancy_week",
    "days_until_due_date",
]
