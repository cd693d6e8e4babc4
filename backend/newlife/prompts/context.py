"""
Context Builder - turns a pregnancy snapshot into the system prompt.
Every provider adapter calls build_system_prompt so prompts are identical
across vendors.
"""
import math
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from newlife.prompts.templates import SYSTEM_PROMPT

if TYPE_CHECKING:
    from newlife.services.adapter.types import PregnancyContext


def format_date(value: datetime) -> str:
    """Render a date as M/D/YYYY."""
    return f"{value.month}/{value.day}/{value.year}"


def _now_for(reference: datetime) -> datetime:
    """Current time, aware or naive to match the reference datetime."""
    if reference.tzinfo is not None:
        return datetime.now(timezone.utc)
    return datetime.now()


def days_until(due_date: datetime, now: Optional[datetime] = None) -> int:
    """Whole days left until the due date, rounded up."""
    now = now or _now_for(due_date)
    return math.ceil((due_date - now).total_seconds() / 86400)


def _enum_value(value) -> str:
    return getattr(value, "value", value)


def build_system_prompt(context: "PregnancyContext", now: Optional[datetime] = None) -> str:
    """
    Build the system prompt for a pregnancy snapshot.

    Sections for symptoms, visits and milestones appear only when the
    snapshot has entries for them.
    """
    pregnancy = context.pregnancy

    lines: List[str] = [
        SYSTEM_PROMPT,
        "",
        "USER'S PREGNANCY INFORMATION:",
        f"- Mother's name: {pregnancy.mother_name}",
        f"- Current week: {pregnancy.current_week} of 40 weeks",
        f"- Due date: {format_date(pregnancy.due_date)}",
        f"- Days until due: {days_until(pregnancy.due_date, now)} days",
    ]

    if pregnancy.baby_name:
        lines.append(f"- Baby's name: {pregnancy.baby_name}")
    if pregnancy.hospital:
        lines.append(f"- Hospital: {pregnancy.hospital}")
    if pregnancy.doctor_name:
        lines.append(f"- Doctor: {pregnancy.doctor_name}")

    if context.recent_symptoms:
        lines += ["", "RECENT SYMPTOMS (last 5):"]
        for symptom in context.recent_symptoms[:5]:
            kind = _enum_value(symptom.type).replace("_", " ")
            line = f"- {kind} (severity {symptom.severity}/5) on {format_date(symptom.date)}"
            if symptom.notes:
                line += f" - {symptom.notes}"
            lines.append(line)

    if context.recent_visits:
        lines += ["", "RECENT HOSPITAL VISITS:"]
        for visit in context.recent_visits[:3]:
            line = f"- {_enum_value(visit.type)} on {format_date(visit.date)} (week {visit.week})"
            if visit.notes:
                line += f" - {visit.notes}"
            lines.append(line)

    if context.recent_milestones:
        lines += ["", "RECENT MILESTONES:"]
        for milestone in context.recent_milestones[:3]:
            lines.append(f"- {milestone.title} on {format_date(milestone.date)}")

    return "\n".join(lines)
