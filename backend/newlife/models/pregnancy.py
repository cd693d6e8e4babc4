"""
Pregnancy profile and the records logged against it.
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from newlife.models.base import StoredModel


class PregnancyStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class VisitType(str, Enum):
    CHECKUP = "checkup"
    ULTRASOUND = "ultrasound"
    TEST = "test"
    EMERGENCY = "emergency"


class SymptomType(str, Enum):
    NAUSEA = "nausea"
    FATIGUE = "fatigue"
    HEADACHE = "headache"
    BACK_PAIN = "back_pain"
    OTHER = "other"


class Pregnancy(StoredModel):
    """Pregnancy profile. `current_week` is stored, not derived on read."""

    id: str = ""
    mother_name: str
    due_date: datetime
    conception_date: Optional[datetime] = None
    current_week: int = Field(1, ge=1, le=42)
    baby_name: Optional[str] = None
    hospital: Optional[str] = None
    doctor_name: Optional[str] = None
    doctor_phone: Optional[str] = None
    blood_type: Optional[str] = None
    status: PregnancyStatus = PregnancyStatus.ACTIVE
    completed_at: Optional[datetime] = None
    transitioned_to_baby_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class HospitalVisit(StoredModel):
    id: str = ""
    pregnancy_id: str = ""
    date: datetime
    week: int
    type: VisitType
    notes: Optional[str] = None
    weight: Optional[float] = None
    blood_pressure: Optional[str] = None
    next_visit_date: Optional[datetime] = None
    created_at: Optional[datetime] = None


class Symptom(StoredModel):
    id: str = ""
    pregnancy_id: str = ""
    date: datetime
    week: int
    type: SymptomType
    severity: int = Field(..., ge=1, le=5)
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class Milestone(StoredModel):
    id: str = ""
    pregnancy_id: str = ""
    date: datetime
    week: int
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
