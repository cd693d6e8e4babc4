from newlife.models.chat import ChatMessage, ChatMetadata, ChatRole
from newlife.models.pregnancy import (
    HospitalVisit,
    Milestone,
    Pregnancy,
    PregnancyStatus,
    Symptom,
    SymptomType,
    VisitType,
)

__all__ = [
    "ChatMessage",
    "ChatMetadata",
    "ChatRole",
    "HospitalVisit",
    "Milestone",
    "Pregnancy",
    "PregnancyStatus",
    "Symptom",
    "SymptomType",
    "VisitType",
]
