import pytest
from datetime import datetime

from newlife.core.config import Settings
from newlife.models import HospitalVisit, Milestone, Pregnancy, Symptom
from newlife.services.adapter import PregnancyContext
from newlife.services.store import MemoryDocumentStore

from tests.fixtures.records import DUE_DATE, UTC


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def make_settings():
    """Settings built only from explicit values, ignoring the environment and .env."""
    def _make(**overrides):
        values = {
            "AI_PROVIDER": "anthropic",
            "ANTHROPIC_API_KEY": None,
            "OPENAI_API_KEY": None,
            "GEMINI_API_KEY": None,
            "CUSTOM_AI_URL": None,
            "CUSTOM_AI_KEY": None,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)
    return _make


@pytest.fixture
def pregnancy():
    return Pregnancy(
        id="preg-1",
        mother_name="Maya",
        due_date=DUE_DATE,
        current_week=28,
        baby_name="Lily",
        hospital="St. Mary's",
        doctor_name="Dr. Chen",
    )


@pytest.fixture
def symptoms():
    return [
        Symptom(date=datetime(2026, 1, 10, tzinfo=UTC), week=27, type="back_pain",
                severity=3, notes="after long walk"),
        Symptom(date=datetime(2026, 1, 5, tzinfo=UTC), week=26, type="nausea", severity=2),
    ]


@pytest.fixture
def visits():
    return [
        HospitalVisit(date=datetime(2026, 1, 8, tzinfo=UTC), week=27, type="ultrasound",
                      notes="Growth on track"),
        HospitalVisit(date=datetime(2025, 12, 20, tzinfo=UTC), week=25, type="checkup"),
    ]


@pytest.fixture
def milestones():
    return [Milestone(date=datetime(2025, 11, 30, tzinfo=UTC), week=22, title="First kicks")]


@pytest.fixture
def pregnancy_context(pregnancy, visits, symptoms, milestones):
    return PregnancyContext.build(pregnancy, visits, symptoms, milestones)


@pytest.fixture
def store():
    return MemoryDocumentStore()


@pytest.fixture
async def seeded_store(anyio_backend, store, pregnancy, visits, symptoms, milestones):
    """Store holding one pregnancy (user-1/preg-1) with its records."""
    from newlife.services.pregnancy import PregnancyRepository

    await store.put("users/user-1/pregnancies/preg-1", pregnancy.to_dict())
    repo = PregnancyRepository(store)
    for visit in visits:
        await repo.add_visit("user-1", "preg-1", visit)
    for symptom in symptoms:
        await repo.add_symptom("user-1", "preg-1", symptom)
    for milestone in milestones:
        await repo.add_milestone("user-1", "preg-1", milestone)
    return store
