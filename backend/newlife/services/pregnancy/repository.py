"""
Pregnancy Repository - pregnancy profiles and the visits, symptoms and
milestones logged against them.
"""
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Type, TypeVar

from newlife.core.logging import get_logger
from newlife.models import (
    HospitalVisit,
    Milestone,
    Pregnancy,
    PregnancyStatus,
    Symptom,
)
from newlife.models.base import StoredModel
from newlife.services.adapter.types import PregnancyContext
from newlife.services.pregnancy.weeks import calculate_pregnancy_week
from newlife.services.store import DocumentStore, StoreError, Unsubscribe
from newlife.services.store.paths import (
    HOSPITAL_VISITS,
    MILESTONES,
    SYMPTOMS,
    pregnancies_path,
    pregnancy_path,
    records_path,
)

logger = get_logger(__name__)

M = TypeVar("M", bound=StoredModel)

# Symptom feeds are capped, visits and milestones are not
SYMPTOM_FEED_LIMIT = 20


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PregnancyRepository:
    """Reads and writes pregnancy data in the document store."""

    def __init__(self, store: DocumentStore):
        self.store = store

    # ========================================
    # Pregnancy profile
    # ========================================

    async def create_pregnancy(
        self,
        user_id: str,
        pregnancy: Pregnancy,
        now: Optional[datetime] = None,
    ) -> Pregnancy:
        """
        Store a new active pregnancy.

        `current_week` is computed from the due date; whatever the caller
        put there is ignored.
        """
        created = now or _utcnow()
        record = pregnancy.model_copy(update={
            "current_week": calculate_pregnancy_week(pregnancy.due_date, now),
            "status": PregnancyStatus.ACTIVE.value,
            "created_at": created,
            "updated_at": created,
        })
        pregnancy_id = await self.store.add(pregnancies_path(user_id), record.to_dict())

        logger.info(
            "Created pregnancy",
            user_id=user_id,
            pregnancy_id=pregnancy_id,
            current_week=record.current_week,
        )
        return record.model_copy(update={"id": pregnancy_id})

    async def get_pregnancy(self, user_id: str, pregnancy_id: str) -> Optional[Pregnancy]:
        data = await self.store.get(pregnancy_path(user_id, pregnancy_id))
        return Pregnancy.from_dict(data) if data else None

    async def get_active_pregnancy(self, user_id: str) -> Optional[Pregnancy]:
        records = await self.store.query(
            pregnancies_path(user_id),
            where={"status": PregnancyStatus.ACTIVE.value},
            limit=1,
        )
        return Pregnancy.from_dict(records[0]) if records else None

    async def update_pregnancy(
        self,
        user_id: str,
        pregnancy_id: str,
        **updates: Any,
    ) -> Pregnancy:
        """
        Apply field updates (snake_case names) to a stored pregnancy.

        Raises:
            StoreError: if the pregnancy does not exist
        """
        current = await self.get_pregnancy(user_id, pregnancy_id)
        if current is None:
            raise StoreError(f"Pregnancy {pregnancy_id} not found")

        updated = Pregnancy.model_validate({
            **current.model_dump(),
            **updates,
            "updated_at": updates.get("updated_at") or _utcnow(),
        })
        await self.store.put(pregnancy_path(user_id, pregnancy_id), updated.to_dict())
        return updated

    async def complete_pregnancy(
        self,
        user_id: str,
        pregnancy_id: str,
        baby_id: Optional[str] = None,
    ) -> Pregnancy:
        """Mark a pregnancy completed (baby born)."""
        now = _utcnow()
        return await self.update_pregnancy(
            user_id,
            pregnancy_id,
            status=PregnancyStatus.COMPLETED.value,
            completed_at=now,
            transitioned_to_baby_id=baby_id,
            updated_at=now,
        )

    async def sync_current_week(
        self,
        user_id: str,
        pregnancy_id: str,
        now: Optional[datetime] = None,
    ) -> Pregnancy:
        """Recompute the stored current_week from the due date."""
        current = await self.get_pregnancy(user_id, pregnancy_id)
        if current is None:
            raise StoreError(f"Pregnancy {pregnancy_id} not found")

        week = calculate_pregnancy_week(current.due_date, now)
        if week == current.current_week:
            return current
        return await self.update_pregnancy(user_id, pregnancy_id, current_week=week)

    def subscribe_active_pregnancy(
        self,
        user_id: str,
        callback: Callable[[Optional[Pregnancy]], None],
    ) -> Unsubscribe:
        return self.store.subscribe(
            pregnancies_path(user_id),
            lambda records: callback(Pregnancy.from_dict(records[0]) if records else None),
            where={"status": PregnancyStatus.ACTIVE.value},
            limit=1,
        )

    # ========================================
    # Visits, symptoms, milestones
    # ========================================

    async def _add(self, user_id: str, pregnancy_id: str, collection: str, item: M) -> M:
        now = _utcnow()
        record = item.model_copy(update={"pregnancy_id": pregnancy_id, "created_at": now})
        record_id = await self.store.add(
            records_path(user_id, pregnancy_id, collection), record.to_dict()
        )
        return record.model_copy(update={"id": record_id})

    async def _list(
        self,
        user_id: str,
        pregnancy_id: str,
        collection: str,
        model: Type[M],
        limit: Optional[int] = None,
    ) -> List[M]:
        """Newest-first by date."""
        records = await self.store.query(
            records_path(user_id, pregnancy_id, collection),
            order_by="date",
            descending=True,
            limit=limit,
        )
        return [model.from_dict(r) for r in records]

    async def _delete(self, user_id: str, pregnancy_id: str, collection: str, record_id: str) -> bool:
        return await self.store.delete(
            f"{records_path(user_id, pregnancy_id, collection)}/{record_id}"
        )

    async def add_visit(self, user_id: str, pregnancy_id: str, visit: HospitalVisit) -> HospitalVisit:
        return await self._add(user_id, pregnancy_id, HOSPITAL_VISITS, visit)

    async def get_visits(
        self, user_id: str, pregnancy_id: str, limit: Optional[int] = None
    ) -> List[HospitalVisit]:
        return await self._list(user_id, pregnancy_id, HOSPITAL_VISITS, HospitalVisit, limit)

    async def delete_visit(self, user_id: str, pregnancy_id: str, visit_id: str) -> bool:
        return await self._delete(user_id, pregnancy_id, HOSPITAL_VISITS, visit_id)

    async def add_symptom(self, user_id: str, pregnancy_id: str, symptom: Symptom) -> Symptom:
        return await self._add(user_id, pregnancy_id, SYMPTOMS, symptom)

    async def get_symptoms(
        self, user_id: str, pregnancy_id: str, limit: Optional[int] = SYMPTOM_FEED_LIMIT
    ) -> List[Symptom]:
        return await self._list(user_id, pregnancy_id, SYMPTOMS, Symptom, limit)

    async def delete_symptom(self, user_id: str, pregnancy_id: str, symptom_id: str) -> bool:
        return await self._delete(user_id, pregnancy_id, SYMPTOMS, symptom_id)

    async def add_milestone(self, user_id: str, pregnancy_id: str, milestone: Milestone) -> Milestone:
        return await self._add(user_id, pregnancy_id, MILESTONES, milestone)

    async def get_milestones(
        self, user_id: str, pregnancy_id: str, limit: Optional[int] = None
    ) -> List[Milestone]:
        return await self._list(user_id, pregnancy_id, MILESTONES, Milestone, limit)

    # ========================================
    # AI context
    # ========================================

    async def load_context(self, user_id: str, pregnancy_id: str) -> Optional[PregnancyContext]:
        """
        Snapshot the data the chat assistant sees: the profile, the 5 most
        recent visits and symptoms and the 3 most recent milestones.

        Returns:
            PregnancyContext, or None if the pregnancy does not exist
        """
        pregnancy = await self.get_pregnancy(user_id, pregnancy_id)
        if pregnancy is None:
            return None

        return PregnancyContext.build(
            pregnancy,
            visits=await self.get_visits(user_id, pregnancy_id, limit=5),
            symptoms=await self.get_symptoms(user_id, pregnancy_id, limit=5),
            milestones=await self.get_milestones(user_id, pregnancy_id, limit=3),
        )
