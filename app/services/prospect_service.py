"""
Prospect Service - CRUD and follow-ups for CRM prospects.

Prospects live in the "prospects" collection. Setting `responsable`
also sets `assignedTo`, which is what get_prospects_by_user() and the
byUser statistics read.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List

from app.repositories.document_store import DocumentStore
from app.schemas.prospect import (
    PLATFORMS,
    PROSPECT_STATUSES,
    FollowUp,
    Prospect,
    ProspectCreate,
    ProspectStats,
    ProspectUpdate,
)
from app.services.errors import NotFoundError


logger = logging.getLogger("innomind.services.prospects")


PROSPECT_NOT_FOUND = "Prospecto no encontrado"
UNASSIGNED = "unassigned"


def _dump(prospect: Prospect) -> dict:
    return prospect.model_dump(mode="json", by_alias=True, exclude={"id"})


class ProspectService:
    """Prospect persistence and derived queries."""

    COLLECTION = "prospects"

    def __init__(self, store: DocumentStore):
        self._store = store

    def _load(self, doc_id: str, data: dict) -> Prospect:
        return Prospect.model_validate({**data, "id": doc_id})

    def _require(self, prospect_id: str) -> Prospect:
        data = self._store.get(self.COLLECTION, prospect_id)
        if data is None:
            raise NotFoundError(PROSPECT_NOT_FOUND, "prospect", prospect_id)
        return self._load(prospect_id, data)

    def _save(self, prospect: Prospect) -> Prospect:
        self._store.set(self.COLLECTION, prospect.id, _dump(prospect))
        return prospect

    def create_prospect(self, payload: ProspectCreate) -> Prospect:
        now = datetime.now(timezone.utc)
        prospect = Prospect(
            id=uuid.uuid4().hex,
            fecha_contacto=now,
            created_at=now,
            **payload.model_dump(),
        )
        self._save(prospect)
        logger.info(
            f"Created prospect {prospect.id}",
            extra={"prospect_id": prospect.id, "plataforma": prospect.plataforma},
        )
        return prospect

    def get_all_prospects(self) -> List[Prospect]:
        return [self._load(doc.id, doc.data) for doc in self._store.list(self.COLLECTION)]

    def get_prospect_by_id(self, prospect_id: str) -> Prospect:
        return self._require(prospect_id)

    def update_prospect(self, prospect_id: str, changes: ProspectUpdate) -> Prospect:
        """
        Raises:
            NotFoundError: unknown prospect
        """
        current = self._require(prospect_id)
        updates = changes.model_dump(mode="json", by_alias=True, exclude_unset=True)
        if changes.responsable:
            updates["assignedTo"] = changes.responsable

        prospect = Prospect.model_validate({**_dump(current), **updates, "id": prospect_id})
        return self._save(prospect)

    def delete_prospect(self, prospect_id: str) -> None:
        self._require(prospect_id)
        self._store.delete(self.COLLECTION, prospect_id)
        logger.info(f"Deleted prospect {prospect_id}", extra={"prospect_id": prospect_id})

    def assign_prospect_to_user(self, prospect_id: str, user_id: str) -> Prospect:
        prospect = self._require(prospect_id)
        prospect.assigned_to = user_id
        prospect.responsable = user_id
        return self._save(prospect)

    def get_prospects_by_user(self, user_id: str) -> List[Prospect]:
        return [
            self._load(doc.id, doc.data)
            for doc in self._store.where(self.COLLECTION, "assignedTo", user_id)
        ]

    def add_follow_up(self, prospect_id: str, nota: str, usuario: str = "sistema") -> Prospect:
        """Prepend a follow-up note and stamp ultimoSeguimiento."""
        prospect = self._require(prospect_id)
        now = datetime.now(timezone.utc)
        follow_up = FollowUp(id=uuid.uuid4().hex, fecha=now, nota=nota, usuario=usuario)
        prospect.seguimientos = [follow_up] + prospect.seguimientos
        prospect.ultimo_seguimiento = now
        return self._save(prospect)

    def get_prospects_stats(self) -> ProspectStats:
        prospects = self.get_all_prospects()

        by_status = {status: 0 for status in PROSPECT_STATUSES}
        by_platform = {platform: 0 for platform in PLATFORMS}
        by_user: dict = {}

        for prospect in prospects:
            by_status[prospect.estado] += 1
            by_platform[prospect.plataforma] += 1
            owner = prospect.assigned_to or UNASSIGNED
            by_user[owner] = by_user.get(owner, 0) + 1

        return ProspectStats(
            total=len(prospects),
            by_status=by_status,
            by_platform=by_platform,
            by_user=by_user,
        )
