"""Study materials tracked by chapter, kept in the key-value store."""

import uuid
from datetime import datetime

import structlog

from hpc_club.exceptions import NotFoundError, ValidationFailed
from hpc_club.models.planner import MaterialCreate, StudyMaterial
from hpc_club.storage.kv import MATERIALS_KEY, KeyValueStore

logger = structlog.get_logger()


class MaterialService:
    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    def fetch(self, user_id: str) -> list[StudyMaterial]:
        return [StudyMaterial(**m) for m in self.kv.for_user(user_id).get(MATERIALS_KEY, [])]

    def _save(self, user_id: str, materials: list[StudyMaterial]) -> None:
        self.kv.for_user(user_id).set(
            MATERIALS_KEY, [m.model_dump(mode="json") for m in materials]
        )

    def create(self, user_id: str, data: MaterialCreate) -> StudyMaterial:
        if not data.title.strip():
            raise ValidationFailed("title", "Informe o título do material.")
        material = StudyMaterial(
            id=str(uuid.uuid4()),
            title=data.title.strip(),
            subject=data.subject,
            total_chapters=data.total_chapters,
        )
        self._save(user_id, [material, *self.fetch(user_id)])
        logger.info("material_created", user_id=user_id, material_id=material.id)
        return material

    def update_progress(self, user_id: str, material_id: str, delta: int) -> StudyMaterial:
        """Move the chapter counter by ``delta``, clamped to [0, total_chapters]."""
        materials = self.fetch(user_id)
        for material in materials:
            if material.id == material_id:
                material.current_chapter = max(
                    0, min(material.total_chapters, material.current_chapter + delta)
                )
                material.last_updated = datetime.now()
                self._save(user_id, materials)
                return material
        raise NotFoundError("Material não encontrado.")

    def delete(self, user_id: str, material_id: str) -> None:
        materials = self.fetch(user_id)
        kept = [m for m in materials if m.id != material_id]
        if len(kept) == len(materials):
            raise NotFoundError("Material não encontrado.")
        self._save(user_id, kept)
