"""Notes tree stored in the ``notes`` table, plus the editor workspace state."""

from datetime import datetime

import structlog

from hpc_club.ai.generator import ContentGenerator
from hpc_club.exceptions import AIServiceError, NotFoundError, ValidationFailed
from hpc_club.models.error_entry import FlashcardDraft
from hpc_club.models.notes import (
    NoteCreate,
    NoteFile,
    NoteGenerateRequest,
    NoteInsights,
    NotesWorkspace,
    NoteType,
    NoteUpdate,
    extract_tags,
)
from hpc_club.storage.kv import NOTES_WORKSPACE_KEY, KeyValueStore
from hpc_club.storage.tables import TableStore

logger = structlog.get_logger()

NOTES_TABLE = "notes"
DEFAULT_NOTE_NAME = "Nova Nota"


def sort_notes(notes: list[NoteFile]) -> list[NoteFile]:
    """Folders first, then by name."""
    return sorted(notes, key=lambda n: (n.type != NoteType.FOLDER, n.name.lower()))


def descendant_ids(notes: list[NoteFile], root_id: str) -> set[str]:
    """Ids of every node below ``root_id`` (not including it)."""
    children: dict[str | None, list[str]] = {}
    for note in notes:
        children.setdefault(note.parent_id, []).append(note.id)
    found: set[str] = set()
    stack = list(children.get(root_id, []))
    while stack:
        node_id = stack.pop()
        if node_id in found:
            continue
        found.add(node_id)
        stack.extend(children.get(node_id, []))
    return found


def _to_note(row: dict) -> NoteFile:
    note = NoteFile(**row)
    if not note.tags and note.content:
        note.tags = extract_tags(note.content)
    return note


class NoteService:
    """CRUD for the notes tree and its AI helpers.

    Args:
        store: Table store.
        kv: Key-value store for the per-user workspace.
        generator: AI generator for the note helpers.
    """

    def __init__(
        self,
        store: TableStore,
        kv: KeyValueStore,
        generator: ContentGenerator | None = None,
    ):
        self.store = store
        self.kv = kv
        self.generator = generator

    def fetch(self, user_id: str) -> list[NoteFile]:
        return sort_notes([_to_note(r) for r in self.store.select(NOTES_TABLE, user_id, order_by=None)])

    def get(self, user_id: str, note_id: str) -> NoteFile:
        row = self.store.get(NOTES_TABLE, user_id, note_id)
        if row is None:
            raise NotFoundError("Nota não encontrada.")
        return _to_note(row)

    def _check_parent(self, user_id: str, parent_id: str | None) -> None:
        if parent_id is None:
            return
        row = self.store.get(NOTES_TABLE, user_id, parent_id)
        if row is None or row.get("type") != NoteType.FOLDER.value:
            raise ValidationFailed("parent_id", "A pasta de destino não existe.")

    def create(self, user_id: str, data: NoteCreate) -> NoteFile:
        self._check_parent(user_id, data.parent_id)
        name = (data.name or "").strip() or DEFAULT_NOTE_NAME
        content = data.content or ""
        now = datetime.now().isoformat()
        row = self.store.insert(NOTES_TABLE, user_id, {
            "parent_id": data.parent_id,
            "name": name,
            "type": data.type.value,
            "content": content,
            "pdf_data": data.pdf_data,
            "tags": extract_tags(content),
            "is_favorite": False,
            "updated_at": now,
        })
        logger.info("note_created", user_id=user_id, note_id=row["id"], type=data.type.value)
        return _to_note(row)

    def update(self, user_id: str, note_id: str, changes: NoteUpdate) -> NoteFile:
        """Rename, edit, (un)favorite or move a node.

        A move is requested with ``move=True``; ``parent_id=None`` then means
        the top level. A node cannot move under itself or its descendants.
        """
        current = self.get(user_id, note_id)
        values: dict = {"updated_at": datetime.now().isoformat()}

        if changes.name is not None:
            name = changes.name.strip()
            if not name:
                raise ValidationFailed("name", "O nome não pode ficar vazio.")
            values["name"] = name
        if changes.content is not None:
            values["content"] = changes.content
            values["tags"] = extract_tags(changes.content)
        if changes.is_favorite is not None:
            values["is_favorite"] = changes.is_favorite
        if changes.move:
            target = changes.parent_id
            if target is not None:
                if target == note_id or target in descendant_ids(self.fetch(user_id), note_id):
                    raise ValidationFailed("parent_id", "Não é possível mover uma pasta para dentro dela mesma.")
                self._check_parent(user_id, target)
            values["parent_id"] = target
            logger.info("note_moved", user_id=user_id, note_id=note_id, parent_id=target)

        row = self.store.update(NOTES_TABLE, user_id, current.id, values)
        if row is None:
            raise NotFoundError("Nota não encontrada.")
        return _to_note(row)

    def delete(self, user_id: str, note_id: str) -> list[str]:
        """Delete a node and everything below it; returns the deleted ids."""
        self.get(user_id, note_id)
        ids = {note_id} | descendant_ids(self.fetch(user_id), note_id)
        self.store.delete_many(NOTES_TABLE, user_id, ids)

        workspace = self.get_workspace(user_id)
        if workspace.apply_deletion(ids):
            self.save_workspace(user_id, workspace)
        logger.info("note_deleted", user_id=user_id, note_id=note_id, count=len(ids))
        return sorted(ids)

    def get_workspace(self, user_id: str) -> NotesWorkspace:
        data = self.kv.for_user(user_id).get(NOTES_WORKSPACE_KEY, {})
        return NotesWorkspace(**data)

    def save_workspace(self, user_id: str, workspace: NotesWorkspace) -> NotesWorkspace:
        self.kv.for_user(user_id).set(NOTES_WORKSPACE_KEY, workspace.model_dump(mode="json"))
        return workspace

    def _require_generator(self) -> ContentGenerator:
        if self.generator is None:
            raise AIServiceError("Recursos de IA indisponíveis.")
        return self.generator

    async def analyze(self, user_id: str, note_id: str) -> NoteInsights:
        note = self.get(user_id, note_id)
        if not (note.content or "").strip():
            return NoteInsights()
        return await self._require_generator().analyze_note(note.content)

    async def suggest_flashcards(self, user_id: str, note_id: str) -> list[FlashcardDraft]:
        note = self.get(user_id, note_id)
        if not (note.content or "").strip():
            return []
        return await self._require_generator().generate_flashcards_from_note(note.content)

    async def refine_text(self, text: str, instruction: str) -> str:
        if not text.strip():
            return text
        return await self._require_generator().refine_text(text, instruction)

    async def generate(self, user_id: str, request: NoteGenerateRequest) -> NoteFile:
        """Create a new note whose content is written by the AI."""
        topic = request.topic.strip()
        if not topic:
            raise ValidationFailed("topic", "Informe o tema da nota.")
        self._check_parent(user_id, request.parent_id)
        content = await self._require_generator().generate_note_content(topic)
        return self.create(user_id, NoteCreate(
            parent_id=request.parent_id,
            name=topic,
            content=content,
        ))
