"""Notes tree models."""

import re
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

TAG_PATTERN = re.compile(r"#[\wÀ-ÿ]+")


def extract_tags(content: str | None) -> list[str]:
    if not content:
        return []
    return TAG_PATTERN.findall(content)


class NoteType(StrEnum):
    FOLDER = "folder"
    MARKDOWN = "markdown"
    PDF = "pdf"


class NoteFile(BaseModel):
    """A node in the notes tree; parent_id None means top level."""

    id: str
    parent_id: str | None = None
    name: str
    type: NoteType = NoteType.MARKDOWN
    content: str | None = None
    pdf_data: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_favorite: bool = False
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class NoteCreate(BaseModel):
    parent_id: str | None = None
    name: str | None = None
    type: NoteType = NoteType.MARKDOWN
    content: str | None = None
    pdf_data: str | None = None


class NoteUpdate(BaseModel):
    name: str | None = None
    content: str | None = None
    parent_id: str | None = None
    is_favorite: bool | None = None
    move: bool = False  # parent_id=None is ambiguous without this flag


class NotesWorkspace(BaseModel):
    """Editor state: which note is open and which folders are expanded."""

    active_note_id: str | None = None
    open_pdf_id: str | None = None
    expanded_folders: list[str] = Field(default_factory=list)

    def apply_deletion(self, deleted_ids: set[str]) -> bool:
        """Drop references to deleted nodes. Returns True if anything changed."""
        changed = False
        if self.active_note_id in deleted_ids:
            self.active_note_id = None
            changed = True
        if self.open_pdf_id in deleted_ids:
            self.open_pdf_id = None
            changed = True
        kept = [f for f in self.expanded_folders if f not in deleted_ids]
        if len(kept) != len(self.expanded_folders):
            self.expanded_folders = kept
            changed = True
        return changed


class NoteInsights(BaseModel):
    summary: str = ""
    keywords: list[str] = Field(default_factory=list)


class RefineRequest(BaseModel):
    text: str
    instruction: str = "improve"


class NoteGenerateRequest(BaseModel):
    topic: str
    parent_id: str | None = None
