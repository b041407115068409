"""
AI Notes Backend: Notes Client State
=====================================

What:  Immutable snapshots of everything the notes page shows.
Why:   Every change goes through an action that returns a NEW snapshot, so
       the rendering layer can diff old against new field by field.
How:   Frozen pydantic models; actions use model_copy(update=...).

Snapshot Layout:
    NotesState
    ├── notes          tuple of Note, newest first (local cache)
    ├── loaded / loading / load_error
    ├── create         FormDialogState  (fields + pending + error)
    ├── edit           FormDialogState  (target = note id)
    ├── delete         DialogState      (target = note id)
    ├── summary        SummaryDialogState (target = note id shown)
    └── updating / deleting / summarizing   note ids with a call in flight
"""

from typing import FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from ainotes.schemas.note import Note


class DialogState(BaseModel):
    """Visibility, target, error and pending flag of one dialog."""

    model_config = ConfigDict(frozen=True)

    open: bool = False
    target: Optional[str] = None
    error: Optional[str] = None
    pending: bool = False


class FormDialogState(DialogState):
    """A dialog that also holds form field values (create, edit)."""

    title: str = ""
    content: str = ""


class SummaryDialogState(DialogState):
    summary: Optional[str] = None


class NotesState(BaseModel):
    model_config = ConfigDict(frozen=True)

    notes: Tuple[Note, ...] = ()
    loaded: bool = False
    loading: bool = False
    load_error: Optional[str] = None

    create: FormDialogState = FormDialogState()
    edit: FormDialogState = FormDialogState()
    delete: DialogState = DialogState()
    summary: SummaryDialogState = SummaryDialogState()

    updating: FrozenSet[str] = frozenset()
    deleting: FrozenSet[str] = frozenset()
    summarizing: FrozenSet[str] = frozenset()

    def note(self, note_id: str) -> Optional[Note]:
        for note in self.notes:
            if note.id == note_id:
                return note
        return None

    # Controls are disabled per entity, never globally
    def can_edit(self, note_id: str) -> bool:
        return note_id not in self.updating

    def can_delete(self, note_id: str) -> bool:
        return note_id not in self.deleting

    def can_summarize(self, note_id: str) -> bool:
        return note_id not in self.summarizing
