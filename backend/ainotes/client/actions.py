"""
AI Notes Backend: Notes Client Actions
=======================================

What:  The complete set of state transitions of the notes page.
How:   Each action is a pure function (state, ...) -> new state. The Store
       applies them; NotesClient decides which one to dispatch around each
       Data Service / summary call.

Invariants kept here:
    - Opening a dialog resets its error
    - Every *_failed action clears the pending flag its *_started set
    - Closing the summary dialog clears text, error and in-flight tracking
    - Cache updates are last-write-wins: prepend on create, replace in place
      on update, remove on delete
"""

from typing import Iterable

from ainotes.client.state import DialogState, FormDialogState, NotesState, SummaryDialogState
from ainotes.schemas.note import Note


# ── List ──────────────────────────────────────────────────────────────────

def load_started(state: NotesState) -> NotesState:
    return state.model_copy(update={"loading": True, "load_error": None})


def load_succeeded(state: NotesState, notes: Iterable[Note]) -> NotesState:
    return state.model_copy(
        update={"notes": tuple(notes), "loaded": True, "loading": False, "load_error": None}
    )


def load_failed(state: NotesState, message: str) -> NotesState:
    return state.model_copy(update={"loaded": True, "loading": False, "load_error": message})


# ── Create ────────────────────────────────────────────────────────────────

def create_opened(state: NotesState) -> NotesState:
    return state.model_copy(
        update={"create": state.create.model_copy(update={"open": True, "error": None})}
    )


def create_closed(state: NotesState) -> NotesState:
    # An in-flight create keeps its pending flag until it resolves
    return state.model_copy(
        update={"create": FormDialogState(pending=state.create.pending)}
    )


def create_started(state: NotesState, title: str, content: str) -> NotesState:
    return state.model_copy(
        update={
            "create": state.create.model_copy(
                update={"title": title, "content": content, "error": None, "pending": True}
            )
        }
    )


def create_succeeded(state: NotesState, note: Note) -> NotesState:
    return state.model_copy(
        update={"notes": (note,) + state.notes, "create": FormDialogState()}
    )


def create_failed(state: NotesState, message: str, title: str, content: str) -> NotesState:
    return state.model_copy(
        update={
            "create": state.create.model_copy(
                update={
                    "open": True,
                    "title": title,
                    "content": content,
                    "error": message,
                    "pending": False,
                }
            )
        }
    )


# ── Update ────────────────────────────────────────────────────────────────

def edit_opened(state: NotesState, note: Note) -> NotesState:
    return state.model_copy(
        update={
            "edit": FormDialogState(
                open=True,
                target=note.id,
                title=note.title,
                content=note.content,
                pending=note.id in state.updating,
            )
        }
    )


def edit_closed(state: NotesState) -> NotesState:
    return state.model_copy(update={"edit": FormDialogState()})


def edit_started(state: NotesState, note_id: str, title: str, content: str) -> NotesState:
    return state.model_copy(
        update={
            "edit": state.edit.model_copy(
                update={"title": title, "content": content, "error": None, "pending": True}
            ),
            "updating": state.updating | {note_id},
        }
    )


def edit_succeeded(state: NotesState, note: Note) -> NotesState:
    notes = tuple(note if existing.id == note.id else existing for existing in state.notes)
    edit = FormDialogState() if state.edit.target == note.id else state.edit
    return state.model_copy(
        update={"notes": notes, "edit": edit, "updating": state.updating - {note.id}}
    )


def edit_failed(
    state: NotesState, note_id: str, message: str, title: str, content: str
) -> NotesState:
    edit = state.edit
    if edit.target == note_id:
        edit = edit.model_copy(
            update={
                "open": True,
                "title": title,
                "content": content,
                "error": message,
                "pending": False,
            }
        )
    return state.model_copy(update={"edit": edit, "updating": state.updating - {note_id}})


# ── Delete ────────────────────────────────────────────────────────────────

def delete_opened(state: NotesState, note_id: str) -> NotesState:
    return state.model_copy(
        update={
            "delete": DialogState(
                open=True, target=note_id, pending=note_id in state.deleting
            )
        }
    )


def delete_cancelled(state: NotesState) -> NotesState:
    return state.model_copy(update={"delete": DialogState()})


def delete_started(state: NotesState, note_id: str) -> NotesState:
    return state.model_copy(
        update={
            "delete": state.delete.model_copy(update={"error": None, "pending": True}),
            "deleting": state.deleting | {note_id},
        }
    )


def delete_succeeded(state: NotesState, note_id: str) -> NotesState:
    delete = DialogState() if state.delete.target == note_id else state.delete
    edit = FormDialogState() if state.edit.target == note_id else state.edit
    return state.model_copy(
        update={
            "notes": tuple(note for note in state.notes if note.id != note_id),
            "delete": delete,
            "edit": edit,
            "deleting": state.deleting - {note_id},
            "updating": state.updating - {note_id},
            "summarizing": state.summarizing - {note_id},
        }
    )


def delete_failed(state: NotesState, note_id: str, message: str) -> NotesState:
    delete = state.delete
    if delete.target == note_id:
        delete = delete.model_copy(update={"open": True, "error": message, "pending": False})
    return state.model_copy(update={"delete": delete, "deleting": state.deleting - {note_id}})


# ── Summarize ─────────────────────────────────────────────────────────────

def summarize_started(state: NotesState, note_id: str) -> NotesState:
    return state.model_copy(
        update={
            "summary": state.summary.model_copy(
                update={"summary": None, "error": None, "pending": True}
            ),
            "summarizing": state.summarizing | {note_id},
        }
    )


def summarize_succeeded(state: NotesState, note_id: str, summary: str) -> NotesState:
    remaining = state.summarizing - {note_id}
    return state.model_copy(
        update={
            "summary": SummaryDialogState(
                open=True, target=note_id, summary=summary, pending=bool(remaining)
            ),
            "summarizing": remaining,
        }
    )


def summarize_failed(state: NotesState, note_id: str, message: str) -> NotesState:
    remaining = state.summarizing - {note_id}
    return state.model_copy(
        update={
            "summary": SummaryDialogState(
                open=True, target=note_id, error=message, pending=bool(remaining)
            ),
            "summarizing": remaining,
        }
    )


def summary_closed(state: NotesState) -> NotesState:
    return state.model_copy(
        update={"summary": SummaryDialogState(), "summarizing": frozenset()}
    )


# ── Session ───────────────────────────────────────────────────────────────

def session_reset(state: NotesState) -> NotesState:
    """Drop everything cached for the previous user."""
    return NotesState()
