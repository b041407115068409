"""
AI Notes Backend: Notes Client
===============================

What:  Controller for the notes page of one browser session.
Why:   Keeps the page's behaviour (validation, pending flags, dialog
       transitions, fallback error messages) out of the HTTP handlers so it
       can be driven and tested directly.
How:   Every operation dispatches a *_started action, awaits exactly one
       collaborator call, then dispatches *_succeeded or *_failed.
       Collaborator errors (AINotesError) are converted to dialog errors at
       the call site and never propagate to the page.

Concurrency:
    Mutations against different notes are independent. A second request for
    a note that already has one in flight is ignored, never queued. Results
    that arrive after their dialog was dismissed (or their note deleted) are
    dropped.
"""

import logging
from typing import Optional

from ainotes.client import actions
from ainotes.client.gateways import SummaryGateway
from ainotes.client.state import NotesState
from ainotes.client.store import Store
from ainotes.exceptions import AINotesError
from ainotes.schemas.note import NoteCreate, NoteUpdate
from ainotes.services.data_service import DataServiceClient

logger = logging.getLogger(__name__)

FETCH_FAILED = "Failed to fetch notes. Please try again."
CREATE_FAILED = "Failed to create note. Please try again."
UPDATE_FAILED = "Failed to update note."
DELETE_FAILED = "Failed to delete note. Please try again."
SUMMARY_FAILED = "Failed to get summary."
EMPTY_FIELDS = "Title and content cannot be empty."
NOT_SIGNED_IN = "You must be signed in to create notes."


def _message(error: AINotesError, fallback: str) -> str:
    return error.message or fallback


class NotesClient:
    """
    Args:
        data:      Data Service client (shared, owned by the application)
        summaries: Route to the Summarize Proxy
        store:     Optional pre-built store (tests inject one to observe it)
    """

    def __init__(
        self,
        data: DataServiceClient,
        summaries: SummaryGateway,
        store: Optional[Store[NotesState]] = None,
    ):
        self.data = data
        self.summaries = summaries
        self.store = store or Store(NotesState())
        self.access_token: Optional[str] = None
        self.user_id: Optional[str] = None

    @property
    def state(self) -> NotesState:
        return self.store.state

    def bind_session(self, access_token: Optional[str], user_id: Optional[str]) -> None:
        """
        Attach the caller's credentials for the next collaborator calls.

        The Session Gate may rotate the access token on any request, so this
        runs before every operation. A different user wipes the cache.
        """
        if self.user_id is not None and user_id != self.user_id:
            logger.info("Session user changed; resetting notes state")
            self.store.dispatch(actions.session_reset)
        self.access_token = access_token
        self.user_id = user_id

    # ── List ──────────────────────────────────────────────────────────────

    async def list_notes(self) -> None:
        self.store.dispatch(actions.load_started)
        try:
            notes = await self.data.select_notes(self.access_token)
        except AINotesError as e:
            logger.error("Fetching notes failed: %s", e.message)
            self.store.dispatch(actions.load_failed, FETCH_FAILED)
            return
        self.store.dispatch(actions.load_succeeded, notes)
        logger.info("Loaded %d notes", len(notes))

    async def ensure_loaded(self) -> None:
        """Run List once per session; later calls reuse the cache."""
        if not self.state.loaded and not self.state.loading:
            await self.list_notes()

    # ── Create ────────────────────────────────────────────────────────────

    def open_create(self) -> None:
        self.store.dispatch(actions.create_opened)

    def close_create(self) -> None:
        self.store.dispatch(actions.create_closed)

    async def create_note(self, title: str, content: str) -> None:
        if self.state.create.pending:
            logger.debug("Create already in flight; ignoring")
            return

        title, content = title.strip(), content.strip()
        if not title or not content:
            self.store.dispatch(actions.create_failed, EMPTY_FIELDS, title, content)
            return
        if not self.user_id:
            self.store.dispatch(actions.create_failed, NOT_SIGNED_IN, title, content)
            return

        self.store.dispatch(actions.create_started, title, content)
        try:
            note = await self.data.insert_note(
                self.access_token,
                NoteCreate(title=title, content=content, user_id=self.user_id),
            )
        except AINotesError as e:
            logger.error("Creating note failed: %s", e.message)
            self.store.dispatch(
                actions.create_failed, _message(e, CREATE_FAILED), title, content
            )
            return
        self.store.dispatch(actions.create_succeeded, note)
        logger.info("Created note %s", note.id)

    # ── Update ────────────────────────────────────────────────────────────

    def open_edit(self, note_id: str) -> None:
        note = self.state.note(note_id)
        if note is None:
            logger.warning("Edit requested for unknown note %s", note_id)
            return
        self.store.dispatch(actions.edit_opened, note)

    def close_edit(self) -> None:
        self.store.dispatch(actions.edit_closed)

    async def update_note(self, note_id: str, title: str, content: str) -> None:
        edit = self.state.edit
        if not edit.open or edit.target != note_id:
            logger.warning("Update for note %s without an open edit dialog", note_id)
            return
        if not self.state.can_edit(note_id):
            logger.debug("Update of note %s already in flight; ignoring", note_id)
            return

        title, content = title.strip(), content.strip()
        if not title or not content:
            self.store.dispatch(actions.edit_failed, note_id, EMPTY_FIELDS, title, content)
            return

        self.store.dispatch(actions.edit_started, note_id, title, content)
        try:
            note = await self.data.update_note(
                self.access_token, note_id, NoteUpdate(title=title, content=content)
            )
        except AINotesError as e:
            logger.error("Updating note %s failed: %s", note_id, e.message)
            self.store.dispatch(
                actions.edit_failed, note_id, _message(e, UPDATE_FAILED), title, content
            )
            return
        self.store.dispatch(actions.edit_succeeded, note)
        logger.info("Updated note %s", note_id)

    # ── Delete ────────────────────────────────────────────────────────────

    def open_delete(self, note_id: str) -> None:
        if self.state.note(note_id) is None:
            logger.warning("Delete requested for unknown note %s", note_id)
            return
        self.store.dispatch(actions.delete_opened, note_id)

    def cancel_delete(self) -> None:
        self.store.dispatch(actions.delete_cancelled)

    async def confirm_delete(self) -> None:
        note_id = self.state.delete.target
        if not self.state.delete.open or note_id is None:
            return
        if not self.state.can_delete(note_id):
            logger.debug("Delete of note %s already in flight; ignoring", note_id)
            return

        self.store.dispatch(actions.delete_started, note_id)
        try:
            await self.data.delete_note(self.access_token, note_id)
        except AINotesError as e:
            logger.error("Deleting note %s failed: %s", note_id, e.message)
            self.store.dispatch(actions.delete_failed, note_id, _message(e, DELETE_FAILED))
            return
        self.store.dispatch(actions.delete_succeeded, note_id)
        logger.info("Deleted note %s", note_id)

    # ── Summarize ─────────────────────────────────────────────────────────

    async def summarize(self, note_id: str) -> None:
        note = self.state.note(note_id)
        if note is None:
            logger.warning("Summary requested for unknown note %s", note_id)
            return
        if not self.state.can_summarize(note_id):
            logger.debug("Summary of note %s already in flight; ignoring", note_id)
            return

        self.store.dispatch(actions.summarize_started, note_id)
        try:
            summary = await self.summaries.request_summary(note.content)
        except AINotesError as e:
            logger.error("Summarizing note %s failed: %s", note_id, e.message)
            if note_id in self.state.summarizing:
                self.store.dispatch(
                    actions.summarize_failed, note_id, _message(e, SUMMARY_FAILED)
                )
            return

        if note_id not in self.state.summarizing:
            logger.info("Discarding summary of note %s; dialog was dismissed", note_id)
            return
        self.store.dispatch(actions.summarize_succeeded, note_id, summary)

    def close_summary(self) -> None:
        self.store.dispatch(actions.summary_closed)

    # ── Session ───────────────────────────────────────────────────────────

    async def sign_out(self) -> None:
        """
        End the session at the identity API.

        A failure is logged and otherwise ignored: the web layer clears the
        cookies regardless, which is what signs the browser out.
        """
        if self.access_token:
            try:
                await self.data.sign_out(self.access_token)
            except AINotesError as e:
                logger.warning("Sign-out at the identity API failed: %s", e.message)
        self.store.dispatch(actions.session_reset)
        self.access_token = None
        self.user_id = None
