"""
AI Notes Backend: Client Registry
==================================

What:  In-process map from browser-session id to that browser's NotesClient,
       NotesView and AuthForm.
Why:   The page is server-rendered across many requests; the client state
       (cache, dialogs, pending flags) must survive between them.
How:   OrderedDict used as an LRU. The least recently used session is evicted
       once `max_sessions` is exceeded. Not shared across processes.
"""

import logging
import secrets
from collections import OrderedDict
from typing import Optional

import jinja2

from ainotes.client.auth_form import AuthForm
from ainotes.client.gateways import SummaryGateway
from ainotes.client.notes_client import NotesClient
from ainotes.client.view import NotesView, create_environment
from ainotes.services.data_service import DataServiceClient

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    return secrets.token_urlsafe(16)


class _Entry:
    __slots__ = ("notes", "view", "auth")

    def __init__(self):
        self.notes: Optional[NotesClient] = None
        self.view: Optional[NotesView] = None
        self.auth: Optional[AuthForm] = None


class ClientRegistry:
    def __init__(
        self,
        data: DataServiceClient,
        summaries: SummaryGateway,
        env: Optional[jinja2.Environment] = None,
        max_sessions: int = 1000,
    ):
        self.data = data
        self.summaries = summaries
        self.env = env or create_environment()
        self.max_sessions = max_sessions
        self._entries: "OrderedDict[str, _Entry]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, sid: str) -> bool:
        return sid in self._entries

    def _entry(self, sid: str) -> _Entry:
        entry = self._entries.get(sid)
        if entry is None:
            entry = _Entry()
            self._entries[sid] = entry
            if len(self._entries) > self.max_sessions:
                evicted, _ = self._entries.popitem(last=False)
                logger.info("Evicted client state of browser session %s", evicted[:8])
        else:
            self._entries.move_to_end(sid)
        return entry

    def notes_client(self, sid: str) -> NotesClient:
        entry = self._entry(sid)
        if entry.notes is None:
            entry.notes = NotesClient(self.data, self.summaries)
        return entry.notes

    def notes_view(self, sid: str) -> NotesView:
        entry = self._entry(sid)
        if entry.view is None:
            entry.view = NotesView(self.notes_client(sid).store, self.env)
        return entry.view

    def auth_form(self, sid: str) -> AuthForm:
        entry = self._entry(sid)
        if entry.auth is None:
            entry.auth = AuthForm(self.data)
        return entry.auth

    def discard(self, sid: str) -> None:
        entry = self._entries.pop(sid, None)
        if entry is not None and entry.view is not None:
            entry.view.close()
