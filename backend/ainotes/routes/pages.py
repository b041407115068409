"""
AI Notes Backend: Notes Page Routes
====================================

What:  The protected notes page and every action on it.
How:   GET / renders the caller's NotesView. Each form post drives one
       NotesClient operation and answers 303 See Other back to the page
       (post/redirect/get), so a reload never repeats a mutation.

Form Posts:
    POST /notes/create/open       POST /notes/{id}/delete/open
    POST /notes/create/close      POST /notes/delete/confirm
    POST /notes                   POST /notes/delete/cancel
    POST /notes/{id}/edit/open    POST /notes/{id}/summarize
    POST /notes/edit/close        POST /notes/summary/close
    POST /notes/{id}/edit         POST /notes/refresh
    POST /logout
"""

import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from ainotes.client.notes_client import NotesClient
from ainotes.client.registry import ClientRegistry
from ainotes.client.view import NotesView
from ainotes.config import Settings
from ainotes.dependencies import (
    get_app_settings,
    get_notes_client,
    get_notes_view,
    get_registry,
)
from ainotes.middleware.session_gate import clear_session_cookies

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Pages"])


def _back(settings: Settings) -> RedirectResponse:
    return RedirectResponse(settings.home_path, status_code=303)


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def notes_page(
    request: Request,
    client: NotesClient = Depends(get_notes_client),
    view: NotesView = Depends(get_notes_view),
) -> HTMLResponse:
    await client.ensure_loaded()
    return HTMLResponse(view.render(user=request.state.user))


@router.post("/notes/refresh", include_in_schema=False)
async def refresh_notes(
    client: NotesClient = Depends(get_notes_client),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    await client.list_notes()
    return _back(settings)


# ── Create ────────────────────────────────────────────────────────────────

@router.post("/notes/create/open", include_in_schema=False)
async def open_create(
    client: NotesClient = Depends(get_notes_client),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    client.open_create()
    return _back(settings)


@router.post("/notes/create/close", include_in_schema=False)
async def close_create(
    client: NotesClient = Depends(get_notes_client),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    client.close_create()
    return _back(settings)


@router.post("/notes", include_in_schema=False)
async def create_note(
    title: str = Form(""),
    content: str = Form(""),
    client: NotesClient = Depends(get_notes_client),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    await client.create_note(title, content)
    return _back(settings)


# ── Edit ──────────────────────────────────────────────────────────────────

@router.post("/notes/edit/close", include_in_schema=False)
async def close_edit(
    client: NotesClient = Depends(get_notes_client),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    client.close_edit()
    return _back(settings)


@router.post("/notes/{note_id}/edit/open", include_in_schema=False)
async def open_edit(
    note_id: str,
    client: NotesClient = Depends(get_notes_client),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    client.open_edit(note_id)
    return _back(settings)


@router.post("/notes/{note_id}/edit", include_in_schema=False)
async def update_note(
    note_id: str,
    title: str = Form(""),
    content: str = Form(""),
    client: NotesClient = Depends(get_notes_client),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    await client.update_note(note_id, title, content)
    return _back(settings)


# ── Delete ────────────────────────────────────────────────────────────────

@router.post("/notes/delete/confirm", include_in_schema=False)
async def confirm_delete(
    client: NotesClient = Depends(get_notes_client),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    await client.confirm_delete()
    return _back(settings)


@router.post("/notes/delete/cancel", include_in_schema=False)
async def cancel_delete(
    client: NotesClient = Depends(get_notes_client),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    client.cancel_delete()
    return _back(settings)


@router.post("/notes/{note_id}/delete/open", include_in_schema=False)
async def open_delete(
    note_id: str,
    client: NotesClient = Depends(get_notes_client),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    client.open_delete(note_id)
    return _back(settings)


# ── Summary ───────────────────────────────────────────────────────────────

@router.post("/notes/summary/close", include_in_schema=False)
async def close_summary(
    client: NotesClient = Depends(get_notes_client),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    client.close_summary()
    return _back(settings)


@router.post("/notes/{note_id}/summarize", include_in_schema=False)
async def summarize_note(
    note_id: str,
    client: NotesClient = Depends(get_notes_client),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    await client.summarize(note_id)
    return _back(settings)


# ── Session ───────────────────────────────────────────────────────────────

@router.post("/logout", include_in_schema=False)
async def logout(
    request: Request,
    client: NotesClient = Depends(get_notes_client),
    registry: ClientRegistry = Depends(get_registry),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    await client.sign_out()
    registry.discard(request.state.browser_session_id)

    response = RedirectResponse(settings.login_path, status_code=303)
    clear_session_cookies(response, settings)
    request.state.session_cookies_written = True
    logger.info("User signed out")
    return response
