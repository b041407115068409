"""
AI Notes Backend: Route Dependencies
=====================================

What:  FastAPI dependencies that hand route handlers the objects the
       application factory placed on app.state, plus the caller's
       per-browser-session client objects.
"""

from fastapi import Depends, Request

from ainotes.client.auth_form import AuthForm
from ainotes.client.notes_client import NotesClient
from ainotes.client.registry import ClientRegistry
from ainotes.client.view import NotesView
from ainotes.config import Settings
from ainotes.services.data_service import DataServiceClient
from ainotes.services.llm_base import SummaryProvider


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_data_service(request: Request) -> DataServiceClient:
    return request.app.state.data_service


def get_summarizer(request: Request) -> SummaryProvider:
    return request.app.state.summarizer


def get_registry(request: Request) -> ClientRegistry:
    return request.app.state.registry


def get_notes_client(
    request: Request, registry: ClientRegistry = Depends(get_registry)
) -> NotesClient:
    """
    The caller's NotesClient, bound to the token the Session Gate resolved
    for this request (it may have just been refreshed).
    """
    client = registry.notes_client(request.state.browser_session_id)
    user = request.state.user
    client.bind_session(request.state.access_token, user.id if user else None)
    return client


def get_notes_view(
    request: Request,
    client: NotesClient = Depends(get_notes_client),
    registry: ClientRegistry = Depends(get_registry),
) -> NotesView:
    return registry.notes_view(request.state.browser_session_id)


def get_auth_form(
    request: Request, registry: ClientRegistry = Depends(get_registry)
) -> AuthForm:
    return registry.auth_form(request.state.browser_session_id)
