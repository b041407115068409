"""
AI Notes Backend: Login Page Routes
====================================

What:  The public-only login page hosting the Auth Form.

    GET  /login          render the form (sign-in or sign-up mode)
    POST /login          submit; on sign-in success store the session
                         cookies and go back to /login, where the Session
                         Gate forwards the now signed-in user to /
    POST /login/toggle   switch mode
"""

import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from ainotes.client.auth_form import AuthForm
from ainotes.client.registry import ClientRegistry
from ainotes.config import Settings
from ainotes.dependencies import get_app_settings, get_auth_form, get_registry
from ainotes.middleware.session_gate import set_session_cookies

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.get("/login", response_class=HTMLResponse, include_in_schema=False)
async def login_page(
    form: AuthForm = Depends(get_auth_form),
    registry: ClientRegistry = Depends(get_registry),
) -> HTMLResponse:
    template = registry.env.get_template("login.html")
    return HTMLResponse(template.render(form=form.state))


@router.post("/login", include_in_schema=False)
async def submit_login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    form: AuthForm = Depends(get_auth_form),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    session = await form.submit(email, password)
    response = RedirectResponse(settings.login_path, status_code=303)
    if session is not None:
        set_session_cookies(response, session, settings)
        request.state.session_cookies_written = True
        logger.info("User signed in")
    return response


@router.post("/login/toggle", include_in_schema=False)
async def toggle_mode(
    form: AuthForm = Depends(get_auth_form),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    form.toggle()
    return RedirectResponse(settings.login_path, status_code=303)
