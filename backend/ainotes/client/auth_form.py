"""
AI Notes Backend: Auth Form
============================

What:  State and behaviour of the login page's sign-in / sign-up form.
How:   Same pattern as the notes page: a frozen AuthFormState in a Store,
       changed only through the pure actions below.

Mode Transitions:
    sign_in ──toggle──▶ sign_up ──toggle──▶ sign_in
                         │
                         └── sign-up success ──▶ sign_in (with message)

The password is never kept in state; it only flows into the identity call.
"""

import logging
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from ainotes.client.store import Store
from ainotes.exceptions import AINotesError
from ainotes.schemas.auth import AuthSession
from ainotes.services.data_service import DataServiceClient

logger = logging.getLogger(__name__)

SIGN_UP_SUCCESS = "Sign up successful! Please check your email to confirm your account."
MISSING_FIELDS = "Email and password are required."
AUTH_FAILED = "Authentication failed. Please try again."


class AuthMode(str, Enum):
    SIGN_IN = "sign_in"
    SIGN_UP = "sign_up"


class AuthFormState(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: AuthMode = AuthMode.SIGN_IN
    email: str = ""
    error: Optional[str] = None
    message: Optional[str] = None
    pending: bool = False


# ── Actions ───────────────────────────────────────────────────────────────

def toggled(state: AuthFormState) -> AuthFormState:
    mode = AuthMode.SIGN_UP if state.mode == AuthMode.SIGN_IN else AuthMode.SIGN_IN
    return AuthFormState(mode=mode)


def submit_started(state: AuthFormState, email: str) -> AuthFormState:
    return state.model_copy(
        update={"email": email, "error": None, "message": None, "pending": True}
    )


def submit_failed(state: AuthFormState, email: str, message: str) -> AuthFormState:
    return state.model_copy(
        update={"email": email, "error": message, "message": None, "pending": False}
    )


def sign_up_succeeded(state: AuthFormState) -> AuthFormState:
    return AuthFormState(mode=AuthMode.SIGN_IN, message=SIGN_UP_SUCCESS)


def sign_in_succeeded(state: AuthFormState) -> AuthFormState:
    return AuthFormState(mode=AuthMode.SIGN_IN)


# ── Controller ────────────────────────────────────────────────────────────

class AuthForm:
    def __init__(self, data: DataServiceClient, store: Optional[Store[AuthFormState]] = None):
        self.data = data
        self.store = store or Store(AuthFormState())

    @property
    def state(self) -> AuthFormState:
        return self.store.state

    def toggle(self) -> None:
        """Switch between sign-in and sign-up, clearing fields and messages."""
        self.store.dispatch(toggled)

    async def submit(self, email: str, password: str) -> Optional[AuthSession]:
        """
        Run sign-in or sign-up depending on the current mode.

        Returns:
            The new session after a successful sign-in, otherwise None (the
            outcome is then in state.error or state.message).
        """
        if self.state.pending:
            return None

        email = email.strip()
        if not email or not password:
            self.store.dispatch(submit_failed, email, MISSING_FIELDS)
            return None

        self.store.dispatch(submit_started, email)
        if self.state.mode == AuthMode.SIGN_UP:
            try:
                await self.data.sign_up(email, password)
            except AINotesError as e:
                logger.warning("Sign-up rejected: %s", e.message)
                self.store.dispatch(submit_failed, email, e.message or AUTH_FAILED)
                return None
            logger.info("Sign-up accepted; awaiting email confirmation")
            self.store.dispatch(sign_up_succeeded)
            return None

        try:
            session = await self.data.sign_in_with_password(email, password)
        except AINotesError as e:
            logger.warning("Sign-in rejected: %s", e.message)
            self.store.dispatch(submit_failed, email, e.message or AUTH_FAILED)
            return None
        self.store.dispatch(sign_in_succeeded)
        return session
