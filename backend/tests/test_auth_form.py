"""
AI Notes Backend: Auth Form Tests
==================================

What we test:
    ✅ Sign-in success returns the session; failure shows the error
    ✅ Sign-up success shows the confirmation message and switches to sign-in
    ✅ Toggle switches mode and clears fields and messages
    ✅ Empty email or password is rejected without a network call
"""

import pytest

from ainotes.client.auth_form import MISSING_FIELDS, SIGN_UP_SUCCESS, AuthMode

from tests.conftest import USER_EMAIL, USER_PASSWORD


class TestAuthForm:
    @pytest.mark.asyncio
    async def test_sign_in_success(self, auth_form):
        """A valid sign-in returns the session and leaves no error."""
        session = await auth_form.submit(USER_EMAIL, USER_PASSWORD)

        assert session is not None
        assert session.user.email == USER_EMAIL
        assert auth_form.state.error is None
        assert auth_form.state.pending is False

    @pytest.mark.asyncio
    async def test_sign_in_failure_shows_error(self, auth_form):
        """The identity API's message is shown on a failed sign-in."""
        session = await auth_form.submit(USER_EMAIL, "wrong")

        assert session is None
        assert auth_form.state.error == "Invalid login credentials"
        assert auth_form.state.email == USER_EMAIL
        assert auth_form.state.pending is False

    @pytest.mark.asyncio
    async def test_sign_up_success_switches_to_sign_in(self, auth_form, fake_supabase):
        """Sign-up shows the confirmation message and switches to sign-in."""
        auth_form.toggle()
        assert auth_form.state.mode == AuthMode.SIGN_UP

        session = await auth_form.submit("new@example.com", "pw123456")

        assert session is None
        assert auth_form.state.mode == AuthMode.SIGN_IN
        assert auth_form.state.message == SIGN_UP_SUCCESS
        assert auth_form.state.email == ""
        assert "new@example.com" in fake_supabase.users

    @pytest.mark.asyncio
    async def test_sign_up_failure_stays_in_sign_up(self, auth_form):
        """A rejected sign-up keeps the form in sign-up mode with the error."""
        auth_form.toggle()
        await auth_form.submit(USER_EMAIL, "pw")

        assert auth_form.state.mode == AuthMode.SIGN_UP
        assert auth_form.state.error == "User already registered"
        assert auth_form.state.message is None

    @pytest.mark.asyncio
    async def test_toggle_clears_state(self, auth_form):
        """Switching mode clears error and message."""
        await auth_form.submit(USER_EMAIL, "wrong")
        auth_form.toggle()

        state = auth_form.state
        assert state.mode == AuthMode.SIGN_UP
        assert (state.email, state.error, state.message) == ("", None, None)

        auth_form.toggle()
        assert auth_form.state.mode == AuthMode.SIGN_IN

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email,password", [("", "pw"), ("  ", "pw"), (USER_EMAIL, "")])
    async def test_missing_fields_no_network_call(self, auth_form, fake_supabase, email, password):
        """Empty email or password is rejected without calling the identity API."""
        await auth_form.submit(email, password)

        assert auth_form.state.error == MISSING_FIELDS
        assert fake_supabase.requests == []
