"""
AI Notes Backend: Identity Schemas
===================================

What:  Models for the identity API's user and session payloads.
Why:   The app only needs "is a user present", the user's id, and the token
       pair to put in cookies. Everything else in the payload is ignored.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class User(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    email: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_identifier(cls, v: Any) -> str:
        return str(v)


class AuthSession(BaseModel):
    """
    What:  Token pair issued by sign-in or refresh.

    access_token:  Short-lived JWT sent as the bearer credential on row calls
    refresh_token: Long-lived token traded for a new pair when access expires
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    access_token: str
    refresh_token: str
    expires_in: Optional[int] = Field(default=None, description="Access token lifetime (s)")
    user: Optional[User] = None


class SignUpResult(BaseModel):
    """
    What:  Outcome of a sign-up call.

    When email confirmation is enabled the identity API returns the user but
    no session; the Auth Form then tells the user to check their inbox.
    """

    model_config = ConfigDict(frozen=True)

    user: Optional[User] = None
    session: Optional[AuthSession] = None
