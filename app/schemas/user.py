"""User and OAuth identity Pydantic schemas."""

from pydantic import BaseModel, EmailStr


class UserBase(BaseModel):
    """Base schema for user data."""

    email: EmailStr
    name: str | None = None
    image: str | None = None


class UserCreate(UserBase):
    """Schema for creating a user on first sign-in."""


class OAuthTokens(BaseModel):
    """Token material returned by a provider's token endpoint."""

    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: int | None = None
    token_type: str | None = None
    scope: str | None = None
    id_token: str | None = None
    session_state: str | None = None


class OAuthProfile(BaseModel):
    """Identity reported by a provider after a successful token exchange."""

    provider: str
    provider_account_id: str
    email: EmailStr
    name: str | None = None
    image: str | None = None
    tokens: OAuthTokens = OAuthTokens()
