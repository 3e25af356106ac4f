# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the auth endpoints."""

from typing import Optional

from pydantic import BaseModel


# -- Requests --------------------------------------------------------------


class CredentialsRequest(BaseModel):
    email: str
    password: str


class ValidateTokenRequest(BaseModel):
    token: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    password: str


# -- Responses -------------------------------------------------------------


class UserInfoResponse(BaseModel):
    id: str
    email: str

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    access_token: str
    refresh_token: str
    user: UserInfoResponse


class MessageResponse(BaseModel):
    detail: str
