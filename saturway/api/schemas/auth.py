"""Schemas for the Telegram initData exchange."""
from __future__ import annotations

from pydantic import Field

from saturway.api.schemas.common import CamelModel
from saturway.api.schemas.user import UserOut


class AuthRequest(CamelModel):
    init_data: str = Field(..., min_length=1)


class AuthResponse(CamelModel):
    success: bool = True
    token: str
    user: UserOut
