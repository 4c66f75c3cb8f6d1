"""FastAPI dependencies shared by the routers.

Authentication is handled upstream by the API gateway, which forwards the
caller's profile id in the ``X-Profile-ID`` header.
"""

from __future__ import annotations

import secrets
from functools import lru_cache
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from progress_engine.config import Settings
from progress_engine.database import get_db
from progress_engine.repository import EnrollmentRepository, SqlAlchemyRepository


@lru_cache
def get_settings() -> Settings:
    return Settings()


async def get_repository(db: AsyncSession = Depends(get_db)) -> EnrollmentRepository:
    return SqlAlchemyRepository(db)


async def get_profile_id(
    x_profile_id: UUID = Header(..., description="Profile id of the caller."),
) -> UUID:
    return x_profile_id


async def get_optional_profile_id(
    x_profile_id: UUID | None = Header(None, description="Profile id of the caller, if any."),
) -> UUID | None:
    return x_profile_id


async def require_internal_token(
    x_internal_token: str | None = Header(None, description="Shared secret of internal callers."),
    settings: Settings = Depends(get_settings),
) -> None:
    """Reject calls that do not carry the configured internal token."""
    expected = settings.internal_api_token
    if not expected or not x_internal_token or not secrets.compare_digest(
        x_internal_token.encode(), expected.encode()
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid internal token",
        )
