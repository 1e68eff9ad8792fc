"""Minimal auth dependency.

Stub implementation: the bearer token is the principal's UUID. Token
validation belongs to the identity provider in front of this service.
"""

import uuid
from typing import Annotated

from fastapi import Header, HTTPException, status

from backend.app.db.context import Principal


def parse_bearer(authorization: str) -> Principal:
    """Parse ``Bearer <principal uuid>``.

    Raises:
        HTTPException: 401 if the header is malformed
    """
    if not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = authorization[7:].strip()  # Strip "Bearer "
    try:
        return Principal(principal_id=uuid.UUID(token))
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid bearer token (expected principal id)",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


async def get_current_principal(
    authorization: Annotated[str | None, Header()] = None,
) -> Principal:
    """Authenticated principal of a staff request.

    Raises:
        HTTPException: 401 if the header is missing or malformed
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return parse_bearer(authorization)


async def get_optional_principal(
    authorization: Annotated[str | None, Header()] = None,
) -> Principal | None:
    """Principal if the caller sent credentials; public endpoints accept anonymous callers."""
    if not authorization:
        return None
    return parse_bearer(authorization)
