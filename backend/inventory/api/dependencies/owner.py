"""Resolve the owner (tenant) a request acts for."""

from fastapi import Header, HTTPException, status


def get_owner_id(
    x_owner_id: int | None = Header(
        None, description="Authenticated user id, set by the auth gateway"
    ),
) -> int:
    """FastAPI dependency returning the caller's owner id.

    Authentication happens upstream; this layer only requires that the
    gateway passed a positive id through.
    """
    if x_owner_id is None or x_owner_id <= 0:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return x_owner_id
