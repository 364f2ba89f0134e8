"""
TASKCAL Core API - Request Dependencies

Resolves the owner every task and calendar endpoint is scoped to.
"""

from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status


OWNER_HEADER = "X-Owner-Id"


async def get_current_owner(
    x_owner_id: Annotated[Optional[str], Header(alias=OWNER_HEADER)] = None,
) -> str:
    """
    Resolve the task owner for a request.

    Authentication happens upstream; the gateway forwards the authenticated
    user id in the X-Owner-Id header.
    """
    if x_owner_id is None or not x_owner_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {OWNER_HEADER} header",
        )
    return x_owner_id.strip()


# Type alias for cleaner dependency injection
CurrentOwner = Annotated[str, Depends(get_current_owner)]
