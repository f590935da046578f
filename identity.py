from typing import Optional

from fastapi import Header, HTTPException, status


async def current_user_id(x_user_id: Optional[str] = Header(default=None)) -> int:
    """Caller identity as forwarded by the authenticating gateway.

    The value is trusted as already verified; only its shape is checked here.
    """
    if x_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-User-Id header"
        )
    try:
        user_id = int(x_user_id)
    except ValueError:
        user_id = 0
    if user_id < 1:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid X-User-Id header"
        )
    return user_id
