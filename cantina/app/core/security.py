from fastapi import Header, HTTPException, status

from cantina.app.core.config import settings


async def require_manager(x_manager_key: str | None = Header(default=None)) -> None:
    """Guard staff and manager-tool routes with the shared manager key."""
    required = settings.MANAGER_API_KEY
    if not required:
        return
    if x_manager_key != required:
        raise HTTPException(status.HTTP_403_FORBIDDEN, detail="FORBIDDEN")
