from typing import Optional

from fastapi import Header, HTTPException

from cafe_sync.config import settings


async def require_api_key(
    apikey: Optional[str] = Header(None),
    authorization: Optional[str] = Header(None),
) -> None:
    """
    Checks the terminal's key when API_KEY is configured.
    Accepted as an "apikey" header or as "Authorization: Bearer <key>".
    """
    expected = settings.API_KEY
    if not expected:
        return
    if apikey == expected or authorization == f"Bearer {expected}":
        return
    raise HTTPException(status_code=401, detail="Invalid API key")
