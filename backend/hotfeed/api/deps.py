from __future__ import annotations
from datetime import datetime, timezone
from uuid import UUID

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from hotfeed.core.errors import InvalidToken
from hotfeed.services.auth import token_user_id

bearer = HTTPBearer(auto_error=False)

def get_now() -> datetime:
    # Evaluated once per request; every post in a feed query is ranked against it.
    return datetime.now(timezone.utc)

async def get_current_user_id(
    cred: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> UUID:
    if cred is None:
        raise HTTPException(status_code=401, detail="Missing token")
    try:
        return token_user_id(cred.credentials)
    except InvalidToken:
        raise HTTPException(status_code=401, detail="Invalid token")
