from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from google.auth.exceptions import GoogleAuthError
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from starlette.concurrency import run_in_threadpool

from wartek.core.config import settings
from wartek.core.errors import Unauthorized

logger = logging.getLogger(__name__)

@dataclass
class GoogleIdentity:
    google_id: str
    email: str
    name: Optional[str]
    picture: Optional[str]

def _verify(credential: str, client_id: str) -> dict:
    return id_token.verify_oauth2_token(credential, google_requests.Request(), client_id)

async def verify_google_credential(credential: str, client_id: Optional[str] = None) -> GoogleIdentity:
    client_id = client_id or settings.google_client_id
    if not client_id:
        raise Unauthorized("Google sign-in is not configured")

    try:
        # google-auth fetches Google's certs with blocking requests
        claims = await run_in_threadpool(_verify, credential, client_id)
    except (ValueError, GoogleAuthError) as e:
        logger.warning("Google credential rejected: %s", e)
        raise Unauthorized("Invalid Google credential")

    if not claims.get("sub") or not claims.get("email"):
        raise Unauthorized("Invalid Google credential")

    return GoogleIdentity(
        google_id=str(claims["sub"]),
        email=claims["email"],
        name=claims.get("name"),
        picture=claims.get("picture"),
    )
