"""
VerseRank Backend: Request Dependencies
========================================

What:  Resolves the authenticated principal for a request.
Why:   Password hashing and JWT verification live in the auth gateway in
       front of this service. The gateway forwards the verified user id in a
       trusted header (settings.principal_header, default X-User-ID); this
       service only has to parse it.
Who:   Injected into every /api route that acts on "the current user".
"""

from fastapi import Request

from verserank.config import settings
from verserank.exceptions import AuthenticationError

MAX_USER_ID = 2_147_483_647


async def get_current_user_id(request: Request) -> int:
    """
    FastAPI dependency returning the authenticated user id.

    Raises:
        AuthenticationError: header missing, not an integer, or out of range (→ 401)
    """
    raw = request.headers.get(settings.principal_header, "").strip()
    if not raw:
        raise AuthenticationError()

    try:
        user_id = int(raw)
    except ValueError:
        raise AuthenticationError(
            message="Invalid authenticated principal",
            context={"header": settings.principal_header},
        )

    if not 1 <= user_id <= MAX_USER_ID:
        raise AuthenticationError(
            message="Invalid authenticated principal",
            context={"header": settings.principal_header},
        )

    request.state.user_id = user_id
    return user_id
