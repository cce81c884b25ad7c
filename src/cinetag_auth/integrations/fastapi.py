"""FastAPI dependencies for cinetag-auth.

Both dependencies store the local user on ``request.state.user`` and return it.
Rejections never say why a token was refused.
"""

from typing import Any

from fastapi import HTTPException, Request

from cinetag_auth.directory import UserDirectory
from cinetag_auth.errors import (
    DirectoryFailureError,
    MisconfiguredError,
    UnauthenticatedError,
)
from cinetag_auth.policy import authenticate_optional, authenticate_required
from cinetag_auth.verifier import JWTVerifier


def _http_error(e: UnauthenticatedError | MisconfiguredError | DirectoryFailureError) -> HTTPException:
    if isinstance(e, UnauthenticatedError):
        return HTTPException(status_code=401, detail={"error": "unauthorized"})
    return HTTPException(status_code=500, detail={"error": e.code})


def create_current_user_dep(verifier: JWTVerifier | None, directory: UserDirectory):
    """Create a FastAPI dependency that requires ``Authorization: Bearer <token>``.

    - no/invalid credential: 401
    - directory failure or missing verifier: 500
    """

    async def current_user(request: Request) -> Any:
        try:
            user = await authenticate_required(
                verifier, directory, request.headers.get("Authorization"),
            )
        except (UnauthenticatedError, MisconfiguredError, DirectoryFailureError) as e:
            raise _http_error(e)
        request.state.user = user
        return user

    return current_user


def create_optional_user_dep(verifier: JWTVerifier | None, directory: UserDirectory):
    """Create a FastAPI dependency that lets anonymous requests through.

    Returns None when no ``Authorization`` header was sent. A header that is
    sent but invalid is rejected like :func:`create_current_user_dep` does.
    """

    async def optional_user(request: Request) -> Any | None:
        try:
            user = await authenticate_optional(
                verifier, directory, request.headers.get("Authorization"),
            )
        except (UnauthenticatedError, MisconfiguredError, DirectoryFailureError) as e:
            raise _http_error(e)
        request.state.user = user
        return user

    return optional_user
