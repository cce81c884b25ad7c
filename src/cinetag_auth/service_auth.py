"""ServiceAuth — main entry point for cinetag-auth.

Wires the JWKS key store, the token verifier and the user directory together
and exposes the two FastAPI dependencies ``.current_user`` and
``.optional_user``.
"""

import logging
from collections.abc import Mapping
from typing import Any

from cinetag_auth.claims import Claims
from cinetag_auth.config import DEFAULT_HTTP_TIMEOUT, DEFAULT_JWKS_CACHE_TTL, AuthConfig
from cinetag_auth.directory import UserDirectory
from cinetag_auth.errors import MisconfiguredError
from cinetag_auth.jwks import JWKSKeyStore
from cinetag_auth.policy import authenticate
from cinetag_auth.verifier import JWTVerifier

logger = logging.getLogger("cinetag_auth.service_auth")


class ServiceAuth:
    """Bearer-token authentication for the cinetag API.

    A missing JWKS URL doesn't raise here. The problem is logged and every
    request through either dependency is answered with 500, so a broken
    deployment never serves routes unauthenticated.

    Args:
        jwks_url: URL of the identity provider's JWKS endpoint.
        directory: User directory that maps identities to local users.
        issuer: Expected JWT issuer claim (optional).
        audience: Expected JWT audience (optional).
        jwks_cache_ttl: How long to cache JWKS keys in seconds (default 900).
        http_timeout: JWKS request timeout in seconds (default 5).
        leeway: Clock skew tolerance for exp/nbf in seconds (default 0).
    """

    def __init__(
        self,
        jwks_url: str | None,
        *,
        directory: UserDirectory,
        issuer: str | None = None,
        audience: str | None = None,
        jwks_cache_ttl: float = DEFAULT_JWKS_CACHE_TTL,
        http_timeout: float = DEFAULT_HTTP_TIMEOUT,
        leeway: int = 0,
    ) -> None:
        self._directory = directory
        self._verifier: JWTVerifier | None = None
        try:
            key_store = JWKSKeyStore(
                jwks_url, cache_ttl=jwks_cache_ttl, http_timeout=http_timeout,
            )
        except MisconfiguredError as e:
            logger.error("Authentication misconfigured: %s", e.message)
        else:
            self._verifier = JWTVerifier(
                key_store, issuer=issuer, audience=audience, leeway=leeway,
            )
        self._current_user_dep = None
        self._optional_user_dep = None

    @classmethod
    def from_config(cls, config: AuthConfig, *, directory: UserDirectory) -> "ServiceAuth":
        return cls(
            config.jwks_url,
            directory=directory,
            issuer=config.issuer,
            audience=config.audience,
            jwks_cache_ttl=config.jwks_cache_ttl,
            http_timeout=config.http_timeout,
            leeway=config.leeway,
        )

    @classmethod
    def from_env(
        cls,
        *,
        directory: UserDirectory,
        environ: Mapping[str, str] | None = None,
    ) -> "ServiceAuth":
        """Build from ``CLERK_JWKS_URL`` / ``CLERK_ISSUER`` / ``CLERK_AUDIENCE``."""
        try:
            config = AuthConfig.from_env(environ)
        except MisconfiguredError as e:
            logger.error("Authentication misconfigured: %s", e.message)
            config = AuthConfig(jwks_url=None)
        return cls.from_config(config, directory=directory)

    @property
    def is_configured(self) -> bool:
        return self._verifier is not None

    @property
    def verifier(self) -> JWTVerifier | None:
        return self._verifier

    async def verify_token(self, token: str) -> Claims:
        """Verify a JWT and return its claims (no directory call).

        Raises:
            MisconfiguredError: If no verifier could be built.
            TokenVerificationError: If verification fails.
        """
        if self._verifier is None:
            raise MisconfiguredError("Token verifier is not configured")
        return await self._verifier.verify(token)

    async def authenticate(self, token: str) -> Any:
        """Verify a token and return the local user from the directory.

        Raises:
            MisconfiguredError: If no verifier could be built.
            UnauthenticatedError: If the token or its identity is rejected.
            DirectoryFailureError: If the directory fails.
        """
        return await authenticate(self._verifier, self._directory, token)

    @property
    def current_user(self):
        """FastAPI dependency: the local user for a required bearer token.

        Usage:
            service_auth = ServiceAuth.from_env(directory=users)

            @app.post("/tags")
            async def create_tag(user=Depends(service_auth.current_user)):
                ...
        """
        if self._current_user_dep is None:
            from cinetag_auth.integrations.fastapi import create_current_user_dep

            self._current_user_dep = create_current_user_dep(self._verifier, self._directory)
        return self._current_user_dep

    @property
    def optional_user(self):
        """FastAPI dependency: the local user, or None for anonymous requests.

        Usage:
            @app.get("/tags/{tag_id}")
            async def get_tag(tag_id: str, user=Depends(service_auth.optional_user)):
                ...
        """
        if self._optional_user_dep is None:
            from cinetag_auth.integrations.fastapi import create_optional_user_dep

            self._optional_user_dep = create_optional_user_dep(self._verifier, self._directory)
        return self._optional_user_dep
