"""JWT verification using JWKS public keys — local verification, no DB needed."""

import logging
import time
from collections.abc import Callable

import jwt
from jwt.api_jws import PyJWS

from cinetag_auth.claims import Claims, audience_matches, numeric_claim, string_claim
from cinetag_auth.config import JWT_ALGORITHM
from cinetag_auth.errors import (
    InvalidAudienceError,
    InvalidIssuerError,
    InvalidSignatureError,
    JWKSError,
    KeyResolutionFailedError,
    MalformedClaimsError,
    MalformedTokenError,
    MissingKeyIDError,
    TokenExpiredError,
    TokenNotYetValidError,
    UnsupportedAlgorithmError,
)
from cinetag_auth.jwks import JWKSKeyStore

logger = logging.getLogger("cinetag_auth.verifier")


class JWTVerifier:
    """Verifies RS256 JWTs issued by the identity provider.

    Checks run in a fixed order and stop at the first failure: structure,
    header, payload, exp/nbf, iss/aud, key lookup, signature. Nothing before
    the key lookup touches the network.

    Args:
        key_store: The JWKS key store for key lookup.
        issuer: Expected ``iss`` claim. Not checked when empty.
        audience: Expected ``aud`` entry. Not checked when empty.
        leeway: Clock skew tolerance for exp/nbf, in seconds (default 0).
    """

    def __init__(
        self,
        key_store: JWKSKeyStore,
        *,
        issuer: str | None = None,
        audience: str | None = None,
        leeway: int = 0,
        _clock: Callable[[], float] = time.time,
    ) -> None:
        self._key_store = key_store
        self._issuer = (issuer or "").strip()
        self._audience = (audience or "").strip()
        self._leeway = leeway
        self._clock = _clock
        self._jws = PyJWS(algorithms=[JWT_ALGORITHM])

    @property
    def key_store(self) -> JWKSKeyStore:
        return self._key_store

    async def verify(self, token: str) -> Claims:
        """Verify a JWT and return its claims unchanged.

        A token without ``exp`` is accepted; expiry is only enforced when the
        issuer sets it.

        Raises:
            TokenVerificationError: One subclass per failed check.
        """
        token = (token or "").strip()
        segments = token.split(".")
        if len(segments) != 3 or not all(segments):
            raise MalformedTokenError("Malformed token")

        try:
            header = jwt.get_unverified_header(token)
        except jwt.DecodeError:
            raise MalformedTokenError("Malformed token")
        except jwt.InvalidTokenError:
            # PyJWT rejects a non-string kid while reading the header.
            raise MissingKeyIDError("Token kid header must be a string")

        alg = header.get("alg")
        if alg != JWT_ALGORITHM:
            raise UnsupportedAlgorithmError(f"Unsupported algorithm: {alg!r}")

        kid = header.get("kid")
        if not isinstance(kid, str) or not kid.strip():
            raise MissingKeyIDError("Token missing kid header")

        try:
            claims = jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError:
            raise MalformedClaimsError("Token payload is not a JSON object")

        self._check_times(claims)
        self._check_issuer_and_audience(claims)

        try:
            jwk = await self._key_store.get_key(kid)
        except JWKSError as e:
            logger.debug("Key resolution failed for kid=%s: %s", kid, e.message)
            raise KeyResolutionFailedError(f"Could not resolve signing key: {e.message}") from e

        try:
            self._jws.decode_complete(token, jwk.key, algorithms=[JWT_ALGORITHM])
        except jwt.InvalidTokenError:
            raise InvalidSignatureError("Invalid token signature")

        return claims

    def _check_times(self, claims: Claims) -> None:
        now = self._clock()
        exp = numeric_claim(claims, "exp")
        if exp is not None and now >= exp + self._leeway:
            raise TokenExpiredError("Token has expired")
        nbf = numeric_claim(claims, "nbf")
        if nbf is not None and now < nbf - self._leeway:
            raise TokenNotYetValidError("Token is not yet valid")

    def _check_issuer_and_audience(self, claims: Claims) -> None:
        if self._issuer and string_claim(claims, "iss") != self._issuer:
            raise InvalidIssuerError("Invalid issuer")
        if self._audience and not audience_matches(claims.get("aud"), self._audience):
            raise InvalidAudienceError("Invalid audience")
