"""Error taxonomy for token verification and request authentication.

Every error carries a short machine-readable ``code``. Codes are for logs and
programmatic callers only; the FastAPI policies never put them in a response.
"""


class AuthError(Exception):
    """Base class for all cinetag-auth errors."""

    code = "auth_error"

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        if code is not None:
            self.code = code
        super().__init__(message)


# ---------------------------------------------------------------------------
# Verifier
# ---------------------------------------------------------------------------


class TokenVerificationError(AuthError):
    """Raised when a JWT fails verification."""

    code = "token_invalid"


class MalformedTokenError(TokenVerificationError):
    code = "malformed_token"


class UnsupportedAlgorithmError(TokenVerificationError):
    code = "unsupported_algorithm"


class MissingKeyIDError(TokenVerificationError):
    code = "missing_kid"


class MalformedClaimsError(TokenVerificationError):
    code = "malformed_claims"


class TokenExpiredError(TokenVerificationError):
    code = "token_expired"


class TokenNotYetValidError(TokenVerificationError):
    code = "token_not_yet_valid"


class InvalidIssuerError(TokenVerificationError):
    code = "invalid_issuer"


class InvalidAudienceError(TokenVerificationError):
    code = "invalid_audience"


class KeyResolutionFailedError(TokenVerificationError):
    code = "key_resolution_failed"


class InvalidSignatureError(TokenVerificationError):
    code = "invalid_signature"


# ---------------------------------------------------------------------------
# Key store
# ---------------------------------------------------------------------------


class JWKSError(AuthError):
    """Raised by the JWKS key store."""

    code = "jwks_error"


class JWKSFetchError(JWKSError):
    """The JWKS document could not be fetched or held no usable keys."""

    code = "jwks_fetch_failed"


class KeyNotFoundError(JWKSError):
    """A fresh JWKS document does not contain the requested kid."""

    code = "kid_not_found"


# ---------------------------------------------------------------------------
# Identity, directory, configuration, policy outcome
# ---------------------------------------------------------------------------


class InvalidIdentityError(AuthError):
    """Claims don't carry the minimum identity (subject and email)."""

    code = "invalid_identity"


class DirectoryFailureError(AuthError):
    """The user directory failed to ensure a local user."""

    code = "ensure_user_failed"


class MisconfiguredError(AuthError):
    """Authentication can't run with the current configuration."""

    code = "auth_misconfigured"


class UnauthenticatedError(AuthError):
    """The request carries no acceptable credential."""

    code = "unauthorized"
