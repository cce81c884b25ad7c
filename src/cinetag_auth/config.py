"""Configuration for token verification: JWKS endpoint, expected issuer/audience, cache tuning."""

import os
from collections.abc import Mapping
from dataclasses import dataclass

from cinetag_auth.errors import MisconfiguredError

JWT_ALGORITHM = "RS256"
DEFAULT_JWKS_CACHE_TTL = 15 * 60.0  # 15 minutes
DEFAULT_HTTP_TIMEOUT = 5.0

ENV_JWKS_URL = "CLERK_JWKS_URL"
ENV_ISSUER = "CLERK_ISSUER"
ENV_AUDIENCE = "CLERK_AUDIENCE"
ENV_JWKS_CACHE_TTL = "CLERK_JWKS_CACHE_TTL"
ENV_JWKS_TIMEOUT = "CLERK_JWKS_TIMEOUT"


@dataclass(frozen=True, slots=True)
class AuthConfig:
    """Settings for token verification.

    ``jwks_url`` is required by the verifier; an empty value is kept here so
    the policies can fail closed at request time instead of crashing startup.
    ``issuer`` and ``audience`` are only enforced when set.
    """

    jwks_url: str | None
    issuer: str | None = None
    audience: str | None = None
    jwks_cache_ttl: float = DEFAULT_JWKS_CACHE_TTL
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    leeway: int = 0

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AuthConfig":
        """Build a config from ``CLERK_*`` environment variables.

        Raises:
            MisconfiguredError: If a numeric variable can't be parsed.
        """
        env = os.environ if environ is None else environ
        return cls(
            jwks_url=_clean(env.get(ENV_JWKS_URL)),
            issuer=_clean(env.get(ENV_ISSUER)),
            audience=_clean(env.get(ENV_AUDIENCE)),
            jwks_cache_ttl=_float(env, ENV_JWKS_CACHE_TTL, DEFAULT_JWKS_CACHE_TTL),
            http_timeout=_float(env, ENV_JWKS_TIMEOUT, DEFAULT_HTTP_TIMEOUT),
        )


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = _clean(env.get(name))
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise MisconfiguredError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise MisconfiguredError(f"{name} must be positive, got {raw!r}")
    return value
