"""Identity mapping: turns issuer data into the record handed to the user directory."""

from dataclasses import dataclass

from cinetag_auth.claims import Claims, string_claim
from cinetag_auth.errors import InvalidIdentityError


@dataclass(frozen=True, slots=True)
class Identity:
    """A verified user identity from the identity provider.

    ``subject`` is the provider's user ID. Display-name derivation belongs to
    the directory, so only the raw optional profile fields are carried.
    """

    subject: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    avatar_url: str | None = None


def _trimmed(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def identity_from_claims(claims: Claims) -> Identity:
    """Build an Identity from verified JWT claims.

    - subject: ``sub`` (required)
    - email: ``email`` (required)
    - first_name / last_name: ``first_name`` / ``last_name``
    - avatar_url: ``image_url``

    Raises:
        InvalidIdentityError: If ``sub`` or ``email`` is missing or blank.
    """
    return _build(
        string_claim(claims, "sub"),
        string_claim(claims, "email"),
        string_claim(claims, "first_name"),
        string_claim(claims, "last_name"),
        string_claim(claims, "image_url"),
    )


def identity_from_webhook(
    user_id: str | None,
    email: str | None,
    first_name: str | None = None,
    last_name: str | None = None,
    image_url: str | None = None,
) -> Identity:
    """Build an Identity from the provider's user webhook fields.

    Same rules as :func:`identity_from_claims`.

    Raises:
        InvalidIdentityError: If ``user_id`` or ``email`` is missing or blank.
    """
    return _build(user_id, email, first_name, last_name, image_url)


def _build(
    subject: str | None,
    email: str | None,
    first_name: str | None,
    last_name: str | None,
    avatar_url: str | None,
) -> Identity:
    subject = _trimmed(subject)
    email = _trimmed(email)
    if subject is None or email is None:
        raise InvalidIdentityError("Identity requires a subject and an email")
    return Identity(
        subject=subject,
        email=email,
        first_name=_trimmed(first_name),
        last_name=_trimmed(last_name),
        avatar_url=_trimmed(avatar_url),
    )
