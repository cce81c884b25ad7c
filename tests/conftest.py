"""Test fixtures for cinetag-auth tests.

All tests are network-free — they generate RSA keys, sign JWTs locally,
and serve JWKS responses through httpx MockTransport.
"""

import base64
import json
import time

import httpx
import jwt
import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

JWKS_URL = "http://issuer.test/.well-known/jwks.json"


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _int_to_b64url(value: int) -> str:
    byte_length = (value.bit_length() + 7) // 8
    return _b64url(value.to_bytes(byte_length, byteorder="big"))


def generate_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def private_key_to_pem(private_key: rsa.RSAPrivateKey) -> str:
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")


def public_jwk(private_key: rsa.RSAPrivateKey, kid: str) -> dict:
    """JWK for the public half of ``private_key``."""
    numbers = private_key.public_key().public_numbers()
    return {
        "kty": "RSA",
        "kid": kid,
        "use": "sig",
        "alg": "RS256",
        "n": _int_to_b64url(numbers.n),
        "e": _int_to_b64url(numbers.e),
    }


@pytest.fixture(scope="session")
def private_key():
    """One RSA key for the whole session; generation is slow."""
    return generate_private_key()


@pytest.fixture(scope="session")
def other_private_key():
    """A key that is never published in the JWKS."""
    return generate_private_key()


@pytest.fixture
def private_pem(private_key):
    return private_key_to_pem(private_key)


@pytest.fixture
def test_kid():
    return "k1"


@pytest.fixture
def jwks_response(private_key, test_kid):
    """A JWKS response body with one key."""
    return {"keys": [public_jwk(private_key, test_kid)]}


class JWKSServer:
    """Mock JWKS endpoint. Counts requests; status and body can be changed mid-test."""

    def __init__(self, body: dict, *, status_code: int = 200) -> None:
        self.body = body
        self.status_code = status_code
        self.calls = 0
        self.error: Exception | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json=self.body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def jwks_server(jwks_response):
    return JWKSServer(jwks_response)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


def create_test_token(
    private_key_pem: str,
    kid: str | None,
    *,
    sub: str | None = "user_1",
    email: str | None = "a@example.com",
    expires_in: int | None = 600,
    **extra_claims,
) -> str:
    """Create a test JWT signed with RS256. ``None`` leaves a claim out."""
    payload: dict = {}
    if sub is not None:
        payload["sub"] = sub
    if email is not None:
        payload["email"] = email
    if expires_in is not None:
        payload["exp"] = int(time.time()) + expires_in
    payload.update(extra_claims)
    headers = {"kid": kid} if kid is not None else None
    return jwt.encode(payload, private_key_pem, algorithm="RS256", headers=headers)


def sign_raw_token(
    private_key: rsa.RSAPrivateKey | None,
    header: dict,
    payload,
) -> str:
    """Build a compact token from arbitrary header/payload values.

    ``payload`` may be anything JSON-serialisable, or raw bytes. Without a
    key the signature segment is filler.
    """
    header_segment = _b64url(json.dumps(header).encode("utf-8"))
    if isinstance(payload, bytes):
        payload_segment = _b64url(payload)
    else:
        payload_segment = _b64url(json.dumps(payload).encode("utf-8"))
    signing_input = f"{header_segment}.{payload_segment}".encode("ascii")
    if private_key is None:
        signature = b"not-a-signature"
    else:
        signature = private_key.sign(signing_input, padding.PKCS1v15(), hashes.SHA256())
    return f"{header_segment}.{payload_segment}.{_b64url(signature)}"
