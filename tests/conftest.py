"""Shared test fixtures for the Portier client."""

import base64
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs, urlsplit

import httpx
import jwt
import pytest
import respx
from cryptography.hazmat.primitives.asymmetric import ed448, ed25519, rsa

from portier.core.settings import ClientSettings, StoreSettings
from portier.oidc.client import Client
from portier.store.fetch import DocumentFetcher
from portier.store.memory_store import MemoryStore

BROKER = "http://broker.test"
JWKS_URI = f"{BROKER}/jwks.json"
AUTH_ENDPOINT = f"{BROKER}/auth"
REDIRECT_URI = "https://example.test/callback"
CLIENT_ID = "https://example.test"
START_TIME = 1_700_000_000.0


def b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def int_to_b64url(value: int) -> str:
    return b64url(value.to_bytes((value.bit_length() + 7) // 8, "big"))


class FakeClock:
    """Manually advanced replacement for ``time.time``."""

    def __init__(self, now: float = START_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class BrokerKey:
    """A broker signing key and its published JWK."""

    kid: str
    alg: str
    private_key: Any
    jwk: dict[str, Any]


def make_rsa_key(kid: str = "rsa-1") -> BrokerKey:
    private = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    numbers = private.public_key().public_numbers()
    jwk = {
        "kty": "RSA",
        "use": "sig",
        "alg": "RS256",
        "kid": kid,
        "n": int_to_b64url(numbers.n),
        "e": int_to_b64url(numbers.e),
    }
    return BrokerKey(kid=kid, alg="RS256", private_key=private, jwk=jwk)


def make_ed25519_key(kid: str = "ed25519-1") -> BrokerKey:
    private = ed25519.Ed25519PrivateKey.generate()
    jwk = {
        "kty": "OKP",
        "use": "sig",
        "alg": "EdDSA",
        "kid": kid,
        "crv": "Ed25519",
        "x": b64url(private.public_key().public_bytes_raw()),
    }
    return BrokerKey(kid=kid, alg="EdDSA", private_key=private, jwk=jwk)


def make_ed448_key(kid: str = "ed448-1") -> BrokerKey:
    private = ed448.Ed448PrivateKey.generate()
    jwk = {
        "kty": "OKP",
        "use": "sig",
        "alg": "EdDSA",
        "kid": kid,
        "crv": "Ed448",
        "x": b64url(private.public_key().public_bytes_raw()),
    }
    return BrokerKey(kid=kid, alg="EdDSA", private_key=private, jwk=jwk)


@dataclass
class FakeBroker:
    """Serves discovery and JWKS documents, and signs id_tokens."""

    clock: FakeClock
    keys: list[BrokerKey]
    algs: list[str] = field(default_factory=lambda: ["RS256"])
    discovery_overrides: dict[str, Any] = field(default_factory=dict)
    jwks_body: dict[str, Any] | None = None
    cache_control: str | None = None
    discovery_calls: int = 0
    jwks_calls: int = 0

    def discovery(self) -> dict[str, Any]:
        doc = {
            "issuer": BROKER,
            "authorization_endpoint": AUTH_ENDPOINT,
            "jwks_uri": JWKS_URI,
            "id_token_signing_alg_values_supported": self.algs,
        }
        doc.update(self.discovery_overrides)
        return doc

    def mount(self, router: respx.MockRouter) -> None:
        router.get(f"{BROKER}/.well-known/openid-configuration").mock(
            side_effect=self._serve_discovery
        )
        router.get(JWKS_URI).mock(side_effect=self._serve_jwks)

    def _headers(self) -> dict[str, str]:
        return {"Cache-Control": self.cache_control} if self.cache_control else {}

    def _serve_discovery(self, _request: httpx.Request) -> httpx.Response:
        self.discovery_calls += 1
        return httpx.Response(200, json=self.discovery(), headers=self._headers())

    def _serve_jwks(self, _request: httpx.Request) -> httpx.Response:
        self.jwks_calls += 1
        body = self.jwks_body or {"keys": [k.jwk for k in self.keys]}
        return httpx.Response(200, json=body, headers=self._headers())

    def claims(self, nonce: str, aud: str, /, **overrides: Any) -> dict[str, Any]:
        """Valid id_token claims; pass ``name=None`` to drop a claim."""
        now = int(self.clock())
        claims: dict[str, Any] = {
            "iss": BROKER,
            "aud": [aud],
            "exp": now + 600,
            "iat": now,
            "sub": "johndoe@example.com",
            "email": "johndoe@example.com",
            "email_original": "johndoe@example.com",
            "nonce": nonce,
        }
        claims.update(overrides)
        return {k: v for k, v in claims.items() if v is not None}

    def sign(
        self,
        claims: dict[str, Any],
        key: BrokerKey | None = None,
        headers: dict[str, Any] | None = None,
    ) -> str:
        key = key or self.keys[0]
        return jwt.encode(
            claims,
            key.private_key,
            algorithm=key.alg,
            headers=headers if headers is not None else {"kid": key.kid},
        )


def query_of(url: str) -> dict[str, str]:
    """Single-valued query parameters of ``url``."""
    return {k: v[0] for k, v in parse_qs(urlsplit(url).query).items()}


@pytest.fixture(scope="session")
def rsa_key() -> BrokerKey:
    return make_rsa_key()


@pytest.fixture(scope="session")
def ed25519_key() -> BrokerKey:
    return make_ed25519_key()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def mock_http() -> Iterator[respx.MockRouter]:
    """Intercept all httpx traffic; unmatched requests fail the test."""
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture
def broker(
    mock_http: respx.MockRouter, clock: FakeClock, rsa_key: BrokerKey
) -> FakeBroker:
    fake = FakeBroker(clock=clock, keys=[rsa_key])
    fake.mount(mock_http)
    return fake


@pytest.fixture
def store_settings() -> StoreSettings:
    return StoreSettings(nonce_ttl=900, cache_min_ttl=3600)


@pytest.fixture
def memory_store(clock: FakeClock, store_settings: StoreSettings) -> MemoryStore:
    return MemoryStore(DocumentFetcher(store_settings), clock=clock)


@pytest.fixture
def client_settings() -> ClientSettings:
    return ClientSettings(broker=BROKER, redirect_uri=REDIRECT_URI)


@pytest.fixture
def client(
    memory_store: MemoryStore, client_settings: ClientSettings, clock: FakeClock
) -> Client:
    return Client(memory_store, client_settings, clock=clock)
