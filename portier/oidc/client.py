"""Relying-party client for a Portier broker."""

import json
import time
from collections.abc import Callable
from typing import Any
from urllib.parse import urlencode, urlsplit

import jwt
import structlog
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from portier.core.errors import (
    AlgorithmPinningError,
    ConfigurationError,
    DiscoveryError,
    InvalidSignatureError,
    KeyResolutionError,
    MalformedTokenError,
    PortierError,
    UnsupportedAlgorithmError,
    truncate,
)
from portier.core.settings import ClientSettings
from portier.crypto.jwk import parse_jwk, to_verification_key
from portier.crypto.types import OKPPublicJWK, RSAPublicJWK
from portier.oidc.claims import (
    ALG_PARAM,
    check_audience,
    check_issuer_and_time,
    check_required,
    extract_identity,
    pinned_algorithm,
)
from portier.oidc.discovery import fetch_discovery
from portier.oidc.types import VerifyResult
from portier.store.base import Store

DEFAULT_PORTS = {"http": 80, "https": 443}

logger = structlog.get_logger(__name__)

_jws = jwt.PyJWS()


def get_origin(url: str) -> str:
    """Return ``scheme://host[:port]`` for a URL, omitting default ports."""
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as err:
        raise ConfigurationError("Could not parse the redirect URI") from err

    if not parts.scheme:
        raise ConfigurationError("No scheme set in redirect URI")
    host = parts.hostname
    if not host:
        raise ConfigurationError("No host set in redirect URI")
    if ":" in host:
        host = f"[{host}]"

    origin = f"{parts.scheme}://{host}"
    if port is not None and DEFAULT_PORTS.get(parts.scheme) != port:
        origin += f":{port}"
    return origin


class Client:
    """Starts and completes email authentication through a Portier broker.

    The client holds only its settings; nonces and cached broker documents
    live in the injected store, so one instance can serve concurrent requests.
    """

    def __init__(
        self,
        store: Store,
        settings: ClientSettings | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.settings = settings or ClientSettings()
        self.client_id = get_origin(self.settings.redirect_uri)
        self._clock = clock

    async def authenticate(self, email: str, state: str | None = None) -> str:
        """Start authentication of ``email`` and return the URL to redirect to."""
        docs = await fetch_discovery(self.store, self.settings.broker)
        endpoint = docs.config.authorization_endpoint
        if not endpoint:
            raise DiscoveryError("Discovery document is missing authorization_endpoint")

        client_id = self.client_id
        if (
            "EdDSA" in docs.config.id_token_signing_alg_values_supported
            and docs.jwks.eddsa_curves() == {"Ed25519"}
        ):
            client_id += f"?{ALG_PARAM}=EdDSA"
            logger.debug("algorithm_negotiated", alg="EdDSA")

        nonce = await self.store.create_nonce(client_id, email)

        params = {
            "login_hint": email,
            "scope": "openid email",
            "nonce": nonce,
            "response_type": "id_token",
            "response_mode": "form_post",
            "client_id": client_id,
            "redirect_uri": self.settings.redirect_uri,
        }
        if state is not None:
            params["state"] = state
        return f"{endpoint}?{urlencode(params)}"

    async def verify(self, token: str) -> VerifyResult:
        """Verify an ``id_token`` received on the redirect URI."""
        try:
            result = await self._verify(token)
        except PortierError as err:
            logger.info("verification_failed", code=err.code)
            raise
        logger.info("token_verified")
        return result

    async def _verify(self, token: str) -> VerifyResult:
        try:
            header = jwt.get_unverified_header(token)
        except jwt.InvalidTokenError as err:
            raise MalformedTokenError("Token could not be parsed") from err
        kid = header.get("kid")
        if not kid:
            raise MalformedTokenError("Token has no key ID")

        docs = await fetch_discovery(self.store, self.settings.broker)
        jwk = docs.jwks.find_signing_key(kid)
        if jwk is None:
            raise KeyResolutionError("Cannot find the public key used to sign the token")

        alg, key = _resolve_key(jwk)
        claims = _verify_signature(token, alg, key)

        check_issuer_and_time(
            claims, self.settings.broker, self.settings.leeway, self._clock()
        )
        check_required(claims)
        identity = extract_identity(claims)
        check_audience(identity.audience, self.client_id)

        await self.store.consume_nonce(
            identity.nonce, identity.audience, identity.email_original
        )

        if alg != pinned_algorithm(identity.audience):
            raise AlgorithmPinningError(
                f"Token signed with {alg}, but another algorithm was requested"
            )

        return VerifyResult(email=identity.email, state=identity.state)


def _resolve_key(jwk: dict[str, Any]) -> tuple[str, Any]:
    """Pick the algorithm from the key itself, and load the verification key."""
    alg = jwk.get("alg")
    if not isinstance(alg, str):
        raise KeyResolutionError("Key has no algorithm")

    if alg == "RS256":
        parsed = parse_jwk(jwk)
        if not isinstance(parsed, RSAPublicJWK):
            raise KeyResolutionError("RS256 key is not an RSA key")
        return alg, to_verification_key(parsed)

    if alg == "EdDSA":
        parsed = parse_jwk(jwk)
        if not isinstance(parsed, OKPPublicJWK):
            raise KeyResolutionError("EdDSA key is not an OKP key")
        if parsed.crv != "Ed25519":
            raise UnsupportedAlgorithmError(
                f"Unsupported EdDSA curve: {truncate(parsed.crv)}"
            )
        raw = to_verification_key(parsed)
        try:
            return alg, Ed25519PublicKey.from_public_bytes(raw)
        except ValueError as err:
            raise KeyResolutionError("Invalid Ed25519 public key") from err

    raise UnsupportedAlgorithmError(f"Unsupported alg: {truncate(alg)}")


def _verify_signature(token: str, alg: str, key: Any) -> dict[str, Any]:
    """Check the signature and return the decoded claims."""
    try:
        decoded = _jws.decode_complete(token, key=key, algorithms=[alg])
    except jwt.InvalidSignatureError as err:
        raise InvalidSignatureError("Token signature did not validate") from err
    except jwt.InvalidAlgorithmError as err:
        raise InvalidSignatureError("Token alg does not match the signing key") from err
    except jwt.InvalidKeyError as err:
        raise KeyResolutionError("Public key could not be loaded") from err
    except jwt.InvalidTokenError as err:
        raise MalformedTokenError("Token could not be parsed") from err

    try:
        claims = json.loads(decoded["payload"])
    except ValueError as err:
        raise MalformedTokenError("Token payload is not JSON") from err
    if not isinstance(claims, dict):
        raise MalformedTokenError("Token payload is not a JSON object")
    return claims
