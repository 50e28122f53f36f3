"""Broker discovery document and key set, fetched through the store cache."""

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from portier.core.errors import DiscoveryError
from portier.store.base import Store

# Cache entries are keyed by these names, not by URL. A broker that moves its
# jwks_uri keeps serving the old key set until the entry expires.
DISCOVERY_CACHE_ID = "discovery"
KEYS_CACHE_ID = "keys"

DISCOVERY_PATH = "/.well-known/openid-configuration"

EDDSA_CURVES = frozenset({"Ed25519", "Ed448"})


class BrokerConfig(BaseModel):
    """Fields of the broker's OpenID configuration the client relies on."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    authorization_endpoint: str | None = None
    jwks_uri: str
    id_token_signing_alg_values_supported: list[str] = []


class KeySet(BaseModel):
    """The broker's JSON Web Key Set, kept as raw JWK objects."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    keys: list[dict[str, Any]]

    def signing_keys(self) -> list[dict[str, Any]]:
        return [k for k in self.keys if k.get("use") == "sig"]

    def find_signing_key(self, kid: str) -> dict[str, Any] | None:
        """Return the first signing key with ``kid``, if any."""
        for key in self.signing_keys():
            if key.get("kid") == kid:
                return key
        return None

    def eddsa_curves(self) -> set[str]:
        """EdDSA curves among the signing keys."""
        return {
            k["crv"]
            for k in self.signing_keys()
            if k.get("kty") == "OKP" and k.get("crv") in EDDSA_CURVES
        }


class BrokerDocuments(BaseModel):
    model_config = ConfigDict(frozen=True)

    config: BrokerConfig
    jwks: KeySet


async def fetch_discovery(store: Store, broker: str) -> BrokerDocuments:
    """Fetch and validate the discovery document and the key set it points to."""
    raw_config = await store.fetch_cached(DISCOVERY_CACHE_ID, broker + DISCOVERY_PATH)
    try:
        config = BrokerConfig.model_validate(raw_config)
    except ValidationError as err:
        raise DiscoveryError("Discovery document incorrectly formatted") from err

    raw_keys = await store.fetch_cached(KEYS_CACHE_ID, config.jwks_uri)
    try:
        jwks = KeySet.model_validate(raw_keys)
    except ValidationError as err:
        raise DiscoveryError("Keys document incorrectly formatted") from err

    return BrokerDocuments(config=config, jwks=jwks)
