"""Public JSON Web Key shapes accepted by the converter."""

from typing import Literal

from pydantic import BaseModel, ConfigDict


class _PublicJWK(BaseModel):
    model_config = ConfigDict(strict=True, frozen=True, extra="ignore")

    kid: str | None = None
    use: str | None = None
    alg: str | None = None


class RSAPublicJWK(_PublicJWK):
    """RSA public key: modulus and exponent."""

    kty: Literal["RSA"] = "RSA"
    n: str
    e: str


class ECPublicJWK(_PublicJWK):
    """Elliptic-curve public key: uncompressed point coordinates."""

    kty: Literal["EC"] = "EC"
    crv: str
    x: str
    y: str


class OKPPublicJWK(_PublicJWK):
    """Octet key pair (Ed25519, Ed448, X25519, X448) public key."""

    kty: Literal["OKP"] = "OKP"
    crv: str
    x: str


PublicJWK = RSAPublicJWK | ECPublicJWK | OKPPublicJWK
