"""JWK to SubjectPublicKeyInfo / PEM conversion."""

import base64
import textwrap
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from portier.core.errors import (
    KeyResolutionError,
    UnsupportedAlgorithmError,
    truncate,
)
from portier.crypto import der
from portier.crypto.types import ECPublicJWK, OKPPublicJWK, PublicJWK, RSAPublicJWK

OID_RSA_ENCRYPTION = (1, 2, 840, 113549, 1, 1, 1)
OID_EC_PUBLIC_KEY = (1, 2, 840, 10045, 2, 1)

EC_CURVE_OIDS: dict[str, tuple[int, ...]] = {
    "P-256": (1, 2, 840, 10045, 3, 1, 7),
    "P-384": (1, 3, 132, 0, 34),
    "P-521": (1, 3, 132, 0, 35),
    "secp256k1": (1, 3, 132, 0, 10),
}

OKP_CURVE_OIDS: dict[str, tuple[int, ...]] = {
    "X25519": (1, 3, 101, 110),
    "X448": (1, 3, 101, 111),
    "Ed25519": (1, 3, 101, 112),
    "Ed448": (1, 3, 101, 113),
}

PEM_LINE_LENGTH = 64

_KEY_MODELS: dict[str, type[RSAPublicJWK] | type[ECPublicJWK] | type[OKPPublicJWK]] = {
    "RSA": RSAPublicJWK,
    "EC": ECPublicJWK,
    "OKP": OKPPublicJWK,
}

_URLSAFE = str.maketrans("-_", "+/")


def decode_base64url(value: str) -> bytes:
    """Decode unpadded base64url, rejecting malformed input."""
    padded = value.translate(_URLSAFE) + "=" * (-len(value) % 4)
    try:
        return base64.b64decode(padded, validate=True)
    except ValueError as err:
        raise KeyResolutionError("Invalid base64") from err


def parse_jwk(data: Mapping[str, Any]) -> PublicJWK:
    """Validate a raw JWK object into its typed form, dispatching on ``kty``."""
    kty = data.get("kty")
    if not isinstance(kty, str):
        raise KeyResolutionError("Missing or invalid kty")
    model = _KEY_MODELS.get(kty)
    if model is None:
        raise UnsupportedAlgorithmError(f"Unsupported kty: {truncate(kty)}")
    try:
        return model.model_validate(dict(data))
    except ValidationError as err:
        raise KeyResolutionError(f"Incomplete {kty} public key") from err


def _rsa_info(jwk: RSAPublicJWK) -> bytes:
    n = der.encode_integer(decode_base64url(jwk.n))
    e = der.encode_integer(decode_base64url(jwk.e))
    key = der.encode_sequence(n, e)
    alg = der.encode_sequence(der.encode_oid(*OID_RSA_ENCRYPTION), der.NULL)
    return der.encode_sequence(alg, der.encode_bit_string(key))


def _ec_info(jwk: ECPublicJWK) -> bytes:
    curve = EC_CURVE_OIDS.get(jwk.crv)
    if curve is None:
        raise UnsupportedAlgorithmError(f"Unsupported EC curve: {truncate(jwk.crv)}")
    point = b"\x04" + decode_base64url(jwk.x) + decode_base64url(jwk.y)
    alg = der.encode_sequence(
        der.encode_oid(*OID_EC_PUBLIC_KEY), der.encode_oid(*curve)
    )
    return der.encode_sequence(alg, der.encode_bit_string(point))


def _okp_info(jwk: OKPPublicJWK) -> bytes:
    # No parameters field for this algorithm family.
    alg = der.encode_sequence(der.encode_oid(*okp_curve_oid(jwk.crv)))
    return der.encode_sequence(alg, der.encode_bit_string(decode_base64url(jwk.x)))


def okp_curve_oid(crv: str) -> tuple[int, ...]:
    curve = OKP_CURVE_OIDS.get(crv)
    if curve is None:
        raise UnsupportedAlgorithmError(f"Unsupported OKP curve: {truncate(crv)}")
    return curve


def to_der(jwk: PublicJWK) -> bytes:
    """Encode a public JWK as a DER SubjectPublicKeyInfo."""
    if isinstance(jwk, RSAPublicJWK):
        return _rsa_info(jwk)
    if isinstance(jwk, ECPublicJWK):
        return _ec_info(jwk)
    return _okp_info(jwk)


def der_to_pem(data: bytes) -> str:
    body = textwrap.fill(base64.b64encode(data).decode("ascii"), PEM_LINE_LENGTH)
    return f"-----BEGIN PUBLIC KEY-----\n{body}\n-----END PUBLIC KEY-----\n"


def to_pem(jwk: PublicJWK) -> str:
    """Encode a public JWK as PEM text."""
    return der_to_pem(to_der(jwk))


def to_verification_key(jwk: PublicJWK) -> str | bytes:
    """Key material for the signature primitive.

    RSA and EC keys become PEM text. OKP keys are returned as the raw public
    key bytes, which is what EdDSA verifiers consume.
    """
    if isinstance(jwk, OKPPublicJWK):
        okp_curve_oid(jwk.crv)
        return decode_base64url(jwk.x)
    return to_pem(jwk)
