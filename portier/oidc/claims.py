"""Validation of id_token claims after the signature has been checked."""

from typing import Any
from urllib.parse import parse_qs

from portier.core.errors import (
    InvalidClaimError,
    InvalidIssuerError,
    MissingClaimsError,
    TokenExpiredError,
    TokenNotYetValidError,
)
from portier.oidc.types import TokenIdentity

REQUIRED_CLAIMS = ("iss", "aud", "exp", "iat", "email", "nonce")

ALG_PARAM = "id_token_signed_response_alg"
DEFAULT_ALG = "RS256"


def _numeric(claims: dict[str, Any], name: str) -> float | None:
    value = claims.get(name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise InvalidClaimError(f"Claim {name} must be a number")
    return value


def check_issuer_and_time(
    claims: dict[str, Any], issuer: str, leeway: int, now: float
) -> None:
    """Check ``iss`` and the validity window, allowing ``leeway`` on both ends."""
    if "iss" in claims and claims["iss"] != issuer:
        raise InvalidIssuerError("Token issuer does not match the broker")

    exp = _numeric(claims, "exp")
    if exp is not None and now >= exp + leeway:
        raise TokenExpiredError("Token has expired")

    iat = _numeric(claims, "iat")
    if iat is not None and iat > now + leeway:
        raise TokenNotYetValidError("Token was issued in the future")

    nbf = _numeric(claims, "nbf")
    if nbf is not None and nbf > now + leeway:
        raise TokenNotYetValidError("Token is not yet valid")


def check_required(claims: dict[str, Any]) -> None:
    missing = [name for name in REQUIRED_CLAIMS if name not in claims]
    if missing:
        raise MissingClaimsError(missing)


def extract_identity(claims: dict[str, Any]) -> TokenIdentity:
    """Validate claim shapes and return the identity the token asserts."""
    aud = claims["aud"]
    if not isinstance(aud, list) or len(aud) != 1 or not isinstance(aud[0], str):
        raise InvalidClaimError("Claim aud must be an array with one string")

    nonce = claims["nonce"]
    if not isinstance(nonce, str):
        raise InvalidClaimError("Claim nonce must be a string")

    email = claims["email"]
    if not isinstance(email, str):
        raise InvalidClaimError("Claim email must be a string")

    email_original = claims.get("email_original", email)
    if not isinstance(email_original, str):
        raise InvalidClaimError("Claim email_original must be a string")

    state = claims.get("state")
    return TokenIdentity(
        audience=aud[0],
        nonce=nonce,
        email=email,
        email_original=email_original,
        state=state if isinstance(state, str) else None,
    )


def check_audience(audience: str, client_id: str) -> None:
    """``aud`` must name this client, with or without the algorithm suffix."""
    if audience.partition("?")[0] != client_id:
        raise InvalidClaimError("Token audience does not match this client")


def pinned_algorithm(audience: str) -> str:
    """The signing algorithm requested through the ``client_id`` query suffix."""
    _, sep, query = audience.partition("?")
    if not sep:
        return DEFAULT_ALG
    values = parse_qs(query).get(ALG_PARAM)
    return values[0] if values else DEFAULT_ALG
