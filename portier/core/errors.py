"""Error categories raised by the Portier client.

Every failure surfaces as a subclass of ``PortierError``. Callers branch on
the class (or its stable ``code``) rather than on message text: a nonce
error means "restart the flow", a transport error may be worth retrying
later, and an algorithm pinning error is a downgrade signal worth alerting
on.
"""

from pydantic import BaseModel

ECHO_LIMIT = 10


def truncate(value: str) -> str:
    """Bound an untrusted value before echoing it in an error message."""
    return value[:ECHO_LIMIT]


class ErrorResponse(BaseModel):
    """JSON body for a failed login or verification."""

    error: str
    error_description: str


class PortierError(Exception):
    """Base class for all client errors."""

    code = "portier_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to an error response body."""
        return ErrorResponse(error=self.code, error_description=self.message)


class ConfigurationError(PortierError):
    """The client was constructed with unusable settings."""

    code = "configuration_error"


class TransportError(PortierError):
    """An HTTP fetch failed or returned something other than a JSON object."""

    code = "transport_error"


class DiscoveryError(PortierError):
    """A broker document is missing fields or has the wrong shape."""

    code = "discovery_error"


class KeyResolutionError(PortierError):
    """No usable key matches the token, or the key material is malformed."""

    code = "key_resolution_error"


class UnsupportedAlgorithmError(PortierError):
    """A key type, curve or algorithm outside the supported set."""

    code = "unsupported_algorithm"


class TokenValidationError(PortierError):
    """Base class for token parsing, signature and claim failures."""

    code = "invalid_token"


class MalformedTokenError(TokenValidationError):
    code = "malformed_token"


class InvalidSignatureError(TokenValidationError):
    code = "invalid_signature"


class InvalidIssuerError(TokenValidationError):
    code = "invalid_issuer"


class TokenExpiredError(TokenValidationError):
    code = "token_expired"


class TokenNotYetValidError(TokenValidationError):
    code = "token_not_yet_valid"


class MissingClaimsError(TokenValidationError):
    """One or more required claims are absent."""

    code = "missing_claims"

    def __init__(self, claims: list[str]) -> None:
        self.claims = claims
        super().__init__(f"Token is missing required claims: {', '.join(claims)}")


class InvalidClaimError(TokenValidationError):
    code = "invalid_claim"


class InvalidNonceError(PortierError):
    """The nonce is unknown, expired, or bound to another client or email."""

    code = "invalid_nonce"

    def __init__(self, message: str = "Invalid or expired nonce") -> None:
        super().__init__(message)


class AlgorithmPinningError(PortierError):
    """The token was signed with another algorithm than the one requested."""

    code = "algorithm_mismatch"
