"""Result types returned to callers of the Portier client."""

from pydantic import BaseModel, ConfigDict


class VerifyResult(BaseModel):
    """The outcome of a successful ``Client.verify``."""

    model_config = ConfigDict(frozen=True)

    email: str
    state: str | None = None


class TokenIdentity(BaseModel):
    """Typed view of the identity claims inside a verified token."""

    model_config = ConfigDict(frozen=True)

    audience: str
    nonce: str
    email: str
    email_original: str
    state: str | None = None
