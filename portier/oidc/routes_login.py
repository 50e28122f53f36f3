"""Relying-party login and verification endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from pydantic import BaseModel
from starlette.responses import JSONResponse

from portier.core.errors import PortierError
from portier.oidc.client import Client
from portier.oidc.types import VerifyResult

router = APIRouter()

HTTP_BAD_REQUEST = 400
HTTP_SEE_OTHER = 303


class _LoginForm(BaseModel):
    """Form fields for starting a login."""

    email: str
    state: str | None = None


class _VerifyForm(BaseModel):
    """Form fields the broker posts back to the redirect URI."""

    id_token: str | None = None
    error: str | None = None
    error_description: str | None = None


def get_client(request: Request) -> Client:
    return request.app.state.portier_client


def _error(err: PortierError) -> JSONResponse:
    return JSONResponse(
        err.to_response().model_dump(), status_code=HTTP_BAD_REQUEST
    )


@router.post("/login", response_model=None)
async def login(
    client: Annotated[Client, Depends(get_client)],
    form: Annotated[_LoginForm, Form()],
) -> RedirectResponse | JSONResponse:
    """POST /login -- redirect the browser to the broker."""
    try:
        url = await client.authenticate(form.email, form.state)
    except PortierError as err:
        return _error(err)
    return RedirectResponse(url=url, status_code=HTTP_SEE_OTHER)


@router.post("/verify", response_model=None)
async def verify(
    client: Annotated[Client, Depends(get_client)],
    form: Annotated[_VerifyForm, Form()],
) -> VerifyResult | JSONResponse:
    """POST /verify -- check the id_token posted back by the broker."""
    if form.error:
        return JSONResponse(
            {"error": form.error, "error_description": form.error_description or ""},
            status_code=HTTP_BAD_REQUEST,
        )
    if not form.id_token:
        return JSONResponse(
            {"error": "invalid_request", "error_description": "Missing id_token"},
            status_code=HTTP_BAD_REQUEST,
        )
    try:
        return await client.verify(form.id_token)
    except PortierError as err:
        return _error(err)
