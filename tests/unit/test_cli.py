"""Tests for the conformance tester command loop."""

import io

from conftest import AUTH_ENDPOINT, FakeBroker, query_of

from portier.cli import run
from portier.oidc.client import Client


class TestRun:
    """Tests for run()."""

    async def test_echo(self, client: Client) -> None:
        out = io.StringIO()
        assert await run(client, io.StringIO("echo\thello\n"), out) == 0
        assert out.getvalue() == "ok\thello\n"

    async def test_auth_then_verify(self, broker: FakeBroker, client: Client) -> None:
        out = io.StringIO()
        await run(client, io.StringIO("auth\tjohndoe@example.com\tst\n"), out)
        status, url = out.getvalue().rstrip("\n").split("\t")
        assert status == "ok"
        assert url.startswith(AUTH_ENDPOINT)

        params = query_of(url)
        token = broker.sign(
            broker.claims(params["nonce"], params["client_id"], state="st")
        )
        out = io.StringIO()
        await run(client, io.StringIO(f"verify\t{token}\n"), out)
        assert out.getvalue() == "ok\tjohndoe@example.com\tst\n"

    async def test_verify_error_is_reported(
        self, broker: FakeBroker, client: Client
    ) -> None:
        out = io.StringIO()
        assert await run(client, io.StringIO("verify\tgarbage\n"), out) == 0
        assert out.getvalue() == "err\tToken could not be parsed\n"

    async def test_unknown_command(self, client: Client) -> None:
        out = io.StringIO()
        assert await run(client, io.StringIO("bogus\n"), out) == 1
        assert out.getvalue() == ""
