"""Line-based client driver used by broker conformance test suites.

Reads tab-separated commands from stdin and answers each on stdout:

    echo <text>             -> ok <text>
    auth <email> [state]    -> ok <url>          | err <message>
    verify <token>          -> ok <email> <state> | err <message>
"""

import argparse
import asyncio
import sys
from typing import TextIO

from portier.core.errors import PortierError
from portier.core.logging import configure_logging
from portier.core.settings import ClientSettings
from portier.oidc.client import Client
from portier.store.memory_store import MemoryStore

REDIRECT_URI = "http://imaginary-client.test/fake-verify-route"


def _one_line(err: Exception) -> str:
    return "  ".join(str(err).split("\n"))


async def run(client: Client, stdin: TextIO, stdout: TextIO) -> int:
    """Serve commands until EOF. Returns the process exit code."""
    for line in stdin:
        cmd = line.rstrip("\r\n").split("\t")
        if cmd[0] == "echo":
            stdout.write(f"ok\t{cmd[1] if len(cmd) > 1 else ''}\n")
        elif cmd[0] == "auth":
            try:
                url = await client.authenticate(cmd[1], cmd[2] if len(cmd) > 2 else None)
                stdout.write(f"ok\t{url}\n")
            except (PortierError, IndexError) as err:
                stdout.write(f"err\t{_one_line(err)}\n")
        elif cmd[0] == "verify":
            try:
                result = await client.verify(cmd[1])
                stdout.write(f"ok\t{result.email}\t{result.state or ''}\n")
            except (PortierError, IndexError) as err:
                stdout.write(f"err\t{_one_line(err)}\n")
        else:
            print(f"invalid command: {cmd[0]}", file=sys.stderr)
            return 1
        stdout.flush()
    return 0


async def _main(broker: str) -> int:
    store = MemoryStore()
    client = Client(store, ClientSettings(broker=broker, redirect_uri=REDIRECT_URI))
    try:
        return await run(client, sys.stdin, sys.stdout)
    finally:
        await store.aclose()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("broker", help="Broker origin, e.g. http://localhost:3333")
    args = parser.parse_args()
    configure_logging()
    sys.exit(asyncio.run(_main(args.broker)))


if __name__ == "__main__":
    main()
