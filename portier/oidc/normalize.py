"""Email address normalization, matching what the broker does."""

import ipaddress

import idna


def _is_ip_address(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def normalize(email: str) -> str:
    """Normalize an email address, returning an empty string if it is invalid.

    Useful for comparing user input against the address in a verified token.
    Calling it before ``Client.authenticate`` is not needed; the broker
    normalizes as part of authentication.
    """
    local, sep, host = email.rpartition("@")
    if not sep:
        return ""

    local = local.casefold()
    if not local:
        return ""

    try:
        ascii_host = idna.encode(host, uts46=True, std3_rules=True).decode("ascii")
    except (idna.IDNAError, UnicodeError):
        return ""
    if not ascii_host or ascii_host.startswith("[") or _is_ip_address(ascii_host):
        return ""

    return f"{local}@{ascii_host}"
