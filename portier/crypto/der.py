"""Minimal DER encoder for SubjectPublicKeyInfo structures."""

CONSTRUCTED = 0x20

TAG_INTEGER = 0x02
TAG_BIT_STRING = 0x03
TAG_NULL = 0x05
TAG_OBJECT_ID = 0x06
TAG_SEQUENCE = 0x10 | CONSTRUCTED

NULL = bytes([TAG_NULL, 0x00])

MAX_LENGTH = 2**31 - 1
SHORT_FORM_LIMIT = 128


def encode_value(tag: int, content: bytes) -> bytes:
    """Encode ``content`` in tag-length-value form."""
    length = len(content)
    if length > MAX_LENGTH:
        raise ValueError("DER value too large")
    if length < SHORT_FORM_LIMIT:
        prefix = bytes([tag, length])
    else:
        enc = length.to_bytes((length.bit_length() + 7) // 8, "big")
        prefix = bytes([tag, 0x80 | len(enc)]) + enc
    return prefix + content


def encode_base128(num: int) -> bytes:
    """Big-endian base-128, continuation bit set on all but the last byte."""
    if num < 0:
        raise ValueError("base-128 value must be non-negative")
    out = bytearray([num & 0x7F])
    num >>= 7
    while num > 0:
        out.append((num & 0x7F) | 0x80)
        num >>= 7
    out.reverse()
    return bytes(out)


def encode_integer(magnitude: bytes) -> bytes:
    """Encode big-endian unsigned bytes as a minimal, positive INTEGER."""
    stripped = magnitude.lstrip(b"\x00") or b"\x00"
    if stripped[0] & 0x80:
        stripped = b"\x00" + stripped
    return encode_value(TAG_INTEGER, stripped)


def encode_sequence(*parts: bytes) -> bytes:
    return encode_value(TAG_SEQUENCE, b"".join(parts))


def encode_oid(*arcs: int) -> bytes:
    """Encode a dotted object identifier, e.g. ``encode_oid(1, 3, 101, 112)``."""
    if len(arcs) < 2:
        raise ValueError("object identifier needs at least two arcs")
    first, second, *rest = arcs
    body = encode_base128(first * 40 + second)
    body += b"".join(encode_base128(arc) for arc in rest)
    return encode_value(TAG_OBJECT_ID, body)


def encode_bit_string(data: bytes) -> bytes:
    """Wrap ``data`` in a BIT STRING with zero unused bits."""
    return encode_value(TAG_BIT_STRING, b"\x00" + data)
