"""
kvinspect Wire Formats
======================

Every value read from the store is an untyped byte buffer. kvinspect knows
four ways such a buffer may have been written:

    plain         <- UTF-8 text, stored as-is
    gzip          <- gzip stream (RFC 1952), starts with 1F 8B
    gz64          <- gzip stream, then base64 (standard alphabet, padded)
    messagepack   <- a single MessagePack value (maps, arrays, scalars)

Tags:
    - The lowercase tags above are what callers see and pass back on save
    - EncodingKind.parse() maps a tag to a member, None for anything else

Text View:
    - Buffers become text as UTF-8 with surrogateescape
    - Bytes that are not valid UTF-8 survive as lone surrogates, so
      text -> bytes restores the exact original buffer
    - Other lone surrogates encode to their three-byte UTF-8 form, so
      text -> bytes never fails
    - Gzip payloads and base64 text go through the same view

Compression Parameters:
    - Level 9, mtime 0, zlib gzip wrapper (OS byte from zlib)
    - Held constant so that decode -> encode reproduces gzip/gz64 buffers
      written with the same parameters byte for byte
"""

from __future__ import annotations

import codecs
import re
from enum import Enum


class EncodingKind(str, Enum):
    """Closed set of wire formats a stored value can use."""

    PLAIN = "plain"
    GZIP = "gzip"
    BASE64_GZIP = "gz64"
    MESSAGEPACK = "messagepack"

    @property
    def tag(self) -> str:
        return self.value

    @classmethod
    def parse(cls, tag: str | EncodingKind | None) -> EncodingKind | None:
        """Resolve a tag to a kind. Unknown or missing tags return None."""
        if isinstance(tag, cls):
            return tag
        if not isinstance(tag, str):
            return None
        try:
            return cls(tag.strip().lower())
        except ValueError:
            return None

    def __str__(self) -> str:
        return self.value


# Human labels (matches the encoding picker in the editor)
ENCODING_LABELS = {
    EncodingKind.PLAIN: "Plain",
    EncodingKind.GZIP: "GZIP",
    EncodingKind.BASE64_GZIP: "GZ64",
    EncodingKind.MESSAGEPACK: "MessagePack",
}

ENCODING_TAGS = tuple(kind.value for kind in EncodingKind)

# Gzip stream signature (ID1, ID2)
GZIP_MAGIC = b"\x1f\x8b"

# Buffers must be strictly longer than this to be treated as gzip candidates.
# A gzip member is at least 18 bytes (10 header + 8 trailer).
MIN_GZIP_LENGTH = 10

# zlib compression level used on encode
GZIP_LEVEL = 9

# zlib wbits selecting the gzip wrapper
GZIP_WBITS = 16 + 15

# Canonical base64: groups of 4, optional padded final group, empty allowed.
# Always used with fullmatch() so a trailing newline never matches.
BASE64_PATTERN = re.compile(
    r"(?:[0-9a-zA-Z+/]{4})*(?:[0-9a-zA-Z+/]{2}==|[0-9a-zA-Z+/]{3}=)?"
)

# First byte above this means "maybe MessagePack"
ASCII_MAX = 0x7F

# Safety limit for the CLI and viewer (the core itself takes any size)
MAX_BUFFER_SIZE = 64 * 1024 * 1024  # 64MB

# Text view error handlers (lossless for arbitrary bytes)
TEXT_ERRORS = "surrogateescape"
BUFFER_ERRORS = "kvinspect.surrogates"


def _encode_surrogates(exc: UnicodeError) -> tuple[bytes, int]:
    """
    Encode error handler for lone surrogates.
    U+DC80..U+DCFF are escaped bytes and go back out as those bytes; any
    other surrogate is written as its three-byte UTF-8 form.
    """
    if not isinstance(exc, UnicodeEncodeError):
        raise exc
    out = bytearray()
    for ch in exc.object[exc.start:exc.end]:
        point = ord(ch)
        if 0xDC80 <= point <= 0xDCFF:
            out.append(point - 0xDC00)
        else:
            out += ch.encode("utf-8", "surrogatepass")
    return bytes(out), exc.end


codecs.register_error(BUFFER_ERRORS, _encode_surrogates)


def buffer_to_text(data: bytes) -> str:
    """Decode a buffer to text, keeping undecodable bytes as surrogates."""
    return bytes(data).decode("utf-8", TEXT_ERRORS)


def text_to_buffer(text: str) -> bytes:
    """Inverse of buffer_to_text(). Never raises for any str."""
    return text.encode("utf-8", BUFFER_ERRORS)


def printable_text(text: str) -> str:
    """Replace escaped bytes with U+FFFD for display surfaces."""
    return text_to_buffer(text).decode("utf-8", "replace")
