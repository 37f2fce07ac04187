"""
kvinspect Codecs - One decode/encode pair per wire format.

Decode never raises. A codec that cannot make sense of a buffer returns
FallbackPlain, which carries the text the caller should show (the buffer as
plain text) together with what was attempted and why it failed.

Encode raises only for MessagePack, the one format where the text must be
valid JSON. Every other format accepts any text.

Usage:
    codec = codec_for(EncodingKind.GZIP)
    result = codec.decode(data)
    if isinstance(result, FallbackPlain):
        ...
    data = codec.encode(result.text)
"""

from __future__ import annotations

import base64
import binascii
import gzip
import logging
import zlib
from dataclasses import dataclass
from typing import Union

import msgpack
from msgpack.exceptions import UnpackException

from kvinspect.formats import (
    GZIP_LEVEL,
    GZIP_WBITS,
    EncodingKind,
    buffer_to_text,
    text_to_buffer,
)
from kvinspect.jsonfmt import dump_json, parse_json

log = logging.getLogger(__name__)

MESSAGEPACK_JSON_REQUIRED = "The content must be valid JSON to encode as MessagePack."


class EncodeError(ValueError):
    """Text cannot be encoded into the requested wire format."""

    def __init__(self, message: str, kind: EncodingKind | None = None) -> None:
        super().__init__(message)
        self.kind = kind


# =============================================================================
# Decode results
# =============================================================================

@dataclass(frozen=True)
class Decoded:
    """Buffer was understood as `kind`."""
    text: str
    kind: EncodingKind

    @property
    def is_fallback(self) -> bool:
        return False


@dataclass(frozen=True)
class FallbackPlain:
    """Buffer could not be decoded as `attempted`; `text` is shown as plain."""
    text: str
    attempted: EncodingKind
    reason: str = ""

    @property
    def kind(self) -> EncodingKind:
        return EncodingKind.PLAIN

    @property
    def is_fallback(self) -> bool:
        return True


DecodeResult = Union[Decoded, FallbackPlain]


# =============================================================================
# Gzip primitives
# =============================================================================

def gzip_compress(data: bytes, level: int = GZIP_LEVEL) -> bytes:
    """Gzip with a zero mtime so equal input and level give equal bytes."""
    compressor = zlib.compressobj(level, zlib.DEFLATED, GZIP_WBITS)
    return compressor.compress(data) + compressor.flush()


def gzip_decompress(data: bytes) -> bytes:
    """
    Gunzip one or more concatenated members.
    Raises ValueError if the buffer holds no complete, valid gzip stream.
    """
    if not data:
        raise ValueError("empty buffer is not a gzip stream")
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise ValueError(f"invalid gzip stream: {e}") from e


# =============================================================================
# Codecs
# =============================================================================

class Codec:
    """Base class. Codecs hold configuration only and are safe to share."""

    kind: EncodingKind = EncodingKind.PLAIN

    def decode(self, data: bytes) -> DecodeResult:
        raise NotImplementedError

    def encode(self, text: str) -> bytes:
        raise NotImplementedError

    def _fallback(self, text: str, reason: str) -> FallbackPlain:
        log.debug("%s decode fell back to plain: %s", self.kind.tag, reason)
        return FallbackPlain(text=text, attempted=self.kind, reason=reason)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class PlainCodec(Codec):

    kind = EncodingKind.PLAIN

    def decode(self, data: bytes) -> DecodeResult:
        return Decoded(buffer_to_text(data), EncodingKind.PLAIN)

    def encode(self, text: str) -> bytes:
        return text_to_buffer(text)


class GzipCodec(Codec):

    kind = EncodingKind.GZIP

    def __init__(self, level: int = GZIP_LEVEL) -> None:
        self.level = level

    def decode(self, data: bytes) -> DecodeResult:
        try:
            inflated = gzip_decompress(data)
        except ValueError as e:
            return self._fallback(buffer_to_text(data), str(e))
        return Decoded(buffer_to_text(inflated), EncodingKind.GZIP)

    def encode(self, text: str) -> bytes:
        return gzip_compress(text_to_buffer(text), self.level)

    def __repr__(self) -> str:
        return f"GzipCodec(level={self.level})"


class Base64GzipCodec(Codec):
    """Gzip stream wrapped in base64 text."""

    kind = EncodingKind.BASE64_GZIP

    def __init__(self, level: int = GZIP_LEVEL) -> None:
        self.level = level

    def decode(self, data: bytes) -> DecodeResult:
        original = buffer_to_text(data)
        try:
            compressed = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            return self._fallback(original, f"invalid base64: {e}")
        try:
            inflated = gzip_decompress(compressed)
        except ValueError as e:
            # Looked like base64 but was just text; show it untouched
            return self._fallback(original, str(e))
        return Decoded(buffer_to_text(inflated), EncodingKind.BASE64_GZIP)

    def encode(self, text: str) -> bytes:
        return base64.b64encode(gzip_compress(text_to_buffer(text), self.level))

    def __repr__(self) -> str:
        return f"Base64GzipCodec(level={self.level})"


class MessagePackCodec(Codec):
    """MessagePack value <-> compact JSON text."""

    kind = EncodingKind.MESSAGEPACK

    def decode(self, data: bytes) -> DecodeResult:
        try:
            value = msgpack.unpackb(data, raw=False, strict_map_key=False)
            text = dump_json(value)
        except (ValueError, TypeError, UnpackException, RecursionError) as e:
            return self._fallback(buffer_to_text(data), f"not a JSON-compatible MessagePack value: {e}")
        return Decoded(text, EncodingKind.MESSAGEPACK)

    def encode(self, text: str) -> bytes:
        try:
            value = parse_json(text)
            return msgpack.packb(value, use_bin_type=True)
        except (ValueError, TypeError, OverflowError, RecursionError) as e:
            raise EncodeError(MESSAGEPACK_JSON_REQUIRED, EncodingKind.MESSAGEPACK) from e


# =============================================================================
# Registry
# =============================================================================

def build_codecs(gzip_level: int = GZIP_LEVEL) -> dict[EncodingKind, Codec]:
    """Fresh codec table with a custom compression level."""
    return {
        EncodingKind.PLAIN: PlainCodec(),
        EncodingKind.GZIP: GzipCodec(gzip_level),
        EncodingKind.BASE64_GZIP: Base64GzipCodec(gzip_level),
        EncodingKind.MESSAGEPACK: MessagePackCodec(),
    }


CODECS: dict[EncodingKind, Codec] = build_codecs()


def codec_for(
    kind: EncodingKind | str | None,
    codecs: dict[EncodingKind, Codec] | None = None,
) -> Codec:
    """Look up a codec. Unknown or missing kinds get the plain codec."""
    table = CODECS if codecs is None else codecs
    resolved = EncodingKind.parse(kind)
    if resolved is None:
        return table[EncodingKind.PLAIN]
    return table[resolved]
