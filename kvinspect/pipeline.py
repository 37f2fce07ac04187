"""
kvinspect Pipeline - Sniff, decode and encode stored values.

Two public operations:
  - decode(buffer)          -> DecodedContent   never raises
  - encode(text, encoding)  -> bytes            raises EncodeError only for
                                                messagepack + invalid JSON

Both have a synchronous core (decode_bytes / encode_text) and an async
wrapper that runs the core in the loop's default executor, so compression
of one large value never stalls other work on the event loop. Calls share
no mutable state and may complete in any order.

Usage:
    pipeline = ContentPipeline()
    value = await pipeline.decode(raw)
    value.content, value.encoding        # "hello", EncodingKind.GZIP
    raw = await pipeline.encode(value.content, value.encoding)
"""

from __future__ import annotations

import asyncio
import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable

from kvinspect.codecs import Codec, DecodeResult, build_codecs, codec_for
from kvinspect.formats import GZIP_LEVEL, EncodingKind, text_to_buffer
from kvinspect.jsonfmt import format_json as _format_json
from kvinspect.sniffer import classify

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodedContent:
    """Text shown to the user plus the encoding to write it back with."""
    content: str
    encoding: EncodingKind

    def to_dict(self) -> dict[str, str]:
        return {"content": self.content, "encoding": self.encoding.tag}


class ContentPipeline:
    """
    Ties the sniffer, the codec table and the fallback policy together.
    Holds configuration only; one instance can serve any number of
    concurrent calls.
    """

    def __init__(
        self,
        sniffer: Callable[[bytes], EncodingKind] = classify,
        codecs: dict[EncodingKind, Codec] | None = None,
        gzip_level: int = GZIP_LEVEL,
    ) -> None:
        self._sniff = sniffer
        self._codecs = codecs if codecs is not None else build_codecs(gzip_level)

    def codec(self, kind: EncodingKind | str | None) -> Codec:
        return codec_for(kind, self._codecs)

    # --- sync core ---

    def sniff(self, buffer: bytes) -> EncodingKind:
        return self._sniff(bytes(buffer))

    def attempt(self, buffer: bytes) -> DecodeResult:
        """Sniff and decode, returning the codec's raw result."""
        data = bytes(buffer)
        candidate = self.sniff(data)
        return self.codec(candidate).decode(data)

    def decode_bytes(self, buffer: bytes) -> DecodedContent:
        result = self.attempt(buffer)
        if result.is_fallback:
            log.debug(
                "%d byte buffer shown as plain (tried %s: %s)",
                len(buffer), result.attempted.tag, result.reason,
            )
        return DecodedContent(content=result.text, encoding=result.kind)

    def encode_text(self, text: str, encoding: EncodingKind | str | None = None) -> bytes:
        kind = EncodingKind.parse(encoding)
        if kind is None:
            if encoding is not None:
                log.debug("unknown encoding %r, writing text unchanged", encoding)
            return text_to_buffer(text)
        return self.codec(kind).encode(text)

    # --- async surface ---

    async def decode(self, buffer: bytes) -> DecodedContent:
        return await _offload(self.decode_bytes, bytes(buffer))

    async def encode(self, text: str, encoding: EncodingKind | str | None = None) -> bytes:
        return await _offload(self.encode_text, text, encoding)

    def __repr__(self) -> str:
        return f"ContentPipeline(codecs={list(self._codecs.values())})"


async def _offload(func: Callable[..., Any], *args: Any) -> Any:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args))


# =============================================================================
# Module-level API (default pipeline)
# =============================================================================

_default = ContentPipeline()


def default_pipeline() -> ContentPipeline:
    return _default


async def decode(buffer: bytes) -> DecodedContent:
    """Classify and decode a stored value. Never raises."""
    return await _default.decode(buffer)


async def encode(content: str, encoding: EncodingKind | str | None = None) -> bytes:
    """Encode edited text. Raises EncodeError for messagepack + invalid JSON."""
    return await _default.encode(content, encoding)


def decode_sync(buffer: bytes) -> DecodedContent:
    return _default.decode_bytes(buffer)


def encode_sync(content: str, encoding: EncodingKind | str | None = None) -> bytes:
    return _default.encode_text(content, encoding)


def format_json(text: str, beautify: bool = False) -> str | None:
    """JSON view of text (object/array only), or None."""
    return _format_json(text, beautify)
