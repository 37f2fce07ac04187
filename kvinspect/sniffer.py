"""
kvinspect Sniffer - Guess the wire format of an untyped buffer.

Rules are evaluated in order, first match wins:

    1. gzip         length > 10 and starts with 1F 8B
    2. gz64         whole buffer is canonical base64 text (empty included)
    3. messagepack  first byte > 0x7F
    4. plain        everything else

The result is only a candidate. The matching codec still has to decode the
buffer, and falls back to plain when it cannot.

Known blind spots (kept on purpose):
  - MessagePack values that are a single positive fixint (0x00-0x7F) look
    exactly like one ASCII character and are classified as plain
  - The base64 rule checks surface grammar only; short words such as "test"
    or "abcd" are valid base64 and will be tried as gz64 first
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from kvinspect.formats import (
    ASCII_MAX,
    BASE64_PATTERN,
    GZIP_MAGIC,
    MIN_GZIP_LENGTH,
    EncodingKind,
    buffer_to_text,
)

log = logging.getLogger(__name__)


def has_gzip_magic(data: bytes) -> bool:
    return len(data) > MIN_GZIP_LENGTH and data[:2] == GZIP_MAGIC


def looks_like_base64(data: bytes) -> bool:
    return BASE64_PATTERN.fullmatch(buffer_to_text(data)) is not None


def has_high_bit_first_byte(data: bytes) -> bool:
    return len(data) > 0 and data[0] > ASCII_MAX


@dataclass(frozen=True)
class SniffRule:
    """One (predicate, candidate) pair in the sniffing order."""
    kind: EncodingKind
    predicate: Callable[[bytes], bool]
    rationale: str

    def matches(self, data: bytes) -> bool:
        return self.predicate(data)


SNIFF_RULES: tuple[SniffRule, ...] = (
    SniffRule(
        EncodingKind.GZIP,
        has_gzip_magic,
        "starts with the gzip stream signature 1F 8B",
    ),
    SniffRule(
        EncodingKind.BASE64_GZIP,
        looks_like_base64,
        "entire buffer is canonical base64 text",
    ),
    SniffRule(
        EncodingKind.MESSAGEPACK,
        has_high_bit_first_byte,
        "first byte is outside 7-bit ASCII",
    ),
)


def classify(data: bytes, rules: tuple[SniffRule, ...] = SNIFF_RULES) -> EncodingKind:
    """Return the candidate encoding for a buffer. Pure and deterministic."""
    data = bytes(data)
    for rule in rules:
        if rule.matches(data):
            log.debug("sniffed %s (%s)", rule.kind.tag, rule.rationale)
            return rule.kind
    return EncodingKind.PLAIN


def explain(data: bytes, rules: tuple[SniffRule, ...] = SNIFF_RULES) -> list[tuple[SniffRule, bool]]:
    """Evaluate every rule (no short-circuit). Used for diagnostics."""
    data = bytes(data)
    return [(rule, rule.matches(data)) for rule in rules]
