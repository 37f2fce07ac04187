"""
kvinspect JSON Formatter - Pretty/minify view of JSON documents.

Only objects and arrays count as documents. Scalars ("text", 1, true, null)
parse fine but are not something you would edit as JSON, so they get no
JSON view at all.
"""

from __future__ import annotations

import json
import re
from typing import Any

# Lone surrogates (from \uD800-style escapes or escaped bytes) have no
# UTF-8 spelling and are written back as \u escapes.
_SURROGATE = re.compile("[\ud800-\udfff]")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def parse_json(text: str) -> Any:
    """Strict JSON parse: NaN, Infinity and -Infinity literals are rejected."""
    return json.loads(text, parse_constant=_reject_constant)


def dump_json(value: Any, beautify: bool = False) -> str:
    """Serialize a parsed value. Tab indentation when beautify is set."""
    if beautify:
        text = json.dumps(value, indent="\t", ensure_ascii=False, allow_nan=False)
    else:
        text = json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    return _SURROGATE.sub(_escape_surrogate, text)


def _escape_surrogate(match: re.Match) -> str:
    return f"\\u{ord(match.group()):04x}"


def format_json(text: str, beautify: bool = False) -> str | None:
    """
    Re-serialize a JSON object or array.
    Returns None if text is not JSON or is a bare scalar.
    """
    if not isinstance(text, str):
        return None
    try:
        value = parse_json(text)
        if not isinstance(value, (dict, list)):
            return None
        # 1e999 parses to inf, which has no JSON spelling
        return dump_json(value, beautify)
    except (ValueError, RecursionError):
        return None


def is_json_document(text: str) -> bool:
    """True if text has a JSON view (object or array)."""
    return format_json(text) is not None
