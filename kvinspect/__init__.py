"""
kvinspect - Value inspection for key-value stores.
Sniff, decode and re-encode stored payloads.

Plain > Gzip > GZ64 > MessagePack, and always plain when in doubt.
"""

__version__ = "0.1.0"

from kvinspect.formats import EncodingKind
from kvinspect.codecs import EncodeError, Decoded, FallbackPlain
from kvinspect.pipeline import (
    ContentPipeline,
    DecodedContent,
    decode,
    encode,
    decode_sync,
    encode_sync,
    format_json,
)
from kvinspect.session import EditorSession, InvalidJSONError
