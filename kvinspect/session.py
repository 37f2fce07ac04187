"""
kvinspect Editor Session - State an editor keeps around one stored value.

A session owns two views of the decoded text:
  - raw   the decoded content exactly as produced by the pipeline
  - json  a tab-indented JSON view, only when the content is an object/array

Saving in json mode minifies the JSON view first, so the stored value stays
compact no matter how the user indented it. The bytes returned by save() are
what the caller should persist; the session reloads itself from them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from kvinspect.codecs import EncodeError
from kvinspect.formats import EncodingKind
from kvinspect.jsonfmt import format_json
from kvinspect.pipeline import ContentPipeline, default_pipeline

log = logging.getLogger(__name__)

MODE_RAW = "raw"
MODE_JSON = "json"
MODES = (MODE_RAW, MODE_JSON)


class InvalidJSONError(ValueError):
    """The JSON view no longer holds a JSON object or array."""

    def __init__(self, message: str = "The json is invalid. Please check again.") -> None:
        super().__init__(message)


@dataclass
class EditorSession:
    """
    Usage:
        session = await EditorSession.load(raw)
        session.update("json", edited)
        raw = await session.save()
    """

    encoding: EncodingKind = EncodingKind.PLAIN
    modes: dict[str, str | None] = field(default_factory=lambda: {MODE_RAW: "", MODE_JSON: None})
    current_mode: str = MODE_RAW
    changed: bool = False
    pipeline: ContentPipeline = field(default_factory=default_pipeline, repr=False)

    @classmethod
    async def load(cls, buffer: bytes, pipeline: ContentPipeline | None = None) -> EditorSession:
        session = cls(pipeline=pipeline or default_pipeline())
        await session.reload(buffer)
        return session

    async def reload(self, buffer: bytes) -> None:
        """Replace all state with a fresh decode of buffer."""
        decoded = await self.pipeline.decode(buffer)
        json_view = format_json(decoded.content, True)
        self.encoding = decoded.encoding
        self.modes = {MODE_RAW: decoded.content, MODE_JSON: json_view}
        self.current_mode = MODE_JSON if json_view is not None else MODE_RAW
        self.changed = False

    @property
    def text(self) -> str:
        """Text of the current view."""
        return self.modes.get(self.current_mode) or ""

    def available_modes(self) -> list[str]:
        return [m for m in MODES if isinstance(self.modes.get(m), str)]

    def set_mode(self, mode: str) -> None:
        if mode not in MODES:
            raise ValueError(f"Unknown mode: {mode}. Supported: {list(MODES)}")
        if mode not in self.available_modes():
            raise ValueError(f"Mode {mode!r} is not available for this value")
        self.current_mode = mode

    def update(self, mode: str, text: str) -> None:
        """Store edited text for a view."""
        if mode not in MODES:
            raise ValueError(f"Unknown mode: {mode}. Supported: {list(MODES)}")
        if self.modes.get(mode) != text:
            self.modes[mode] = text
            self.changed = True

    async def change_encoding(self, encoding: EncodingKind | str) -> None:
        """
        Switch the target encoding. The current text is trial-encoded first;
        if that fails the encoding is left as it was and EncodeError propagates.
        """
        kind = EncodingKind.parse(encoding)
        if kind is None:
            raise EncodeError(f"Unknown encoding: {encoding!r}")
        await self.pipeline.encode(self.text, kind)
        if kind is not self.encoding:
            log.debug("encoding changed %s -> %s", self.encoding.tag, kind.tag)
        self.encoding = kind
        self.changed = True

    async def save(self) -> bytes:
        """Encode the current view and reload from the result."""
        content = self.modes.get(MODE_RAW) or ""
        if self.current_mode == MODE_JSON:
            minified = format_json(self.modes.get(MODE_JSON) or "")
            if minified is None:
                raise InvalidJSONError()
            content = minified
        buffer = await self.pipeline.encode(content, self.encoding)
        await self.reload(buffer)
        return buffer
