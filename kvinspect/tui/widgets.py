"""kvinspect TUI Widgets - Panels for the value viewer."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.message import Message
from textual.reactive import reactive
from textual.widgets import Label, ListItem, ListView, Static

from kvinspect.formats import ENCODING_LABELS, EncodingKind, printable_text


class InfoPanel(Static):
    """Sidebar panel showing how the value was decoded."""

    DEFAULT_CSS = """
    InfoPanel {
        width: 32;
        border: solid $accent;
        padding: 1;
        overflow-y: auto;
    }
    InfoPanel .info-title {
        text-style: bold;
        color: $text;
        margin-bottom: 1;
    }
    InfoPanel .info-key {
        color: $text-muted;
    }
    InfoPanel .info-val {
        color: $text;
    }
    InfoPanel .fallback {
        color: $warning;
        text-style: bold;
    }
    """

    def __init__(
        self,
        encoding: EncodingKind,
        candidate: EncodingKind,
        size: int,
        has_json: bool,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._encoding = encoding
        self._candidate = candidate
        self._size = size
        self._has_json = has_json

    def compose(self) -> ComposeResult:
        yield Label(ENCODING_LABELS[self._encoding], classes="info-title")

        # Sniffer guessed something the codec could not decode
        if self._candidate is not self._encoding:
            yield Label(
                f"Looked like {self._candidate.tag}, shown as plain",
                classes="fallback",
            )

        yield Label("")  # spacer

        rows = {
            "encoding": self._encoding.tag,
            "sniffed": self._candidate.tag,
            "size": f"{self._size} bytes",
            "json view": "yes" if self._has_json else "no",
        }
        for key, val in rows.items():
            yield Label(f"{key}:", classes="info-key")
            yield Label(f"  {val}", classes="info-val")


class ModeList(ListView):
    """Available views of the value (raw, json)."""

    DEFAULT_CSS = """
    ModeList {
        width: 16;
        border: solid $accent;
    }
    ModeList > ListItem {
        padding: 0 1;
    }
    ModeList > ListItem.--highlight {
        background: $accent;
    }
    """

    class ModeSelected(Message):
        """Fired when a view is selected."""

        def __init__(self, mode: str) -> None:
            self.mode = mode
            super().__init__()

    def __init__(self, modes: list[str], **kwargs) -> None:
        self._modes = modes
        super().__init__(**kwargs)

    def compose(self) -> ComposeResult:
        for name in self._modes:
            yield ListItem(Label(name))

    def _post_current(self) -> None:
        idx = self.index or 0
        if 0 <= idx < len(self._modes):
            self.post_message(self.ModeSelected(self._modes[idx]))

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        self._post_current()

    def on_list_view_highlighted(self, event: ListView.Highlighted) -> None:
        self._post_current()


class ContentPanel(Static):
    """Decoded text of the current view."""

    DEFAULT_CSS = """
    ContentPanel {
        border: solid $accent;
        padding: 1;
        overflow: auto;
    }
    ContentPanel .content-title {
        text-style: bold;
        color: $accent;
        margin-bottom: 1;
    }
    ContentPanel .content-body {
        color: $text;
    }
    """

    current_mode = reactive("")

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._title_widget: Label | None = None
        self._body_widget: Static | None = None

    def compose(self) -> ComposeResult:
        self._title_widget = Label("Decoding...", classes="content-title")
        self._body_widget = Static("", classes="content-body")
        yield self._title_widget
        yield self._body_widget

    def show_content(self, mode: str, content: str) -> None:
        self.current_mode = mode
        if self._title_widget:
            self._title_widget.update(f"--- {mode} ---")
        if self._body_widget:
            # Text() so brackets in values are never read as markup
            self._body_widget.update(Text(printable_text(content)))
        self.scroll_home()
