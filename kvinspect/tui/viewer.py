"""kvinspect TUI Viewer - Textual app showing a decoded value."""

from __future__ import annotations

import sys
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import Footer, Header

from kvinspect.formats import MAX_BUFFER_SIZE, EncodingKind
from kvinspect.pipeline import ContentPipeline, default_pipeline
from kvinspect.session import EditorSession
from kvinspect.tui.widgets import ContentPanel, InfoPanel, ModeList


class ValueViewerApp(App):
    """TUI viewer for a raw stored value. Info, views and content panels."""

    TITLE = "kvinspect"
    CSS = """
    Screen {
        layout: vertical;
    }
    #main-area {
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
        Binding("m", "toggle_mode", "Raw/JSON", show=True),
        Binding("j", "next_mode", "Next", show=True),
        Binding("k", "prev_mode", "Prev", show=True),
    ]

    def __init__(
        self,
        data: bytes,
        label: str = "",
        pipeline: ContentPipeline | None = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._data = data
        self._label = label
        self._pipeline = pipeline or default_pipeline()
        self._session: EditorSession | None = None

    def compose(self) -> ComposeResult:
        if self._label:
            self.title = f"kvinspect - {self._label}"
        yield Header()
        yield Horizontal(id="main-area")
        yield Footer()

    async def on_mount(self) -> None:
        """Decode off the event loop, then build the panels."""
        self._session = await EditorSession.load(self._data, self._pipeline)
        session = self._session
        modes = session.available_modes()

        area = self.query_one("#main-area", Horizontal)
        await area.mount(
            InfoPanel(
                encoding=session.encoding,
                candidate=self._candidate(),
                size=len(self._data),
                has_json=session.modes.get("json") is not None,
                id="info",
            ),
            ModeList(
                modes=modes,
                initial_index=modes.index(session.current_mode),
                id="modes",
            ),
            ContentPanel(id="content"),
        )
        self._show(session.current_mode)
        self.query_one("#modes", ModeList).focus()

    def _candidate(self) -> EncodingKind:
        return self._pipeline.sniff(self._data)

    def _show(self, mode: str) -> None:
        if not self._session:
            return
        self._session.set_mode(mode)
        panel = self.query_one("#content", ContentPanel)
        panel.show_content(mode, self._session.text)

    def on_mode_list_mode_selected(self, event: ModeList.ModeSelected) -> None:
        self._show(event.mode)

    def action_toggle_mode(self) -> None:
        if not self._session:
            return
        modes = self._session.available_modes()
        if len(modes) < 2:
            return
        idx = modes.index(self._session.current_mode)
        self._show(modes[(idx + 1) % len(modes)])

    def action_next_mode(self) -> None:
        self.query_one("#modes", ModeList).action_cursor_down()

    def action_prev_mode(self) -> None:
        self.query_one("#modes", ModeList).action_cursor_up()


def run_viewer(path: str | Path) -> None:
    """Launch the value viewer on a raw value file."""
    path = Path(path)
    if not path.is_file():
        print(f"Error: File not found: {path}", file=sys.stderr)
        sys.exit(1)
    if path.stat().st_size > MAX_BUFFER_SIZE:
        print(f"Error: File exceeds maximum {MAX_BUFFER_SIZE} bytes", file=sys.stderr)
        sys.exit(1)

    app = ValueViewerApp(path.read_bytes(), label=path.name)
    app.run()
