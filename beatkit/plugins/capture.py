"""Quick Capture: append an idea to the notepad without leaving the script."""
from __future__ import annotations

from beatkit.notes.notepad import capture_idea
from beatkit.plugins.base import EditorPlugin

FORM_HTML = """<!doctype html>
<html><body>
<textarea id="idea" autofocus placeholder="Capture an idea..."></textarea>
<button onclick="Beat.call('capture', document.getElementById('idea').value)">Capture</button>
</body></html>"""


class QuickCapturePlugin(EditorPlugin):
    @property
    def name(self) -> str:
        return "quick_capture"

    @property
    def title(self) -> str:
        return "Quick Capture"

    @property
    def shortcut(self) -> tuple[str, ...]:
        return ("cmd", "alt", "2")

    def activate(self, host, loop) -> None:
        self.host, self.loop = host, loop
        host.menu_item(self.title, self.shortcut, self.open)

    def open(self) -> None:
        if self.window is not None and self.window.is_open:
            self.window.show()
            return
        self.window = self.host.html_window(FORM_HTML, 420, 160, on_close=self._on_window_closed)

    def capture(self, idea: str) -> bool:
        """Append *idea* and close the form.  Blank ideas leave it open."""
        if not capture_idea(self.host, idea.strip()):
            return False
        self.close_window()
        return True

    def _on_window_closed(self) -> None:
        self.window = None
