"""``QPlainTextEdit`` wired to a :class:`MentionsInput` controller.

The widget only ever shows plain text. Edits are forwarded to the controller,
which owns the markup; when the controller rewrites the text (a mention was
inserted or removed as a whole) the widget re-renders and moves the caret to
where the controller says it belongs.
"""

from __future__ import annotations

import logging
from typing import Any

from PySide6.QtCore import QMimeData, Qt
from PySide6.QtGui import QFocusEvent, QInputMethodEvent, QKeyEvent, QTextCursor
from PySide6.QtWidgets import QPlainTextEdit, QWidget

from ..editor.mentions_input import Key, MentionsInput
from ..events import MarkupChanged, SelectionRestored

LOGGER = logging.getLogger(__name__)

_KEY_MAP: dict[int, Key] = {
    int(Qt.Key.Key_Escape): Key.ESCAPE,
    int(Qt.Key.Key_Up): Key.UP,
    int(Qt.Key.Key_Down): Key.DOWN,
    int(Qt.Key.Key_Return): Key.RETURN,
    int(Qt.Key.Key_Enter): Key.RETURN,
    int(Qt.Key.Key_Tab): Key.TAB,
    int(Qt.Key.Key_Space): Key.SPACE,
}


class MentionsTextEdit(QPlainTextEdit):
    """Plain text editor whose value is the controller's markup."""

    def __init__(self, controller: MentionsInput | None = None, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._controller = controller or MentionsInput()
        self._syncing = False
        self._editing = False
        self._pending_text: str | None = None
        self._pending_selection: tuple[int, int] | None = None

        self._render(self._controller.plain_text)
        self.textChanged.connect(self._handle_text_changed)
        self.cursorPositionChanged.connect(self._handle_cursor_moved)
        self.selectionChanged.connect(self._handle_cursor_moved)
        self._controller.events.subscribe(MarkupChanged, self._handle_markup_changed)
        self._controller.events.subscribe(SelectionRestored, self._handle_selection_restored)

    @property
    def controller(self) -> MentionsInput:
        return self._controller

    def markup(self) -> str:
        return self._controller.value

    def set_markup(self, markup: str) -> None:
        """Load ``markup`` and show its plain text."""

        self._controller.set_value(markup)
        self._render(self._controller.plain_text)

    # ------------------------------------------------------------------
    # Qt event overrides
    # ------------------------------------------------------------------
    def keyPressEvent(self, event: QKeyEvent) -> None:  # noqa: N802 - Qt override
        key = _KEY_MAP.get(int(event.key()))
        if key is not None and self._controller.handle_key(key):
            event.accept()
            return
        self._run_edit(super().keyPressEvent, event)

    def inputMethodEvent(self, event: QInputMethodEvent) -> None:  # noqa: N802 - Qt override
        if event.preeditString():
            self._controller.composition_start()
        else:
            self._controller.composition_end()
        self._run_edit(super().inputMethodEvent, event)

    def insertFromMimeData(self, source: QMimeData) -> None:  # noqa: N802 - Qt override
        self._run_edit(super().insertFromMimeData, source)

    def focusOutEvent(self, event: QFocusEvent) -> None:  # noqa: N802 - Qt override
        self._controller.handle_blur()
        super().focusOutEvent(event)

    # ------------------------------------------------------------------
    # Signal handlers
    # ------------------------------------------------------------------
    def _run_edit(self, handler: Any, event: Any) -> None:
        # caret moves during the edit must not overwrite the pre-edit selection
        self._editing = True
        try:
            handler(event)
        finally:
            self._editing = False
        self._flush_pending()
        self._sync_selection()

    def _flush_pending(self) -> None:
        text, self._pending_text = self._pending_text, None
        selection, self._pending_selection = self._pending_selection, None
        if text is not None and text != self.toPlainText():
            LOGGER.debug("Re-rendering plain text after markup change")
            self._render(text)
        if selection is not None:
            self._apply_selection(*selection)

    def _handle_text_changed(self) -> None:
        if self._syncing:
            return
        cursor = self.textCursor()
        self._controller.handle_change(self.toPlainText(), cursor.selectionStart(), cursor.selectionEnd())

    def _handle_cursor_moved(self) -> None:
        if self._syncing or self._editing:
            return
        self._sync_selection()

    def _handle_markup_changed(self, event: MarkupChanged) -> None:
        # never touch the document from inside its own change notification
        self._pending_text = event.plain_text
        if not self._editing:
            self._flush_pending()

    def _handle_selection_restored(self, event: SelectionRestored) -> None:
        self._pending_selection = (event.start, event.end)
        if not self._editing:
            self._flush_pending()

    def _apply_selection(self, start: int, end: int) -> None:
        self._syncing = True
        try:
            cursor = self.textCursor()
            cursor.setPosition(start)
            cursor.setPosition(end, QTextCursor.MoveMode.KeepAnchor)
            self.setTextCursor(cursor)
        finally:
            self._syncing = False

    def _sync_selection(self) -> None:
        if self._syncing:
            return
        cursor = self.textCursor()
        self._controller.handle_select(cursor.selectionStart(), cursor.selectionEnd(), self.toPlainText())

    def _render(self, plain_text: str) -> None:
        self._syncing = True
        try:
            self.setPlainText(plain_text)
        finally:
            self._syncing = False


__all__ = ["MentionsTextEdit"]
