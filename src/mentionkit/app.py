"""Demo launcher: a mention-aware editor window wired to sample sources."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, cast

from .editor.mentions_input import MentionsInput
from .events import FocusChanged, MarkupChanged, SuggestionsCleared, SuggestionsUpdated
from .settings import MentionSettings, SettingsStore, coerce_setting
from .suggestions.sources import MentionSource
from .utils import logging as logging_utils

_LOGGER = logging.getLogger(__name__)
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}

SAMPLE_USERS: tuple[Mapping[str, str], ...] = (
    {"id": "walter", "display": "Walter White"},
    {"id": "jesse", "display": "Jesse Pinkman"},
    {"id": "gus", "display": "Gustavo Fring"},
    {"id": "saul", "display": "Saul Goodman"},
    {"id": "hank", "display": "Hank Schrader"},
)
SAMPLE_TAGS: tuple[str, ...] = ("bug", "feature", "question", "urgent")


@dataclass(slots=True)
class QtRuntime:
    """Container returned by :func:`create_qapp`."""

    app: Any
    loop: asyncio.AbstractEventLoop


def configure_logging(debug: bool = False, *, force: bool = False) -> None:
    level = logging.DEBUG if debug else logging.INFO
    logging_utils.setup_logging(level, force=force)
    _LOGGER.debug("Logging configured (level=%s)", logging.getLevelName(level))


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> MentionSettings:
    """Load persisted settings or fall back to defaults."""

    active_store = store or SettingsStore(path)
    try:
        return active_store.load(overrides=overrides)
    except OSError as exc:
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        return MentionSettings()


def build_sources() -> list[MentionSource]:
    """Sample sources: people behind ``@`` (async lookup) and tags behind ``#``."""

    async def lookup_users(query: str, _callback: Any) -> list[Mapping[str, str]]:
        await asyncio.sleep(0.05)
        needle = query.lower()
        return [user for user in SAMPLE_USERS if needle in user["display"].lower()]

    return [
        MentionSource(type="user", data=lookup_users),
        MentionSource(type="tag", data=list(SAMPLE_TAGS), trigger="#", append_space_on_add=True),
    ]


def create_qapp() -> QtRuntime:
    """Create a qasync-powered QApplication so awaitable providers can run."""

    try:  # Local import to avoid mandatory PySide6 dependency at import time.
        from PySide6.QtWidgets import QApplication
    except ImportError as exc:  # pragma: no cover - depends on desktop stack
        raise RuntimeError("PySide6 must be installed to launch the mentionkit demo.") from exc

    try:
        from qasync import QEventLoop
    except ImportError as exc:  # pragma: no cover - depends on env setup
        raise RuntimeError("qasync is required to run the async Qt event loop.") from exc

    app = cast(Any, QApplication.instance() or QApplication(sys.argv))
    app.setApplicationName("mentionkit")
    loop = QEventLoop(app)
    asyncio.set_event_loop(loop)
    app.aboutToQuit.connect(loop.stop)
    return QtRuntime(app=app, loop=loop)


def build_window(controller: MentionsInput) -> Any:
    """Editor, suggestion list and live markup preview in one window."""

    from PySide6.QtWidgets import QLabel, QListWidget, QVBoxLayout, QWidget

    from .widgets.event_relay import EventRelay
    from .widgets.mentions_edit import MentionsTextEdit

    window = QWidget()
    window.setWindowTitle("mentionkit")
    editor = MentionsTextEdit(controller, window)
    suggestions = QListWidget(window)
    preview = QLabel(window)
    preview.setWordWrap(True)

    def refresh_suggestions(_event: Any = None) -> None:
        suggestions.clear()
        for row in controller.visible_suggestions():
            suggestions.addItem(f"{row.group.label}: {row.suggestion.label}")
        focused = controller.focused_suggestion()
        if focused is not None:
            suggestions.setCurrentRow(focused.index)
        suggestions.setVisible(controller.suggestions_visible)

    def refresh_preview(event: MarkupChanged) -> None:
        preview.setText(event.markup)

    # results can be published from provider threads
    relay = EventRelay(controller.events, SuggestionsUpdated, SuggestionsCleared, FocusChanged, parent=window)
    relay.delivered.connect(refresh_suggestions)
    controller.events.subscribe(MarkupChanged, refresh_preview)
    refresh_suggestions()

    layout = QVBoxLayout(window)
    layout.addWidget(editor)
    layout.addWidget(suggestions)
    layout.addWidget(preview)
    window.resize(520, 360)
    return window


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point invoked by the `mentionkit` console script."""

    args = _parse_cli_args(argv)
    debug = _env_flag("MENTIONKIT_DEBUG", default=False)
    configure_logging(debug)

    settings_path = args.settings_path or os.environ.get("MENTIONKIT_SETTINGS_PATH")
    resolved_path = Path(settings_path).expanduser() if settings_path else None
    store = SettingsStore(resolved_path)
    try:
        overrides = _coerce_cli_overrides(args.overrides or [])
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc

    settings = load_settings(resolved_path, store=store, overrides=overrides or None)
    if args.dump_settings:
        _dump_settings(settings, store)
        return

    if settings.debug_logging and not debug:
        configure_logging(True, force=True)

    runtime = create_qapp()
    controller = MentionsInput(args.value or "", settings=settings, sources=build_sources())
    window = build_window(controller)
    window.show()

    loop = runtime.loop
    try:
        loop.run_forever()
    finally:
        _LOGGER.info("Final markup: %s", controller.value)
        loop.close()


def _parse_cli_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="mentionkit",
        description="Launch the mentionkit demo editor or inspect its configuration.",
    )
    parser.add_argument("--value", metavar="MARKUP", help="Initial markup shown in the editor.")
    parser.add_argument(
        "--dump-settings",
        action="store_true",
        help="Print the effective settings payload and exit.",
    )
    parser.add_argument(
        "--settings-path",
        metavar="PATH",
        help="Override the default ~/.mentionkit/settings.json path.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override persisted settings before launch (repeatable).",
    )
    return parser.parse_args(argv)


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for entry in items:
        key, separator, raw_value = entry.partition("=")
        key = key.strip()
        if not separator or not key:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        overrides[key] = coerce_setting(key, raw_value)
    return overrides


def _env_flag(name: str, *, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _dump_settings(settings: MentionSettings, store: SettingsStore) -> None:
    payload = {"path": str(store.path), "settings": asdict(settings)}
    print(json.dumps(payload, indent=2, sort_keys=True))


__all__ = ["QtRuntime", "build_sources", "build_window", "configure_logging", "create_qapp", "load_settings", "main"]
