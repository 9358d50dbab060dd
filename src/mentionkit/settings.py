"""Settings dataclass and JSON persistence for mention inputs.

Every field can be overridden from the environment as ``MENTIONKIT_<FIELD>``
(for example ``MENTIONKIT_DEFAULT_TRIGGER=#``); environment values win over
runtime overrides, which win over the stored file.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

from .markup.codec import DEFAULT_MARKUP, ConfigError, compile_template

__all__ = ["MentionSettings", "SettingsStore", "coerce_setting"]

LOGGER = logging.getLogger(__name__)
_DEFAULT_SETTINGS_PATH = Path.home() / ".mentionkit" / "settings.json"
_SETTINGS_VERSION = 1
_ENV_PREFIX = "MENTIONKIT_"
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_FALSE_VALUES = {"0", "false", "no", "off", "disabled"}


@dataclass(slots=True)
class MentionSettings:
    """Input-wide defaults; sources may override the query/insert flags."""

    markup: str = DEFAULT_MARKUP
    default_trigger: str = "@"
    allow_space_in_query: bool = False
    append_space_on_add: bool = False
    select_on_space: bool = True
    debug_logging: bool = False


def _field_types() -> Dict[str, type]:
    defaults = MentionSettings()
    return {item.name: type(getattr(defaults, item.name)) for item in fields(MentionSettings)}


def coerce_setting(name: str, raw: str, *, strict: bool = True) -> Any:
    """Convert a textual override for ``name`` into the field's type.

    Strict parsing rejects unknown fields and booleans outside the usual
    true/false spellings; lenient parsing treats any other value as false.
    """

    kind = _field_types().get(name)
    if kind is None:
        raise ValueError(f"Unknown setting '{name}'.")
    value = raw.strip()
    if kind is not bool:
        return value
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if strict and lowered not in _FALSE_VALUES:
        raise ValueError(f"Expected a boolean for '{name}', got '{raw}'.")
    return False


class SettingsStore:
    """Reads and writes :class:`MentionSettings` as versioned JSON."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or _DEFAULT_SETTINGS_PATH

    @property
    def path(self) -> Path:
        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> MentionSettings:
        """Return stored settings with runtime and environment overrides applied.

        Unknown keys are ignored and an unusable markup template is replaced by
        the default, so a damaged file never prevents an input from starting.
        """

        settings = MentionSettings()
        stored = self._read_payload()
        if stored.get("version", _SETTINGS_VERSION) != _SETTINGS_VERSION:
            LOGGER.debug("Settings at %s use version %s", self._path, stored.get("version"))
        for layer, source in ((stored, "file"), (overrides or {}, "runtime"), (_env_overrides(), "environment")):
            settings = _merge(settings, layer, source=source)
        return _validate_markup(settings)

    def save(self, settings: MentionSettings) -> Path:
        """Write ``settings`` next to the target and swap the file in atomically."""

        document = {**asdict(settings), "version": _SETTINGS_VERSION}
        self._path.parent.mkdir(parents=True, exist_ok=True)
        staging = self._path.with_suffix(".tmp")
        staging.write_text(json.dumps(document, indent=2, sort_keys=True), encoding="utf-8")
        staging.replace(self._path)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _read_payload(self) -> Dict[str, Any]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(data, dict):
            LOGGER.warning("Settings file %s does not contain an object", self._path)
            return {}
        return data


def _merge(settings: MentionSettings, layer: Mapping[str, Any], *, source: str) -> MentionSettings:
    types = _field_types()
    accepted: Dict[str, Any] = {}
    for key, value in layer.items():
        kind = types.get(key)
        if kind is None or value is None:
            continue
        if not isinstance(value, kind):
            LOGGER.warning("Ignoring %s setting %s=%r: expected %s", source, key, value, kind.__name__)
            continue
        accepted[key] = value
    if not accepted:
        return settings
    LOGGER.debug("Applying %s settings: %s", source, sorted(accepted))
    return replace(settings, **accepted)


def _env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for name in _field_types():
        raw = os.environ.get(_ENV_PREFIX + name.upper())
        if raw is not None:
            overrides[name] = coerce_setting(name, raw, strict=False)
    return overrides


def _validate_markup(settings: MentionSettings) -> MentionSettings:
    try:
        compile_template(settings.markup)
    except ConfigError as exc:
        LOGGER.warning("Ignoring invalid markup template %r: %s", settings.markup, exc)
        return replace(settings, markup=DEFAULT_MARKUP)
    return settings
