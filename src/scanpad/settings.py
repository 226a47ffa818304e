from __future__ import annotations

import json
from copy import deepcopy
from pathlib import Path
from typing import Sequence, TypedDict, Required

from scanpad._loop import loop_last


class SchemaDict(TypedDict, total=False):
    """Typing for schema data structure."""

    key: Required[str]
    title: Required[str]
    type: Required[str]
    help: str
    default: object
    fields: list[SchemaDict]


type SettingsType = dict[str, object]


INPUT_TYPES = {"boolean", "integer", "string", "choices"}

PYTHON_TYPES: dict[str, type | tuple[type, ...]] = {
    "boolean": bool,
    "integer": int,
    "string": str,
    "choices": str,
}


class SettingsError(Exception):
    """Base class for settings related errors."""


class InvalidKey(SettingsError):
    """The key is not in the schema."""


class InvalidValue(SettingsError):
    """The value was not of the expected type."""


def parse_key(key: str) -> Sequence[str]:
    return key.split(".")


def get_setting[ExpectType](
    settings: dict[str, object], key: str, expect_type: type[ExpectType] = object
) -> ExpectType:
    """Get a key from a settings structure.

    Args:
        settings: A settings dictionary.
        key: A dot delimited key, e.g. "scanner.tool_path"
        expect_type: The expected type of the value.

    Raises:
        InvalidValue: If the value is not the expected type.
        KeyError: If the key doesn't exist in settings.

    Returns:
        The value for the key.
    """
    *path, name = parse_key(key)
    for key_component in path:
        sub_settings = settings[key_component]
        if not isinstance(sub_settings, dict):
            raise KeyError(key)
        settings = sub_settings
    value = settings[name]
    if not isinstance(value, expect_type):
        raise InvalidValue(f"Expected {expect_type.__name__} for {key!r}; found {value!r}")
    return value


class Schema:
    def __init__(self, schema: list[SchemaDict]) -> None:
        self.schema = schema

    def get_schema(self, key: str) -> SchemaDict:
        """Get the schema for a dot delimited key.

        Raises:
            InvalidKey: If the key is not in the schema.
        """
        schema = self.schema
        for last, key_component in loop_last(parse_key(key)):
            for sub_schema in schema:
                if sub_schema["key"] == key_component:
                    break
            else:
                raise InvalidKey(f"{key!r} is not a valid setting")
            if last:
                return sub_schema
            schema = sub_schema.get("fields", [])
        raise InvalidKey(f"{key!r} is not a valid setting")

    def set_value(self, settings: SettingsType, key: str, value: object) -> None:
        """Set a value, creating intermediate objects as required.

        Raises:
            InvalidKey: If the key is not in the schema.
            InvalidValue: If the value doesn't match the type in the schema.
        """
        schema_type = self.get_schema(key)["type"]
        expect_type = PYTHON_TYPES.get(schema_type)
        if expect_type is None:
            raise InvalidKey(f"{key!r} is not a value")
        if not isinstance(value, expect_type) or (
            schema_type == "integer" and isinstance(value, bool)
        ):
            raise InvalidValue(f"Expected {schema_type} for {key!r}; found {value!r}")
        for last, key_component in loop_last(parse_key(key)):
            if last:
                settings[key_component] = value
            else:
                sub_settings = settings.setdefault(key_component, {})
                assert isinstance(sub_settings, dict)
                settings = sub_settings

    def build_default(self) -> SettingsType:
        """Build settings from the schema defaults."""

        def defaults(schema: list[SchemaDict]) -> SettingsType:
            settings: SettingsType = {}
            for sub_schema in schema:
                if sub_schema["type"] == "object":
                    settings[sub_schema["key"]] = defaults(sub_schema.get("fields", []))
                elif sub_schema["type"] in INPUT_TYPES and "default" in sub_schema:
                    settings[sub_schema["key"]] = deepcopy(sub_schema["default"])
            return settings

        return defaults(self.schema)

    def merge_defaults(self, settings: SettingsType) -> bool:
        """Add defaults for keys missing from settings (e.g. from an older version).

        Args:
            settings: Settings to update in place.

        Returns:
            `True` if anything was added.
        """
        updated = False

        def merge(defaults: dict[str, object], settings: dict[str, object]) -> None:
            nonlocal updated
            for key, default in defaults.items():
                if key not in settings:
                    settings[key] = default
                    updated = True
                elif isinstance(default, dict) and isinstance(settings[key], dict):
                    merge(default, settings[key])  # type: ignore[arg-type]

        merge(self.build_default(), settings)
        return updated


class Settings:
    """Stores schema backed settings."""

    def __init__(self, schema: Schema, settings: dict[str, object]) -> None:
        self._schema = schema
        self._settings = settings

    @classmethod
    def load(cls, schema: Schema, path: Path) -> Settings:
        """Load settings from a JSON file, writing defaults if it doesn't exist.

        Raises:
            SettingsError: If the file couldn't be read or written.
        """
        try:
            if path.exists():
                settings = json.loads(path.read_text("utf-8"))
                if not isinstance(settings, dict):
                    raise SettingsError(f"Expected an object in {path}")
                if schema.merge_defaults(settings):
                    path.write_text(json.dumps(settings, indent=2), "utf-8")
            else:
                settings = schema.build_default()
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(json.dumps(settings, indent=2), "utf-8")
        except (OSError, ValueError) as error:
            raise SettingsError(f"Failed to load settings from {path}; {error}")
        return cls(schema, settings)

    def get[ExpectType](
        self, key: str, expect_type: type[ExpectType] = object
    ) -> ExpectType:
        from os.path import expandvars

        setting = get_setting(self._settings, key, expect_type=expect_type)
        if isinstance(setting, str):
            setting = expandvars(setting)
        return setting

    def set(self, key: str, value: object) -> None:
        self._schema.set_value(self._settings, key, value)

    def to_json(self) -> str:
        return json.dumps(self._settings, indent=2)
