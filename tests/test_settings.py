"""
Tests for schema backed settings.
"""
import json

import pytest

from scanpad.settings import (
    InvalidKey,
    InvalidValue,
    Schema,
    Settings,
    SettingsError,
    get_setting,
)
from scanpad.settings_schema import SCHEMA


@pytest.fixture
def schema():
    return Schema(SCHEMA)


class TestSchema:
    """Settings schema"""

    def test_build_default(self, schema):
        """Test defaults are built from the schema"""
        defaults = schema.build_default()
        assert defaults["scanner"] == {
            "tool_path": "nuclei",
            "target": "http://localhost:8080",
        }
        assert defaults["ui"] == {"theme": "dracula"}
        assert defaults["completion"] == {"enabled": True, "schema_path": ""}

    def test_get_schema(self, schema):
        """Test looking up a nested key"""
        assert schema.get_schema("scanner.target")["type"] == "string"
        with pytest.raises(InvalidKey):
            schema.get_schema("scanner.missing")

    def test_set_value_type_checked(self, schema):
        """Test values must match the schema type"""
        settings = schema.build_default()
        schema.set_value(settings, "completion.enabled", False)
        assert settings["completion"]["enabled"] is False
        with pytest.raises(InvalidValue):
            schema.set_value(settings, "completion.enabled", "yes")
        with pytest.raises(InvalidKey):
            schema.set_value(settings, "scanner", "nuclei")

    def test_bool_is_not_an_integer(self):
        """Test booleans are rejected for integer settings"""
        schema = Schema(
            [{"key": "retries", "title": "Retries", "type": "integer", "default": 1}]
        )
        settings = schema.build_default()
        schema.set_value(settings, "retries", 3)
        with pytest.raises(InvalidValue):
            schema.set_value(settings, "retries", True)

    def test_merge_defaults(self, schema):
        """Test missing keys are added, and existing values kept"""
        settings = {"scanner": {"tool_path": "/opt/nuclei"}}
        assert schema.merge_defaults(settings)
        assert settings["scanner"]["tool_path"] == "/opt/nuclei"
        assert settings["scanner"]["target"] == "http://localhost:8080"
        assert not schema.merge_defaults(settings)


class TestSettings:
    """Loading and reading settings"""

    def test_load_writes_defaults(self, schema, tmp_path):
        """Test a missing settings file is created"""
        path = tmp_path / "config" / "settings.json"
        settings = Settings.load(schema, path)
        assert path.exists()
        assert json.loads(path.read_text("utf-8")) == schema.build_default()
        assert settings.get("scanner.tool_path", str) == "nuclei"

    def test_load_merges_defaults(self, schema, tmp_path):
        """Test an older settings file gains new keys"""
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"ui": {"theme": "nord"}}), "utf-8")
        settings = Settings.load(schema, path)
        assert settings.get("ui.theme", str) == "nord"
        assert settings.get("completion.enabled", bool) is True
        assert "scanner" in json.loads(path.read_text("utf-8"))

    @pytest.mark.parametrize("contents", ["{not json", "[1, 2, 3]"])
    def test_load_invalid(self, schema, tmp_path, contents):
        """Test an unreadable settings file raises SettingsError"""
        path = tmp_path / "settings.json"
        path.write_text(contents, "utf-8")
        with pytest.raises(SettingsError):
            Settings.load(schema, path)

    def test_get_expands_variables(self, schema, monkeypatch):
        """Test environment variables in strings are expanded"""
        monkeypatch.setenv("SCANPAD_TOOLS", "/opt/tools")
        settings = Settings(schema, schema.build_default())
        settings.set("scanner.tool_path", "$SCANPAD_TOOLS/nuclei")
        assert settings.get("scanner.tool_path", str) == "/opt/tools/nuclei"

    def test_get_wrong_type(self, schema):
        """Test reading a value with the wrong type"""
        settings = Settings(schema, schema.build_default())
        with pytest.raises(InvalidValue):
            settings.get("completion.enabled", str)

    def test_to_json(self, schema):
        """Test settings serialize to JSON"""
        settings = Settings(schema, schema.build_default())
        assert json.loads(settings.to_json()) == schema.build_default()


def test_get_setting_missing_key():
    """Test a missing key raises KeyError"""
    with pytest.raises(KeyError):
        get_setting({"scanner": {}}, "scanner.tool_path")
