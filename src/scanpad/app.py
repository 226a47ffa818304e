from functools import cached_property
from pathlib import Path
import logging

import platformdirs

from textual import work
from textual.app import App
from textual.screen import Screen

from scanpad.completions import FieldCompletions, read_field_descriptions
from scanpad.settings import Schema, Settings, SettingsError
from scanpad.settings_schema import SCHEMA
from scanpad.main_screen import MainScreen
from scanpad.session import ScanSession
from scanpad.template import DEFAULT_TEMPLATE

log = logging.getLogger("scanpad")


class ScanpadApp(App):
    BINDING_GROUP_TITLE = "System"
    CSS_PATH = "scanpad.tcss"
    TITLE = "Scan Template Editor"

    def __init__(
        self,
        template: str = DEFAULT_TEMPLATE,
        *,
        tool_path: str | None = None,
        target_url: str | None = None,
        config_dir: Path | None = None,
        session: ScanSession | None = None,
    ) -> None:
        self._template = template
        self._tool_path = tool_path
        self._target_url = target_url
        self._config_dir = config_dir
        self._session = session
        self._settings_error: str | None = None
        super().__init__()

    @property
    def config_path(self) -> Path:
        if self._config_dir is not None:
            self._config_dir.mkdir(parents=True, exist_ok=True)
            return self._config_dir
        path = Path(platformdirs.user_config_dir("scanpad", ensure_exists=True))
        return path

    @property
    def settings_path(self) -> Path:
        return self.config_path / "settings.json"

    @cached_property
    def settings_schema(self) -> Schema:
        return Schema(SCHEMA)

    @cached_property
    def settings(self) -> Settings:
        try:
            return Settings.load(self.settings_schema, self.settings_path)
        except SettingsError as error:
            self._settings_error = str(error)
            return Settings(self.settings_schema, self.settings_schema.build_default())

    @cached_property
    def session(self) -> ScanSession:
        if self._session is not None:
            self._session.on_error = self.log_error
            return self._session
        return ScanSession(
            tool_path=self._tool_path or self.settings.get("scanner.tool_path", str),
            target_url=self._target_url or self.settings.get("scanner.target", str),
            on_error=self.log_error,
        )

    def log_error(self, message: str) -> None:
        """Report an error to the log, and as a notification."""
        log.error(message)
        self.notify(message, title="Error", severity="error")

    def on_mount(self) -> None:
        theme = self.settings.get("ui.theme", str)
        if theme in self.available_themes:
            self.theme = theme
        else:
            self.log_error(f"Unknown theme {theme!r}")
        if self._settings_error is not None:
            self.log_error(self._settings_error)
        if self.settings.get("completion.enabled", bool):
            self.load_completions()

    @work(exit_on_error=False)
    async def load_completions(self) -> None:
        schema_path = self.settings.get("completion.schema_path", str)
        result = await read_field_descriptions(
            Path(schema_path).expanduser() if schema_path else None
        )
        for error in result.errors:
            self.log_error(error)
        completions = FieldCompletions(result.fields)
        log.debug("loaded %d template fields", len(completions))
        screen = self.screen
        if isinstance(screen, MainScreen):
            screen.completions = completions

    def get_default_screen(self) -> Screen:
        return MainScreen(self.session, self._template)
