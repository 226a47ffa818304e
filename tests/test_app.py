"""
Tests for the template editor application.
"""
import pytest

from scanpad.app import ScanpadApp
from scanpad.runner import CommandRunner
from scanpad.session import ScanSession
from scanpad.template import DEFAULT_TEMPLATE, TemplateFile
from scanpad.widgets.menu import Menu
from scanpad.widgets.output_pane import OutputPane


@pytest.fixture
def session(tmp_path):
    return ScanSession(
        tool_path="nuclei",
        target_url="http://example.org",
        template_file=TemplateFile(directory=tmp_path),
        runner=CommandRunner(),
    )


@pytest.fixture
def app(tmp_path, session):
    return ScanpadApp(config_dir=tmp_path / "config", session=session)


class TestScanpadApp:
    """Application behavior"""

    @pytest.mark.asyncio
    async def test_startup(self, app, session, tmp_path):
        """Test the screen shows the template and default command line"""
        async with app.run_test():
            screen = app.screen
            assert screen.editor.text == DEFAULT_TEMPLATE
            assert screen.command_bar.command_line == (
                f"nuclei -v -t {session.template_file.path} -u http://example.org"
            )
            assert (tmp_path / "config" / "settings.json").exists()
        assert session.closed
        assert not session.template_file.path.exists()

    @pytest.mark.asyncio
    async def test_output_pane(self, app):
        """Test ANSI output is split in to styled lines"""
        async with app.run_test() as pilot:
            output = app.screen.query_one(OutputPane)
            output.write("\x1b[31mred\x1b[0m\nplain\n")
            await pilot.pause()
            assert output.line_count == 3
            assert output.lines[0].plain == "red"
            assert output.text == "red\nplain\n"
            output.clear()
            assert output.line_count == 0
            assert output.renderer.state.foreground is None

    @pytest.mark.asyncio
    async def test_execute(self, app, session, python):
        """Test executing a command streams its output"""
        async with app.run_test() as pilot:
            screen = app.screen
            screen.editor.text = "id: from-editor\n"
            screen.execute(python("print('\\x1b[32mmatched\\x1b[0m')"))
            await session.runner.wait()
            await pilot.pause()
            output = screen.output
            assert output.lines[0].plain == "matched"
            assert "The process exited with code 0" in output.text
            assert session.template_file.path.read_text("utf-8") == "id: from-editor\n"
            assert not screen.running
            assert screen.sub_title == "Exit code 0"

    @pytest.mark.asyncio
    async def test_execute_error(self, app, session):
        """Test a command that can't run is reported"""
        async with app.run_test() as pilot:
            screen = app.screen
            screen.execute("/nonexistent/scanner -v")
            await session.runner.wait()
            await pilot.pause()
            assert "The process exited" not in screen.output.text
            assert not screen.running

    @pytest.mark.asyncio
    async def test_copy_template(self, app):
        """Test the copy button puts the template on the clipboard"""
        async with app.run_test() as pilot:
            await pilot.click("#copy")
            await pilot.pause()
            assert app.clipboard == app.screen.editor.text

    @pytest.mark.asyncio
    async def test_completion(self, app):
        """Test completing a field from the menu"""
        async with app.run_test() as pilot:
            await app.workers.wait_for_complete()
            screen = app.screen
            assert screen.completions is not None
            assert "severity" in screen.completions

            editor = screen.editor
            editor.text = "info:\n  sev"
            editor.cursor_location = (1, 5)
            assert editor.field_prefix == "sev"
            editor.action_complete()
            await pilot.pause()

            menu = screen.query_one("#completions", Menu)
            menu.post_message(Menu.OptionSelected(menu, "severity"))
            await pilot.pause()
            assert editor.document.get_line(1) == "  severity: "
            assert not screen.query("#completions")

    @pytest.mark.asyncio
    async def test_help_menu(self, app):
        """Test the help menu opens links"""
        urls = []
        async with app.run_test() as pilot:
            app.open_url = lambda url, **kwargs: urls.append(url)
            await pilot.press("f2")
            await pilot.pause()
            menu = app.screen.query_one("#help-menu", Menu)
            menu.post_message(Menu.OptionSelected(menu, "examples"))
            await pilot.pause()
        assert urls == ["https://github.com/projectdiscovery/nuclei-templates"]
