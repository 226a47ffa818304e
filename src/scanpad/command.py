from __future__ import annotations

from os import PathLike

NO_COLOR_FLAGS = (" -nc ", " -no-color ")


def build_command_line(
    tool_path: str | PathLike[str],
    template_path: str | PathLike[str],
    target_url: str,
) -> str:
    """Build the command line to scan a target with a template.

    Args:
        tool_path: Path to the scanner executable.
        template_path: Path to the template file.
        target_url: URL to scan.

    Returns:
        A command line the user may edit before running.
    """
    return f"{tool_path} -v -t {template_path} -u {target_url}"


def is_no_color(command_line: str) -> bool:
    """Check if a command line disables colored output.

    Only flags surrounded by spaces are detected, so a flag at the very end of
    the command line (or written as `-nc=true`) is missed.

    Args:
        command_line: Command line.

    Returns:
        `True` if the output should be rendered as plain text.
    """
    return any(flag in command_line for flag in NO_COLOR_FLAGS)
