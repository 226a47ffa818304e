"""
Shared fixtures for scanpad tests
"""
import shlex
import sys

import pytest


def python_command(code: str, *arguments: str) -> str:
    """Build a command line which runs Python code."""
    return " ".join(
        [shlex.quote(sys.executable), "-c", shlex.quote(code), *arguments]
    )


@pytest.fixture
def python():
    """Factory for command lines which run Python code"""
    return python_command
