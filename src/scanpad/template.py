from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

log = logging.getLogger(__name__)


DEFAULT_TEMPLATE = """\
id: template-id
info:
  author: scanpad
  name: Template Name
  severity: info
requests:
  - raw:
    - |
      GET / HTTP/1.1
      Host: {{Hostname}}
      Accept: */*
    matchers:
    - type: status
      status:
      - 200
"""


class TemplateError(Exception):
    """Base class for template file errors."""


class TemplateWriteError(TemplateError):
    """The template could not be written."""


class TempFileCleanupError(TemplateError):
    """The temporary template file could not be deleted."""


class TemplateFile:
    """A temporary file holding the template for the scanner to read.

    The file is created on first use, rewritten before every run, and deleted
    by `delete`.

    Args:
        prefix: File name prefix.
        suffix: File name suffix.
        directory: Directory for the file, or `None` for the system default.
    """

    def __init__(
        self,
        prefix: str = "nuclei",
        suffix: str = ".yaml",
        directory: Path | None = None,
    ) -> None:
        self.prefix = prefix
        self.suffix = suffix
        self.directory = directory
        self._path: Path | None = None

    def __repr__(self) -> str:
        return f"TemplateFile({self._path!r})"

    @property
    def path(self) -> Path:
        """Path to the file (created if required).

        Raises:
            TemplateWriteError: If the file couldn't be created.
        """
        if self._path is None:
            try:
                fd, name = tempfile.mkstemp(
                    suffix=self.suffix, prefix=self.prefix, dir=self.directory
                )
            except OSError as error:
                raise TemplateWriteError(
                    f"Could not create temporary file; {error}"
                ) from None
            os.close(fd)
            self._path = Path(name)
            log.debug("created temporary template %s", self._path)
        return self._path

    def write(self, template: str) -> Path:
        """Write the template.

        Args:
            template: Template YAML.

        Raises:
            TemplateWriteError: If the template couldn't be written.

        Returns:
            Path to the file.
        """
        path = self.path
        try:
            path.write_text(template, "utf-8")
        except OSError as error:
            raise TemplateWriteError(
                f"Could not write template to {path}; {error}"
            ) from None
        return path

    def delete(self) -> None:
        """Delete the file. Does nothing if it was never created, or is already gone.

        Raises:
            TempFileCleanupError: If the file exists but couldn't be deleted.
        """
        if self._path is None:
            return
        try:
            self._path.unlink(missing_ok=True)
        except OSError as error:
            raise TempFileCleanupError(
                f"Could not delete temporary file {self._path}; {error}"
            ) from None
        log.debug("deleted temporary template %s", self._path)
