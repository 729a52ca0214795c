"""
Writable sinks addressed by role and optional iteration index.

Usage:
    provider = FileSinkProvider("out/run")
    with open_sink_scope(provider, "iteration", 3) as stream:
        stream.write(...)   # out/run-iteration-3.vtk
"""
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Protocol, TextIO

from align_inspector.core.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_EXTENSION = ".vtk"


class ISinkProvider(Protocol):
    """Protocol for opening and closing export sinks."""

    def open_sink(self, role: str, iteration: Optional[int] = None) -> TextIO:
        """Open (and truncate) the sink of a role, optionally tagged with an iteration."""
        ...

    def close_sink(self, stream: TextIO) -> None:
        """Flush and release a sink returned by open_sink()."""
        ...


class FileSinkProvider:
    """
    File-backed sinks named <base>-<role>[-<iteration>].<ext>.

    Roles without an extension get DEFAULT_EXTENSION. Reopening a role
    overwrites the previous file.
    """

    def __init__(self, base_file_name: str | Path):
        self.base_file_name = str(base_file_name)

    def path_for(self, role: str, iteration: Optional[int] = None) -> Path:
        stem, suffix = role, Path(role).suffix
        if suffix:
            stem = role[:-len(suffix)]
        else:
            suffix = DEFAULT_EXTENSION
        if iteration is not None:
            stem = f"{stem}-{iteration}"
        return Path(f"{self.base_file_name}-{stem}{suffix}")

    def open_sink(self, role: str, iteration: Optional[int] = None) -> TextIO:
        """
        Create or truncate the file of a role.

        Raises:
            OSError: If the file cannot be created
        """
        path = self.path_for(role, iteration)
        path.parent.mkdir(parents=True, exist_ok=True)
        stream = open(path, "w", encoding="utf-8")
        logger.debug(f"Opened sink {path}")
        return stream

    def close_sink(self, stream: TextIO) -> None:
        try:
            stream.flush()
        finally:
            stream.close()
        logger.debug(f"Closed sink {getattr(stream, 'name', stream)}")


@contextmanager
def open_sink_scope(provider: ISinkProvider, role: str, iteration: Optional[int] = None) -> Iterator[TextIO]:
    """Open a sink and close it on every exit path."""
    stream = provider.open_sink(role, iteration)
    try:
        yield stream
    finally:
        provider.close_sink(stream)
