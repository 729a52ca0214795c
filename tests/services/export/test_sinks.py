"""
Unit tests for FileSinkProvider and the open_sink_scope guard.
"""
from pathlib import Path

import pytest

from align_inspector.services.export.sinks import FileSinkProvider, open_sink_scope


class TestFileSinkProvider:
    """Tests for file path mapping and sink lifecycle"""

    def test_path_for_role(self, tmp_path):
        provider = FileSinkProvider(tmp_path / "run")

        assert provider.path_for("reference") == Path(f"{tmp_path}/run-reference.vtk")
        assert provider.path_for("iteration", 4) == Path(f"{tmp_path}/run-iteration-4.vtk")
        assert provider.path_for("iterationInfo.csv") == Path(f"{tmp_path}/run-iterationInfo.csv")

    def test_open_close_writes_file(self, tmp_path):
        """Test that closing flushes the written content"""
        provider = FileSinkProvider(tmp_path / "out" / "run")

        stream = provider.open_sink("reading")
        stream.write("hello\n")
        provider.close_sink(stream)

        assert stream.closed
        assert (tmp_path / "out" / "run-reading.vtk").read_text() == "hello\n"

    def test_reopen_overwrites(self, tmp_path):
        """Test that reopening a role truncates the previous content"""
        provider = FileSinkProvider(tmp_path / "run")

        for text in ("first export\n", "second\n"):
            with open_sink_scope(provider, "iteration", 0) as stream:
                stream.write(text)

        assert (tmp_path / "run-iteration-0.vtk").read_text() == "second\n"

    def test_scope_closes_on_error(self, tmp_path):
        """Test that the sink is released when the writer raises"""
        provider = FileSinkProvider(tmp_path / "run")

        with pytest.raises(RuntimeError):
            with open_sink_scope(provider, "reference") as stream:
                raise RuntimeError("write failed")

        assert stream.closed

    def test_unopenable_path_raises_oserror(self, tmp_path):
        """Test that a blocked destination surfaces as OSError"""
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        provider = FileSinkProvider(blocker / "run")

        with pytest.raises(OSError):
            provider.open_sink("reference")
