"""Unit tests for temporary file scopes and signal handling."""

import os
import signal
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from agispeak.errors import InvocationInterrupted, WorkspaceError
from agispeak.tempfiles import TempFiles, signal_guard


class TestTempFiles:
    """Test registration and cleanup."""

    def test_cleanup_on_normal_exit(self, tmp_path: Path) -> None:
        """Test that registered files are removed when the scope ends."""
        with TempFiles(tmp_path) as temps:
            base = temps.new_base()
            wav = temps.register(base.with_suffix(".wav"))
            wav.write_bytes(b"audio")
            assert base.exists()

        assert not base.exists()
        assert not wav.exists()
        assert os.listdir(tmp_path) == []

    def test_cleanup_on_error(self, tmp_path: Path) -> None:
        """Test that files are removed when the scope raises."""
        with pytest.raises(RuntimeError):
            with TempFiles(tmp_path) as temps:
                path = temps.register(tmp_path / "x.sln")
                path.write_bytes(b"audio")
                raise RuntimeError("boom")

        assert not path.exists()

    def test_cleanup_idempotent(self, tmp_path: Path) -> None:
        """Test that cleanup can run twice, second call being a no-op."""
        temps = TempFiles(tmp_path)
        path = temps.register(tmp_path / "x.wav")
        path.write_bytes(b"audio")

        temps.cleanup()
        path.write_bytes(b"recreated")
        temps.cleanup()

        assert path.exists()

    def test_registered_but_never_created(self, tmp_path: Path) -> None:
        """Test that a registered path that was never written is tolerated."""
        with TempFiles(tmp_path) as temps:
            temps.register(tmp_path / "never.wav")

    def test_new_base_is_unique(self, tmp_path: Path) -> None:
        """Test that each base name is distinct and uses the prefix."""
        with TempFiles(tmp_path / "tmp") as temps:
            first = temps.new_base()
            second = temps.new_base()
            assert first != second
            assert first.name.startswith("agispeak_")
            assert "." not in first.name

    def test_unusable_directory_raises_workspace_error(self, tmp_path: Path) -> None:
        """Test that a directory that cannot be created raises WorkspaceError."""
        blocker = tmp_path / "file"
        blocker.write_text("")

        with TempFiles(blocker / "sub") as temps:
            with pytest.raises(WorkspaceError, match="Cannot create temporary files"):
                temps.new_base()
            assert temps.paths == []

    def test_failed_removal_does_not_stop_cleanup(self, tmp_path: Path) -> None:
        """Test that one file failing to unlink still lets the rest go."""
        temps = TempFiles(tmp_path)
        stuck = temps.register(tmp_path / "stuck")
        stuck.mkdir()
        wav = temps.register(tmp_path / "x.wav")
        wav.write_bytes(b"audio")

        temps.cleanup()

        assert stuck.is_dir()
        assert not wav.exists()
        assert temps.paths == []


class TestSignalGuard:
    """Test signal to exception conversion."""

    @pytest.mark.parametrize("signum", [signal.SIGINT, signal.SIGHUP, signal.SIGTERM])
    def test_signal_runs_cleanup(self, tmp_path: Path, signum: int) -> None:
        """Test that a signal unwinds through TempFiles and removes files."""
        with pytest.raises(InvocationInterrupted) as excinfo:
            with signal_guard():
                with TempFiles(tmp_path) as temps:
                    path = temps.register(tmp_path / "x.wav")
                    path.write_bytes(b"audio")
                    os.kill(os.getpid(), signum)

        assert excinfo.value.signum == signum
        assert not path.exists()

    def test_handlers_restored(self) -> None:
        """Test that previous handlers come back after the guard."""
        before = signal.getsignal(signal.SIGHUP)
        with signal_guard():
            assert signal.getsignal(signal.SIGHUP) is not before
        assert signal.getsignal(signal.SIGHUP) == before

    def test_signal_during_cleanup_removes_every_file(self, tmp_path: Path) -> None:
        """Test that a signal arriving mid-cleanup is held until all files are gone."""
        real_unlink = Path.unlink
        calls = []

        def unlink_with_hangup(path: Path, missing_ok: bool = False) -> None:
            calls.append(path.name)
            if len(calls) == 1:
                os.kill(os.getpid(), signal.SIGHUP)
            real_unlink(path, missing_ok=missing_ok)

        with pytest.raises(InvocationInterrupted) as excinfo:
            with signal_guard():
                with TempFiles(tmp_path) as temps:
                    first = temps.register(tmp_path / "a.wav")
                    second = temps.register(tmp_path / "b.sln16")
                    first.write_bytes(b"audio")
                    second.write_bytes(b"audio")
                    with patch.object(Path, "unlink", unlink_with_hangup):
                        temps.cleanup()

        assert excinfo.value.signum == signal.SIGHUP
        assert calls == ["a.wav", "b.sln16"]
        assert not first.exists()
        assert not second.exists()
