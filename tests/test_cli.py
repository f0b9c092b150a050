"""Tests for the command-line entry point."""

import os
import signal
import threading
from collections.abc import Generator
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from s3mover import cli
from s3mover.cli import install_signal_handlers
from s3mover.services.errors import ConfigError

ARGS = ["--src", "/tmp/src", "--bucket", "b", "--prefix", "p", "--port", "0"]


@pytest.fixture(autouse=True)
def quiet_process() -> Generator[None, None, None]:
    """Keep main() from touching signal handlers, .env files and logging setup."""
    with patch.object(cli, "install_signal_handlers"), patch.object(
        cli, "load_env_file"
    ), patch.object(cli, "configure_logging"):
        yield


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove TRANSPORTER_* variables from the environment."""
    for name in list(os.environ):
        if name.startswith("TRANSPORTER_"):
            monkeypatch.delenv(name)


class TestMain:
    """Tests for main()."""

    def test_missing_required(self) -> None:
        """Test that invalid settings exit with status 1."""
        assert cli.main(["--src", "/tmp/src"]) == 1

    @patch.object(cli, "Transporter")
    def test_runs_transporter(self, mock_transporter: MagicMock) -> None:
        """Test that valid settings start the transporter and exit 0."""
        assert cli.main([*ARGS, "--parallels", "3", "--gzip"]) == 0

        settings = mock_transporter.call_args.args[0]
        assert settings.max_parallels == 3
        assert settings.gzip is True
        assert settings.gzip_level == 6
        mock_transporter.return_value.run.assert_called_once()

    @patch.object(cli, "Transporter")
    def test_startup_failure(self, mock_transporter: MagicMock) -> None:
        """Test that a failed startup check exits with status 1."""
        mock_transporter.return_value.run.side_effect = ConfigError("not a directory")
        assert cli.main(ARGS) == 1

    def test_environment_fallback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that TRANSPORTER_* variables fill unset flags."""
        monkeypatch.setenv("TRANSPORTER_BUCKET", "env-bucket")
        with patch.object(cli, "Transporter") as mock_transporter:
            assert cli.main(["--src", "/tmp/src", "--prefix", "p", "--port", "0"]) == 0
        assert mock_transporter.call_args.args[0].bucket == "env-bucket"

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that --version prints and exits."""
        with pytest.raises(SystemExit) as exc:
            cli.main(["--version"])
        assert exc.value.code == 0
        assert "s3mover" in capsys.readouterr().out


class TestSignalHandlers:
    """Tests for install_signal_handlers."""

    def test_handler_sets_stop_event(self) -> None:
        """Test that a shutdown signal sets the stop event."""
        stop_event = threading.Event()
        installed: dict[int, Any] = {}

        def fake_signal(sig: int, handler: Any) -> None:
            installed[sig] = handler

        with patch.object(signal, "signal", side_effect=fake_signal):
            install_signal_handlers(stop_event)

        assert signal.SIGTERM in installed
        assert signal.SIGINT in installed
        installed[signal.SIGTERM](signal.SIGTERM, None)
        assert stop_event.is_set()
