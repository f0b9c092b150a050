"""Background HTTP server for the metrics endpoint."""

import logging
import threading

from werkzeug.serving import BaseWSGIServer, make_server

from s3mover import create_app
from s3mover.services.log_service import get_log_service
from s3mover.services.metrics import Metrics

logger = logging.getLogger(__name__)


class StatsServer:
    """Serve ``GET /stats/metrics`` from a daemon thread."""

    def __init__(self, metrics: Metrics, port: int, host: str = "0.0.0.0") -> None:
        self.metrics = metrics
        self.host = host
        self.port = port
        self._server: BaseWSGIServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def server_port(self) -> int:
        """The bound port (differs from ``port`` when port 0 was requested)."""
        if self._server is None:
            return self.port
        return self._server.server_port

    def start(self) -> None:
        """Bind the socket and start serving in the background.

        Raises:
            OSError: If the port cannot be bound
        """
        app = create_app(self.metrics)
        self._server = make_server(self.host, self.port, app, threaded=True)
        self._thread = threading.Thread(
            target=self._server.serve_forever, name="stats-server", daemon=True
        )
        self._thread.start()
        get_log_service().info(
            "stats",
            "stats_server_started",
            f"Starting up stats server on {self.host}:{self.server_port}",
            {"host": self.host, "port": self.server_port},
        )

    def shutdown(self) -> None:
        """Stop serving and wait for the server thread to exit."""
        if self._server is None:
            return
        get_log_service().info("stats", "stats_server_stopped", "Shutting down stats server")
        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)
            if self._thread.is_alive():
                logger.warning("Stats server thread did not exit in time")
        self._server = None
        self._thread = None
