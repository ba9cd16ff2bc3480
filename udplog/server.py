"""Run the uvicorn HTTP server in a background thread."""

import logging
import threading
import time
from typing import Optional

import uvicorn
from fastapi import FastAPI

from .config import parse_log_level

logger = logging.getLogger(__name__)


class HttpServer:
    """Owns a uvicorn server running on a daemon thread."""

    def __init__(
        self,
        app: FastAPI,
        host: str = '0.0.0.0',
        port: int = 8080,
        log_level: str = 'info',
        startup_timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.startup_timeout = startup_timeout
        config = uvicorn.Config(
            app,
            host=host,
            port=port,
            log_level=parse_log_level(log_level).lower(),
            access_log=False,  # Disable access logs to reduce noise
        )
        self._server = uvicorn.Server(config)
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """Start serving and block until the socket is listening.

        Raises:
            RuntimeError: If the server exits or does not come up in time,
                e.g. because the port is already in use.
        """
        self._thread = threading.Thread(target=self._server.run, name='HttpServer', daemon=True)
        self._thread.start()

        deadline = time.monotonic() + self.startup_timeout
        while not self._server.started:
            if not self._thread.is_alive():
                raise RuntimeError(f'HTTP server failed to start on {self.host}:{self.port}')
            if time.monotonic() > deadline:
                self._server.should_exit = True
                raise RuntimeError(
                    f'HTTP server did not start on {self.host}:{self.port} within {self.startup_timeout}s'
                )
            time.sleep(0.05)
        logger.info('HTTP server listening on %s:%s', self.host, self.port)

    def stop(self, timeout: float = 10.0):
        """Ask uvicorn to exit and wait for the thread."""
        self._server.should_exit = True
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning('HttpServer did not stop within %ss', timeout)
        logger.info('HTTP server stopped')
