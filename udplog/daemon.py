"""Wires the store, ingestion worker and HTTP server into one process."""

import logging
import signal
import threading

from .api import create_app
from .metrics import RETAINED_RECORDS
from .server import HttpServer
from .sink import DurableSink
from .store import RetainedLogStore
from .transport import UdpTransport, rfc3339_now
from .workers import IngestionWorker

logger = logging.getLogger(__name__)


class Daemon:
    """Owns every long-lived component and handles graceful shutdown.

    Construction opens the sink file and binds the UDP socket; any failure
    there propagates so the process aborts instead of running degraded.
    """

    def __init__(self, config: dict):
        self.config = config
        self._shutdown_event = threading.Event()

        self.store = RetainedLogStore(config.get('retention', {}).get('capacity', 100))
        self.sink = DurableSink(config.get('log_file', 'app.log'))

        udp_config = config.get('udp', {})
        try:
            self.transport = UdpTransport(
                host=udp_config.get('host', '0.0.0.0'),
                port=udp_config.get('port', 514),
                buffer_size=udp_config.get('buffer_size', 1024),
                timeout=udp_config.get('timeout_seconds', 1.0),
            )
        except OSError:
            self.sink.close()
            raise

        try:
            self.ingestion = IngestionWorker(
                transport=self.transport,
                store=self.store,
                sink=self.sink,
            )

            http_config = config.get('http', {})
            self.app = create_app(self.store, ingestion=self.ingestion)
            self.http_server = HttpServer(
                self.app,
                host=http_config.get('host', '0.0.0.0'),
                port=http_config.get('port', 8080),
                log_level=config.get('log_level', 'INFO'),
            )
        except Exception:
            self.transport.close()
            self.sink.close()
            raise

    @property
    def shutdown_event(self) -> threading.Event:
        return self._shutdown_event

    def start(self):
        """Record the startup banner, then start the HTTP server and ingestion."""
        banner = f'UDP Logger started at: {rfc3339_now()}'
        logger.info(banner)
        # Ingestion is not running yet, so this thread is the only writer.
        self.store.append(banner)
        RETAINED_RECORDS.set(len(self.store))
        self.sink.write_line(banner)

        self.http_server.start()
        self.ingestion.start()
        logger.info('udp-logger running')

    def stop(self, timeout: float = 15.0):
        """Stop ingestion and HTTP, then release the socket and the sink."""
        logger.info('Shutting down...')
        self._shutdown_event.set()
        self.ingestion.stop(timeout=timeout)
        self.transport.close()
        self.http_server.stop(timeout=timeout)
        self.sink.close()
        logger.info('Shutdown complete')

    def install_signal_handlers(self):
        """Install SIGTERM and SIGINT handlers for graceful shutdown."""
        def handler(signum, frame):
            sig_name = signal.Signals(signum).name
            logger.info('Received %s, initiating graceful shutdown...', sig_name)
            self._shutdown_event.set()

        signal.signal(signal.SIGTERM, handler)
        signal.signal(signal.SIGINT, handler)

    def wait_for_shutdown(self):
        """Block until a shutdown signal arrives or ingestion dies, then stop."""
        try:
            while not self._shutdown_event.is_set():
                self._shutdown_event.wait(timeout=1.0)
                if not self.ingestion.is_running:
                    logger.error('Ingestion worker is no longer running')
                    break
        except KeyboardInterrupt:
            pass
        finally:
            self.stop()


def run(config: dict):
    """Build, start and run the daemon until shutdown."""
    daemon = Daemon(config)
    try:
        daemon.start()
    except Exception:
        daemon.stop()
        raise
    daemon.install_signal_handlers()
    daemon.wait_for_shutdown()
