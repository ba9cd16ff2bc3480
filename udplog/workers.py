"""Background worker threads for the udp-logger daemon.

Each worker runs in its own daemon thread and can be shut down gracefully.
The ingestion worker is the sole writer to the retained-log store.
"""

import logging
import threading
from typing import Optional

from .metrics import RECEIVE_ERRORS_TOTAL, RECORDS_RECEIVED_TOTAL, RETAINED_RECORDS
from .sink import DurableSink
from .store import RetainedLogStore
from .transport import UdpTransport

logger = logging.getLogger(__name__)


class BaseWorker:
    """Calls ``process_one`` repeatedly on a daemon thread until stopped.

    ``idle_wait`` is slept after an iteration that did no work; workers whose
    ``process_one`` already blocks on I/O leave it at zero. ``error_backoff``
    is slept after an unexpected exception so a persistent fault cannot spin.
    """

    def __init__(self, idle_wait: float = 0.0, error_backoff: float = 1.0):
        self.idle_wait = idle_wait
        self.error_backoff = error_backoff
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """Start the worker in a daemon thread."""
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name=self.name, daemon=True)
        self._thread.start()
        logger.info('%s started', self.name)

    def stop(self, timeout: float = 10.0):
        """Signal the worker to stop and wait for the current iteration to end."""
        logger.info('%s stopping...', self.name)
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning('%s did not stop within %ss', self.name, timeout)

    def _run_loop(self):
        logger.info('%s loop started', self.name)
        while not self._stop_event.is_set():
            try:
                if not self.process_one() and self.idle_wait:
                    self._stop_event.wait(timeout=self.idle_wait)
            except Exception:
                logger.exception('%s encountered an error in run loop', self.name)
                self._stop_event.wait(timeout=self.error_backoff)
        logger.info('%s loop ended', self.name)

    def process_one(self) -> bool:
        """Handle at most one unit of work. Return True if work was done."""
        raise NotImplementedError


class IngestionWorker(BaseWorker):
    """Receives records from the transport and fans them out to the store
    and the durable sink, one record at a time in arrival order.

    ``transport.receive`` blocks up to its socket timeout, so there is no
    idle wait between reads.
    """

    def __init__(
        self,
        transport: UdpTransport,
        store: RetainedLogStore,
        sink: DurableSink,
        error_backoff: float = 0.1,
    ):
        super().__init__(idle_wait=0.0, error_backoff=error_backoff)
        self.transport = transport
        self.store = store
        self.sink = sink

    def process_one(self) -> bool:
        if self.transport.closed:
            logger.error('[Ingestion] Transport closed, stopping ingestion')
            self._stop_event.set()
            return False

        try:
            record = self.transport.receive()
        except OSError as e:
            if self.transport.closed:
                return False
            logger.warning('[Ingestion] Error reading from UDP socket: %s', e)
            RECEIVE_ERRORS_TOTAL.inc()
            self._stop_event.wait(timeout=self.error_backoff)
            return False

        if record is None:
            return False

        RECORDS_RECEIVED_TOTAL.inc()
        self.store.append(record)
        RETAINED_RECORDS.set(len(self.store))
        self.sink.write_line(record)
        return True
