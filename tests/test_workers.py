"""Tests for the worker threads."""

import logging
import threading
import time
from unittest.mock import MagicMock

import pytest
from prometheus_client import REGISTRY

from udplog.store import RetainedLogStore
from udplog.workers import BaseWorker, IngestionWorker


def sample(name):
    return REGISTRY.get_sample_value(name) or 0.0


# ---------------------------------------------------------------------------
# BaseWorker tests
# ---------------------------------------------------------------------------

class TestBaseWorker:
    def test_start_and_stop(self):
        """Worker thread starts and stops cleanly."""

        class IdleWorker(BaseWorker):
            def process_one(self):
                return False

        worker = IdleWorker(idle_wait=0.05)
        worker.start()
        assert worker.is_running

        worker.stop(timeout=2.0)
        assert not worker.is_running

    def test_loops_without_idle_wait_when_zero(self):
        """With idle_wait=0 the loop keeps calling process_one back to back."""
        calls = 0

        class BlockingSourceWorker(BaseWorker):
            def process_one(self):
                nonlocal calls
                calls += 1
                if calls >= 50:
                    self._stop_event.set()
                return False

        worker = BlockingSourceWorker(idle_wait=0.0, error_backoff=5.0)
        worker.start()
        worker._thread.join(timeout=2.0)
        assert calls >= 50
        assert not worker.is_running

    def test_exception_backs_off_and_continues(self):
        """An exception in process_one is logged and the loop keeps going."""
        calls = 0

        class FlakyWorker(BaseWorker):
            def process_one(self):
                nonlocal calls
                calls += 1
                if calls < 3:
                    raise RuntimeError('boom')
                self._stop_event.set()
                return True

        worker = FlakyWorker(error_backoff=0.01)
        worker.start()
        worker._thread.join(timeout=5.0)
        assert calls == 3

    def test_name_is_class_name(self):
        class ReaderWorker(BaseWorker):
            def process_one(self):
                return False

        assert ReaderWorker().name == 'ReaderWorker'

    def test_process_one_must_be_overridden(self):
        with pytest.raises(NotImplementedError):
            BaseWorker().process_one()


# ---------------------------------------------------------------------------
# IngestionWorker tests
# ---------------------------------------------------------------------------

class TestIngestionWorker:
    def _make_worker(self, transport=None, store=None, sink=None):
        transport = transport or MagicMock(closed=False)
        store = store if store is not None else RetainedLogStore(3)
        sink = sink or MagicMock()
        return IngestionWorker(transport=transport, store=store, sink=sink, error_backoff=0.0)

    def test_does_not_idle_between_reads(self):
        assert self._make_worker().idle_wait == 0.0

    def test_idle_when_nothing_received(self):
        transport = MagicMock(closed=False)
        transport.receive.return_value = None
        sink = MagicMock()
        worker = self._make_worker(transport=transport, sink=sink)

        assert worker.process_one() is False
        assert worker.store.snapshot() == []
        sink.write_line.assert_not_called()

    def test_record_goes_to_store_and_sink(self):
        transport = MagicMock(closed=False)
        transport.receive.return_value = 'hello'
        sink = MagicMock()
        worker = self._make_worker(transport=transport, sink=sink)

        assert worker.process_one() is True
        assert worker.store.snapshot() == ['hello']
        sink.write_line.assert_called_once_with('hello')

    def test_record_updates_metrics(self):
        transport = MagicMock(closed=False)
        transport.receive.side_effect = ['one', 'two']
        worker = self._make_worker(transport=transport)
        before = sample('udplog_records_received_total')

        worker.process_one()
        worker.process_one()

        assert sample('udplog_records_received_total') == before + 2
        assert sample('udplog_retained_records') == 2

    def test_records_kept_in_arrival_order(self):
        transport = MagicMock(closed=False)
        transport.receive.side_effect = ['a', 'b', 'c', 'd']
        sink = MagicMock()
        worker = self._make_worker(transport=transport, sink=sink)

        for _ in range(4):
            worker.process_one()

        assert worker.store.snapshot() == ['b', 'c', 'd']
        assert sample('udplog_retained_records') == 3
        assert [c.args[0] for c in sink.write_line.call_args_list] == ['a', 'b', 'c', 'd']

    def test_receive_error_is_transient(self, caplog):
        """An OSError on one read is logged, counted, and the next read still works."""
        transport = MagicMock(closed=False)
        transport.receive.side_effect = [OSError('connection refused'), 'after error']
        worker = self._make_worker(transport=transport)
        errors_before = sample('udplog_receive_errors_total')
        received_before = sample('udplog_records_received_total')

        with caplog.at_level(logging.WARNING, logger='udplog.workers'):
            assert worker.process_one() is False

        assert sample('udplog_receive_errors_total') == errors_before + 1
        assert sample('udplog_records_received_total') == received_before
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert 'connection refused' in warnings[0].getMessage()

        assert worker.process_one() is True
        assert worker.store.snapshot() == ['after error']
        assert not worker._stop_event.is_set()

    def test_error_after_close_is_not_counted(self):
        transport = MagicMock()
        transport.closed = False

        def receive():
            transport.closed = True
            raise OSError('bad file descriptor')

        transport.receive.side_effect = receive
        worker = self._make_worker(transport=transport)
        before = sample('udplog_receive_errors_total')

        assert worker.process_one() is False
        assert sample('udplog_receive_errors_total') == before

    def test_closed_transport_stops_loop(self):
        transport = MagicMock(closed=True)
        worker = self._make_worker(transport=transport)

        assert worker.process_one() is False
        assert worker._stop_event.is_set()
        transport.receive.assert_not_called()

    def test_runs_in_thread_until_stopped(self):
        drained = threading.Event()
        records = iter(['one', 'two'])

        def receive():
            try:
                return next(records)
            except StopIteration:
                drained.set()
                time.sleep(0.01)  # stands in for the socket timeout
                return None

        transport = MagicMock(closed=False)
        transport.receive.side_effect = receive
        sink = MagicMock()
        worker = self._make_worker(transport=transport, sink=sink)

        worker.start()
        assert drained.wait(timeout=5.0)
        worker.stop(timeout=2.0)

        assert not worker.is_running
        assert worker.store.snapshot() == ['one', 'two']
        assert sink.write_line.call_count == 2
