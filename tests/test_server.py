"""Tests for the background uvicorn server wrapper."""

from unittest.mock import patch

import pytest
import requests

from udplog.api import create_app
from udplog.server import HttpServer
from udplog.store import RetainedLogStore


class TestHttpServer:
    def test_start_serves_requests_and_stops(self):
        store = RetainedLogStore(5)
        store.append('served record')
        server = HttpServer(create_app(store), host='127.0.0.1', port=0, log_level='warning')

        server.start()
        try:
            assert server.is_running
            port = server._server.servers[0].sockets[0].getsockname()[1]
            response = requests.get(f'http://127.0.0.1:{port}/logs', timeout=5)
            assert response.status_code == 200
            assert 'served record<br>' in response.text
        finally:
            server.stop(timeout=5.0)

        assert not server.is_running

    def test_start_raises_when_server_exits_early(self):
        server = HttpServer(create_app(RetainedLogStore(1)), host='127.0.0.1', port=0)

        with patch.object(server._server, 'run', return_value=None):
            with pytest.raises(RuntimeError, match='failed to start'):
                server.start()

    def test_warn_level_mapped_for_uvicorn(self):
        server = HttpServer(create_app(RetainedLogStore(1)), host='127.0.0.1', port=0, log_level='WARN')
        assert server._server.config.log_level == 'warning'

    def test_unknown_level_rejected(self):
        with pytest.raises(ValueError):
            HttpServer(create_app(RetainedLogStore(1)), host='127.0.0.1', port=0, log_level='loud')
