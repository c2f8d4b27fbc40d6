from __future__ import annotations

import socket
import threading

import pytest

from callbench.connection import ConnectionFactory
from scenarios.catalog import build_catalog
from scenarios.runner import ScenarioRunner
from stub_service import create_app

BASE = "http://anybody.test"


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
def factory(app):
    return ConnectionFactory(BASE, app=app)


@pytest.fixture
def runner(app):
    return ScenarioRunner(lambda base: ConnectionFactory(base, app=app))


@pytest.fixture
def catalog():
    return build_catalog(BASE)


@pytest.fixture
def dead_url():
    # bind then close: nothing listens on that port afterwards
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]
    return f"http://127.0.0.1:{port}"


@pytest.fixture
def hangup_url():
    """Address of a server that accepts each connection and closes it unanswered."""
    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    srv.bind(("127.0.0.1", 0))
    srv.listen()
    srv.settimeout(0.1)
    stop = threading.Event()

    def serve():
        while not stop.is_set():
            try:
                conn, _ = srv.accept()
            except TimeoutError:
                continue
            except OSError:
                return
            conn.close()

    t = threading.Thread(target=serve, daemon=True)
    t.start()
    yield f"http://127.0.0.1:{srv.getsockname()[1]}"
    stop.set()
    srv.close()
    t.join(timeout=2)
