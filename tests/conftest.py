import json
import sys
import threading
import urllib.error
import urllib.request
from pathlib import Path

import pytest


def pytest_configure() -> None:
    project_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(project_root))


@pytest.fixture
def serve():
    """Start a server on a free port; returns a (method, path, body) -> (status, json) caller."""
    from snakesolver.server import make_server

    servers = []

    def start(**kwargs):
        server = make_server("127.0.0.1", 0, **kwargs)
        threading.Thread(target=server.serve_forever, daemon=True).start()
        servers.append(server)
        base = f"http://127.0.0.1:{server.server_port}"

        def call(method: str, path: str, body=None):
            data = None
            if body is not None:
                data = body if isinstance(body, bytes) else json.dumps(body).encode()
            req = urllib.request.Request(base + path, data=data, method=method,
                                         headers={"Content-Type": "application/json"})
            try:
                with urllib.request.urlopen(req, timeout=5) as resp:
                    return resp.status, json.loads(resp.read() or b"null")
            except urllib.error.HTTPError as e:
                return e.code, json.loads(e.read() or b"null")

        return call

    yield start

    for server in servers:
        server.shutdown()
        server.server_close()
