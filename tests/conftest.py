"""Shared fixtures: an in-process HTTP endpoint that records bulk requests."""
import threading
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest
from structlog.testing import capture_logs

from log_shipper.reporting import ErrorReporter


@dataclass
class RecordedRequest:
    method: str
    path: str
    headers: list[tuple[str, str]]
    body: bytes

    def header_values(self, name: str) -> list[str]:
        return [value for key, value in self.headers if key.lower() == name.lower()]


@dataclass
class BulkEndpoint:
    url: str
    requests: list[RecordedRequest] = field(default_factory=list)
    status: int = 200
    response_body: bytes = b'{"errors":false}'

    def respond_with(self, status: int, body: bytes = b''):
        self.status = status
        self.response_body = body


def _make_handler(endpoint: BulkEndpoint):
    class Handler(BaseHTTPRequestHandler):
        protocol_version = "HTTP/1.1"

        def do_POST(self):
            length = int(self.headers.get('Content-Length', 0))
            body = self.rfile.read(length)
            endpoint.requests.append(RecordedRequest(
                method=self.command,
                path=self.path,
                headers=list(self.headers.items()),
                body=body
            ))
            self.send_response(endpoint.status)
            self.send_header('Content-Length', str(len(endpoint.response_body)))
            self.end_headers()
            self.wfile.write(endpoint.response_body)

        def log_message(self, format, *args):
            pass

    return Handler


@pytest.fixture
def bulk_endpoint():
    endpoint = BulkEndpoint(url="")
    server = ThreadingHTTPServer(('127.0.0.1', 0), _make_handler(endpoint))
    host, port = server.server_address[:2]
    endpoint.url = f"http://{host}:{port}/_bulk"

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield endpoint
    finally:
        server.shutdown()
        server.server_close()


@pytest.fixture
def reporter():
    return ErrorReporter(name="test")


@pytest.fixture
def captured_logs():
    with capture_logs() as logs:
        yield logs
