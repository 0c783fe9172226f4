import socketserver
import threading
import time
from unittest.mock import Mock

import pytest
import requests

from pagelens.exceptions import FetchError
from pagelens.services.http_service import HttpService


def _response(status_code=200, chunks=(b"hello world",), headers=None, encoding="utf-8"):
    resp = Mock()
    resp.status_code = status_code
    resp.iter_content.return_value = list(chunks)
    resp.headers = headers if headers is not None else {}
    resp.encoding = encoding
    return resp


@pytest.fixture
def trickle_server():
    """Local server that promises a large body and sends it one byte at a time."""

    class Handler(socketserver.BaseRequestHandler):
        def handle(self):
            self.request.recv(65536)
            self.request.sendall(
                b"HTTP/1.1 200 OK\r\nContent-Type: text/html\r\nContent-Length: 100000\r\n\r\n"
            )
            try:
                for _ in range(200):
                    self.request.sendall(b"x")
                    time.sleep(0.05)
            except OSError:
                pass

    server = socketserver.ThreadingTCPServer(("127.0.0.1", 0), Handler)
    server.daemon_threads = True
    threading.Thread(target=server.serve_forever, daemon=True).start()
    yield f"http://127.0.0.1:{server.server_address[1]}/"
    server.shutdown()
    server.server_close()


def test_fetch_success():
    mock_http_client = Mock(return_value=_response())
    http = HttpService(user_agent='TestAgent', http_client=mock_http_client)
    response = http.fetch('http://example.com')
    assert response.status_code == 200
    assert response.text == 'hello world'


def test_fetch_sends_user_agent_and_streams():
    resp = _response()
    mock_http_client = Mock(return_value=resp)
    http = HttpService(user_agent='TestAgent', http_client=mock_http_client, timeout=7)
    http.fetch('http://example.com')

    _, kwargs = mock_http_client.call_args
    assert kwargs["headers"] == {"User-Agent": "TestAgent"}
    assert kwargs["timeout"] == 7
    assert kwargs["stream"] is True
    resp.close.assert_called_once()


def test_fetch_decodes_with_declared_charset():
    body = "café".encode("latin-1")
    resp = _response(chunks=(body[:2], b"", body[2:]), headers={'Content-Type': 'text/html; charset=latin-1'}, encoding="latin-1")
    http = HttpService(user_agent='TestAgent', http_client=Mock(return_value=resp))
    assert http.fetch('http://example.com').text == "café"


def test_fetch_without_charset_reads_utf8_not_latin1():
    # requests reports ISO-8859-1 for text/html without a charset
    body = "<title>Café Zürich</title>".encode("utf-8")
    resp = _response(chunks=(body,), headers={'Content-Type': 'text/html'}, encoding="ISO-8859-1")
    http = HttpService(user_agent='TestAgent', http_client=Mock(return_value=resp))
    assert http.fetch('http://example.com').text == "<title>Café Zürich</title>"


def test_fetch_without_charset_honors_meta_charset():
    body = '<meta charset="windows-1252"><title>Café</title>'.encode("cp1252")
    resp = _response(chunks=(body,), headers={'Content-Type': 'text/html'}, encoding="ISO-8859-1")
    http = HttpService(user_agent='TestAgent', http_client=Mock(return_value=resp))
    assert "<title>Café</title>" in http.fetch('http://example.com').text


def test_fetch_unknown_charset_falls_back_to_utf8():
    resp = _response(chunks=("ok é".encode(),), headers={'Content-Type': 'text/html; charset=no-such-codec'}, encoding="no-such-codec")
    http = HttpService(user_agent='TestAgent', http_client=Mock(return_value=resp))
    assert http.fetch('http://example.com').text == "ok é"


def test_fetch_returns_non_success_status_without_raising():
    mock_http_client = Mock(return_value=_response(status_code=500, chunks=(b"oops",)))
    http = HttpService(user_agent='TestAgent', http_client=mock_http_client)
    assert http.fetch('http://example.com').status_code == 500


def test_fetch_timeout_raises_timed_out_fetch_error():
    mock_http_client = Mock(side_effect=requests.exceptions.Timeout("timed out"))
    http = HttpService(user_agent='TestAgent', http_client=mock_http_client, timeout=3)

    with pytest.raises(FetchError) as exc:
        http.fetch('http://example.com')
    assert exc.value.timed_out is True
    assert "timed out" in str(exc.value)
    assert "http://example.com" in str(exc.value)


def test_fetch_wraps_requests_exception():
    mock_http_client = Mock(side_effect=requests.exceptions.ConnectionError("refused"))
    http = HttpService(user_agent='TestAgent', http_client=mock_http_client)

    with pytest.raises(FetchError) as exc:
        http.fetch('http://example.com')
    assert exc.value.timed_out is False
    assert exc.value.status_code is None
    assert isinstance(exc.value.original, requests.exceptions.ConnectionError)


def test_fetch_stalled_body_past_deadline_times_out():
    release = threading.Event()

    def stalled(chunk_size):
        yield b"a"
        release.wait(5)
        yield b"b"

    resp = _response()
    resp.iter_content.side_effect = stalled
    ticks = iter([100.0, 200.0, 200.0])
    http = HttpService(user_agent='TestAgent', http_client=Mock(return_value=resp), timeout=5, clock=lambda: next(ticks))

    try:
        with pytest.raises(FetchError) as exc:
            http.fetch('http://example.com')
    finally:
        release.set()
    assert exc.value.timed_out is True
    resp.raw.connection.sock.shutdown.assert_called_once()


def test_fetch_slow_trickle_stops_at_wall_clock_deadline(trickle_server):
    session = requests.Session()
    session.trust_env = False
    http = HttpService(user_agent='TestAgent', http_client=session.get, timeout=0.5)

    started = time.monotonic()
    with pytest.raises(FetchError) as exc:
        http.fetch(trickle_server)
    elapsed = time.monotonic() - started

    assert exc.value.timed_out is True
    assert "timed out" in str(exc.value)
    assert elapsed < 2.0


def test_fetch_read_error_while_streaming_is_wrapped():
    resp = _response()
    resp.iter_content.side_effect = requests.exceptions.ChunkedEncodingError("broken")
    http = HttpService(user_agent='TestAgent', http_client=Mock(return_value=resp))

    with pytest.raises(FetchError):
        http.fetch('http://example.com')


def test_fetch_content_type_from_headers():
    resp = _response(headers={'Content-Type': 'text/html; charset=utf-8'})
    http = HttpService(user_agent='TestAgent', http_client=Mock(return_value=resp))
    response = http.fetch('http://example.com')
    assert response.content_type == 'text/html; charset=utf-8'


def test_fetch_missing_content_type():
    http = HttpService(user_agent='TestAgent', http_client=Mock(return_value=_response(headers={})))
    assert http.fetch('http://example.com').content_type is None


def test_probe_uses_head_client_and_follows_redirects():
    head = Mock(return_value=Mock(status_code=404))
    http = HttpService(user_agent='TestAgent', http_client=Mock(), head_client=head, timeout=30, probe_timeout=4)

    assert http.probe('http://example.com/missing') == 404
    _, kwargs = head.call_args
    assert kwargs["allow_redirects"] is True
    assert kwargs["timeout"] == 4


def test_probe_connection_failure_raises_fetch_error():
    head = Mock(side_effect=requests.exceptions.ConnectionError("dns"))
    http = HttpService(user_agent='TestAgent', http_client=Mock(), head_client=head)

    with pytest.raises(FetchError):
        http.probe('http://nowhere.invalid')


def test_probe_falls_back_to_http_client():
    get = Mock(return_value=Mock(status_code=200))
    http = HttpService(user_agent='TestAgent', http_client=get)
    assert http.probe('http://example.com') == 200
    get.assert_called_once()
