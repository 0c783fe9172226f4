import logging
import socket
import threading
import time
from typing import Callable, Optional

import requests
from bs4.dammit import EncodingDetector

from pagelens.domain.http_response import HttpResponse
from pagelens.exceptions import FetchError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class HttpService:
    """
    HTTP client wrapper for fetching web pages and probing links.

    Requires http_client callable (requests.get-like) for dependency injection.
    `head_client` (requests.head-like) is used for liveness probes; when absent
    probes fall back to `http_client`.
    """

    def __init__(self, user_agent: str, http_client: Callable, timeout: float = 30, head_client: Optional[Callable] = None, probe_timeout: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.user_agent = user_agent
        self.timeout = timeout
        self.http_client = http_client
        self.head_client = head_client or http_client
        self.probe_timeout = probe_timeout if probe_timeout is not None else timeout
        self._clock = clock

    def fetch(self, url: str) -> HttpResponse:
        """Fetch URL and return response with status code, body text, and Content-Type.

        `timeout` bounds the whole retrieval, body included. The body is read on
        a helper thread and abandoned once the deadline passes, however slowly
        the server keeps sending.
        """
        headers = {"User-Agent": self.user_agent}
        deadline = self._clock() + self.timeout
        try:
            resp = self.http_client(url, headers=headers, timeout=self.timeout, stream=True)
        except requests.exceptions.Timeout as e:
            raise FetchError(url, timed_out=True, timeout=self.timeout, original=e) from e
        except requests.exceptions.RequestException as e:
            raise FetchError(url, original=e) from e

        raw = self._read_body(url, resp, deadline)

        # Extract Content-Type if response has headers; let real exceptions bubble up.
        ct = None
        if hasattr(resp, 'headers'):
            ct = resp.headers.get('Content-Type')

        return HttpResponse(resp.status_code, _decode(raw, resp), ct)

    def _read_body(self, url: str, resp, deadline: float) -> bytes:
        outcome = {}

        def drain():
            try:
                outcome["body"] = b"".join(chunk for chunk in resp.iter_content(chunk_size=CHUNK_SIZE) if chunk)
            except Exception as e:
                # re-raised on the fetching thread
                outcome["error"] = e
            finally:
                resp.close()

        reader = threading.Thread(target=drain, name=f"fetch-body-{url}", daemon=True)
        reader.start()
        reader.join(max(0.0, deadline - self._clock()))
        if reader.is_alive():
            _abort(resp)
            logger.debug("Abandoned body of %s after %ss", url, self.timeout)
            raise FetchError(url, timed_out=True, timeout=self.timeout)

        error = outcome.get("error")
        if isinstance(error, requests.exceptions.Timeout):
            raise FetchError(url, timed_out=True, timeout=self.timeout, original=error) from error
        if isinstance(error, requests.exceptions.RequestException):
            raise FetchError(url, original=error) from error
        if error is not None:
            raise error
        return outcome["body"]

    def probe(self, url: str) -> int:
        """Return the status code of a HEAD request to `url` (redirects followed).

        Raises FetchError when no response is received at all.
        """
        headers = {"User-Agent": self.user_agent}
        try:
            resp = self.head_client(url, headers=headers, timeout=self.probe_timeout, allow_redirects=True)
        except requests.exceptions.Timeout as e:
            raise FetchError(url, timed_out=True, timeout=self.probe_timeout, original=e) from e
        except requests.exceptions.RequestException as e:
            raise FetchError(url, original=e) from e
        resp.close()
        return resp.status_code


def _abort(resp) -> None:
    # Closing the response would wait on the blocked reader; shutting the
    # socket down wakes it instead.
    connection = getattr(getattr(resp, "raw", None), "connection", None)
    sock = getattr(connection, "sock", None)
    if sock is None:
        return
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        logger.debug("Socket already closed", exc_info=True)


def _decode(raw: bytes, resp) -> str:
    """Decode a page body: Content-Type charset, then <meta charset>, then UTF-8.

    requests reports ISO-8859-1 for any text/* response without a charset, so
    `resp.encoding` is only trusted when the header names one.
    """
    candidates = []
    content_type = (resp.headers.get("Content-Type") or "") if hasattr(resp, "headers") else ""
    if "charset=" in content_type.lower() and resp.encoding:
        candidates.append(resp.encoding)
    declared = EncodingDetector.find_declared_encoding(raw, is_html=True)
    if declared:
        candidates.append(declared)
    for encoding in candidates:
        try:
            return raw.decode(encoding, errors="replace")
        except LookupError:
            logger.debug("Unknown charset %r, trying next", encoding)
    return raw.decode("utf-8", errors="replace")
