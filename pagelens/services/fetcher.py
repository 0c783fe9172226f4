from __future__ import annotations

import logging
from typing import Protocol

from pagelens.domain.http_response import HttpResponse
from pagelens.exceptions import FetchError

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    """Fetch a URL and return a successful HTTP-like response.

    Implementations raise FetchError for non-2xx statuses, timeouts and
    network failures.
    """

    def fetch(self, url: str) -> HttpResponse: ...


class HttpServiceFetcher:
    def __init__(self, http_service):
        self._http_service = http_service

    def fetch(self, url: str) -> HttpResponse:
        response = self._http_service.fetch(url)
        if response.status_code < 200 or response.status_code >= 300:
            logger.warning("Non-success status for %s: %s", url, response.status_code)
            raise FetchError(url, status_code=response.status_code)
        return response
