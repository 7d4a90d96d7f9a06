"""
Knaben Search Source
Fetches the HTML results table for one query
"""
from typing import Optional
import logging
import time

import requests

from ..core.config import AddonConfig
from ..core.errors import SourceFetchError
from .base import BaseSource

logger = logging.getLogger(__name__)


class KnabenSource(BaseSource):
    """Table-style search site configured by base URL and search path"""

    def __init__(self, config: AddonConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.name = config.provider_label
        self.last_error = ""
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': config.user_agent,
            'Accept': 'text/html,application/xhtml+xml,*/*',
            'Accept-Language': 'en-US,en;q=0.9',
            'Cache-Control': 'no-cache',
            'Pragma': 'no-cache',
        })

    def search_url(self, query: str) -> str:
        return self.config.search_url(query)

    def fetch_page(self, query: str) -> Optional[str]:
        """
        Fetch the results page for a query.

        Transport errors and non-2xx answers are logged and reported as None;
        the caller treats that as a page with no rows.
        """
        url = self.search_url(query)
        try:
            response = self._request_with_retry(
                url,
                timeout_seconds=self.config.request_timeout_seconds,
                retries=self.config.request_retries,
                backoff_seconds=self.config.retry_backoff_seconds,
            )
        except SourceFetchError as e:
            self.last_error = str(e)
            logger.warning("%s fetch failed for %r: %s", self.name, query, e)
            return None

        self.last_error = ""
        return response.text or None

    def _request_with_retry(self, url: str, timeout_seconds: float, retries: int, backoff_seconds: float):
        """GET with bounded retry/backoff for transient network/server failures."""
        last_error = None
        total_attempts = max(1, int(retries) + 1)
        for attempt in range(total_attempts):
            try:
                response = self.session.get(
                    url,
                    timeout=max(1.0, float(timeout_seconds)),
                    allow_redirects=True,
                )
                response.raise_for_status()
                return response
            except requests.RequestException as exc:
                last_error = exc
                status = getattr(getattr(exc, "response", None), "status_code", None)
                # Client errors will not improve on retry.
                if status is not None and status < 500:
                    break
                if attempt >= total_attempts - 1:
                    break
                delay = max(0.0, float(backoff_seconds)) * (attempt + 1)
                if delay > 0:
                    time.sleep(delay)
        raise SourceFetchError(f"GET {url} failed: {last_error}")
