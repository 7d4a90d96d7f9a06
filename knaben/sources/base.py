"""
Source SDK
Base interface for search sources feeding the stream aggregator.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..models.search_result import CandidateRow
from .row_extractor import RowExtractor


class BaseSource(ABC):
    """
    Source contract: fetch one results page per query, then turn it into rows.
    """
    api_version = 1
    name = "UnnamedSource"
    last_error = ""
    extractor = RowExtractor()

    @abstractmethod
    def fetch_page(self, query: str) -> Optional[str]:
        """Return the raw results page for a query, or None on failure."""
        raise NotImplementedError

    def extract_rows(self, html: Optional[str]) -> List[CandidateRow]:
        if not html:
            return []
        return self.extractor.extract(html)

    def search(self, query: str) -> List[CandidateRow]:
        """Fetch and extract in one step."""
        return self.extract_rows(self.fetch_page(query))

    def healthcheck(self) -> Dict[str, Any]:
        """Lightweight health payload for the /health endpoint."""
        return {
            "name": self.name,
            "ok": not bool(self.last_error),
            "error": self.last_error,
            "api_version": self.api_version,
        }
