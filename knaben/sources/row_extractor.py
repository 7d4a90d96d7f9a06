"""
Row Extractor
Turns an HTML results table into candidate rows with magnet links
"""
from dataclasses import dataclass
from typing import Dict, List, Optional
import re

from bs4 import BeautifulSoup

from ..models.search_result import CandidateRow

MAGNET_PREFIX = re.compile(r'^magnet:\?xt=urn:btih:', re.IGNORECASE)
EMBEDDED_MAGNET = re.compile(r"magnet:\?xt=urn:btih:[^'\"\s)]+", re.IGNORECASE)
LEADING_INT = re.compile(r'^\s*([+-]?\d+)')

# Header label -> column role
HEADER_ALIASES = {
    "title": "title",
    "name": "title",
    "torrent": "title",
    "release": "title",
    "size": "size",
    "filesize": "size",
    "seeders": "seeders",
    "seeds": "seeders",
    "seed": "seeders",
    "se": "seeders",
    "source": "source",
    "indexer": "source",
    "tracker": "source",
}


def collapse_whitespace(text: str) -> str:
    return re.sub(r'\s+', ' ', text or "").strip()


def parse_seeders(text: str) -> int:
    match = LEADING_INT.match(text or "")
    if not match:
        return 0
    return max(0, int(match.group(1)))


@dataclass(frozen=True)
class ColumnLayout:
    """Cell index for each column role; None when the table lacks it."""
    title: int = 1
    size: Optional[int] = 2
    seeders: Optional[int] = 4
    source: Optional[int] = 6

    @classmethod
    def from_header(cls, columns: Dict[str, int]) -> "ColumnLayout":
        return cls(
            title=columns.get("title", 1),
            size=columns.get("size"),
            seeders=columns.get("seeders"),
            source=columns.get("source"),
        )


# Category | Title | Size | Date | Seeders | Leechers | Source
POSITIONAL_LAYOUT = ColumnLayout()


class BaseMagnetStrategy:
    """One way of locating a magnet link inside a table row."""

    name = "base"

    def find(self, row) -> Optional[str]:
        raise NotImplementedError


class AnchorHrefStrategy(BaseMagnetStrategy):
    name = "anchor-href"

    def find(self, row) -> Optional[str]:
        for link in row.find_all("a", href=True):
            href = (link.get("href") or "").strip()
            if MAGNET_PREFIX.match(href):
                return href
        return None


class DataAttributeStrategy(BaseMagnetStrategy):
    def __init__(self, attribute: str):
        self.attribute = attribute
        self.name = f"attr-{attribute}"

    def find(self, row) -> Optional[str]:
        for node in row.find_all(attrs={self.attribute: True}):
            value = (node.get(self.attribute) or "").strip()
            if MAGNET_PREFIX.match(value):
                return value
        return None


class OnclickStrategy(BaseMagnetStrategy):
    name = "onclick"

    def find(self, row) -> Optional[str]:
        for node in row.find_all(attrs={"onclick": True}):
            match = EMBEDDED_MAGNET.search(node.get("onclick") or "")
            if match:
                return match.group(0)
        return None


DEFAULT_STRATEGIES = [
    AnchorHrefStrategy(),
    DataAttributeStrategy("data-magnet"),
    DataAttributeStrategy("data-href"),
    OnclickStrategy(),
]


class RowExtractor:
    """
    Heuristic table parser.

    Columns are located from the table's header row when one is recognized;
    otherwise the common layout
    Category | Title | Size | Date | Seeders | Leechers | Source
    is assumed. Magnets are looked up with each strategy in order.
    """

    def __init__(self, strategies: Optional[List[BaseMagnetStrategy]] = None):
        self.strategies = list(strategies) if strategies is not None else list(DEFAULT_STRATEGIES)

    def extract(self, html) -> List[CandidateRow]:
        soup = BeautifulSoup(html, "html.parser")
        layouts: Dict[int, ColumnLayout] = {}
        rows: List[CandidateRow] = []

        for tr in soup.find_all("tr"):
            table = tr.find_parent("table")
            key = id(table)
            if key not in layouts:
                layouts[key] = self.resolve_layout(table)
            row = self._parse_row(tr, layouts[key])
            if row:
                rows.append(row)

        # Dedupe by magnet, first occurrence wins
        seen = set()
        deduped = []
        for row in rows:
            if row.magnet in seen:
                continue
            seen.add(row.magnet)
            deduped.append(row)
        return deduped

    def resolve_layout(self, table) -> ColumnLayout:
        if table is None:
            return POSITIONAL_LAYOUT
        for tr in table.find_all("tr"):
            headers = tr.find_all("th")
            if not headers and tr.find_parent("thead") is not None:
                headers = tr.find_all("td")
            if not headers:
                continue
            columns: Dict[str, int] = {}
            for index, cell in enumerate(headers):
                label = re.sub(r'[^a-z]', '', cell.get_text(" ").lower())
                role = HEADER_ALIASES.get(label)
                if role and role not in columns:
                    columns[role] = index
            if columns:
                return ColumnLayout.from_header(columns)
        return POSITIONAL_LAYOUT

    def find_magnet(self, tr) -> Optional[str]:
        for strategy in self.strategies:
            magnet = strategy.find(tr)
            if magnet and MAGNET_PREFIX.match(magnet):
                return magnet
        return None

    def _parse_row(self, tr, layout: ColumnLayout) -> Optional[CandidateRow]:
        cells = tr.find_all("td")
        if len(cells) < 2:
            return None

        title = self._cell_text(cells, layout.title)
        if not title:
            return None

        magnet = self.find_magnet(tr)
        if not magnet:
            return None

        return CandidateRow(
            title=title,
            magnet=magnet,
            size=self._cell_text(cells, layout.size),
            seeders=parse_seeders(self._cell_text(cells, layout.seeders)),
            source=self._cell_text(cells, layout.source),
        )

    @staticmethod
    def _cell_text(cells, index: Optional[int]) -> str:
        if index is None or index >= len(cells):
            return ""
        return collapse_whitespace(cells[index].get_text())
