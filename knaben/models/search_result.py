"""
Search Result Models
Candidate rows scraped from a results table and the streams built from them
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional
import math
import re


SIZE_PATTERN = re.compile(r'^([\d.]+)(B|KB|MB|GB|TB|KiB|MiB|GiB|TiB)$', re.IGNORECASE)

# Position in the size ladder; KB/KiB -> 1, MB/MiB -> 2, ...
SIZE_EXPONENTS = {
    'B': 0,
    'KB': 1, 'KIB': 1,
    'MB': 2, 'MIB': 2,
    'GB': 3, 'GIB': 3,
    'TB': 4, 'TIB': 4,
}


def normalize_size(size_str: Optional[str]) -> Optional[int]:
    """
    Normalize a size string to bytes
    Handles: "613.5MB", "1.06 GB", "552.7 MiB", etc.

    Returns None when the text is not <number><unit>; callers treat that
    as "size unknown", never as zero.
    """
    if not size_str:
        return None

    compact = re.sub(r'\s+', '', str(size_str))
    match = SIZE_PATTERN.match(compact)
    if not match:
        return None

    try:
        value = float(match.group(1))
    except ValueError:
        return None

    unit = match.group(2).upper()
    base = 1024 if unit.endswith('IB') else 1000
    # Half-up rounding
    return int(math.floor(value * (base ** SIZE_EXPONENTS[unit]) + 0.5))


@dataclass
class CandidateRow:
    """One table row that carried a usable magnet link"""
    title: str
    magnet: str
    size: str = ""
    seeders: int = 0
    source: str = ""


@dataclass(frozen=True)
class QueryPlanEntry:
    query: str
    requires_date_filter: bool


@dataclass
class StreamDescriptor:
    """Playable stream handed back to the add-on protocol layer"""
    name: str
    title: str
    infohash: str
    peer_count: int = 0
    size_bytes: Optional[int] = None

    @classmethod
    def from_row(cls, row: CandidateRow, infohash: str, provider_label: str) -> "StreamDescriptor":
        server = row.source or provider_label
        return cls(
            name=server,
            title=f"{row.title}\nSeeders: {row.seeders} • Size: {row.size} • Server: {server}",
            infohash=infohash,
            peer_count=row.seeders or 0,
            size_bytes=normalize_size(row.size),
        )

    def to_stremio(self) -> Dict[str, Any]:
        behavior_hints: Dict[str, Any] = {}
        if self.size_bytes:
            behavior_hints["videoSize"] = self.size_bytes
        return {
            "name": self.name,
            "title": self.title,
            "infoHash": self.infohash,
            "peerCount": self.peer_count,
            "behaviorHints": behavior_hints,
        }
