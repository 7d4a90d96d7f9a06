"""
Stream Aggregator
Runs the query plan against the search source and merges the results
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple
import logging
import time

from ..models.search_result import CandidateRow, QueryPlanEntry, StreamDescriptor
from ..sources.base import BaseSource
from .config import AddonConfig
from .dates import filter_by_date, format_date_variants, to_iso_date_only
from .query_planner import QueryPlanner, episode_code

logger = logging.getLogger(__name__)


class ResolutionPhase(Enum):
    IDLE = "idle"
    PLANNING = "planning"
    PER_QUERY = "per_query"
    FINAL_DEDUP = "final_dedup"
    DONE = "done"


@dataclass
class ResolutionRun:
    """State owned by exactly one resolution request."""
    date_variants: List[str] = field(default_factory=list)
    plan: List[QueryPlanEntry] = field(default_factory=list)
    accumulated: List[StreamDescriptor] = field(default_factory=list)
    pages: Dict[str, Optional[str]] = field(default_factory=dict)
    phase: ResolutionPhase = ResolutionPhase.IDLE
    deadline: float = 0.0
    queries_run: int = 0

    def enter(self, phase: ResolutionPhase) -> None:
        logger.debug("Resolution phase %s -> %s", self.phase.value, phase.value)
        self.phase = phase


def dedupe_streams(streams: List[StreamDescriptor]) -> List[StreamDescriptor]:
    """Keep the first stream per info hash, preserving order."""
    seen = set()
    unique = []
    for stream in streams:
        if stream.infohash in seen:
            continue
        seen.add(stream.infohash)
        unique.append(stream)
    return unique


def parse_stream_id(content_type: str, content_id: str) -> Optional[Tuple[str, Optional[int], Optional[int]]]:
    """
    Split a Stremio id into (imdb_id, season, episode).

    Series ids look like "tt1234567:1:2", movie ids like "tt1234567".
    Returns None for anything this add-on cannot serve.
    """
    raw = str(content_id or "")
    if content_type == "series":
        parts = raw.split(":")
        if len(parts) < 3 or not parts[0].startswith("tt") or not parts[1] or not parts[2]:
            return None
        try:
            return parts[0], int(parts[1]), int(parts[2])
        except ValueError:
            return None
    if content_type == "movie":
        if not raw.startswith("tt"):
            return None
        return raw, None, None
    return None


class StreamAggregator:
    """
    Resolves one title into streams.

    Idle -> Planning -> PerQuery (fetch, extract, filter, resolve,
    accumulate) for each plan entry -> FinalDedup -> Done.
    Queries run one after another so that results of precise queries always
    precede those of weaker ones when duplicates are dropped.
    """

    def __init__(
        self,
        config: AddonConfig,
        source: BaseSource,
        metadata,
        magnet_parser: Callable[[str], str],
        planner: Optional[QueryPlanner] = None,
    ):
        self.config = config
        self.source = source
        self.metadata = metadata
        self.magnet_parser = magnet_parser
        self.planner = planner or QueryPlanner()

    def streams_for(self, content_type: str, content_id: str) -> List[StreamDescriptor]:
        """Protocol boundary: always returns a list, never raises."""
        try:
            parsed = parse_stream_id(content_type, content_id)
            if parsed is None:
                return []
            imdb_id, season, episode = parsed
            if content_type == "series":
                return self.resolve_episode(imdb_id, season, episode)
            return self.resolve_movie(imdb_id)
        except Exception:
            logger.exception("Stream resolution failed for %s %s", content_type, content_id)
            return []

    def resolve_episode(self, imdb_id: str, season: int, episode: int) -> List[StreamDescriptor]:
        run = self._new_run()
        run.enter(ResolutionPhase.PLANNING)
        info = self.metadata.episode_info(imdb_id, season, episode)
        if not info or not info.show_name:
            logger.info("No episode metadata for %s S%sE%s", imdb_id, season, episode)
            run.enter(ResolutionPhase.DONE)
            return []

        iso_date = to_iso_date_only(info.released)
        run.date_variants = format_date_variants(iso_date)
        run.plan = self.planner.plan_episode(
            info.show_name,
            episode_code(season, episode),
            run.date_variants,
            iso_date,
        )
        return self._execute(run)

    def resolve_movie(self, imdb_id: str) -> List[StreamDescriptor]:
        run = self._new_run()
        run.enter(ResolutionPhase.PLANNING)
        info = self.metadata.movie_info(imdb_id)
        if not info or not info.title:
            logger.info("No movie metadata for %s", imdb_id)
            run.enter(ResolutionPhase.DONE)
            return []

        iso_date = to_iso_date_only(info.released)
        run.date_variants = format_date_variants(iso_date)
        run.plan = self.planner.plan_movie(info.title, run.date_variants, iso_date)
        return self._execute(run)

    def _new_run(self) -> ResolutionRun:
        return ResolutionRun(deadline=time.monotonic() + max(1.0, self.config.resolution_deadline_seconds))

    def _execute(self, run: ResolutionRun) -> List[StreamDescriptor]:
        run.enter(ResolutionPhase.PER_QUERY)
        for entry in run.plan:
            if time.monotonic() >= run.deadline:
                logger.warning(
                    "Resolution deadline reached after %d of %d queries; returning partial results.",
                    run.queries_run,
                    len(run.plan),
                )
                break
            try:
                run.accumulated.extend(self._streams_for_query(run, entry))
            except Exception as e:
                logger.warning("Query %r failed: %s", entry.query, e)
            run.queries_run += 1

        run.enter(ResolutionPhase.FINAL_DEDUP)
        streams = dedupe_streams(run.accumulated)
        run.enter(ResolutionPhase.DONE)
        return streams

    def _fetch_once(self, run: ResolutionRun, query: str) -> Optional[str]:
        # Identical query text within one run reuses the page already fetched.
        if query not in run.pages:
            run.pages[query] = self.source.fetch_page(query)
        return run.pages[query]

    def _streams_for_query(self, run: ResolutionRun, entry: QueryPlanEntry) -> List[StreamDescriptor]:
        html = self._fetch_once(run, entry.query)
        if not html:
            logger.debug("Query %r: no page", entry.query)
            return []

        rows = self.source.extract_rows(html)
        matching = filter_by_date(rows, run.date_variants) if entry.requires_date_filter else rows
        logger.debug("Query %r: %d rows, %d after date filter", entry.query, len(rows), len(matching))

        streams: List[StreamDescriptor] = []
        seen = set()
        for row in matching:
            infohash = self._resolve_infohash(row)
            if not infohash or infohash in seen:
                continue
            seen.add(infohash)
            streams.append(StreamDescriptor.from_row(row, infohash, self.config.provider_label))
        return streams

    def _resolve_infohash(self, row: CandidateRow) -> Optional[str]:
        try:
            return self.magnet_parser(row.magnet)
        except Exception as e:
            logger.debug("Skipping row %r: %s", row.title, e)
            return None
