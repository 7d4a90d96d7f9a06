import unittest
from unittest.mock import patch

from knaben.core.config import AddonConfig
from knaben.core.stream_aggregator import StreamAggregator, dedupe_streams, parse_stream_id
from knaben.models.search_result import StreamDescriptor
from knaben.services.cinemeta_client import EpisodeInfo, MovieInfo
from knaben.services.magnet_parser import parse_magnet
from knaben.sources.base import BaseSource

HASH_EP = "1" * 40
HASH_DATE = "2" * 40
HASH_OTHER = "3" * 40


def _row_html(title, infohash, seeders=5, size="1 GB", source="Knaben"):
    return (
        f"<tr><td>TV</td><td>{title}</td><td>{size}</td><td>-</td>"
        f"<td>{seeders}</td><td>0</td><td>{source}</td>"
        f'<td><a href="magnet:?xt=urn:btih:{infohash}">m</a></td></tr>'
    )


class FakeSearchSource(BaseSource):
    """Serves rows whose title contains every token of the query."""

    name = "Fake"

    def __init__(self, rows, failing_queries=()):
        self.rows = rows
        self.failing_queries = set(failing_queries)
        self.queries = []

    def fetch_page(self, query):
        self.queries.append(query)
        if query in self.failing_queries:
            return None
        tokens = [t for t in query.lower().replace(".", " ").split() if t]
        hits = [
            _row_html(*row) for row in self.rows
            if all(t in row[0].lower().replace(".", " ") for t in tokens)
        ]
        return "<html><body><table>" + "".join(hits) + "</table></body></html>"


class FixedPageSource(BaseSource):
    name = "Fixed"

    def __init__(self, html):
        self.html = html
        self.queries = []

    def fetch_page(self, query):
        self.queries.append(query)
        return self.html


class FakeMetadata:
    def __init__(self, episode=None, movie=None):
        self.episode = episode
        self.movie = movie
        self.calls = []

    def episode_info(self, imdb_id, season, episode):
        self.calls.append((imdb_id, season, episode))
        return self.episode

    def movie_info(self, imdb_id):
        self.calls.append((imdb_id,))
        return self.movie


EXAMPLE_ROWS = [
    ("Example.Show.S01E02.1080p.WEB", HASH_EP, 50, "1.5 GB", "TorrentGalaxy"),
    ("Example Show 24 Feb 2026 720p", HASH_DATE, 20, "700 MiB", ""),
    ("Unrelated Program 2025", HASH_OTHER, 99, "2 GB", "1337x"),
]


def _aggregator(source, metadata, **config):
    return StreamAggregator(AddonConfig(**config), source, metadata, parse_magnet)


class TestStreamAggregator(unittest.TestCase):
    def test_episode_code_match_precedes_date_match(self):
        source = FakeSearchSource(EXAMPLE_ROWS)
        metadata = FakeMetadata(episode=EpisodeInfo("Example Show", "Pilot", "2026-02-24T00:00:00.000Z"))
        streams = _aggregator(source, metadata).streams_for("series", "tt0000001:1:2")

        self.assertEqual([s.infohash for s in streams], [HASH_EP, HASH_DATE])
        self.assertEqual(streams[0].name, "TorrentGalaxy")
        self.assertEqual(streams[1].name, "Knaben")
        self.assertEqual(streams[1].size_bytes, round(700 * 1024 ** 2))
        self.assertEqual(source.queries[0], "Example Show S01E02")
        self.assertEqual(metadata.calls, [("tt0000001", 1, 2)])

    def test_missing_metadata_short_circuits_without_fetching(self):
        source = FakeSearchSource(EXAMPLE_ROWS)
        aggregator = _aggregator(source, FakeMetadata())
        self.assertEqual(aggregator.streams_for("series", "tt9999999:1:1"), [])
        self.assertEqual(aggregator.streams_for("movie", "tt9999999"), [])
        self.assertEqual(source.queries, [])

    def test_invalid_ids_resolve_to_empty(self):
        source = FakeSearchSource(EXAMPLE_ROWS)
        metadata = FakeMetadata(episode=EpisodeInfo("Example Show", None, None))
        aggregator = _aggregator(source, metadata)
        for content_type, content_id in [
            ("series", "tt0000001"),
            ("series", "kitsu:1:2"),
            ("series", "tt0000001:x:2"),
            ("movie", "12345"),
            ("channel", "tt0000001"),
        ]:
            self.assertEqual(aggregator.streams_for(content_type, content_id), [])
        self.assertEqual(metadata.calls, [])

    def test_output_has_distinct_identifiers(self):
        html = "<table>" + "".join([
            _row_html("Movie Title 2024-05-05 A", "A" * 40),
            _row_html("Movie Title 2024-05-05 B", "a" * 40),
            _row_html("Movie Title 5 May 2024", "B" * 40),
        ]) + "</table>"
        source = FixedPageSource(html)
        metadata = FakeMetadata(movie=MovieInfo("Movie Title", "2024-05-05"))
        streams = _aggregator(source, metadata).streams_for("movie", "tt0000002")

        hashes = [s.infohash for s in streams]
        self.assertEqual(hashes, ["a" * 40, "b" * 40])
        self.assertEqual(len(hashes), len(set(hashes)))

    def test_repeated_query_text_is_fetched_once(self):
        source = FakeSearchSource(EXAMPLE_ROWS)
        metadata = FakeMetadata(episode=EpisodeInfo("Example Show", None, "2026-02-24"))
        _aggregator(source, metadata).streams_for("series", "tt0000001:1:2")
        self.assertEqual(source.queries.count("Example Show 2026-02-24"), 1)
        self.assertEqual(source.queries[-1], "Example Show")

    def test_failed_fetch_only_drops_that_query(self):
        source = FakeSearchSource(EXAMPLE_ROWS, failing_queries={"Example Show S01E02"})
        metadata = FakeMetadata(episode=EpisodeInfo("Example Show", None, "2026-02-24"))
        streams = _aggregator(source, metadata).streams_for("series", "tt0000001:1:2")
        # The dotted spelling still finds the episode row.
        self.assertEqual([s.infohash for s in streams], [HASH_EP, HASH_DATE])

    def test_bad_magnet_skips_row_only(self):
        html = "<table>" + "".join([
            _row_html("Movie Title 2024", "NOT-A-HASH"),
            _row_html("Movie Title 2024 Remux", "C" * 40),
        ]) + "</table>"
        source = FixedPageSource(html)
        metadata = FakeMetadata(movie=MovieInfo("Movie Title", None))
        streams = _aggregator(source, metadata).streams_for("movie", "tt0000003")
        self.assertEqual([s.infohash for s in streams], ["c" * 40])

    def test_source_exception_does_not_abort_resolution(self):
        class ExplodingSource(FakeSearchSource):
            def fetch_page(self, query):
                if query.endswith("S01E02"):
                    raise RuntimeError("boom")
                return super().fetch_page(query)

        source = ExplodingSource(EXAMPLE_ROWS)
        metadata = FakeMetadata(episode=EpisodeInfo("Example Show", None, "2026-02-24"))
        streams = _aggregator(source, metadata).streams_for("series", "tt0000001:1:2")
        self.assertEqual([s.infohash for s in streams], [HASH_DATE])

    def test_metadata_exception_yields_empty_list(self):
        class BrokenMetadata(FakeMetadata):
            def movie_info(self, imdb_id):
                raise RuntimeError("metadata down")

        source = FakeSearchSource(EXAMPLE_ROWS)
        self.assertEqual(_aggregator(source, BrokenMetadata()).streams_for("movie", "tt0000004"), [])

    def test_deadline_stops_remaining_queries(self):
        clock = {"calls": 0}

        def fake_monotonic():
            clock["calls"] += 1
            # deadline computed on call 1, first query allowed on call 2
            return 0.0 if clock["calls"] <= 2 else 1000.0

        source = FakeSearchSource(EXAMPLE_ROWS)
        metadata = FakeMetadata(episode=EpisodeInfo("Example Show", None, "2026-02-24"))
        with patch("knaben.core.stream_aggregator.time.monotonic", side_effect=fake_monotonic):
            streams = _aggregator(source, metadata, resolution_deadline_seconds=5.0).streams_for(
                "series", "tt0000001:1:2"
            )
        self.assertEqual(source.queries, ["Example Show S01E02"])
        self.assertEqual([s.infohash for s in streams], [HASH_EP])


class TestHelpers(unittest.TestCase):
    def test_parse_stream_id(self):
        self.assertEqual(parse_stream_id("series", "tt123:2:10"), ("tt123", 2, 10))
        self.assertEqual(parse_stream_id("movie", "tt123"), ("tt123", None, None))
        self.assertIsNone(parse_stream_id("series", "tt123:2"))
        self.assertIsNone(parse_stream_id("movie", "kitsu:1"))

    def test_dedupe_keeps_first_occurrence(self):
        streams = [
            StreamDescriptor("a", "t", "1" * 40),
            StreamDescriptor("b", "t", "2" * 40),
            StreamDescriptor("c", "t", "1" * 40),
        ]
        self.assertEqual([s.name for s in dedupe_streams(streams)], ["a", "b"])


if __name__ == "__main__":
    unittest.main()
