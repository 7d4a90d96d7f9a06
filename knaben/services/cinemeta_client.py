"""
Cinemeta Client
Looks up show/episode and movie metadata by IMDb id
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote
import logging

import requests

from ..core.config import AddonConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EpisodeInfo:
    show_name: str
    episode_title: Optional[str]
    released: Optional[str]


@dataclass(frozen=True)
class MovieInfo:
    title: str
    released: Optional[str]


def _as_int(value) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class CinemetaClient:
    """Read-only client for the public Cinemeta add-on"""

    def __init__(self, config: AddonConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.base_url = config.metadata_base_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': config.user_agent,
            'Accept': 'application/json,*/*',
            'Accept-Language': 'en-US,en;q=0.9',
        })

    def episode_info(self, imdb_id: str, season: int, episode: int) -> Optional[EpisodeInfo]:
        meta = self._fetch_meta("series", imdb_id)
        if not meta:
            return None

        for video in meta.get("videos") or []:
            if not isinstance(video, dict):
                continue
            if _as_int(video.get("season")) == int(season) and _as_int(video.get("episode")) == int(episode):
                show_name = str(meta.get("name") or "").strip()
                if not show_name:
                    return None
                return EpisodeInfo(
                    show_name=show_name,
                    episode_title=video.get("title") or video.get("name"),
                    released=video.get("released"),
                )
        return None

    def movie_info(self, imdb_id: str) -> Optional[MovieInfo]:
        meta = self._fetch_meta("movie", imdb_id)
        if not meta:
            return None
        title = str(meta.get("name") or "").strip()
        if not title:
            return None
        return MovieInfo(title=title, released=meta.get("released"))

    def _fetch_meta(self, content_type: str, imdb_id: str) -> Optional[Dict[str, Any]]:
        url = f"{self.base_url}/meta/{content_type}/{quote(imdb_id, safe='')}.json"
        try:
            response = self.session.get(url, timeout=self.config.request_timeout_seconds)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Cinemeta lookup failed for %s/%s: %s", content_type, imdb_id, e)
            return None
        meta = data.get("meta") if isinstance(data, dict) else None
        return meta if isinstance(meta, dict) else None
