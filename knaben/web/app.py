"""FastAPI app speaking the Stremio add-on protocol."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .runtime import KnabenRuntime, build_runtime

logger = logging.getLogger(__name__)

ADDON_ID = "org.knaben.privatestreams"
ADDON_VERSION = "4.0.0"


class StremioStream(BaseModel):
    name: str
    title: str
    infoHash: str
    peerCount: int = 0
    behaviorHints: Dict[str, Any] = Field(default_factory=dict)


class StreamsResponse(BaseModel):
    streams: List[StremioStream] = Field(default_factory=list)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def build_manifest(provider_label: str) -> Dict[str, Any]:
    return {
        "id": ADDON_ID,
        "version": ADDON_VERSION,
        "name": provider_label,
        "description": "Displays streams with seeders + filesize like Stremio rich rows (for your own content).",
        "resources": ["stream"],
        "types": ["series", "movie"],
        "catalogs": [],
        "idPrefixes": ["tt"],
    }


def create_app(runtime: Optional[KnabenRuntime] = None) -> FastAPI:
    runtime = runtime or build_runtime()
    manifest = build_manifest(runtime.config.provider_label)

    app = FastAPI(title=f"{runtime.config.provider_label} add-on", version=ADDON_VERSION)
    # Stremio web clients fetch add-ons cross-origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health() -> Dict:
        return {"ok": True, "time": _utc_now_iso(), "source": runtime.source.healthcheck()}

    @app.get("/manifest.json")
    def get_manifest() -> Dict:
        return manifest

    # Sync handler: FastAPI runs it in its threadpool, so each request gets
    # its own resolution state without blocking the event loop.
    @app.get("/stream/{content_type}/{content_id}.json", response_model=StreamsResponse)
    def get_streams(content_type: str, content_id: str) -> Dict:
        logger.info("STREAM REQUEST: %s %s", content_type, content_id)
        streams = runtime.aggregator.streams_for(content_type, content_id)
        logger.info("Returning %d streams for %s %s", len(streams), content_type, content_id)
        return {"streams": [stream.to_stremio() for stream in streams]}

    return app


app = create_app()
