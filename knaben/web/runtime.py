"""Runtime bootstrap for the Knaben add-on server."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.config import AddonConfig
from ..core.stream_aggregator import StreamAggregator
from ..services.cinemeta_client import CinemetaClient
from ..services.magnet_parser import parse_magnet
from ..sources.base import BaseSource
from ..sources.knaben import KnabenSource


@dataclass
class KnabenRuntime:
    """Shared service graph used by web endpoints."""

    config: AddonConfig
    source: BaseSource
    metadata: CinemetaClient
    aggregator: StreamAggregator


def build_runtime(config: Optional[AddonConfig] = None) -> KnabenRuntime:
    """Create and wire core services from one configuration value."""

    config = config or AddonConfig.from_env()
    source = KnabenSource(config)
    metadata = CinemetaClient(config)
    aggregator = StreamAggregator(config, source, metadata, parse_magnet)
    return KnabenRuntime(
        config=config,
        source=source,
        metadata=metadata,
        aggregator=aggregator,
    )
