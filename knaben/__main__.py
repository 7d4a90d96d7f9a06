"""
Run the Knaben Stremio add-on server.
"""
from __future__ import annotations

import argparse
import logging

import uvicorn

from .core.config import AddonConfig
from .web.app import create_app
from .web.runtime import build_runtime

logger = logging.getLogger("knaben")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve Knaben search results as Stremio streams.")
    parser.add_argument("--host", help="Interface to bind (default from KNABEN_HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Port to listen on (default from PORT/KNABEN_PORT or 7010)")
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Logging verbosity",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = AddonConfig.from_env().with_overrides(host=args.host, port=args.port)
    app = create_app(build_runtime(config))

    logger.info("%s addon running at http://127.0.0.1:%d/manifest.json", config.provider_label, config.port)
    logger.info("LAN install URL: http://YOUR_PC_IP:%d/manifest.json", config.port)
    uvicorn.run(app, host=config.host, port=config.port, log_level=args.log_level)


if __name__ == "__main__":
    main()
