"""Entry point for the NG ID extractor API server."""

import argparse
from pathlib import Path

import uvicorn

from ngid.api.app import app, configure
from ngid.utils.config import load_config
from ngid.utils.logger import setup_logging


def main(argv: list[str] | None = None) -> None:
    """Serve the FastAPI app on the configured address.

    The loaded config backs every request. ``--host`` and ``--port`` take
    precedence over its ``server`` section.
    """
    parser = argparse.ArgumentParser(description="NG ID extractor API server")
    parser.add_argument("-c", "--config", type=Path, default=None, help="Config YAML path")
    parser.add_argument("--host", default=None, help="Bind address")
    parser.add_argument("--port", type=int, default=None, help="Bind port")
    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logging(config.log_level)
    configure(config)
    uvicorn.run(
        app,
        host=args.host or config.server.host,
        port=args.port or config.server.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
