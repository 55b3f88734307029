#!/usr/bin/env python3
"""
Command-line entry point for the BNB Pulse API server.

    bnbpulse-server --config bnbpulse.yaml --port 8080
"""

import argparse
from typing import List, Optional

import uvicorn

from bnbpulse.config import load_config
from bnbpulse.server.app import create_app

# loguru level -> uvicorn level
UVICORN_LOG_LEVELS = {
    "TRACE": "trace",
    "DEBUG": "debug",
    "INFO": "info",
    "SUCCESS": "info",
    "WARNING": "warning",
    "ERROR": "error",
    "CRITICAL": "critical",
}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve BNB dashboard metrics over HTTP")
    parser.add_argument("--config", help="Path to a YAML configuration file")
    parser.add_argument("--host", help="Bind address (overrides configuration)")
    parser.add_argument("--port", type=int, help="Bind port (overrides configuration)")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    config = load_config(config_file=args.config)
    app = create_app(config)

    uvicorn.run(
        app,
        host=args.host or config.server.host,
        port=args.port or config.server.port,
        log_level=UVICORN_LOG_LEVELS.get(config.logging.level, "info"),
    )


if __name__ == "__main__":
    main()
