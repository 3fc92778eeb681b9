"""CLI entry point for hubspot-mcp-server.

Loads .env and the environment, configures logging and runs the server
under uvicorn. A missing required setting stops the process before it binds.
"""
import argparse
import logging
import sys

import uvicorn

from config import load_config, load_env_file
from errors import ConfigurationError
from logging_config import setup_logging
from main import SERVICE_NAME, VERSION, create_app

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=SERVICE_NAME,
        description="HubSpot MCP server with OAuth 2.0 + PKCE install flow",
    )
    parser.add_argument("--host", help="Bind address (default: $HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Port (default: $PORT or 3000)")
    parser.add_argument("--log-format", choices=["plain", "json"], help="Log output format")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return parser


def main(argv: list[str] = None) -> int:
    args = build_parser().parse_args(argv)
    load_env_file()

    try:
        config = load_config()
    except ConfigurationError as e:
        setup_logging()
        logger.error(f"[STARTUP] {e}")
        return 1

    setup_logging(
        level=config.log_level,
        log_format=args.log_format or config.log_format,
        service=SERVICE_NAME,
    )

    host = args.host or config.host
    port = args.port or config.port
    app = create_app(config)

    logger.info(f"[STARTUP] Starting {SERVICE_NAME} {VERSION} on {host}:{port}")
    logger.info(f"[STARTUP] Install URL: http://{host}:{port}/install")
    uvicorn.run(app, host=host, port=port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
