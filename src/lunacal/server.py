# src/lunacal/server.py
from __future__ import annotations

import argparse
import ipaddress
import logging
import os
from typing import List, Optional

import uvicorn

from lunacal.api.app import create_app
from lunacal.core.config import (
    DEFAULT_HOST,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PORT,
    DEFAULT_SEARCH_URL,
    ENV_ELASTICSEARCH,
    ENV_LOG,
    ServerConfig,
)

log = logging.getLogger("lunacal.server")

UVICORN_LOG_LEVELS = ("critical", "error", "warning", "info", "debug", "trace")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lunacal-server", description="Moonrise calendar server")
    parser.add_argument(
        "-l", "--log",
        dest="log_level",
        default=os.environ.get(ENV_LOG, DEFAULT_LOG_LEVEL),
        help="log level (debug, info, warning, error)",
    )
    parser.add_argument(
        "-e", "--elasticsearch",
        dest="search_url",
        default=os.environ.get(ENV_ELASTICSEARCH, DEFAULT_SEARCH_URL),
        help="search index base URL",
    )
    parser.add_argument("-a", "--addr", dest="host", default=DEFAULT_HOST, help="listen address")
    parser.add_argument("-p", "--port", type=int, default=DEFAULT_PORT, help="listen port")
    return parser


def _listen_host(addr: str) -> str:
    try:
        return str(ipaddress.ip_address(addr.strip()))
    except ValueError:
        log.warning("invalid listen address %r; using %s", addr, DEFAULT_HOST)
        return DEFAULT_HOST


def config_from_args(argv: Optional[List[str]] = None) -> ServerConfig:
    args = build_parser().parse_args(argv)
    return ServerConfig(
        log_level=args.log_level.strip().lower() or DEFAULT_LOG_LEVEL,
        search_url=args.search_url,
        host=_listen_host(args.host),
        port=args.port,
    )


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), None)
    if not isinstance(level, int):
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s: %(levelname)s: %(name)s: %(message)s",
    )
    # HTTP client internals stay at info even when debugging
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(max(level, logging.INFO))


def main(argv: Optional[List[str]] = None) -> None:
    cfg = config_from_args(argv)
    _configure_logging(cfg.log_level)

    log.info("listening on %s:%d", cfg.host, cfg.port)
    uvicorn_level = cfg.log_level if cfg.log_level in UVICORN_LOG_LEVELS else "info"
    uvicorn.run(create_app(cfg), host=cfg.host, port=cfg.port, log_level=uvicorn_level)


if __name__ == "__main__":
    main()
