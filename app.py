#!/usr/bin/env python3
"""
Main entry point for the linkblog service.

Concurrency: a single uvicorn process serves many connections through async
I/O. All handlers share one link store (safe for concurrent use) and one
feed materializer.

Usage:
    python app.py [-l 127.0.0.1:7990] [-d linkblog.db] [--pretty URL] [--feedlim 50]

Environment variables:
    HOST, PORT - Listen address
    DATABASE_URL - SQLite path or postgresql:// DSN
    PRETTY_ADDR - Public base address for links
    FEED_LIMIT - Maximum number of items in the RSS feed
    FEED_STALE_SECONDS - Age after which the feed is rebuilt
    WORK_DIR - Directory for the cached feed
    LOG_LEVEL, LOG_FILE, LOG_JSON - Logging
"""

import argparse
import shutil
import signal
import sys
import tempfile
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

import uvicorn
from fastapi import FastAPI

from config import Config, load_config
from linkblog.common.logging_config import setup_logging
from linkblog.database import create_store
from linkblog.exceptions import StoreError
from linkblog.feed import FeedMaterializer
from linkblog.service import LinkblogService
from web_app import create_app


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="a linkblog")
    parser.add_argument("-l", dest="listen", help="listen address (host:port)")
    parser.add_argument("-d", dest="database", help="sqlite db file or postgresql:// DSN")
    parser.add_argument("--pretty", help="pretty address for links. defaults to 'l' value")
    parser.add_argument("--feedlim", type=int, help="maximum number of items in the rss feed")
    return parser.parse_args(argv)


def config_overrides(args: argparse.Namespace) -> Dict[str, object]:
    """Turn command line flags into Config field overrides."""
    overrides: Dict[str, object] = {}
    if args.listen:
        host, sep, port = args.listen.rpartition(":")
        if not sep or not port.isdigit():
            raise SystemExit(f"invalid listen address: {args.listen}")
        overrides["host"] = host or "0.0.0.0"
        overrides["port"] = int(port)
    if args.database:
        overrides["database_url"] = args.database
    if args.pretty:
        overrides["pretty_addr"] = args.pretty
    if args.feedlim is not None:
        overrides["feed_limit"] = args.feedlim
    return overrides


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    config: Config = app.state.config
    logger = app.state.logger

    logger.info("Starting linkblog...")

    store = create_store(config.database_url, logger=logger)
    try:
        logger.info(f"Link store ready with {await store.count()} links")
    except StoreError as e:
        logger.warning(f"Could not count links: {e}")

    owns_work_dir = config.work_dir is None
    work_dir = config.work_dir or tempfile.mkdtemp(prefix="linkblog")
    logger.info(f"Feed working directory: {work_dir}")

    app.state.store = store
    app.state.service = LinkblogService(store=store, logger=logger)
    app.state.feed = FeedMaterializer(
        store=store,
        work_dir=work_dir,
        public_base_url=config.public_base_url,
        feed_limit=config.feed_limit,
        stale_seconds=config.feed_stale_seconds,
        logger=logger,
    )

    logger.info(f"listening on {config.listen}")

    yield

    logger.info("Shutting down linkblog...")
    await app.state.service.close()
    if owns_work_dir:
        shutil.rmtree(work_dir, ignore_errors=True)
    logger.info("exiting")


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    args = parse_args(argv)
    config = load_config(**config_overrides(args))

    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )
    logger.info(f"Configuration: {config.model_dump()}")

    app = create_app(store=None, service=None, feed=None, config=config)
    app.state.logger = logger
    app.router.lifespan_context = lifespan

    uvicorn_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
        access_log=True,
    )
    server = uvicorn.Server(uvicorn_config)

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        server.should_exit = True

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        server.run()
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
