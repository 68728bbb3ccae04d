from __future__ import annotations

import argparse
import logging
import os
from dataclasses import replace
from typing import Sequence

import uvicorn

from gtfs_rt_visualizer.adapters.config import (
    SourceConfig,
    VisualizerConfig,
    build_registry,
    load_config_file,
    load_url_list,
    validate_url,
)
from gtfs_rt_visualizer.adapters.realtime.http_gtfs_realtime_feed_provider import (
    HttpGtfsRealtimeFeedProvider,
)
from gtfs_rt_visualizer.app.services.visualizer_service import VisualizerService
from gtfs_rt_visualizer.domain.exceptions import ConfigError
from gtfs_rt_visualizer.main import create_app

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gtfs-rt-visualizer",
        description="Visualize GTFS-realtime vehicle position data.",
    )
    feeds = parser.add_mutually_exclusive_group()
    feeds.add_argument(
        "--vehicle-positions-url", help="GTFS-realtime vehicle positions url"
    )
    feeds.add_argument(
        "--gtfs-rt-list", help="File containing list of GTFS-realtime urls"
    )
    feeds.add_argument("--config", help="JSON config file with sources and settings")
    parser.add_argument(
        "--http-port",
        type=int,
        help="TCP port on which to bind the server, defaults to 8080",
    )
    parser.add_argument("--host", help="Interface to bind, defaults to 0.0.0.0")
    parser.add_argument(
        "--refresh", type=int, help="Initial refresh interval, defaults to 15s"
    )
    parser.add_argument(
        "--min-refresh", type=int, help="Minimum refresh interval, defaults to 10s"
    )
    parser.add_argument(
        "--lock-refresh",
        action="store_true",
        help="Disable dynamic refresh interval adjustment and lock to the initial value",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("RTVIS_LOG_LEVEL", "INFO"),
        help="Logging level (default: INFO)",
    )
    return parser


def resolve_config(args: argparse.Namespace) -> VisualizerConfig:
    """Merge env defaults, an optional config file and CLI flags."""

    cfg = VisualizerConfig.from_env()

    if args.config:
        cfg = load_config_file(args.config, base=cfg)
    elif args.gtfs_rt_list:
        cfg = replace(cfg, sources=load_url_list(args.gtfs_rt_list))
    elif args.vehicle_positions_url:
        cfg = replace(
            cfg,
            sources=(SourceConfig(url=validate_url(args.vehicle_positions_url)),),
        )

    if args.refresh is not None:
        cfg = replace(cfg, refresh_rate=args.refresh)
    if args.min_refresh is not None:
        cfg = replace(cfg, min_refresh=args.min_refresh)
    if args.lock_refresh:
        cfg = replace(cfg, dynamic_refresh=False)
    if args.http_port is not None:
        cfg = replace(cfg, http_port=args.http_port)
    if args.host:
        cfg = replace(cfg, host=args.host)

    return cfg.validate()


def resolve_log_level(raw: str) -> str:
    level = str(raw).strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"Unknown log level: {raw!r}")
    return level


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        cfg = resolve_config(args)
        level = resolve_log_level(args.log_level)
        feed_provider = HttpGtfsRealtimeFeedProvider()
    except ConfigError as exc:
        parser.print_help()
        parser.exit(2, f"\n{parser.prog}: error: {exc}\n")

    logging.basicConfig(
        level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    registry = build_registry(cfg)
    for source in registry.list():
        logger.info("configured source %s: %s", source.source_id, source.url)

    service = VisualizerService(
        registry=registry,
        feed_provider=feed_provider,
        dynamic_refresh=cfg.dynamic_refresh,
    )
    app = create_app(service)
    uvicorn.run(app, host=cfg.host, port=cfg.http_port, log_level=level.lower())


if __name__ == "__main__":
    main()
