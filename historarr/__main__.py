#!/usr/bin/env python3
"""
Historarr - Entry Point
Run with: python -m historarr
"""

import argparse
import signal
import sys

from . import __version__
from .config import Config
from .logger import Logger
from .core import HistorarrCore
from .web import WebServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="historarr",
        description="Download lifecycle history for Sonarr, Radarr, Prowlarr, Lidarr and Readarr",
    )
    parser.add_argument("--config", "-c", default="/config/config.json",
                        help="Path to configuration file")
    parser.add_argument("--log-dir", default="/config/logs",
                        help="Directory for historarr.log, empty to disable the file")
    parser.add_argument("--host", default="0.0.0.0", help="Address the web API binds to")
    parser.add_argument("--port", "-p", type=int, default=8080, help="Web API port")
    parser.add_argument("--debug", action="store_true",
                        help="Log at DEBUG and run Flask in debug mode")
    parser.add_argument("--version", "-v", action="version",
                        version=f"Historarr v{__version__}")
    return parser


def describe_instances(config: Config) -> str:
    """'sonarr: 2, prowlarr: 1' for the enabled instances, or 'none'."""
    counts = [f"{service}: {len(config.get_enabled(service))}"
              for service in Config.SERVICES if config.get_enabled(service)]
    return ", ".join(counts) or "none"


def main(argv=None):
    args = build_parser().parse_args(argv)

    logger = Logger(log_dir=args.log_dir or None, debug=args.debug)
    log = logger.get_logger("main")

    def stop(signum, frame):
        log.info(f"🛑 Received {signal.Signals(signum).name}, shutting down")
        sys.exit(0)

    signal.signal(signal.SIGINT, stop)
    signal.signal(signal.SIGTERM, stop)

    config = Config(args.config)
    log.info(f"📜 Historarr v{__version__} using {args.config}")
    log.info(f"Enabled instances: {describe_instances(config)}")
    if not config.is_configured():
        log.warning("No instances configured yet, POST /api/config to add some")

    core = HistorarrCore(config, logger)
    log.info(f"🌐 Web API on http://{args.host}:{args.port}")
    WebServer(core).run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
