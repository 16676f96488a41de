"""Command-line launcher used by the Tilepad host."""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Any, Dict, Optional, Sequence

from tilepad_obs.bootstrap import serve_forever
from tilepad_obs.config import PluginSettings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Tilepad plugin for controlling OBS Studio.")
    parser.add_argument("--plugin-id", default=None, help="Plugin identifier (overrides env).")
    parser.add_argument("--connect-url", default=None, help="Host websocket URL (overrides env).")
    parser.add_argument(
        "--log-level",
        choices=["critical", "error", "warning", "info", "debug"],
        default=None,
        help="Log level (overrides env).",
    )
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> PluginSettings:
    overrides: Dict[str, Any] = {}
    if args.plugin_id:
        overrides["plugin_id"] = args.plugin_id
    if args.connect_url:
        overrides["connect_url"] = args.connect_url
    if args.log_level:
        overrides["log_level"] = args.log_level
    return PluginSettings(**overrides)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    settings = build_settings(args)
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    logging.getLogger("websockets").setLevel(logging.WARNING)
    try:
        asyncio.run(serve_forever(settings))
    except KeyboardInterrupt:
        logging.getLogger(__name__).info("Plugin shutdown requested")


if __name__ == "__main__":
    main()
