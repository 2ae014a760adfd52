#!/usr/bin/env python3
"""Run the openHASP <-> state store bridge.

Configuration comes from ``HASP_*`` environment variables, or from a legacy
adapter settings file (``--native-config``) holding the adapter's ``native``
object as JSON.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyhasp import HaspBridge, HaspConfig, HaspConfigError, JsonFileStateStore, StateStore  # noqa: E402
from pyhasp.exceptions import HaspStoreError  # noqa: E402

_LOG = logging.getLogger("run_bridge")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Mirror openHASP plates into a local state store.",
    )
    parser.add_argument(
        "--state-file",
        type=Path,
        default=None,
        help="Persist objects and states to this JSON file (default: in-memory only).",
    )
    parser.add_argument(
        "--native-config",
        type=Path,
        default=None,
        help="Read legacy adapter settings from this JSON file instead of the environment.",
    )
    parser.add_argument(
        "--debug",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


def _load_config(args: argparse.Namespace) -> HaspConfig:
    if args.native_config is None:
        return HaspConfig.from_env()
    native = json.loads(args.native_config.read_text(encoding="utf-8"))
    if not isinstance(native, dict):
        raise HaspConfigError(f"{args.native_config} does not hold a JSON object")
    return HaspConfig.from_native(native)


async def _run(config: HaspConfig, store: StateStore) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, stop.set)

    async with HaspBridge(config, store=store):
        await stop.wait()
    _LOG.info("Bridge stopped")


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _load_config(args)
    except (OSError, ValueError, HaspConfigError) as exc:
        _LOG.error("Cannot read configuration: %s", exc)
        return 2

    try:
        store = JsonFileStateStore(args.state_file) if args.state_file else StateStore()
    except HaspStoreError as exc:
        _LOG.error("%s", exc)
        return 2

    asyncio.run(_run(config, store))
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
