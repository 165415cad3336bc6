# propledger/__main__.py
"""
Entry point for running the Proposal Ledger as a module:
    python -m propledger [--host 127.0.0.1] [--port 8000]
                         [--data-dir ./data] [--no-persist]
                         [--log-level INFO]
Settings not given on the command line come from propledger_config.yaml
in the working directory and the PROPLEDGER_* environment variables.
"""

from __future__ import annotations

import argparse
import os

import uvicorn

from .config import get_bind_host, get_bind_port, get_log_level, load_config, setup_logging
from .executor import LedgerExecutor
from .ledger_api import create_app


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        prog="propledger",
        description="Run the Proposal Ledger HTTP API",
    )
    p.add_argument("--host", default=None, help="Bind address (default: from config)")
    p.add_argument("--port", type=int, default=None, help="Port (default: from config)")
    p.add_argument("--data-dir", default=None, help="Directory holding the ledger snapshot")
    p.add_argument(
        "--no-persist",
        action="store_true",
        help="Keep the ledger in memory only",
    )
    p.add_argument("--log-level", default=None, help="Logging level (default: from config)")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    cfg = load_config(os.getcwd())

    if args.data_dir:
        cfg["persistence"]["data_dir"] = args.data_dir
    if args.no_persist:
        cfg["persistence"]["enabled"] = False
    if args.log_level:
        cfg["logging"]["level"] = args.log_level

    log = setup_logging(cfg)

    host = args.host or get_bind_host(cfg)
    port = args.port or get_bind_port(cfg)

    app = create_app(cfg, LedgerExecutor.from_config(cfg))
    log.info("Serving proposal ledger on http://%s:%d", host, port)
    uvicorn.run(app, host=host, port=port, log_level=get_log_level(cfg).lower())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
