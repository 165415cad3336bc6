from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from fastapi import FastAPI

from .api import governance, health
from .config import get_caller_header, load_config
from .executor import LedgerExecutor

log = logging.getLogger(__name__)


def create_app(
    cfg: Optional[Dict[str, Any]] = None,
    executor: Optional[LedgerExecutor] = None,
) -> FastAPI:
    if cfg is None:
        cfg = load_config(os.getcwd())
    if executor is None:
        executor = LedgerExecutor.from_config(cfg)

    app = FastAPI(title="Proposal Ledger API")
    app.state.executor = executor
    app.state.caller_header = get_caller_header(cfg)

    app.include_router(health.router)
    app.include_router(governance.router)

    log.info("Proposal ledger ready (%d proposals)", executor.get_proposal_count())
    return app
