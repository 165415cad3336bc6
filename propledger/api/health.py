# propledger/api/health.py
from __future__ import annotations

import time

from fastapi import APIRouter
from pydantic import BaseModel, Field

router = APIRouter(prefix="/health", tags=["health"])


class PingResponse(BaseModel):
    ok: bool = True
    ts: float = Field(..., description="Server timestamp.")
    msg: str = "pong"


@router.get("/ping", response_model=PingResponse)
def ping() -> PingResponse:
    """
    Simple heartbeat endpoint. Useful for external uptime checks.
    """
    return PingResponse(ts=time.time())
