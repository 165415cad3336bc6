from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Request, status

DEFAULT_CALLER_HEADER = "X-Caller-Id"


def caller_id_from_header_optional(request: Request) -> Optional[str]:
    # the hosting gateway authenticates the caller and forwards the identity
    header = getattr(request.app.state, "caller_header", DEFAULT_CALLER_HEADER)
    caller = request.headers.get(header, "").strip()
    return caller or None


def require_caller_id(
    caller_id: Optional[str] = Depends(caller_id_from_header_optional),
) -> str:
    if not caller_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="missing_caller_identity")
    return caller_id
