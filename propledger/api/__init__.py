from fastapi import Request

from ..executor import LedgerExecutor


def get_executor(request: Request) -> LedgerExecutor:
    return request.app.state.executor
