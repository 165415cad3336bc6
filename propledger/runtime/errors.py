from __future__ import annotations

"""
Ledger error taxonomy.

All three errors are precondition failures: they are raised before the
ledger is touched, so a failed call leaves no trace in proposal, vote or
counter state. The API layer maps `code` onto an HTTP status.
"""

from typing import Optional


class LedgerError(RuntimeError):
    code = "ledger_error"

    def __init__(self, proposal_id: Optional[int] = None, msg: Optional[str] = None) -> None:
        self.proposal_id = proposal_id
        super().__init__(msg or f"{self.code}: {proposal_id}")


class NotFound(LedgerError):
    code = "proposal_not_found"


class AlreadyClosed(LedgerError):
    code = "proposal_closed"


class NotAuthorized(LedgerError):
    code = "not_proposal_owner"


def require(cond: bool, err: LedgerError) -> None:
    if not cond:
        raise err
