from .errors import AlreadyClosed, LedgerError, NotAuthorized, NotFound
from .proposals import Fate, Proposal, ProposalLedger, Vote

__all__ = [
    "AlreadyClosed",
    "Fate",
    "LedgerError",
    "NotAuthorized",
    "NotFound",
    "Proposal",
    "ProposalLedger",
    "Vote",
]
