from __future__ import annotations

"""
ProposalLedger: proposals, votes, simple-majority resolution.

State machine per proposal
--------------------------
    OPEN -> ACCEPTED | REJECTED      (terminal, write-once)

- Votes are only accepted while OPEN.
- close_proposal() and void_proposal() are the only ways out of OPEN and
  only the proposal owner may call them.
- Votes are appended in casting order and never deduplicated: the same
  identity may vote any number of times, the owner included.

Resolution
----------
close:  accepted iff 2 * yes >= total  (ties and zero-vote proposals pass)
void:   rejected iff yes == 0, otherwise nothing changes

Every precondition is checked before anything is written, so a raised
LedgerError never leaves a partial mutation behind. The ledger itself has
no locking; LedgerExecutor serializes access to it.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .errors import AlreadyClosed, NotAuthorized, NotFound, require

log = logging.getLogger(__name__)


class Fate(str, Enum):
    OPEN = "open"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Vote:
    voter: str
    supports: bool

    def as_tuple(self) -> Tuple[str, bool]:
        return (self.voter, self.supports)


@dataclass
class Proposal:
    id: int
    text: str
    owner: str
    votes: List[Vote] = field(default_factory=list)
    fate: Fate = Fate.OPEN

    @property
    def is_closed(self) -> bool:
        return self.fate is not Fate.OPEN

    def yes_count(self) -> int:
        return sum(1 for v in self.votes if v.supports)


class ProposalLedger:
    def __init__(self) -> None:
        # 0 means no proposal has been created yet
        self.proposal_count: int = 0
        self.successful_count: int = 0
        self.rejected_count: int = 0
        self.proposals: Dict[int, Proposal] = {}

    # ------------------------
    # Mutations
    # ------------------------
    def create_proposal(self, caller: str, text: str) -> int:
        pid = self.proposal_count + 1
        log.info("Registering new proposal %d: %s", pid, text)
        self.proposals[pid] = Proposal(id=pid, text=str(text), owner=str(caller))
        self.proposal_count = pid
        return pid

    def vote_on_proposal(self, caller: str, proposal_id: int, supports: bool) -> None:
        # voting isn't capped to one vote per identity
        prop = self._open_proposal(proposal_id)
        prop.votes.append(Vote(voter=str(caller), supports=bool(supports)))

    def close_proposal(self, caller: str, proposal_id: int) -> bool:
        prop = self._owned_open_proposal(caller, proposal_id)
        log.info("Closing proposal %d", proposal_id)

        yes = prop.yes_count()
        if 2 * yes >= len(prop.votes):
            self._resolve(prop, Fate.ACCEPTED)
            return True

        self._resolve(prop, Fate.REJECTED)
        return False

    def void_proposal(self, caller: str, proposal_id: int) -> bool:
        prop = self._owned_open_proposal(caller, proposal_id)
        log.info("Voiding proposal %d", proposal_id)

        if prop.yes_count() == 0:
            self._resolve(prop, Fate.REJECTED)
            return True
        return False

    # ------------------------
    # Queries (never raise)
    # ------------------------
    def get_proposal_count(self) -> int:
        return self.proposal_count

    def get_all_proposals(self) -> Dict[int, str]:
        return {pid: self.proposals[pid].text for pid in sorted(self.proposals)}

    def get_all_votes(self, proposal_id: int) -> List[Tuple[str, bool]]:
        prop = self.proposals.get(proposal_id)
        if prop is None:
            return []
        return [v.as_tuple() for v in prop.votes]

    def get_proposal(self, proposal_id: int) -> Optional[Proposal]:
        prop = self.proposals.get(proposal_id)
        if prop is None:
            return None
        return replace(prop, votes=list(prop.votes))

    def get_stats(self) -> Dict[str, int]:
        open_count = sum(1 for p in self.proposals.values() if not p.is_closed)
        return {
            "proposal_count": self.proposal_count,
            "successful_count": self.successful_count,
            "rejected_count": self.rejected_count,
            "open_count": open_count,
        }

    # ------------------------
    # Internals
    # ------------------------
    def _open_proposal(self, proposal_id: int) -> Proposal:
        prop = self.proposals.get(proposal_id)
        require(prop is not None, NotFound(proposal_id))
        require(not prop.is_closed, AlreadyClosed(proposal_id))
        return prop

    def _owned_open_proposal(self, caller: str, proposal_id: int) -> Proposal:
        prop = self._open_proposal(proposal_id)
        require(str(caller) == prop.owner, NotAuthorized(proposal_id))
        return prop

    def _resolve(self, prop: Proposal, fate: Fate) -> None:
        prop.fate = fate
        if fate is Fate.ACCEPTED:
            self.successful_count += 1
        else:
            self.rejected_count += 1

    # ------------------------
    # Snapshot
    # ------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "proposal_count": self.proposal_count,
            "successful_count": self.successful_count,
            "rejected_count": self.rejected_count,
            "proposals": {
                str(pid): {
                    "text": p.text,
                    "owner": p.owner,
                    "votes": [[v.voter, v.supports] for v in p.votes],
                    "fate": None if p.fate is Fate.OPEN else p.fate.value,
                }
                for pid, p in sorted(self.proposals.items())
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProposalLedger":
        ledger = cls()
        ledger.proposal_count = int(data.get("proposal_count", 0) or 0)
        ledger.successful_count = int(data.get("successful_count", 0) or 0)
        ledger.rejected_count = int(data.get("rejected_count", 0) or 0)

        raw_props = data.get("proposals") or {}
        if not isinstance(raw_props, dict):
            raise ValueError("proposals must be a mapping")

        for key in sorted(raw_props, key=int):
            raw = raw_props[key]
            pid = int(key)
            fate = raw.get("fate")
            ledger.proposals[pid] = Proposal(
                id=pid,
                text=str(raw.get("text", "")),
                owner=str(raw.get("owner", "")),
                votes=[Vote(voter=str(v[0]), supports=bool(v[1])) for v in raw.get("votes") or []],
                fate=Fate(fate) if fate else Fate.OPEN,
            )

        ledger._check_consistency()
        return ledger

    def _check_consistency(self) -> None:
        # ids are dense 1..proposal_count and counters match the stored fates
        if self.proposal_count < 0 or list(self.proposals) != list(range(1, self.proposal_count + 1)):
            raise ValueError(
                f"proposal ids {sorted(self.proposals)} do not match proposal_count={self.proposal_count}"
            )

        accepted = sum(1 for p in self.proposals.values() if p.fate is Fate.ACCEPTED)
        rejected = sum(1 for p in self.proposals.values() if p.fate is Fate.REJECTED)
        if (self.successful_count, self.rejected_count) != (accepted, rejected):
            raise ValueError(
                f"counters successful={self.successful_count} rejected={self.rejected_count} "
                f"do not match stored fates accepted={accepted} rejected={rejected}"
            )
