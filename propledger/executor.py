from __future__ import annotations

"""
LedgerExecutor: single-writer host for the ProposalLedger.

- One coarse RLock guards the whole ledger; every call runs to completion
  before the next one starts.
- Mutations are all-or-nothing. The ledger is snapshotted before the call;
  if the operation raises, or persisting the result fails, the snapshot is
  restored and the error propagates to the caller unchanged.
- Reads are served under the same lock so they never observe a half
  applied call.
"""

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from .config import get_data_dir, get_keep_backups, get_persist_enabled, get_state_filename
from .runtime.atomic_store import AtomicLedgerStore
from .runtime.proposals import Proposal, ProposalLedger

log = logging.getLogger(__name__)

T = TypeVar("T")


class LedgerExecutor:
    def __init__(
        self,
        data_dir: Optional[str] = None,
        *,
        persist: bool = True,
        filename: str = "ledger_state.json",
        keep_backups: int = 2,
    ) -> None:
        self._lock = threading.RLock()
        self.store: Optional[AtomicLedgerStore] = None

        if persist and data_dir:
            Path(data_dir).mkdir(parents=True, exist_ok=True)
            self.store = AtomicLedgerStore(Path(data_dir) / filename, keep_backups=keep_backups)

        self.ledger = self._load_ledger()

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "LedgerExecutor":
        return cls(
            get_data_dir(cfg),
            persist=get_persist_enabled(cfg),
            filename=get_state_filename(cfg),
            keep_backups=get_keep_backups(cfg),
        )

    # ----------------------- persistence ------------------

    def _load_ledger(self) -> ProposalLedger:
        if self.store is None:
            return ProposalLedger()

        raw = self.store.load()
        if raw is None:
            return ProposalLedger()

        try:
            ledger = ProposalLedger.from_dict(raw)
        except (AttributeError, TypeError, ValueError, KeyError, IndexError):
            log.warning("Ledger snapshot at %s is malformed; starting empty", self.store.path, exc_info=True)
            return ProposalLedger()

        log.info("Loaded %d proposals from %s", ledger.proposal_count, self.store.path)
        return ledger

    def save_state(self) -> None:
        if self.store is None:
            return
        with self._lock:
            self.store.save(self.ledger.to_dict())

    # ----------------------- commit ------------------

    def _commit(self, op: Callable[[ProposalLedger], T]) -> T:
        with self._lock:
            snapshot = self.ledger.to_dict()
            try:
                result = op(self.ledger)
                self.save_state()
            except Exception:
                self.ledger = ProposalLedger.from_dict(snapshot)
                raise
            return result

    # ----------------------- operations ------------------

    def create_proposal(self, caller: str, text: str) -> int:
        return self._commit(lambda led: led.create_proposal(caller, text))

    def vote_on_proposal(self, caller: str, proposal_id: int, supports: bool) -> None:
        self._commit(lambda led: led.vote_on_proposal(caller, proposal_id, supports))

    def close_proposal(self, caller: str, proposal_id: int) -> bool:
        return self._commit(lambda led: led.close_proposal(caller, proposal_id))

    def void_proposal(self, caller: str, proposal_id: int) -> bool:
        return self._commit(lambda led: led.void_proposal(caller, proposal_id))

    def get_proposal_count(self) -> int:
        with self._lock:
            return self.ledger.get_proposal_count()

    def get_all_proposals(self) -> Dict[int, str]:
        with self._lock:
            return self.ledger.get_all_proposals()

    def get_all_votes(self, proposal_id: int) -> List[Tuple[str, bool]]:
        with self._lock:
            return self.ledger.get_all_votes(proposal_id)

    def get_proposal(self, proposal_id: int) -> Optional[Proposal]:
        with self._lock:
            return self.ledger.get_proposal(proposal_id)

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            return self.ledger.get_stats()
