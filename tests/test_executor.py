import json
import threading

import pytest

from propledger.executor import LedgerExecutor
from propledger.runtime import AlreadyClosed, Fate, NotAuthorized, NotFound


def test_operations_persist_and_reload(executor, tmp_path):
    pid = executor.create_proposal("harry.near", "Should bears be legal pets?")
    executor.vote_on_proposal("kurt.near", pid, True)
    executor.vote_on_proposal("weiler.near", pid, False)
    assert executor.close_proposal("harry.near", pid) is True

    assert executor.store.exists()
    reloaded = LedgerExecutor(str(tmp_path / "data"))
    assert reloaded.get_proposal_count() == 1
    assert reloaded.get_all_votes(pid) == [("kurt.near", True), ("weiler.near", False)]
    assert reloaded.get_proposal(pid).fate is Fate.ACCEPTED
    assert reloaded.get_stats()["successful_count"] == 1


def test_failed_precondition_is_not_persisted(executor):
    pid = executor.create_proposal("harry.near", "x")
    saved = json.loads(executor.store.path.read_text())

    with pytest.raises(NotAuthorized):
        executor.close_proposal("mikky.near", pid)
    with pytest.raises(NotFound):
        executor.vote_on_proposal("mikky.near", pid + 1, True)

    assert json.loads(executor.store.path.read_text()) == saved
    assert executor.ledger.to_dict() == saved


def test_save_failure_rolls_back_in_memory_state(executor, monkeypatch):
    pid = executor.create_proposal("harry.near", "x")
    before = executor.ledger.to_dict()

    def boom(state):
        raise OSError("disk full")

    monkeypatch.setattr(executor.store, "save", boom)

    with pytest.raises(OSError):
        executor.create_proposal("harry.near", "y")
    with pytest.raises(OSError):
        executor.close_proposal("harry.near", pid)

    assert executor.ledger.to_dict() == before
    assert executor.get_proposal(pid).fate is Fate.OPEN


def test_closed_proposal_stays_closed_after_reload(executor, tmp_path):
    pid = executor.create_proposal("harry.near", "x")
    assert executor.void_proposal("harry.near", pid) is True

    reloaded = LedgerExecutor(str(tmp_path / "data"))
    with pytest.raises(AlreadyClosed):
        reloaded.vote_on_proposal("kurt.near", pid, True)


def test_malformed_snapshot_starts_empty(tmp_path):
    data = tmp_path / "data"
    data.mkdir()
    (data / "ledger_state.json").write_text(json.dumps({"proposal_count": 1, "proposals": ["nope"]}))

    ex = LedgerExecutor(str(data))
    assert ex.get_proposal_count() == 0
    assert ex.get_all_proposals() == {}


def _snapshot(proposal_count, proposals, successful=0, rejected=0):
    return {
        "proposal_count": proposal_count,
        "successful_count": successful,
        "rejected_count": rejected,
        "proposals": proposals,
    }


def _prop(fate=None, text="original"):
    return {"text": text, "owner": "harry.near", "votes": [["kurt.near", True]], "fate": fate}


@pytest.mark.parametrize(
    "snapshot",
    [
        # count behind the highest id would hand out id 1 again
        _snapshot(0, {"1": _prop()}),
        # count ahead of the stored ids
        _snapshot(3, {"1": _prop(), "2": _prop()}),
        # gap in the ids
        _snapshot(2, {"1": _prop(), "3": _prop()}),
        # ids must start at 1
        _snapshot(1, {"0": _prop()}),
        _snapshot(-1, {}),
        # counters that disagree with the stored fates
        _snapshot(1, {"1": _prop("accepted")}, successful=5),
        _snapshot(1, {"1": _prop("rejected")}, successful=1),
        _snapshot(2, {"1": _prop("accepted"), "2": _prop()}, successful=1, rejected=1),
    ],
)
def test_inconsistent_snapshot_starts_empty(tmp_path, snapshot):
    data = tmp_path / "data"
    data.mkdir()
    (data / "ledger_state.json").write_text(json.dumps(snapshot))

    ex = LedgerExecutor(str(data))
    assert ex.get_stats() == {"proposal_count": 0, "successful_count": 0, "rejected_count": 0, "open_count": 0}

    assert ex.create_proposal("mallory.near", "overwrite") == 1
    assert ex.get_all_votes(1) == []


def test_consistent_snapshot_keeps_ids_unique(tmp_path):
    data = tmp_path / "data"
    data.mkdir()
    snapshot = _snapshot(2, {"1": _prop("accepted"), "2": _prop("rejected")}, successful=1, rejected=1)
    (data / "ledger_state.json").write_text(json.dumps(snapshot))

    ex = LedgerExecutor(str(data))
    assert ex.create_proposal("mallory.near", "new") == 3
    assert ex.get_all_proposals() == {1: "original", 2: "original", 3: "new"}
    assert ex.get_all_votes(1) == [("kurt.near", True)]


def test_memory_only_executor_has_no_store(tmp_path):
    ex = LedgerExecutor(str(tmp_path / "data"), persist=False)
    assert ex.store is None
    ex.create_proposal("harry.near", "x")
    assert ex.get_proposal_count() == 1
    assert not (tmp_path / "data").exists()


def test_concurrent_votes_are_all_recorded():
    ex = LedgerExecutor(persist=False)
    pid = ex.create_proposal("harry.near", "x")

    def cast(n):
        for i in range(50):
            ex.vote_on_proposal(f"voter{n}.near", pid, i % 2 == 0)

    threads = [threading.Thread(target=cast, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    votes = ex.get_all_votes(pid)
    assert len(votes) == 400
    assert sum(1 for _, s in votes if s) == 200
    assert ex.close_proposal("harry.near", pid) is True
