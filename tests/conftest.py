import pytest
from fastapi.testclient import TestClient

from propledger.config import default_config
from propledger.executor import LedgerExecutor
from propledger.ledger_api import create_app
from propledger.runtime.proposals import ProposalLedger


@pytest.fixture
def ledger():
    return ProposalLedger()


@pytest.fixture(scope="function")
def executor(tmp_path):
    """Fresh executor per test, isolated data dir"""
    return LedgerExecutor(str(tmp_path / "data"))


@pytest.fixture
def client(executor):
    cfg = default_config()
    return TestClient(create_app(cfg, executor))
