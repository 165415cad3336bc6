from pathlib import Path

from propledger.config import (
    get_bind_port,
    get_caller_header,
    get_data_dir,
    get_log_level,
    get_persist_enabled,
    load_config,
)
from propledger.executor import LedgerExecutor


def test_defaults_without_config_file(tmp_path, monkeypatch):
    monkeypatch.delenv("PROPLEDGER_DATA_DIR", raising=False)
    monkeypatch.delenv("PROPLEDGER_PERSIST", raising=False)
    cfg = load_config(str(tmp_path))
    assert get_persist_enabled(cfg) is True
    assert get_data_dir(cfg) == "data"
    assert get_caller_header(cfg) == "X-Caller-Id"


def test_yaml_overrides_merge_with_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("PROPLEDGER_LOG_LEVEL", raising=False)
    (tmp_path / "propledger_config.yaml").write_text(
        "logging:\n  level: debug\nserver:\n  port: 9100\n"
    )
    cfg = load_config(str(tmp_path))
    assert get_log_level(cfg) == "DEBUG"
    assert get_bind_port(cfg) == 9100
    assert cfg["server"]["host"] == "127.0.0.1"


def test_env_overrides_win(tmp_path, monkeypatch):
    (tmp_path / "propledger_config.yaml").write_text("persistence:\n  data_dir: from_yaml\n")
    monkeypatch.setenv("PROPLEDGER_DATA_DIR", "from_env")
    monkeypatch.setenv("PROPLEDGER_PERSIST", "0")
    monkeypatch.setenv("PROPLEDGER_PORT", "not-a-port")
    cfg = load_config(str(tmp_path))
    assert get_data_dir(cfg) == "from_env"
    assert get_persist_enabled(cfg) is False
    assert get_bind_port(cfg) == 8000


def test_broken_yaml_falls_back_to_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("PROPLEDGER_PORT", raising=False)
    (tmp_path / "propledger_config.yaml").write_text("server: [unclosed\n")
    cfg = load_config(str(tmp_path))
    assert get_bind_port(cfg) == 8000


def test_loading_does_not_leak_into_later_calls(tmp_path, monkeypatch):
    monkeypatch.setenv("PROPLEDGER_DATA_DIR", "first")
    load_config(str(tmp_path))
    monkeypatch.delenv("PROPLEDGER_DATA_DIR")
    assert get_data_dir(load_config(str(tmp_path))) == "data"


def test_empty_section_keeps_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("PROPLEDGER_DATA_DIR", raising=False)
    monkeypatch.delenv("PROPLEDGER_PERSIST", raising=False)
    monkeypatch.delenv("PROPLEDGER_PORT", raising=False)
    monkeypatch.delenv("PROPLEDGER_LOG_LEVEL", raising=False)
    (tmp_path / "propledger_config.yaml").write_text(
        "persistence:\n#  data_dir: x\nserver: 8080\nlogging:\n  level: debug\n"
    )
    cfg = load_config(str(tmp_path))

    assert get_data_dir(cfg) == "data"
    assert get_persist_enabled(cfg) is True
    assert get_bind_port(cfg) == 8000
    assert get_log_level(cfg) == "DEBUG"

    ex = LedgerExecutor.from_config(cfg)
    assert ex.store.path == Path("data") / "ledger_state.json"


def test_getters_tolerate_missing_sections():
    cfg = {"persistence": None}
    assert get_data_dir(cfg) == "data"
    assert get_caller_header(cfg) == "X-Caller-Id"
