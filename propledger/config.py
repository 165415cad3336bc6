# propledger/config.py
import copy
import logging
import os
from typing import Any, Dict

import yaml

log = logging.getLogger(__name__)

CONFIG_FILENAME = "propledger_config.yaml"

# -------- Defaults --------
_DEFAULT: Dict[str, Any] = {
    "persistence": {
        "enabled": True,
        "data_dir": "data",
        "filename": "ledger_state.json",
        "keep_backups": 2,
    },
    "logging": {"level": "INFO"},
    "server": {
        "host": "127.0.0.1",
        "port": 8000,
    },
    "api": {
        # header carrying the caller identity, authenticated by the host
        "caller_header": "X-Caller-Id",
    },
}


def _as_bool(val: str) -> bool:
    return val.strip().lower() in ("1", "true", "yes", "on")


# -------- ENV overrides --------
_ENV_MAP = {
    ("persistence", "enabled"): ("PROPLEDGER_PERSIST", _as_bool),
    ("persistence", "data_dir"): ("PROPLEDGER_DATA_DIR", str),
    ("logging", "level"): ("PROPLEDGER_LOG_LEVEL", str),
    ("server", "host"): ("PROPLEDGER_HOST", str),
    ("server", "port"): ("PROPLEDGER_PORT", int),
}


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in (overlay or {}).items():
        current = out.get(k)
        if not isinstance(current, dict):
            out[k] = v
        elif isinstance(v, dict):
            out[k] = _deep_merge(current, v)
        elif v is not None:
            # a section must stay a mapping; an empty one (None) keeps defaults
            log.warning("Ignoring config section %r: expected a mapping, got %r", k, v)
    return out


def _apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    for (section, key), (env_name, cast) in _ENV_MAP.items():
        val = os.getenv(env_name)
        if val is None:
            continue
        try:
            casted = cast(val)
        except ValueError:
            log.warning("Ignoring invalid %s=%r", env_name, val)
            continue
        cfg.setdefault(section, {})
        cfg[section][key] = casted
    return cfg


def load_config(repo_root: str) -> Dict[str, Any]:
    """
    Loads the YAML config from repo_root/propledger_config.yaml.
    Returns defaults if the file doesn't exist or can't be parsed.
    ENV overrides are applied last.
    """
    path = os.path.join(repo_root, CONFIG_FILENAME)
    cfg = copy.deepcopy(_DEFAULT)

    if os.path.exists(path):
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
            if isinstance(data, dict):
                cfg = _deep_merge(cfg, data)
        except (OSError, yaml.YAMLError):
            log.warning("Failed to read %s; using defaults", path, exc_info=True)

    return _apply_env_overrides(cfg)


def default_config() -> Dict[str, Any]:
    return _apply_env_overrides(copy.deepcopy(_DEFAULT))


# -------- Small helpers used by the app --------
def get_persist_enabled(cfg: Dict[str, Any]) -> bool:
    return bool((cfg.get("persistence") or {}).get("enabled", True))


def get_data_dir(cfg: Dict[str, Any]) -> str:
    return str((cfg.get("persistence") or {}).get("data_dir", "data"))


def get_state_filename(cfg: Dict[str, Any]) -> str:
    return str((cfg.get("persistence") or {}).get("filename", "ledger_state.json"))


def get_keep_backups(cfg: Dict[str, Any]) -> int:
    return int((cfg.get("persistence") or {}).get("keep_backups", 2))


def get_log_level(cfg: Dict[str, Any]) -> str:
    return str((cfg.get("logging") or {}).get("level", "INFO") or "INFO").upper()


def get_bind_host(cfg: Dict[str, Any]) -> str:
    return str((cfg.get("server") or {}).get("host", "127.0.0.1"))


def get_bind_port(cfg: Dict[str, Any]) -> int:
    return int((cfg.get("server") or {}).get("port", 8000))


def get_caller_header(cfg: Dict[str, Any]) -> str:
    return str((cfg.get("api") or {}).get("caller_header", "X-Caller-Id"))


def setup_logging(cfg: Dict[str, Any]) -> logging.Logger:
    lvl = getattr(logging, get_log_level(cfg), logging.INFO)
    logging.basicConfig(level=lvl, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    return logging.getLogger("propledger")
