# callbench/config.py
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import yaml

DEFAULTS: Dict[str, Any] = {
    "service_url": "http://localhost:8080",
    "unreachable_url": "http://localhost:8070",
    "call_count": 1000,
    "policy": "fresh",
    "timeout_s": None,
    "strict_decode": False,
}

_POLICY_ALIASES = {
    "fresh": "fresh",
    "per_call_fresh": "fresh",
    "percallfresh": "fresh",
    "shared": "shared",
    "shared_reused": "shared",
    "sharedreused": "shared",
    "both": "both",
}


def _read_yaml(p: Path) -> Dict[str, Any]:
    with p.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _merge(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(a)
    out.update(b)
    return out


def _postprocess(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """
    Flatten the optional ``service:`` block and normalize the policy name so
    callers only read the flat keys listed in DEFAULTS.
    """
    svc = cfg.pop("service", None)
    if isinstance(svc, dict):
        if "url" in svc:
            cfg.setdefault("service_url", svc["url"])
        if "unreachable_url" in svc:
            cfg.setdefault("unreachable_url", svc["unreachable_url"])

    cfg = _merge(DEFAULTS, cfg)

    pol = str(cfg["policy"]).strip().lower().replace("-", "_")
    if pol not in _POLICY_ALIASES:
        raise ValueError(f"unknown client policy in config: {cfg['policy']!r}")
    cfg["policy"] = _POLICY_ALIASES[pol]

    cfg["call_count"] = int(cfg["call_count"])
    if cfg["call_count"] < 0:
        raise ValueError("call_count must be >= 0")
    if cfg["timeout_s"] is not None:
        cfg["timeout_s"] = float(cfg["timeout_s"])
    cfg["strict_decode"] = bool(cfg["strict_decode"])
    return cfg


def load_config(
    config: str | os.PathLike | None = None,
    profile: str | None = None,
) -> Dict[str, Any]:
    """
    Harness settings. A file given directly or through $CALLBENCH_CONFIG is
    used on its own; otherwise config/default.yaml is read and the named
    profile (argument or $CALLBENCH_PROFILE) is laid over it. Keys neither
    file sets come from DEFAULTS.
    """
    repo_root = Path(__file__).resolve().parents[1]

    if config:
        p = Path(config)
        if not p.is_file():
            raise FileNotFoundError(f"--config not found: {p}")
        return _postprocess(_read_yaml(p))

    env_path = os.getenv("CALLBENCH_CONFIG")
    if env_path:
        p = Path(env_path)
        if p.is_file():
            return _postprocess(_read_yaml(p))

    cfg: Dict[str, Any] = {}

    fallback = repo_root / "config" / "default.yaml"
    if fallback.is_file():
        cfg = _merge(cfg, _read_yaml(fallback))

    prof = profile or os.getenv("CALLBENCH_PROFILE")
    if prof:
        p = repo_root / "config" / "profiles" / f"{prof}.yaml"
        if not p.is_file():
            raise FileNotFoundError(f"profile not found: {p}")
        cfg = _merge(cfg, _read_yaml(p))

    return _postprocess(cfg)
