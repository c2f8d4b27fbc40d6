# scenarios/cli.py
from __future__ import annotations

import argparse
import json
import logging
import sys
from functools import partial

import httpx

from callbench.config import load_config
from callbench.connection import ConnectionFactory
from callbench.errors import CallbenchError
from callbench.metrics import PhaseMetrics
from callbench.timing import format_report
from callbench.types import ClientPolicy
from scenarios.catalog import build_catalog
from scenarios.runner import ScenarioRunner

logger = logging.getLogger("callbench")


def _policies(name: str) -> list[ClientPolicy]:
    if name == "both":
        return [ClientPolicy.PER_CALL_FRESH, ClientPolicy.SHARED_REUSED]
    return [ClientPolicy(name)]


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="callbench", description="Contract checks and call benchmarks for the anybody service.")
    ap.add_argument("--config", help="Path to a YAML config file.")
    ap.add_argument("--profile", help="Config profile under config/profiles/.")
    ap.add_argument("--url", help="Service base URL (overrides config).")
    ap.add_argument("-v", "--verbose", action="store_true")
    sub = ap.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List built-in scenarios.")

    p_check = sub.add_parser("check", help="Run scenarios once and report pass/fail.")
    p_check.add_argument("names", nargs="*", help="Scenario names (default: all).")

    p_bench = sub.add_parser("bench", help="Time N sequential calls of one scenario.")
    p_bench.add_argument("--scenario", default="home")
    p_bench.add_argument("--n", type=int, default=None, help="Call count (default from config).")
    p_bench.add_argument("--policy", choices=["fresh", "shared", "both"], default=None)
    p_bench.add_argument("--json", action="store_true", help="Emit results as JSON.")
    p_bench.add_argument("--prom", action="store_true", help="Append Prometheus exposition text.")

    p_probe = sub.add_parser("probe", help="Check whether anything listens at an address.")
    p_probe.add_argument("--target", help="Address to probe (default: unreachable_url from config).")
    return ap


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    cfg = load_config(args.config, args.profile)
    service_url = args.url or cfg["service_url"]
    runner = ScenarioRunner(partial(ConnectionFactory, timeout=cfg["timeout_s"]))
    catalog = build_catalog(service_url)

    if args.command == "list":
        for name, sc in catalog.items():
            print(f"{name:20s} {sc.target.method:4s} /{sc.target.path}  {sc.description}")
        return 0

    if args.command == "check":
        names = args.names or list(catalog)
        unknown = [n for n in names if n not in catalog]
        if unknown:
            print(f"unknown scenario(s): {', '.join(unknown)}", file=sys.stderr)
            return 2
        failed = 0
        for name in names:
            rep = runner.check(catalog[name])
            print(f"{'PASS' if rep.ok else 'FAIL'} {name}")
            for f in rep.failures:
                print(f"    {f}")
            failed += not rep.ok
        return 1 if failed else 0

    if args.command == "bench":
        if args.scenario not in catalog:
            print(f"unknown scenario: {args.scenario}", file=sys.stderr)
            return 2
        scenario = catalog[args.scenario]
        count = cfg["call_count"] if args.n is None else args.n
        policy_name = args.policy or cfg["policy"]
        metrics = PhaseMetrics()
        out = []
        try:
            for policy in _policies(policy_name):
                result = runner.bench(scenario, count, policy)
                metrics.observe(result)
                out.append(result)
        except (CallbenchError, httpx.HTTPError) as e:
            logger.error("bench aborted: %s", e)
            return 1
        if args.json:
            print(json.dumps([r.to_dict() for r in out], indent=2))
        else:
            for r in out:
                print(f"[{r.policy.value}] N={r.call_count}")
                for line in format_report(r):
                    print(f"  {line}")
        if args.prom:
            print(metrics.render(), end="")
        return 0

    if args.command == "probe":
        target = args.target or cfg["unreachable_url"]
        try:
            outcome = runner.probe(target)
        except httpx.HTTPError as e:
            print(f"{target}: {type(e).__name__}: {e}")
            return 1
        if outcome.ok:
            print(f"{target}: HTTP {outcome.unwrap().status_code}")
            return 0
        print(f"{target}: {outcome.error}")
        return 1

    return 2


if __name__ == "__main__":
    sys.exit(main())
