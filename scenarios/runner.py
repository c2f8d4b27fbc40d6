# scenarios/runner.py
from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx
from pydantic import BaseModel

from callbench.connection import CallOutcome, ConnectionFactory
from callbench.contract import ContractReport, check_contract
from callbench.decoder import decode
from callbench.errors import CallbenchError
from callbench.timing import compare_policies, format_report, run_timed_calls
from callbench.types import ClientPolicy, EndpointTarget, RunResult

logger = logging.getLogger("callbench")

MISSING = object()


@dataclass(frozen=True)
class ContractCheck:
    allow_additional_properties: bool = False
    expect_valid: bool = True


@dataclass(frozen=True)
class Scenario:
    name: str
    target: EndpointTarget
    shape: type[BaseModel]
    # dotted JSON paths, e.g. "junk2La.0.junk3Laa.0"
    expected: Mapping[str, Any] = field(default_factory=dict)
    expected_lengths: Mapping[str, int] = field(default_factory=dict)
    contract: ContractCheck | None = None
    strict: bool = False
    description: str = ""


@dataclass
class ScenarioReport:
    name: str
    status_code: int | None = None
    document: BaseModel | None = None
    contract: ContractReport | None = None
    failures: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def resolve_path(data: Any, path: str) -> Any:
    """Walk dicts by key and lists by index; MISSING when the path breaks."""
    cur = data
    for part in path.split("."):
        if isinstance(cur, list):
            try:
                cur = cur[int(part)]
            except (ValueError, IndexError):
                return MISSING
        elif isinstance(cur, dict):
            if part not in cur:
                return MISSING
            cur = cur[part]
        else:
            return MISSING
    return cur


def compare_expectations(scenario: Scenario, document: BaseModel) -> list[str]:
    data = document.model_dump(by_alias=True)
    failures: list[str] = []
    for path, want in scenario.expected.items():
        got = resolve_path(data, path)
        if got is MISSING:
            failures.append(f"{path}: missing")
        # bool is an int subclass; 1 and True must not match
        elif got != want or (type(got) is bool) != (type(want) is bool):
            failures.append(f"{path}: expected {want!r}, got {got!r}")
    for path, n in scenario.expected_lengths.items():
        got = resolve_path(data, path)
        if got is MISSING or not isinstance(got, list):
            failures.append(f"len({path}): not a sequence")
        elif len(got) != n:
            failures.append(f"len({path}): expected {n}, got {len(got)}")
    return failures


class ScenarioRunner:
    def __init__(self, make_factory: Callable[[str], ConnectionFactory] = ConnectionFactory) -> None:
        self.make_factory = make_factory

    def factory_for(self, target: EndpointTarget) -> ConnectionFactory:
        return self.make_factory(target.base_url)

    def check(self, scenario: Scenario) -> ScenarioReport:
        """Single call: status, decode, expected values, optional contract."""
        report = ScenarioReport(name=scenario.name)
        conn = self.factory_for(scenario.target).create()
        try:
            try:
                outcome = conn.send(scenario.target)
            except httpx.HTTPError as e:
                # timeouts, dropped connections and other transport faults
                report.failures.append(f"{type(e).__name__}: {e}")
                return report
            if not outcome.ok:
                report.failures.append(str(outcome.error))
                return report
            resp = outcome.unwrap()
            report.status_code = resp.status_code
            if not resp.is_success:
                report.failures.append(f"HTTP {resp.status_code}")
                return report
            body = resp.content
        finally:
            conn.release()

        try:
            report.document = decode(body, scenario.shape, strict=scenario.strict)
        except CallbenchError as e:
            report.failures.append(str(e))
            return report
        report.failures.extend(compare_expectations(scenario, report.document))

        if scenario.contract is not None:
            cc = scenario.contract
            report.contract = check_contract(
                body, scenario.shape, allow_additional_properties=cc.allow_additional_properties
            )
            if report.contract.valid != cc.expect_valid:
                want = "valid" if cc.expect_valid else "invalid"
                detail = "; ".join(report.contract.errors) or "no violations"
                report.failures.append(f"contract: expected {want} ({detail})")

        if report.ok:
            logger.info("scenario %s passed", scenario.name)
        else:
            logger.info("scenario %s failed: %s", scenario.name, report.failures)
        return report

    def bench(
        self, scenario: Scenario, count: int, policy: ClientPolicy = ClientPolicy.PER_CALL_FRESH
    ) -> RunResult:
        result = run_timed_calls(
            self.factory_for(scenario.target),
            scenario.target,
            scenario.shape,
            count,
            policy,
            strict=scenario.strict,
        )
        for line in format_report(result):
            logger.info("%s [%s] %s", scenario.name, policy.value, line)
        return result

    def compare(self, scenario: Scenario, count: int) -> dict[ClientPolicy, RunResult]:
        results = compare_policies(
            self.factory_for(scenario.target), scenario.target, scenario.shape, count, strict=scenario.strict
        )
        for policy, result in results.items():
            for line in format_report(result):
                logger.info("%s [%s] %s", scenario.name, policy.value, line)
        return results

    def probe(self, base_url: str, path: str = "api/anybody/home") -> CallOutcome:
        """Issue one GET and hand back the outcome, connectivity failure included."""
        conn = self.make_factory(base_url).create()
        try:
            return conn.send(EndpointTarget(base_url=base_url, path=path))
        finally:
            conn.release()
