# callbench/timing.py
from __future__ import annotations

import logging
import time
from collections.abc import Callable

from pydantic import BaseModel

from callbench.connection import Connection, ConnectionFactory
from callbench.decoder import decode
from callbench.errors import UnexpectedStatus
from callbench.types import ClientPolicy, EndpointTarget, Phase, PhaseStats, RunResult, TimingSample

logger = logging.getLogger("callbench")

Clock = Callable[[], int]


def timed_call(conn: Connection, target: EndpointTarget, shape: type[BaseModel], *, strict: bool = False) -> BaseModel:
    """One Call phase: request, full body, status check, decode."""
    resp = conn.send(target).unwrap()
    if not resp.is_success:
        raise UnexpectedStatus(str(resp.request.url), resp.status_code)
    return decode(resp.content, shape, strict=strict)


def aggregate(
    samples: list[TimingSample], call_count: int, policy: ClientPolicy, total_ns: int
) -> RunResult:
    totals = {p: 0 for p in Phase}
    counts = {p: 0 for p in Phase}
    for s in samples:
        totals[s.phase] += s.elapsed_ns
        counts[s.phase] += 1
    # count doubles as the mean denominator: N per call, 1 for shared init/dispatch
    phases = {p: PhaseStats(p, counts[p], totals[p]) for p in Phase}
    return RunResult(
        policy=policy,
        call_count=call_count,
        phases=phases,
        total_ns=total_ns,
        samples=tuple(samples),
    )


def run_timed_calls(
    factory: ConnectionFactory,
    target: EndpointTarget,
    shape: type[BaseModel],
    count: int,
    policy: ClientPolicy,
    *,
    strict: bool = False,
    clock: Clock = time.perf_counter_ns,
) -> RunResult:
    """
    Issue ``count`` sequential calls to ``target`` and time each phase.

    PER_CALL_FRESH builds and releases a connection around every call.
    SHARED_REUSED builds one before the loop and releases it after, so Init
    and Dispatch are sampled once. Any error aborts the run; the connection
    in hand is still released and no partial result is returned.
    """
    if count < 0:
        raise ValueError(f"call count must be >= 0, got {count}")
    if count == 0:
        return RunResult.empty(policy)

    fresh = policy is ClientPolicy.PER_CALL_FRESH
    samples: list[TimingSample] = []
    # the connection to clean up if the run aborts
    live: Connection | None = None
    shared: Connection | None = None

    t_total = clock()
    try:
        if not fresh:
            t0 = clock()
            shared = live = factory.create()
            samples.append(TimingSample(Phase.INIT, None, clock() - t0))

        for i in range(count):
            if shared is None:
                t0 = clock()
                conn = live = factory.create()
                samples.append(TimingSample(Phase.INIT, i, clock() - t0))
            else:
                conn = shared

            t0 = clock()
            timed_call(conn, target, shape, strict=strict)
            samples.append(TimingSample(Phase.CALL, i, clock() - t0))

            if shared is None:
                t0 = clock()
                factory.release(conn)
                samples.append(TimingSample(Phase.DISPATCH, i, clock() - t0))

        if shared is not None:
            t0 = clock()
            factory.release(shared)
            samples.append(TimingSample(Phase.DISPATCH, None, clock() - t0))
    except Exception:
        # release is a no-op on a connection that already went through Dispatch
        if live is not None:
            live.release()
        logger.warning("timed run aborted after %d call sample(s)", sum(s.phase is Phase.CALL for s in samples))
        raise
    total_ns = clock() - t_total

    return aggregate(samples, count, policy, total_ns)


def compare_policies(
    factory: ConnectionFactory,
    target: EndpointTarget,
    shape: type[BaseModel],
    count: int,
    *,
    strict: bool = False,
    clock: Clock = time.perf_counter_ns,
) -> dict[ClientPolicy, RunResult]:
    return {
        policy: run_timed_calls(factory, target, shape, count, policy, strict=strict, clock=clock)
        for policy in (ClientPolicy.PER_CALL_FRESH, ClientPolicy.SHARED_REUSED)
    }


def format_report(result: RunResult) -> list[str]:
    lines = []
    for phase in Phase:
        s = result.stats(phase)
        lines.append(f"{phase.value.capitalize()}: {s.total_ms:.3f}; {s.mean_ms:.6f}")
    lines.append(f"Total: {result.total_ms:.3f}")
    return lines
