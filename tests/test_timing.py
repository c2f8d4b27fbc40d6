import itertools

import pytest

from callbench.connection import ConnectionFactory
from callbench.errors import ConnectivityError, DecodeError, UnexpectedStatus
from callbench.timing import compare_policies, format_report, run_timed_calls
from callbench.types import ClientPolicy, EndpointTarget, Phase
from scenarios.shapes import Anybody, Junk1L

from conftest import BASE

HOME = EndpointTarget(BASE, "api/anybody/home")
FRESH = ClientPolicy.PER_CALL_FRESH
SHARED = ClientPolicy.SHARED_REUSED


class RecordingFactory(ConnectionFactory):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.created = []

    def create(self):
        conn = super().create()
        self.created.append(conn)
        return conn


def _ticks():
    # every clock() call advances by 1ns
    return itertools.count().__next__


def test_fresh_counts(factory, app):
    r = run_timed_calls(factory, HOME, Anybody, 5, FRESH)
    assert r.call_count == 5
    assert r.stats(Phase.INIT).count == 5
    assert r.stats(Phase.CALL).count == 5
    assert r.stats(Phase.DISPATCH).count == 5
    assert app.state.hits == 5


def test_shared_counts(factory):
    r = run_timed_calls(factory, HOME, Anybody, 5, SHARED)
    assert r.stats(Phase.INIT).count == 1
    assert r.stats(Phase.CALL).count == 5
    assert r.stats(Phase.DISPATCH).count == 1


@pytest.mark.parametrize("policy", [FRESH, SHARED])
def test_zero_calls_short_circuit(app, policy):
    f = RecordingFactory(BASE, app=app)
    r = run_timed_calls(f, HOME, Anybody, 0, policy)
    assert r.total_ns == 0
    assert r.samples == ()
    assert all(s.count == 0 and s.total_ns == 0 and s.mean_ns == 0.0 for s in r.phases.values())
    assert f.created == []
    assert app.state.hits == 0


def test_negative_count_rejected(factory):
    with pytest.raises(ValueError):
        run_timed_calls(factory, HOME, Anybody, -1, FRESH)


@pytest.mark.parametrize("policy", [FRESH, SHARED])
def test_totals_match_samples(factory, policy):
    r = run_timed_calls(factory, HOME, Anybody, 4, policy)
    for phase in Phase:
        assert r.stats(phase).total_ns == sum(s.elapsed_ns for s in r.samples if s.phase is phase)
    assert all(s.elapsed_ns >= 0 for s in r.samples)
    assert r.total_ns >= r.stats(Phase.CALL).total_ns


def test_fresh_sample_order(factory):
    r = run_timed_calls(factory, HOME, Anybody, 3, FRESH)
    got = [(s.phase, s.index) for s in r.samples]
    want = [(p, i) for i in range(3) for p in (Phase.INIT, Phase.CALL, Phase.DISPATCH)]
    assert got == want


def test_shared_sample_order(factory):
    r = run_timed_calls(factory, HOME, Anybody, 3, SHARED)
    got = [(s.phase, s.index) for s in r.samples]
    assert got == [(Phase.INIT, None), (Phase.CALL, 0), (Phase.CALL, 1), (Phase.CALL, 2), (Phase.DISPATCH, None)]


def test_means_use_phase_denominators(factory):
    fresh = run_timed_calls(factory, HOME, Anybody, 4, FRESH, clock=_ticks())
    assert fresh.stats(Phase.INIT).total_ns == 4
    assert fresh.stats(Phase.INIT).mean_ns == 1.0
    assert fresh.stats(Phase.CALL).mean_ns == 1.0
    assert fresh.stats(Phase.DISPATCH).total_ns == 4
    # 6 clock reads per iteration plus the closing read
    assert fresh.total_ns == 25

    shared = run_timed_calls(factory, HOME, Anybody, 4, SHARED, clock=_ticks())
    assert shared.stats(Phase.INIT).total_ns == 1
    assert shared.stats(Phase.INIT).mean_ns == 1.0
    assert shared.stats(Phase.CALL).total_ns == 4
    assert shared.stats(Phase.DISPATCH).mean_ns == 1.0
    assert shared.total_ns == 13


@pytest.mark.parametrize("policy", [FRESH, SHARED])
def test_every_connection_released_once(app, policy):
    f = RecordingFactory(BASE, app=app)
    run_timed_calls(f, HOME, Anybody, 3, policy)
    assert len(f.created) == (3 if policy is FRESH else 1)
    assert all(c.released for c in f.created)


@pytest.mark.parametrize("policy", [FRESH, SHARED])
def test_decode_failure_aborts_and_releases(app, policy):
    f = RecordingFactory(BASE, app=app)
    broken = EndpointTarget(BASE, "api/anybody/broken")
    with pytest.raises(DecodeError):
        run_timed_calls(f, broken, Anybody, 10, policy)
    assert len(f.created) == 1
    assert f.created[0].released
    assert app.state.hits == 1


def test_error_status_aborts(factory):
    with pytest.raises(UnexpectedStatus) as ei:
        run_timed_calls(factory, EndpointTarget(BASE, "api/anybody/nowhere"), Anybody, 3, SHARED)
    assert ei.value.status_code == 404


def test_unreachable_raises_connectivity_error(dead_url):
    url = dead_url
    with pytest.raises(ConnectivityError):
        run_timed_calls(ConnectionFactory(url), EndpointTarget(url, "api/anybody/home"), Anybody, 3, FRESH)


def test_strict_decode_in_loop(factory):
    r = run_timed_calls(factory, EndpointTarget(BASE, "api/anybody/junk"), Junk1L, 2, SHARED, strict=True)
    assert r.stats(Phase.CALL).count == 2


def test_compare_policies(factory):
    results = compare_policies(factory, HOME, Anybody, 3)
    assert set(results) == {FRESH, SHARED}
    assert results[FRESH].stats(Phase.INIT).count == 3
    assert results[SHARED].stats(Phase.INIT).count == 1


def test_format_report(factory):
    r = run_timed_calls(factory, HOME, Anybody, 2, SHARED)
    lines = format_report(r)
    assert [ln.split(":")[0] for ln in lines] == ["Init", "Call", "Dispatch", "Total"]


def test_to_dict(factory):
    d = run_timed_calls(factory, HOME, Anybody, 2, FRESH).to_dict()
    assert d["policy"] == "fresh"
    assert d["call_count"] == 2
    assert d["phases"]["call"]["count"] == 2
    assert set(d["phases"]) == {"init", "call", "dispatch"}
