# callbench/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ClientPolicy(str, Enum):
    PER_CALL_FRESH = "fresh"
    SHARED_REUSED = "shared"


class Phase(str, Enum):
    INIT = "init"
    CALL = "call"
    DISPATCH = "dispatch"


class BodyFormat(str, Enum):
    NONE = "none"
    JSON = "json"
    FORM = "form"


@dataclass(frozen=True)
class EndpointTarget:
    base_url: str
    path: str
    method: str = "GET"
    body: Any = None
    body_format: BodyFormat = BodyFormat.NONE

    def request_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``httpx.Client.request``."""
        if self.body_format is BodyFormat.JSON:
            return {"json": self.body}
        if self.body_format is BodyFormat.FORM:
            return {"data": dict(self.body or {})}
        return {}


@dataclass(frozen=True)
class TimingSample:
    phase: Phase
    # None for the once-per-run Init/Dispatch of a shared connection
    index: int | None
    elapsed_ns: int


@dataclass(frozen=True)
class PhaseStats:
    phase: Phase
    count: int
    total_ns: int

    @property
    def mean_ns(self) -> float:
        return self.total_ns / self.count if self.count else 0.0

    @property
    def total_ms(self) -> float:
        return self.total_ns / 1e6

    @property
    def mean_ms(self) -> float:
        return self.mean_ns / 1e6


@dataclass(frozen=True)
class RunResult:
    policy: ClientPolicy
    call_count: int
    phases: dict[Phase, PhaseStats]
    total_ns: int
    samples: tuple[TimingSample, ...] = field(default=(), repr=False)

    @classmethod
    def empty(cls, policy: ClientPolicy) -> RunResult:
        return cls(
            policy=policy,
            call_count=0,
            phases={p: PhaseStats(p, 0, 0) for p in Phase},
            total_ns=0,
        )

    @property
    def total_ms(self) -> float:
        return self.total_ns / 1e6

    def stats(self, phase: Phase) -> PhaseStats:
        return self.phases[phase]

    def to_dict(self) -> dict[str, Any]:
        return {
            "policy": self.policy.value,
            "call_count": self.call_count,
            "phases": {
                p.value: {
                    "count": s.count,
                    "total_ms": s.total_ms,
                    "mean_ms": s.mean_ms,
                }
                for p, s in self.phases.items()
            },
            "total_ms": self.total_ms,
        }
