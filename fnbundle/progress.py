"""Per-function state tracking for the bundling pipeline."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

import structlog

log = structlog.get_logger("fnbundle.progress")


class PipelineState(Enum):
    PENDING = "pending"
    RESOLVING = "resolving"
    SELECTING = "selecting"
    TRANSPILING = "transpiling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


TERMINAL_STATES = frozenset({PipelineState.SUCCEEDED, PipelineState.FAILED})

_TRANSITIONS: dict[PipelineState, frozenset[PipelineState]] = {
    PipelineState.PENDING: frozenset({PipelineState.RESOLVING, PipelineState.FAILED}),
    PipelineState.RESOLVING: frozenset({PipelineState.SELECTING, PipelineState.FAILED}),
    PipelineState.SELECTING: frozenset({PipelineState.TRANSPILING, PipelineState.FAILED}),
    PipelineState.TRANSPILING: frozenset({PipelineState.SUCCEEDED, PipelineState.FAILED}),
    PipelineState.SUCCEEDED: frozenset(),
    PipelineState.FAILED: frozenset(),
}


@dataclass
class StageRecord:
    state: PipelineState
    start_time: float
    end_time: float | None = None
    detail: str = ""

    @property
    def duration(self) -> float | None:
        if self.end_time is not None:
            return round(self.end_time - self.start_time, 4)
        return None


class FunctionProgress:
    """Track one function's walk through the pipeline states."""

    def __init__(self, function_name: str) -> None:
        self.function_name = function_name
        self.state = PipelineState.PENDING
        self.stages: list[StageRecord] = []
        self.error: str | None = None
        self.callbacks: list[Callable[[FunctionProgress], None]] = []

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def advance(self, state: PipelineState, detail: str = "") -> None:
        if state not in _TRANSITIONS[self.state]:
            raise ValueError(
                f"Illegal transition {self.state.value} -> {state.value} "
                f"for function {self.function_name}"
            )
        now = time.monotonic()
        if self.stages and self.stages[-1].end_time is None:
            self.stages[-1].end_time = now
        self.state = state
        record = StageRecord(state=state, start_time=now, detail=detail)
        if state in TERMINAL_STATES:
            record.end_time = now
        self.stages.append(record)
        self._notify()

    def fail(self, error: str) -> None:
        self.error = error
        self.advance(PipelineState.FAILED, detail=error)

    def get_summary(self) -> dict[str, Any]:
        total = sum(s.duration or 0 for s in self.stages)
        return {
            "function": self.function_name,
            "state": self.state.value,
            "stages": [
                {"state": s.state.value, "duration": s.duration, "detail": s.detail}
                for s in self.stages
            ],
            "error": self.error,
            "total_duration": round(total, 4),
        }

    def _notify(self) -> None:
        for cb in self.callbacks:
            try:
                cb(self)
            except Exception:
                log.debug(
                    "progress.callback_failed",
                    function=self.function_name,
                    state=self.state.value,
                    exc_info=True,
                )
