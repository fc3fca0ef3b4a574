"""Build report — aggregate per-function outcomes for the reporting step."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from fnbundle.pipeline import FunctionBuildResult


@dataclass
class BuildReport:
    succeeded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    strategies: dict[str, int] = field(default_factory=dict)
    errors: list[dict[str, Any]] = field(default_factory=list)
    durations: dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_results(cls, results: Iterable[FunctionBuildResult]) -> BuildReport:
        report = cls()
        counts: Counter[str] = Counter()
        for r in results:
            report.durations[r.function_name] = r.progress.get("total_duration", 0.0)
            if r.strategy is not None:
                counts[r.strategy.value] += 1
            if r.succeeded:
                report.succeeded.append(r.function_name)
            else:
                report.failed.append(r.function_name)
                if r.error is not None:
                    report.errors.append(r.error.to_record())
        report.strategies = dict(sorted(counts.items()))
        return report

    @property
    def ok(self) -> bool:
        return not self.failed

    def errors_by_category(self) -> dict[str, list[str]]:
        grouped: dict[str, list[str]] = {}
        for record in self.errors:
            grouped.setdefault(record["category"], []).append(record["function_name"])
        return grouped

    def get_summary(self) -> dict[str, Any]:
        return {
            "total": len(self.succeeded) + len(self.failed),
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
            "strategies": self.strategies,
            "errors": self.errors,
            "total_duration": round(sum(self.durations.values()), 4),
        }
