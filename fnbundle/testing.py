"""Test doubles for fnbundle — use in unit / integration tests.

Usage::

    from fnbundle.testing import FakeBackend

    backend = FakeBackend()                                       # always compiles
    backend = FakeBackend(failures={"bad.ts": BackendFailure("x")})  # per-file failure
    backend = FakeBackend(delays={"slow.ts": 0.05})                # per-file latency
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from fnbundle.backends.base import BackendFailure, CompilerBackend
from fnbundle.models.function import ModuleFormat
from fnbundle.models.transpile import TranspileRequest, TranspileResult


class FakeBackend(CompilerBackend):
    """Drop-in compiler backend that never spawns a process.

    Output is a header describing the request, one ``require`` per external
    module, then the entry file's source verbatim.

    Parameters
    ----------
    failures:
        Entry file name -> failure to raise for that file.
    delays:
        Entry file name -> seconds to sleep before answering.
    targets:
        Accepted targets. ``None`` accepts any ``node*`` target.
    """

    def __init__(
        self,
        *,
        failures: dict[str, BackendFailure] | None = None,
        delays: dict[str, float] | None = None,
        targets: set[str] | None = None,
    ) -> None:
        self._requests: list[TranspileRequest] = []
        self.failures = failures or {}
        self.delays = delays or {}
        self.targets = targets

    @property
    def requests(self) -> list[TranspileRequest]:
        """Requests received — useful for assertions in tests."""
        return self._requests

    @property
    def name(self) -> str:
        return "fake"

    @property
    def supported_formats(self) -> set[ModuleFormat]:
        return {ModuleFormat.COMMONJS, ModuleFormat.ESM}

    def supports_target(self, target: str) -> bool:
        if self.targets is not None:
            return target in self.targets
        return target.startswith("node")

    async def compile(self, request: TranspileRequest) -> TranspileResult:
        self._requests.append(request)
        file_name = Path(request.path).name
        await asyncio.sleep(self.delays.get(file_name, 0))
        if file_name in self.failures:
            raise self.failures[file_name]
        header = (
            f"// format={request.format.value} target={request.target} "
            f"bundle={request.bundle}\n"
        )
        externals = "".join(f'require("{m}");\n' for m in request.external_modules)
        source = Path(request.path).read_text(encoding="utf-8")
        return TranspileResult(
            code=header + externals + source,
            source_map='{"version":3,"sources":[]}' if request.sourcemap else None,
        )
