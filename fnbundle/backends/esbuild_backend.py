"""esbuild backend — drives the esbuild CLI as an async subprocess.

Output goes to stdout only. Source maps are requested inline and split back
out of the emitted code, so the backend never writes files.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import re
import shutil
from pathlib import Path

import structlog

from fnbundle.backends.base import BackendFailure, CompilerBackend
from fnbundle.exceptions import BackendNotFoundError
from fnbundle.models.function import ModuleFormat
from fnbundle.models.transpile import TranspileRequest, TranspileResult

log = structlog.get_logger("fnbundle.backend.esbuild")

_TARGET_RE = re.compile(r"^(?:node\d+(?:\.\d+){0,2}|es20\d\d|es6|esnext)$")

# Trailing inline map emitted by --sourcemap=inline
_INLINE_MAP_RE = re.compile(
    r"\n?//# sourceMappingURL=data:application/json;base64,(?P<data>[A-Za-z0-9+/=]+)\s*$"
)

# Diagnostics that mean the target/format pairing itself is unsupported
_UNSUPPORTED_TARGET_RE = re.compile(
    r"Invalid target"
    r"|to the configured target environment .* is not supported yet"
    r"|is not available in the configured target environment"
    r"|is currently not supported with the \"(?:cjs|esm|iife)\" output format"
)

_BLOCK_SPLIT_RE = re.compile(r"\n\s*\n")


class EsbuildBackend(CompilerBackend):
    """Compile with the esbuild CLI (``esbuild <entry> --format=... --target=...``)."""

    def __init__(self, binary: str = "esbuild", timeout: float = 120.0) -> None:
        self.binary = binary
        self.timeout = timeout

    @property
    def name(self) -> str:
        return "esbuild"

    @property
    def supported_formats(self) -> set[ModuleFormat]:
        return {ModuleFormat.COMMONJS, ModuleFormat.ESM}

    def supports_target(self, target: str) -> bool:
        return bool(_TARGET_RE.match(target))

    def check_prerequisites(self) -> list[str]:
        if shutil.which(self.binary) is None:
            return [f"{self.binary} executable"]
        return []

    def build_command(self, request: TranspileRequest) -> list[str]:
        """Translate a request into esbuild CLI arguments."""
        cmd = [
            self.binary,
            request.path,
            f"--format={request.format.value}",
            "--platform=node",
            f"--target={request.target}",
            "--log-level=warning",
            "--color=false",
            "--charset=utf8",
        ]
        if request.bundle:
            cmd += ["--bundle", "--packages=external"]
            cmd += [f"--external:{module}" for module in request.external_modules]
        if request.sourcemap:
            cmd.append("--sourcemap=inline")
        if request.tsconfig_raw is not None:
            cmd.append(f"--tsconfig-raw={request.tsconfig_raw}")
        return cmd

    async def compile(self, request: TranspileRequest) -> TranspileResult:
        cmd = self.build_command(request)
        log.debug("esbuild.start", path=request.path, bundle=request.bundle, target=request.target)
        stdout, stderr, returncode = await self._run(cmd, cwd=str(Path(request.path).parent))

        if returncode != 0:
            diagnostic = stderr.strip() or f"esbuild exited with code {returncode}"
            raise BackendFailure(
                diagnostic,
                returncode=returncode,
                unsupported_target=bool(_UNSUPPORTED_TARGET_RE.search(diagnostic)),
            )

        code, source_map = split_inline_source_map(stdout)
        if request.sourcemap and source_map is None:
            raise BackendFailure("esbuild did not emit the requested source map", returncode=0)
        warnings = tuple(
            block.strip() for block in _BLOCK_SPLIT_RE.split(stderr) if block.strip()
        )
        return TranspileResult(
            code=code,
            source_map=source_map if request.sourcemap else None,
            warnings=warnings,
        )

    async def _run(self, cmd: list[str], cwd: str) -> tuple[str, str, int]:
        """Run esbuild, killing it on timeout or cancellation."""
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=cwd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise BackendNotFoundError(f"esbuild executable not found: {self.binary}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            _kill(proc)
            await proc.wait()
            raise BackendFailure(f"esbuild timed out after {self.timeout}s")
        except asyncio.CancelledError:
            _kill(proc)
            raise
        return (
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
            proc.returncode if proc.returncode is not None else -1,
        )


def split_inline_source_map(output: str) -> tuple[str, str | None]:
    """Separate a trailing inline source map comment from emitted code."""
    match = _INLINE_MAP_RE.search(output)
    if not match:
        return output, None
    try:
        source_map = base64.b64decode(match.group("data"), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return output, None
    return output[: match.start()] + "\n", source_map


def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
