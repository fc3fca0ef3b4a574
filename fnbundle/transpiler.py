"""Transpiler service — transpile-only and transpile-and-bundle over a backend."""

from __future__ import annotations

import dataclasses

import structlog

from fnbundle.backends.base import BackendFailure, CompilerBackend
from fnbundle.exceptions import TranspilationError, UnsupportedTargetError
from fnbundle.models.transpile import TranspileRequest, TranspileResult

log = structlog.get_logger("fnbundle.transpiler")


class TranspilerService:
    """
    Two operations over a pluggable compiler backend.

    ``transpile_only`` compiles exactly one file with bundling forced off.
    ``transpile_and_bundle`` inlines local dependencies and leaves packages
    (and any declared externals) as runtime references.
    """

    def __init__(self, backend: CompilerBackend) -> None:
        self._backend = backend

    @property
    def backend(self) -> CompilerBackend:
        return self._backend

    async def transpile_only(self, request: TranspileRequest) -> TranspileResult:
        forced = dataclasses.replace(request, bundle=False, external_modules=())
        return await self._compile(forced)

    async def transpile_and_bundle(self, request: TranspileRequest) -> TranspileResult:
        forced = dataclasses.replace(request, bundle=True)
        return await self._compile(forced)

    async def _compile(self, request: TranspileRequest) -> TranspileResult:
        self._check_support(request)
        try:
            result = await self._backend.compile(request)
        except BackendFailure as exc:
            log.debug(
                "transpiler.backend_failed",
                backend=self._backend.name,
                path=request.path,
                returncode=exc.returncode,
            )
            if exc.unsupported_target:
                raise UnsupportedTargetError(
                    f"{self._backend.name} cannot compile for target {request.target} "
                    f"with {request.format.value} output",
                    diagnostic=exc.diagnostic,
                ) from exc
            raise TranspilationError(
                f"{self._backend.name} failed to compile {request.path}",
                diagnostic=exc.diagnostic,
            ) from exc
        return result

    def _check_support(self, request: TranspileRequest) -> None:
        if request.format not in self._backend.supported_formats:
            raise UnsupportedTargetError(
                f"{self._backend.name} does not support {request.format.value} output"
            )
        if not self._backend.supports_target(request.target):
            raise UnsupportedTargetError(
                f"{self._backend.name} does not support target {request.target}"
            )
