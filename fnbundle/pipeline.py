"""Bundling pipeline — resolve, select, transpile, enrich for every function.

Each function runs as an independent asyncio task:

    Pending -> Resolving -> Selecting -> Transpiling -> Succeeded | Failed

A function's failure is captured in its own result and never cancels or
affects sibling tasks. There are no retries here; retry policy belongs to
whatever drives the build.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from fnbundle.backends.registry import BackendCapability, create_default_registry
from fnbundle.config import BuildSettings
from fnbundle.enrichment import UNSELECTED_STRATEGY, attribute_errors
from fnbundle.exceptions import BundlingError, ConfigurationError, TranspilationError
from fnbundle.models.function import BundlingStrategy, FunctionDescriptor, ModuleFormat
from fnbundle.models.project import ProjectMetadata
from fnbundle.models.transpile import TranspileRequest, TranspileResult
from fnbundle.progress import FunctionProgress, PipelineState
from fnbundle.resolvers.module_format import resolve_module_format
from fnbundle.resolvers.target import DEFAULT_NODE_VERSION, resolve_target
from fnbundle.strategy import BuildOptions, select_strategy
from fnbundle.transpiler import TranspilerService

log = structlog.get_logger("fnbundle.pipeline")


@dataclass
class FunctionBuildResult:
    """Outcome of one function's pipeline, handed to packaging and reporting."""

    function_name: str
    state: PipelineState
    strategy: BundlingStrategy | None = None
    strategy_reason: str | None = None
    module_format: ModuleFormat | None = None
    target: str | None = None
    output: TranspileResult | None = None
    error: BundlingError | None = None
    progress: dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.state is PipelineState.SUCCEEDED


class BundlingPipeline:
    """Run the per-function bundling pipeline, alone or for a whole build."""

    def __init__(
        self,
        transpiler: TranspilerService,
        project: ProjectMetadata | None = None,
        options: BuildOptions | None = None,
        default_node_version: int = DEFAULT_NODE_VERSION,
    ) -> None:
        self.transpiler = transpiler
        self.project = project or ProjectMetadata()
        self.options = options or BuildOptions()
        self.default_node_version = default_node_version
        if self.options.concurrency < 1:
            raise ConfigurationError("Build concurrency must be at least 1")

    @classmethod
    def from_settings(
        cls,
        settings: BuildSettings | None = None,
        project: ProjectMetadata | None = None,
        options: BuildOptions | None = None,
    ) -> BundlingPipeline:
        """Build a pipeline on the best available backend from the default registry."""
        settings = settings or BuildSettings.from_env()
        registry = create_default_registry(
            esbuild_binary=settings.esbuild_binary,
            esbuild_timeout=settings.esbuild_timeout,
        )
        backend = registry.find_best_backend(
            {BackendCapability.TRANSPILE, BackendCapability.BUNDLE},
            formats={ModuleFormat.COMMONJS, ModuleFormat.ESM},
        )
        return cls(
            TranspilerService(backend),
            project=project,
            options=options or BuildOptions(concurrency=settings.concurrency),
            default_node_version=settings.default_node_version,
        )

    # ── single function ──────────────────────────────────────────────────

    async def bundle_function(self, descriptor: FunctionDescriptor) -> FunctionBuildResult:
        """Run one function through the pipeline. Failures land in the result."""
        progress = FunctionProgress(descriptor.name)
        result = FunctionBuildResult(function_name=descriptor.name, state=progress.state)
        runtime = descriptor.runtime.value
        log_ctx = log.bind(function=descriptor.name)

        try:
            # Format and target are resolved once here and passed down explicitly.
            progress.advance(PipelineState.RESOLVING)
            with attribute_errors(function_name=descriptor.name, runtime=runtime):
                module_format = resolve_module_format(descriptor, self.project)
                target = resolve_target(descriptor.node_version, self.default_node_version)
            result.module_format = module_format
            result.target = target

            progress.advance(
                PipelineState.SELECTING,
                detail=f"format={module_format.value}, target={target}",
            )
            with attribute_errors(function_name=descriptor.name, runtime=runtime):
                decision = select_strategy(
                    descriptor, module_format, target, self.options, self.project
                )
            result.strategy = decision.strategy
            result.strategy_reason = decision.reason

            progress.advance(PipelineState.TRANSPILING, detail=decision.strategy.value)
            with attribute_errors(
                function_name=descriptor.name,
                runtime=runtime,
                strategy=decision.strategy.value,
            ):
                result.output = await self._run_strategy(
                    descriptor, decision.strategy, module_format, target
                )
            progress.advance(PipelineState.SUCCEEDED)
            log_ctx.info(
                "pipeline.function_succeeded",
                strategy=decision.strategy.value,
                target=target,
                format=module_format.value,
            )
        except BundlingError as exc:
            progress.fail(exc.message)
            result.error = exc
            log_ctx.warning("pipeline.function_failed", **exc.to_record())

        result.state = progress.state
        result.progress = progress.get_summary()
        return result

    async def _run_strategy(
        self,
        descriptor: FunctionDescriptor,
        strategy: BundlingStrategy,
        module_format: ModuleFormat,
        target: str,
    ) -> TranspileResult:
        if strategy is BundlingStrategy.LEGACY_PACKAGER:
            return await self._passthrough(descriptor)

        request = TranspileRequest.build(
            path=descriptor.path,
            format=module_format,
            target=target,
            sourcemap=descriptor.sourcemap,
            tsconfig=self.project.tsconfig,
            external_modules=self.options.externals_for(descriptor),
        )
        if strategy is BundlingStrategy.TRANSPILE_AND_BUNDLE:
            return await self.transpiler.transpile_and_bundle(request)
        return await self.transpiler.transpile_only(request)

    @staticmethod
    async def _passthrough(descriptor: FunctionDescriptor) -> TranspileResult:
        """Legacy packager: hand the source through untouched."""
        try:
            code = await asyncio.to_thread(Path(descriptor.path).read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigurationError(
                f"Cannot read function source {descriptor.path}",
                diagnostic=str(exc),
            ) from exc
        return TranspileResult(code=code)

    # ── whole build ──────────────────────────────────────────────────────

    async def bundle_all(
        self,
        descriptors: Sequence[FunctionDescriptor],
    ) -> list[FunctionBuildResult]:
        """Bundle every function with bounded concurrency.

        Results are returned in input order. Duplicate names fail every
        occurrence after the first.
        """
        sem = asyncio.Semaphore(self.options.concurrency)
        seen: set[str] = set()

        async def _run(desc: FunctionDescriptor) -> FunctionBuildResult:
            async with sem:
                return await self.bundle_function(desc)

        async def _duplicate(desc: FunctionDescriptor) -> FunctionBuildResult:
            error = ConfigurationError(f"Duplicate function name '{desc.name}' in build")
            error.add_custom_error_info(
                function_name=desc.name,
                runtime=desc.runtime.value,
                strategy=UNSELECTED_STRATEGY,
            )
            return _failed(desc, error)

        coros = []
        for desc in descriptors:
            if desc.name in seen:
                coros.append(_duplicate(desc))
            else:
                seen.add(desc.name)
                coros.append(_run(desc))

        gathered = await asyncio.gather(*coros, return_exceptions=True)

        results: list[FunctionBuildResult] = []
        for desc, item in zip(descriptors, gathered):
            if isinstance(item, FunctionBuildResult):
                results.append(item)
                continue
            if not isinstance(item, Exception):
                raise item
            log.error("pipeline.function_crashed", function=desc.name, exc_info=item)
            error = TranspilationError(
                f"Unexpected {type(item).__name__} while bundling",
                diagnostic=str(item) or repr(item),
            )
            error.__cause__ = item
            error.add_custom_error_info(
                function_name=desc.name,
                runtime=desc.runtime.value,
                strategy=UNSELECTED_STRATEGY,
            )
            results.append(_failed(desc, error))

        failed = [r.function_name for r in results if not r.succeeded]
        log.info(
            "pipeline.build_done",
            total=len(results),
            succeeded=len(results) - len(failed),
            failed=len(failed),
        )
        return results


def _failed(descriptor: FunctionDescriptor, error: BundlingError) -> FunctionBuildResult:
    progress = FunctionProgress(descriptor.name)
    progress.fail(error.message)
    return FunctionBuildResult(
        function_name=descriptor.name,
        state=progress.state,
        error=error,
        progress=progress.get_summary(),
    )
