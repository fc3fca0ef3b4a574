"""Bundling strategy selection — a total decision table.

Every combination of (override, bundle toggle, externals, native bundling
support, source format, output format, source shape) maps to exactly one
strategy or to a ConfigurationError. The branch that fired is recorded in
the decision.

The legacy packager ships the entry source untouched, so it is only ever
chosen when the source is plain CommonJS JavaScript and the output is
CommonJS too.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from fnbundle.exceptions import ConfigurationError
from fnbundle.models.function import BundlingStrategy, FunctionDescriptor, ModuleFormat
from fnbundle.models.project import ProjectMetadata
from fnbundle.resolvers.module_format import source_module_format
from fnbundle.resolvers.target import supports_native_bundling

log = structlog.get_logger("fnbundle.strategy")


@dataclass(frozen=True)
class BuildOptions:
    """Build-wide options shared by every function pipeline."""

    default_bundler: BundlingStrategy | None = None
    external_modules: tuple[str, ...] = ()
    concurrency: int = 8

    def externals_for(self, descriptor: FunctionDescriptor) -> tuple[str, ...]:
        return tuple(sorted(set(self.external_modules) | set(descriptor.external_modules)))


@dataclass(frozen=True)
class StrategyDecision:
    strategy: BundlingStrategy
    reason: str  # decision-table branch that fired


@dataclass(frozen=True)
class _Shape:
    source_format: ModuleFormat
    output_format: ModuleFormat
    typescript: bool

    @property
    def passthrough_ok(self) -> bool:
        return (
            not self.typescript
            and self.source_format is ModuleFormat.COMMONJS
            and self.output_format is ModuleFormat.COMMONJS
        )


def select_strategy(
    descriptor: FunctionDescriptor,
    module_format: ModuleFormat,
    target: str,
    options: BuildOptions | None = None,
    project: ProjectMetadata | None = None,
) -> StrategyDecision:
    """
    Choose the bundling strategy for one function.

    Args:
        descriptor: The function being built.
        module_format: Already-resolved output format.
        target: Already-resolved compiler target.
        options: Build-wide options.
        project: Project metadata; its package.json ``type`` decides the
            source format of ``.js``/``.ts`` entry files.

    Raises:
        ConfigurationError: The inputs map to no strategy.
    """
    options = options or BuildOptions()
    shape = _Shape(
        source_format=source_module_format(descriptor, project),
        output_format=module_format,
        typescript=descriptor.is_typescript,
    )
    decision = _decide(descriptor, shape, target, options)
    log.info(
        "strategy.selected",
        function=descriptor.name,
        strategy=decision.strategy.value,
        reason=decision.reason,
        source_format=shape.source_format.value,
    )
    return decision


def _decide(
    descriptor: FunctionDescriptor,
    shape: _Shape,
    target: str,
    options: BuildOptions,
) -> StrategyDecision:
    has_externals = bool(options.externals_for(descriptor))
    native = supports_native_bundling(target)

    # Rule 1: explicit override
    override = descriptor.bundler or options.default_bundler
    if override is not None:
        return _check_override(descriptor, override, shape, native, has_externals)

    # Rule 2: bundling explicitly enabled
    if descriptor.bundle is True:
        return _bundled(descriptor, shape, native, "bundle_enabled")

    # Rule 3: bundling explicitly disabled
    if descriptor.bundle is False:
        if has_externals:
            raise ConfigurationError(
                f"Function '{descriptor.name}' declares external modules "
                "but bundling is disabled"
            )
        return StrategyDecision(BundlingStrategy.TRANSPILE_ONLY, "bundle_disabled")

    # Rule 4: no toggle, decide from the source shape
    if has_externals:
        return _bundled(descriptor, shape, native, "externals_declared")
    if shape.typescript:
        return StrategyDecision(BundlingStrategy.TRANSPILE_ONLY, "typescript_source")
    if shape.source_format is not shape.output_format:
        return StrategyDecision(BundlingStrategy.TRANSPILE_ONLY, "format_conversion")
    if shape.output_format is ModuleFormat.ESM:
        return StrategyDecision(BundlingStrategy.TRANSPILE_ONLY, "esm_output")
    return StrategyDecision(BundlingStrategy.LEGACY_PACKAGER, "plain_javascript")


def _bundled(
    descriptor: FunctionDescriptor,
    shape: _Shape,
    native: bool,
    reason: str,
) -> StrategyDecision:
    if native:
        return StrategyDecision(BundlingStrategy.TRANSPILE_AND_BUNDLE, reason)
    if shape.passthrough_ok:
        return StrategyDecision(BundlingStrategy.LEGACY_PACKAGER, f"{reason}_no_native_bundling")
    raise ConfigurationError(
        f"Function '{descriptor.name}' needs bundling but its runtime does not "
        f"support native module bundling for {shape.output_format.value} output"
    )


def _check_override(
    descriptor: FunctionDescriptor,
    override: BundlingStrategy,
    shape: _Shape,
    native: bool,
    has_externals: bool,
) -> StrategyDecision:
    if override is BundlingStrategy.LEGACY_PACKAGER:
        if shape.output_format is ModuleFormat.ESM:
            raise ConfigurationError(
                f"Function '{descriptor.name}': legacy packager cannot emit ES modules"
            )
        if shape.typescript:
            raise ConfigurationError(
                f"Function '{descriptor.name}': legacy packager cannot compile TypeScript"
            )
        if shape.source_format is ModuleFormat.ESM:
            raise ConfigurationError(
                f"Function '{descriptor.name}': legacy packager cannot convert "
                "ES module source to CommonJS"
            )
    elif override is BundlingStrategy.TRANSPILE_ONLY:
        if has_externals:
            raise ConfigurationError(
                f"Function '{descriptor.name}': external modules require a bundling strategy"
            )
    elif override is BundlingStrategy.TRANSPILE_AND_BUNDLE:
        if not native:
            raise ConfigurationError(
                f"Function '{descriptor.name}': runtime does not support native module bundling"
            )
    return StrategyDecision(override, "override")
