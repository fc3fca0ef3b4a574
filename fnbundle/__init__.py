"""fnbundle: bundling and transpilation core for serverless functions."""

__version__ = "0.1.0"

from fnbundle.backends.base import BackendFailure, CompilerBackend
from fnbundle.backends.esbuild_backend import EsbuildBackend
from fnbundle.config import BuildSettings, FunctionConfig
from fnbundle.core.logging import setup_logging
from fnbundle.enrichment import attribute_errors
from fnbundle.exceptions import (
    BackendNotFoundError,
    BundlingError,
    ConfigurationError,
    TranspilationError,
    UnsupportedTargetError,
)
from fnbundle.models import (
    BundlingStrategy,
    FunctionDescriptor,
    ModuleFormat,
    ProjectMetadata,
    Runtime,
    TranspileRequest,
    TranspileResult,
)
from fnbundle.pipeline import BundlingPipeline, FunctionBuildResult
from fnbundle.progress import PipelineState
from fnbundle.report import BuildReport
from fnbundle.resolvers import resolve_module_format, resolve_target
from fnbundle.strategy import BuildOptions, StrategyDecision, select_strategy
from fnbundle.transpiler import TranspilerService

__all__ = [
    "BackendFailure",
    "BackendNotFoundError",
    "BuildOptions",
    "BuildReport",
    "BuildSettings",
    "BundlingError",
    "BundlingPipeline",
    "BundlingStrategy",
    "CompilerBackend",
    "ConfigurationError",
    "EsbuildBackend",
    "FunctionBuildResult",
    "FunctionConfig",
    "FunctionDescriptor",
    "ModuleFormat",
    "PipelineState",
    "ProjectMetadata",
    "Runtime",
    "StrategyDecision",
    "TranspilationError",
    "TranspileRequest",
    "TranspileResult",
    "TranspilerService",
    "UnsupportedTargetError",
    "attribute_errors",
    "resolve_module_format",
    "resolve_target",
    "select_strategy",
    "setup_logging",
]
