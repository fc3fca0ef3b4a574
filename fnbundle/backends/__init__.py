from fnbundle.backends.base import BackendFailure, CompilerBackend
from fnbundle.backends.esbuild_backend import EsbuildBackend
from fnbundle.backends.registry import (
    BackendCapability,
    BackendDescriptor,
    BackendRegistry,
    create_default_registry,
)

__all__ = [
    "BackendCapability",
    "BackendDescriptor",
    "BackendFailure",
    "BackendRegistry",
    "CompilerBackend",
    "EsbuildBackend",
    "create_default_registry",
]
