from fnbundle.resolvers.module_format import (
    explain_module_format,
    resolve_module_format,
    source_module_format,
)
from fnbundle.resolvers.target import resolve_target, supports_native_bundling

__all__ = [
    "explain_module_format",
    "resolve_module_format",
    "resolve_target",
    "source_module_format",
    "supports_native_bundling",
]
