from fnbundle.models.function import (
    BundlingStrategy,
    FunctionDescriptor,
    ModuleFormat,
    Runtime,
)
from fnbundle.models.project import ProjectMetadata
from fnbundle.models.transpile import TranspileRequest, TranspileResult

__all__ = [
    "BundlingStrategy",
    "FunctionDescriptor",
    "ModuleFormat",
    "ProjectMetadata",
    "Runtime",
    "TranspileRequest",
    "TranspileResult",
]
