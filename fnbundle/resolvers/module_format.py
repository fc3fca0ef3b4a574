"""Module format resolution with a fixed precedence order.

Layer 1: explicit per-function override.
Layer 2: explicit project-level declaration (package.json ``type``).
Layer 3: file extension convention (.mjs/.mts, .cjs/.cts).
Layer 4: default CommonJS.
"""

from __future__ import annotations

import structlog

from fnbundle.models.function import FunctionDescriptor, ModuleFormat
from fnbundle.models.project import ProjectMetadata

log = structlog.get_logger("fnbundle.resolver")

DEFAULT_MODULE_FORMAT = ModuleFormat.COMMONJS


def explain_module_format(
    descriptor: FunctionDescriptor,
    project: ProjectMetadata | None = None,
) -> tuple[ModuleFormat, str]:
    """Return the resolved format and the layer that decided it."""
    if descriptor.module_format is not None:
        return descriptor.module_format, "function_override"
    if project is not None and project.module_format is not None:
        return project.module_format, "project_declaration"
    from_extension = descriptor.extension_format
    if from_extension is not None:
        return from_extension, "extension"
    return DEFAULT_MODULE_FORMAT, "default"


def resolve_module_format(
    descriptor: FunctionDescriptor,
    project: ProjectMetadata | None = None,
) -> ModuleFormat:
    module_format, source = explain_module_format(descriptor, project)
    log.debug(
        "resolver.module_format",
        function=descriptor.name,
        format=module_format.value,
        source=source,
    )
    return module_format


def source_module_format(
    descriptor: FunctionDescriptor,
    project: ProjectMetadata | None = None,
) -> ModuleFormat:
    """Module system the source file is written in, before any override.

    An explicit extension decides. Otherwise the file follows the project's
    package.json ``type`` the same way the runtime would load it.
    """
    from_extension = descriptor.extension_format
    if from_extension is not None:
        return from_extension
    if project is not None and project.module_format is not None:
        return project.module_format
    return DEFAULT_MODULE_FORMAT
