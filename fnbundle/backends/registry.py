"""Backend registry — plugin-style compiler backend discovery."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

import structlog

from fnbundle.backends.base import CompilerBackend
from fnbundle.exceptions import BackendNotFoundError
from fnbundle.models.function import ModuleFormat

log = structlog.get_logger("fnbundle.backend")


class BackendCapability(Enum):
    """Compiler capabilities."""

    TRANSPILE = "transpile"
    BUNDLE = "bundle"
    SOURCEMAP = "sourcemap"
    TSCONFIG_RAW = "tsconfig_raw"
    TYPESCRIPT = "typescript"


@dataclass
class BackendDescriptor:
    """Backend capability declaration."""

    name: str
    supported_formats: set[ModuleFormat]
    capabilities: set[BackendCapability]
    factory: Callable[[], CompilerBackend]


class BackendRegistry:
    """Backend registration center. Registration order is preference order."""

    def __init__(self) -> None:
        self._backends: dict[str, BackendDescriptor] = {}

    def register(self, descriptor: BackendDescriptor) -> None:
        self._backends[descriptor.name] = descriptor
        log.debug("backend.registered", backend=descriptor.name)

    def get(self, name: str) -> BackendDescriptor | None:
        return self._backends.get(name)

    def list_all(self) -> list[BackendDescriptor]:
        return list(self._backends.values())

    def find_by_capability(self, cap: BackendCapability) -> list[BackendDescriptor]:
        return [d for d in self._backends.values() if cap in d.capabilities]

    def find_best_backend(
        self,
        required: set[BackendCapability] | None = None,
        formats: set[ModuleFormat] | None = None,
    ) -> CompilerBackend:
        """
        Return the first registered backend that has every required
        capability, emits every requested module format and whose
        prerequisites are met.

        Raises:
            BackendNotFoundError: No backend qualifies.
        """
        required = required or set()
        formats = formats or set()
        for desc in self._backends.values():
            if not required <= desc.capabilities:
                continue
            if not formats <= desc.supported_formats:
                continue
            backend = desc.factory()
            missing = backend.check_prerequisites()
            if not missing:
                log.info("backend.selected", backend=desc.name)
                return backend
            log.info("backend.prerequisites_missing", backend=desc.name, missing=missing)
        raise BackendNotFoundError(
            "No compiler backend available with capabilities "
            f"{sorted(c.value for c in required)}"
            f" and formats {sorted(f.value for f in formats)}"
        )


def create_default_registry(
    esbuild_binary: str = "esbuild",
    esbuild_timeout: float = 120.0,
) -> BackendRegistry:
    """Create registry with esbuild registered."""
    from fnbundle.backends.esbuild_backend import EsbuildBackend

    registry = BackendRegistry()
    registry.register(
        BackendDescriptor(
            name="esbuild",
            supported_formats={ModuleFormat.COMMONJS, ModuleFormat.ESM},
            capabilities={
                BackendCapability.TRANSPILE,
                BackendCapability.BUNDLE,
                BackendCapability.SOURCEMAP,
                BackendCapability.TSCONFIG_RAW,
                BackendCapability.TYPESCRIPT,
            },
            factory=lambda: EsbuildBackend(binary=esbuild_binary, timeout=esbuild_timeout),
        )
    )
    return registry
