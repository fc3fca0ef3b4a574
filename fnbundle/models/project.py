"""Project-level metadata supplied by the config-loading collaborator."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from fnbundle.exceptions import ConfigurationError
from fnbundle.models.function import ModuleFormat

_PACKAGE_TYPES: dict[str, ModuleFormat] = {
    "module": ModuleFormat.ESM,
    "commonjs": ModuleFormat.COMMONJS,
}


@dataclass(frozen=True)
class ProjectMetadata:
    module_format: ModuleFormat | None = None  # explicit project-wide declaration
    tsconfig: Mapping[str, Any] | None = field(default=None, hash=False)

    @classmethod
    def from_package_json(
        cls,
        package_json: Mapping[str, Any],
        tsconfig: Mapping[str, Any] | None = None,
    ) -> ProjectMetadata:
        """Read the ``type`` field of an already-parsed package.json."""
        pkg_type = package_json.get("type")
        if pkg_type is None:
            return cls(module_format=None, tsconfig=tsconfig)
        if pkg_type not in _PACKAGE_TYPES:
            raise ConfigurationError(
                f"Unknown package.json type '{pkg_type}' (expected 'module' or 'commonjs')"
            )
        return cls(module_format=_PACKAGE_TYPES[pkg_type], tsconfig=tsconfig)
