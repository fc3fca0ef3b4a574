"""Function descriptor and the enums shared across the pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from fnbundle.exceptions import ConfigurationError

if TYPE_CHECKING:
    from fnbundle.config import FunctionConfig


class Runtime(Enum):
    """Runtime identifier attached to errors and results."""

    JAVASCRIPT = "js"


class ModuleFormat(Enum):
    """Module system of the emitted code."""

    COMMONJS = "cjs"
    ESM = "esm"


class BundlingStrategy(Enum):
    """How a function's deployable output is produced."""

    TRANSPILE_ONLY = "transpile-only"
    TRANSPILE_AND_BUNDLE = "transpile-and-bundle"
    LEGACY_PACKAGER = "legacy-packager"


TYPESCRIPT_EXTENSIONS = frozenset({".ts", ".tsx", ".mts", ".cts"})
ESM_EXTENSIONS = frozenset({".mjs", ".mts"})
COMMONJS_EXTENSIONS = frozenset({".cjs", ".cts"})


@dataclass(frozen=True)
class FunctionDescriptor:
    """One discovered function. Read-only for the rest of the build."""

    name: str
    path: str  # absolute path to the entry file
    runtime: Runtime = Runtime.JAVASCRIPT
    node_version: str | None = None
    module_format: ModuleFormat | None = None
    sourcemap: bool = False
    bundle: bool | None = None
    bundler: BundlingStrategy | None = None
    external_modules: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigurationError("Function name must not be empty")
        if not Path(self.path).is_absolute():
            raise ConfigurationError(
                f"Function '{self.name}' source path must be absolute: {self.path}"
            )

    @property
    def extension(self) -> str:
        return Path(self.path).suffix.lower()

    @property
    def is_typescript(self) -> bool:
        return self.extension in TYPESCRIPT_EXTENSIONS

    @property
    def extension_format(self) -> ModuleFormat | None:
        """Format implied by the file extension alone, if any."""
        if self.extension in ESM_EXTENSIONS:
            return ModuleFormat.ESM
        if self.extension in COMMONJS_EXTENSIONS:
            return ModuleFormat.COMMONJS
        return None

    @classmethod
    def from_config(cls, name: str, path: str, config: FunctionConfig) -> FunctionDescriptor:
        return cls(
            name=name,
            path=path,
            node_version=config.node_version,
            module_format=config.node_module_format,
            sourcemap=config.node_sourcemap,
            bundle=config.bundle,
            bundler=config.node_bundler,
            external_modules=tuple(config.external_node_modules),
        )
