"""Configuration surface consumed by the bundler (read-only)."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from fnbundle.exceptions import ConfigurationError
from fnbundle.models.function import BundlingStrategy, ModuleFormat
from fnbundle.resolvers.target import DEFAULT_NODE_VERSION

_PACKAGE_NAME_CHARS = frozenset("abcdefghijklmnopqrstuvwxyz0123456789-._~@/")


class FunctionConfig(BaseModel):
    """Per-function configuration as declared by the user."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    node_version: str | None = None
    node_module_format: ModuleFormat | None = None
    node_bundler: BundlingStrategy | None = None
    bundle: bool | None = None
    node_sourcemap: bool = False
    external_node_modules: list[str] = Field(default_factory=list)

    @field_validator("node_version", mode="before")
    @classmethod
    def _stringify_version(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("external_node_modules")
    @classmethod
    def _check_package_names(cls, v: list[str]) -> list[str]:
        for name in v:
            if not name or not set(name.lower()) <= _PACKAGE_NAME_CHARS:
                raise ValueError(f"invalid package name: {name!r}")
        return v

    @classmethod
    def parse(cls, raw: Mapping[str, Any] | None) -> FunctionConfig:
        """Validate a raw config mapping, raising ConfigurationError on failure."""
        try:
            return cls.model_validate(dict(raw or {}))
        except ValidationError as exc:
            messages = []
            for err in exc.errors():
                loc = ".".join(str(part) for part in err["loc"])
                messages.append(f"{loc}: {err['msg']}" if loc else err["msg"])
            raise ConfigurationError(
                "Invalid function configuration: " + "; ".join(messages)
            ) from exc


@dataclass(frozen=True)
class BuildSettings:
    """Process-wide settings read from environment variables."""

    esbuild_binary: str = "esbuild"
    esbuild_timeout: float = 120.0
    concurrency: int = 8
    default_node_version: int = DEFAULT_NODE_VERSION

    @classmethod
    def from_env(cls) -> BuildSettings:
        """
        Reads:
            FNBUNDLE_ESBUILD_BINARY       — esbuild executable (default: esbuild)
            FNBUNDLE_ESBUILD_TIMEOUT      — seconds per compiler run (default: 120)
            FNBUNDLE_CONCURRENCY          — parallel function pipelines (default: 8)
            FNBUNDLE_DEFAULT_NODE_VERSION — node major when none declared (default: 18)
        """
        try:
            settings = cls(
                esbuild_binary=os.environ.get("FNBUNDLE_ESBUILD_BINARY", "esbuild"),
                esbuild_timeout=float(os.environ.get("FNBUNDLE_ESBUILD_TIMEOUT", "120")),
                concurrency=int(os.environ.get("FNBUNDLE_CONCURRENCY", "8")),
                default_node_version=int(
                    os.environ.get("FNBUNDLE_DEFAULT_NODE_VERSION", str(DEFAULT_NODE_VERSION))
                ),
            )
        except ValueError as exc:
            raise ConfigurationError(f"Invalid fnbundle environment setting: {exc}") from exc
        if settings.concurrency < 1:
            raise ConfigurationError("FNBUNDLE_CONCURRENCY must be at least 1")
        if settings.esbuild_timeout <= 0:
            raise ConfigurationError("FNBUNDLE_ESBUILD_TIMEOUT must be positive")
        return settings
