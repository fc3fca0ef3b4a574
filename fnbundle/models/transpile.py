"""Request/result value objects exchanged with the transpiler service."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from fnbundle.models.function import ModuleFormat


@dataclass(frozen=True)
class TranspileRequest:
    """
    One compiler invocation.
    Built fresh for every call and never mutated; derive variants with
    ``dataclasses.replace``.
    """

    path: str
    format: ModuleFormat
    target: str  # e.g. "node18"
    bundle: bool = False
    sourcemap: bool = False
    tsconfig_raw: str | None = None  # serialized compiler configuration
    external_modules: tuple[str, ...] = ()

    @classmethod
    def build(
        cls,
        *,
        path: str,
        format: ModuleFormat,
        target: str,
        bundle: bool = False,
        sourcemap: bool = False,
        tsconfig: Mapping[str, Any] | None = None,
        external_modules: Iterable[str] = (),
    ) -> TranspileRequest:
        return cls(
            path=path,
            format=format,
            target=target,
            bundle=bundle,
            sourcemap=sourcemap,
            tsconfig_raw=json.dumps(tsconfig, sort_keys=True) if tsconfig else None,
            external_modules=tuple(sorted(set(external_modules))),
        )


@dataclass(frozen=True)
class TranspileResult:
    """Compiler output for one function, owned by whoever receives it."""

    code: str
    source_map: str | None = None
    warnings: tuple[str, ...] = ()
