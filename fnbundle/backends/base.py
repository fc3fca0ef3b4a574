"""Abstract base class for compiler backends."""

from __future__ import annotations

from abc import ABC, abstractmethod

from fnbundle.models.function import ModuleFormat
from fnbundle.models.transpile import TranspileRequest, TranspileResult


class BackendFailure(Exception):
    """
    Raised by a backend when the compiler rejects a request.
    Carries the compiler's own diagnostic text verbatim.
    """

    def __init__(
        self,
        diagnostic: str,
        returncode: int | None = None,
        unsupported_target: bool = False,
    ) -> None:
        self.diagnostic = diagnostic
        self.returncode = returncode
        self.unsupported_target = unsupported_target
        super().__init__(diagnostic)


class CompilerBackend(ABC):
    """
    Abstract base class for compiler backends.
    A backend compiles exactly one entry file per call and never writes to disk.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier, e.g. 'esbuild'."""
        ...

    @property
    @abstractmethod
    def supported_formats(self) -> set[ModuleFormat]:
        ...

    @abstractmethod
    def supports_target(self, target: str) -> bool:
        ...

    @abstractmethod
    async def compile(self, request: TranspileRequest) -> TranspileResult:
        """
        Compile one request.

        Bundles local dependencies iff ``request.bundle`` is true, leaving
        packages and ``request.external_modules`` as external references.

        Raises:
            BackendFailure: The compiler rejected the source or target.
        """
        ...

    def check_prerequisites(self) -> list[str]:
        """
        Check prerequisites.
        Returns list of missing items (empty = can run).
        """
        return []
