"""Custom exceptions for fnbundle.

Every error raised by the core is function-scoped. The enrichment layer
attaches ``function_name``, ``runtime`` and ``strategy`` before the error
leaves a function's pipeline.
"""

from __future__ import annotations

from typing import Any


class BundlingError(Exception):
    """Base exception for all bundling errors."""

    category = "bundling"

    def __init__(self, message: str, *, diagnostic: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.diagnostic = diagnostic if diagnostic is not None else message
        self.function_name: str | None = None
        self.runtime: str | None = None
        self.strategy: str | None = None

    @property
    def is_attributed(self) -> bool:
        return bool(self.function_name and self.runtime and self.strategy)

    def add_custom_error_info(
        self,
        *,
        function_name: str,
        runtime: str,
        strategy: str,
    ) -> BundlingError:
        """Attach attribution context. Fields that are already set win."""
        self.function_name = self.function_name or function_name
        self.runtime = self.runtime or runtime
        self.strategy = self.strategy or strategy
        return self

    def to_record(self) -> dict[str, Any]:
        return {
            "type": type(self).__name__,
            "category": self.category,
            "function_name": self.function_name,
            "runtime": self.runtime,
            "strategy": self.strategy,
            "message": self.message,
            "diagnostic": self.diagnostic,
        }

    def __str__(self) -> str:
        if not self.function_name:
            return self.message
        return (
            f"{self.message} (function={self.function_name}, "
            f"runtime={self.runtime}, strategy={self.strategy})"
        )


class ConfigurationError(BundlingError):
    """Raised when an input combination is invalid or cannot be resolved."""

    category = "configuration"


class BackendNotFoundError(ConfigurationError):
    """Raised when no usable compiler backend is available."""


class TranspilationError(BundlingError):
    """Raised when the compiler backend rejects the source."""

    category = "transpilation"


class UnsupportedTargetError(TranspilationError, ConfigurationError):
    """Raised when a target/format pairing has no backend support.

    Caught as a ``TranspilationError`` but reported as a configuration failure.
    """

    category = "configuration"
