"""Error enrichment — attach function attribution to failures.

The original exception object is re-raised, so its class, message and
diagnostic are unchanged. Foreign exceptions are wrapped in a
TranspilationError that chains the original as ``__cause__``.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from fnbundle.exceptions import BundlingError, TranspilationError

UNSELECTED_STRATEGY = "unselected"


@contextmanager
def attribute_errors(
    *,
    function_name: str,
    runtime: str,
    strategy: str = UNSELECTED_STRATEGY,
) -> Iterator[None]:
    try:
        yield
    except BundlingError as exc:
        exc.add_custom_error_info(
            function_name=function_name, runtime=runtime, strategy=strategy
        )
        raise
    except Exception as exc:
        wrapped = TranspilationError(
            f"Unexpected {type(exc).__name__} while bundling",
            diagnostic=str(exc) or repr(exc),
        )
        wrapped.add_custom_error_info(
            function_name=function_name, runtime=runtime, strategy=strategy
        )
        raise wrapped from exc
