"""Target resolution: runtime version constraint -> compiler target.

The target decides which language features the compiler may leave
untransformed. Resolution is a pure function of the constraint, so the same
constraint always yields the same target within a build and across builds.
"""

from __future__ import annotations

import re

from fnbundle.exceptions import ConfigurationError

DEFAULT_NODE_VERSION = 18
LATEST_NODE_VERSION = 22
NATIVE_BUNDLING_MIN_VERSION = 14

_LATEST_ALIASES = frozenset({"latest", "current"})

# One comparator: optional operator, optional node/nodejs/v prefix,
# major with optional minor/patch (digits or x/*), optional .x suffix.
# Examples: "18", "18.x", "nodejs18.x", "v18.2.0", ">=16", "^18.1"
_COMPARATOR_RE = re.compile(
    r"^(?P<op>>=|<=|>|<|\^|~|=)?\s*"
    r"(?:nodejs|node|v)?"
    r"(?P<major>\d+)"
    r"(?P<rest>(?:\.(?:\d+|x|X|\*)){0,2})$"
)
_HYPHEN_RE = re.compile(r"^(?P<low>\S+)\s+-\s+(?P<high>\S+)$")
_TARGET_RE = re.compile(r"^node(\d+)$")
_OPERATOR_SPACE_RE = re.compile(r"(>=|<=|>|<|\^|~|=)\s+")
_WILDCARD_REST_RE = re.compile(r"^(?:\.(?:x|X|\*))*$")
_ZERO_REST_RE = re.compile(r"^(?:\.0)*$")


def resolve_target(
    constraint: str | int | None,
    default: int = DEFAULT_NODE_VERSION,
) -> str:
    """
    Resolve a runtime version constraint to a compiler target.

    Args:
        constraint: Version constraint or alias. ``None``/empty uses *default*.
        default: Node major used when no constraint is declared.

    Returns:
        Target identifier understood by the backend, e.g. ``"node18"``.

    Raises:
        ConfigurationError: The constraint is syntactically invalid or has
            no lower bound.
    """
    return f"node{resolve_major(constraint, default)}"


def resolve_major(constraint: str | int | None, default: int = DEFAULT_NODE_VERSION) -> int:
    if constraint is None:
        return default
    if isinstance(constraint, bool):
        raise ConfigurationError(f"Invalid runtime version constraint: {constraint!r}")
    if isinstance(constraint, int):
        if constraint <= 0:
            raise ConfigurationError(f"Invalid runtime version constraint: {constraint!r}")
        return constraint
    if not isinstance(constraint, str):
        raise ConfigurationError(f"Invalid runtime version constraint: {constraint!r}")

    text = _OPERATOR_SPACE_RE.sub(r"\1", constraint.strip())
    if not text:
        return default
    if text.lower() in _LATEST_ALIASES:
        return LATEST_NODE_VERSION

    # Union: the lowest alternative is the safest compile target
    if "||" in text:
        alternatives = [part.strip() for part in text.split("||")]
        if any(not part for part in alternatives):
            raise ConfigurationError(f"Invalid runtime version constraint: {constraint!r}")
        return min(_resolve_range(part, constraint) for part in alternatives)
    return _resolve_range(text, constraint)


def _resolve_range(text: str, original: str) -> int:
    hyphen = _HYPHEN_RE.match(text)
    if hyphen:
        low = _resolve_comparator(hyphen.group("low"), original)
        high = _resolve_comparator(hyphen.group("high"), original)
        if high < low:
            raise ConfigurationError(f"Empty version range: {original!r}")
        return low

    # Space-separated comparators form an intersection (">=16 <20")
    parts = text.split()
    lower_bounds = [
        _resolve_comparator(part, original)
        for part in parts
        if not part.startswith("<")
    ]
    upper_bounds = [
        _upper_bound(part, original)
        for part in parts
        if part.startswith("<")
    ]
    if not lower_bounds:
        raise ConfigurationError(f"Runtime version constraint has no lower bound: {original!r}")
    low = max(lower_bounds)
    if upper_bounds and low > min(upper_bounds):
        raise ConfigurationError(f"Empty version range: {original!r}")
    return low


def _parse_comparator(text: str, original: str) -> tuple[str, int, str]:
    match = _COMPARATOR_RE.match(text)
    if not match:
        raise ConfigurationError(f"Invalid runtime version constraint: {original!r}")
    major = int(match.group("major"))
    if major <= 0:
        raise ConfigurationError(f"Invalid runtime version constraint: {original!r}")
    return match.group("op") or "=", major, match.group("rest")


def _resolve_comparator(text: str, original: str) -> int:
    """Lowest major a single lower-bound comparator admits."""
    op, major, rest = _parse_comparator(text, original)
    if op in ("<", "<="):
        raise ConfigurationError(f"Runtime version constraint has no lower bound: {original!r}")
    # ">18" and ">18.x" both exclude every 18.* release
    if op == ">" and _WILDCARD_REST_RE.match(rest):
        return major + 1
    return major


def _upper_bound(text: str, original: str) -> int:
    """Highest major a single ``<``/``<=`` comparator admits."""
    op, major, rest = _parse_comparator(text, original)
    # "<20" and "<20.0.0" stop before any 20.* release
    if op == "<" and _ZERO_REST_RE.match(rest):
        return major - 1
    return major


def target_major(target: str) -> int:
    """Inverse of :func:`resolve_target` for ``node<N>`` targets."""
    match = _TARGET_RE.match(target)
    if not match:
        raise ConfigurationError(f"Unrecognized compiler target: {target!r}")
    return int(match.group(1))


def supports_native_bundling(target: str) -> bool:
    return target_major(target) >= NATIVE_BUNDLING_MIN_VERSION
