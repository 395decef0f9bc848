"""
Key-case and key-path helpers shared by the reconciliation layer.
Uses Pydantic's alias_generators so derived camelCase names match the ones the schemas serialize.
"""
from typing import Any, Mapping

from pydantic.alias_generators import to_camel

_MISSING = object()


def to_camel_key(s: str) -> str:
    """Convert a single snake_case key to camelCase (first letter lower)."""
    return to_camel(s)


def camel_path(path: str) -> str:
    """camelCase every segment of a dotted path: 'loan_range.min' -> 'loanRange.min'."""
    return ".".join(to_camel_key(part) for part in path.split("."))


def canonical_names(path: str) -> tuple[str, ...]:
    """The snake and camel spellings of a canonical field path, without duplicates."""
    camel = camel_path(path)
    return (path,) if camel == path else (path, camel)


def lookup_path(obj: Any, path: str) -> Any:
    """
    Resolve a dotted key path inside nested mappings.
    Returns the sentinel MISSING when any segment is absent or a non-mapping is crossed.
    """
    current = obj
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return _MISSING
        current = current.get(part, _MISSING)
        if current is _MISSING:
            return _MISSING
    return current


MISSING = _MISSING
