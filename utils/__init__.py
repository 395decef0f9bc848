"""Shared utilities for the backend."""
from utils.case import MISSING, camel_path, canonical_names, lookup_path, to_camel_key

__all__ = [
    "MISSING",
    "camel_path",
    "canonical_names",
    "lookup_path",
    "to_camel_key",
]
