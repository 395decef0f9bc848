"""
Field reconciliation: resolve one canonical value from the many field names that
different API versions and forms have used for it.

Every function here is pure and total. Nothing raises on unexpected input;
values that cannot be read resolve to None.
"""
from __future__ import annotations

import math
import re
from typing import Any, Iterable, Literal, Optional

from pydantic import BaseModel

from utils.case import MISSING, canonical_names, lookup_path

Kind = Literal["number", "bool", "text", "list"]

_NUMERIC_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_TRUE_STRINGS = {"true", "yes", "y", "1", "on"}
_FALSE_STRINGS = {"false", "no", "n", "0", "off"}


def aliases(canonical: Optional[str], *legacy: str) -> tuple[str, ...]:
    """Build an alias list: canonical snake and camel spellings first, then legacy names in order."""
    names: list[str] = list(canonical_names(canonical)) if canonical else []
    for name in legacy:
        if name not in names:
            names.append(name)
    return tuple(names)


# Lender loan range
LENDER_MIN_AMOUNT = aliases("loan_range.min", "min_loan_amount", "min_amount", "minAmount", "minimum_amount")
LENDER_MAX_AMOUNT = aliases("loan_range.max", "max_loan_amount", "max_amount", "maxAmount", "maximum_amount")

# Product amount range
PRODUCT_MIN_AMOUNT = aliases(
    "amount_range.min", "minimumLendingAmount", "min_amount", "minAmount", "minimum_amount", "amount_min"
)
PRODUCT_MAX_AMOUNT = aliases(
    "amount_range.max", "maximumLendingAmount", "max_amount", "maxAmount", "maximum_amount", "amount_max"
)

# Lender identity and contact. "name" is itself the canonical key.
LENDER_NAME = aliases(None, "company_name", "name", "legal_name", "display_name")
CONTACT_NAME = aliases("contact.name", "contact_name", "contactName")
CONTACT_EMAIL = aliases("contact.email", "contact_email", "email", "contactEmail", "mainContactEmail")
CONTACT_PHONE = aliases("contact.phone", "contact_phone", "phone", "contactPhone", "mainPhone", "mainContactMobile")

RECORD_ID = aliases("id", "_id", "uuid")


def as_mapping(raw: Any) -> Any:
    if isinstance(raw, BaseModel):
        return raw.model_dump()
    return raw


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def coerce_number(value: Any) -> Optional[float | int]:
    """Numbers pass through; numeric-looking strings are parsed; anything else is None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if not isinstance(value, str):
        return None
    text = value.strip().replace(",", "").lstrip("$").strip()
    if not _NUMERIC_RE.match(text):
        return None
    if "." not in text and "e" not in text.lower():
        return int(text)
    number = float(text)
    return number if math.isfinite(number) else None


def coerce_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    return None


def coerce_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def coerce_list(value: Any) -> Optional[list[str]]:
    """Ordered list of non-blank strings with duplicates removed; a comma-separated string is split."""
    if isinstance(value, str):
        items: Iterable[Any] = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        return None
    out: list[str] = []
    for item in items:
        if not isinstance(item, str):
            continue
        text = item.strip()
        if text and text not in out:
            out.append(text)
    return out


_COERCERS = {
    "number": coerce_number,
    "bool": coerce_bool,
    "text": coerce_text,
    "list": coerce_list,
}


def first_present(raw: Any, alias_list: Iterable[str]) -> tuple[Optional[str], Any]:
    """
    Return (alias, value) for the first alias holding a non-null, non-empty value.
    Returns (None, None) when nothing resolves or raw is not a mapping.
    """
    raw = as_mapping(raw)
    if not isinstance(raw, dict):
        return None, None
    for alias in alias_list:
        value = lookup_path(raw, alias)
        if value is MISSING or _is_empty(value):
            continue
        return alias, value
    return None, None


def reconcile(raw: Any, alias_list: Iterable[str], kind: Optional[Kind] = None) -> Any:
    """
    Resolve a canonical value from raw using alias precedence.

    The first alias with a usable value wins. When kind is given the winner is
    coerced; a winner that fails coercion yields None rather than falling
    through to lower-precedence aliases.
    """
    try:
        _, value = first_present(raw, alias_list)
    except (TypeError, ValueError, RecursionError):
        return None
    if value is None:
        return None
    if kind is None:
        return value
    return _COERCERS[kind](value)
