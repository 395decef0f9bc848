"""
Glue between raw request bodies, canonical models and ORM rows.

Request bodies arrive in whatever shape the calling form uses. They are reconciled
into canonical models here, validated, and flattened onto table columns. Rows are
read back through the same reconciliation so responses are always canonical.
"""
from __future__ import annotations

from typing import Any, Optional

from models import Lender as LenderRow
from models import LenderProduct as LenderProductRow
from schemas.canonical import Lender, LenderProduct
from schemas.enums import LifecycleStatus, normalize_category
from services.canonical import (
    IS_ACTIVE,
    PRODUCT_CATEGORY,
    PRODUCT_REQUIRED_DOCUMENTS,
    PRODUCT_RULES,
    RULE_ADVANCED_LOGIC,
    RULE_LISTS,
    RULE_NUMBERS,
    STATUS,
    VERSION,
    lifecycle_of,
    to_canonical_lender,
    to_canonical_product,
)
from services.lifecycle import transition
from services.reconciliation import first_present, reconcile

LENDER_COLUMNS = (
    "name",
    "contact_name",
    "contact_email",
    "contact_phone",
    "website",
    "country",
    "min_loan_amount",
    "max_loan_amount",
    "funding_speed",
    "submission_method",
    "submission_email",
    "api_url",
    "api_token",
    "description",
)
PRODUCT_COLUMNS = (
    "lender_id",
    "name",
    "category",
    "country_offered",
    "min_amount",
    "max_amount",
    "min_rate",
    "max_rate",
    "rate_type",
    "min_term_months",
    "max_term_months",
    "description",
    "rules",
    "required_documents",
)

LENDER_BOUNDS = (("min_loan_amount", "max_loan_amount"),)
PRODUCT_BOUNDS = (("min_amount", "max_amount"), ("min_rate", "max_rate"), ("min_term_months", "max_term_months"))


class CatalogValidationError(ValueError):
    """A write body cannot produce a valid canonical record."""


class StaleVersion(Exception):
    """The client edited an older version of the record than the one stored."""

    def __init__(self, expected: Optional[int], current: int):
        self.expected = expected
        self.current = current
        super().__init__(f"Record was modified (version {current}); reload and retry")


def _enum_value(value: Any) -> Any:
    return value.value if value is not None and hasattr(value, "value") else value


def _row_values(row: Any, columns: tuple[str, ...]) -> dict[str, Any]:
    values = {column: getattr(row, column) for column in columns}
    values.update({"id": row.id, "status": row.status, "version": row.version})
    return values


def lender_from_row(row: LenderRow) -> Lender:
    return to_canonical_lender(_row_values(row, LENDER_COLUMNS))


def product_from_row(row: LenderProductRow) -> LenderProduct:
    return to_canonical_product(_row_values(row, PRODUCT_COLUMNS))


def lender_columns(lender: Lender) -> dict[str, Any]:
    return {
        "name": lender.name,
        "contact_name": lender.contact.name,
        "contact_email": lender.contact.email,
        "contact_phone": lender.contact.phone,
        "website": lender.website,
        "country": _enum_value(lender.country),
        "min_loan_amount": lender.loan_range.min,
        "max_loan_amount": lender.loan_range.max,
        "funding_speed": _enum_value(lender.funding_speed),
        "submission_method": _enum_value(lender.submission.method),
        "submission_email": lender.submission.email,
        "api_url": lender.submission.api_url,
        "api_token": lender.submission.api_token,
        "description": lender.description,
    }


def product_columns(product: LenderProduct) -> dict[str, Any]:
    return {
        "lender_id": product.lender_id,
        "name": product.name,
        "category": _enum_value(product.category),
        "country_offered": _enum_value(product.country_offered),
        "min_amount": product.amount_range.min,
        "max_amount": product.amount_range.max,
        "min_rate": product.rate_range.min,
        "max_rate": product.rate_range.max,
        "rate_type": _enum_value(product.rate_type),
        "min_term_months": product.term_range_months.min,
        "max_term_months": product.term_range_months.max,
        "description": product.description,
        "rules": product.rules.model_dump(exclude={"malformed_fields"}),
        "required_documents": list(product.required_documents),
    }


def _rules_supplied(raw: dict[str, Any]) -> bool:
    """A nested rules object (even an empty one) or any flat rule field counts as supplied."""
    if first_present(raw, PRODUCT_RULES)[0] is not None:
        return True
    alias_lists = [*RULE_NUMBERS.values(), *RULE_LISTS.values(), RULE_ADVANCED_LOGIC]
    return any(first_present(raw, alias_list)[0] is not None for alias_list in alias_lists)


def validate_lender(lender: Lender) -> None:
    if not lender.name:
        raise CatalogValidationError("Lender name is required")


def validate_product(product: LenderProduct, raw: dict[str, Any]) -> None:
    category_text = reconcile(raw, PRODUCT_CATEGORY, "text")
    if category_text is not None and normalize_category(category_text) is None:
        raise CatalogValidationError(f"Unknown category '{category_text}'")
    if not product.name:
        raise CatalogValidationError("Product name is required")
    if product.category is None:
        raise CatalogValidationError("Category is required")
    if product.amount_range.min is None or product.amount_range.max is None:
        raise CatalogValidationError("Minimum and maximum amounts are required")
    if product.rules.malformed_fields:
        raise CatalogValidationError(
            f"Unreadable rule values: {', '.join(product.rules.malformed_fields)}"
        )


def build_lender(raw: dict[str, Any], lender_id: str) -> Lender:
    """Canonical lender for a create request; the server assigns the id."""
    lender = to_canonical_lender({**raw, "id": lender_id})
    validate_lender(lender)
    return lender


def build_product(raw: dict[str, Any], product_id: str, lender_id: str) -> LenderProduct:
    """Canonical product for a create request under lender_id."""
    product = to_canonical_product({**raw, "id": product_id, "lender_id": lender_id})
    validate_product(product, raw)
    return product


def check_version(raw: dict[str, Any], current: int) -> None:
    expected = reconcile(raw, VERSION, "number")
    if expected is None:
        raise CatalogValidationError("version is required")
    if expected != current:
        raise StaleVersion(expected, current)


def requested_status(raw: dict[str, Any], current: LifecycleStatus | str) -> LifecycleStatus:
    """Lifecycle change implied by a patch body's status / is_active fields, if any."""
    current = LifecycleStatus(current)
    if first_present(raw, STATUS)[0] is None and first_present(raw, IS_ACTIVE)[0] is None:
        return current
    status, _ = lifecycle_of(raw)
    if status == current:
        return current
    if status == LifecycleStatus.ACTIVE:
        return transition(current, "reactivate")
    if status == LifecycleStatus.DEACTIVATED:
        return transition(current, "deactivate")
    return transition(current, "purge")


def _check_bounds(merged: dict[str, Any], bounds: tuple[tuple[str, str], ...]) -> None:
    """A patched bound may not cross the stored opposite bound; only a full pair is reordered."""
    for low, high in bounds:
        if merged.get(low) is not None and merged.get(high) is not None and merged[low] > merged[high]:
            raise CatalogValidationError(f"{low} ({merged[low]}) cannot exceed {high} ({merged[high]})")


def merge_lender(row: LenderRow, raw: dict[str, Any]) -> Lender:
    """Apply a partial raw body over the stored row; fields the body does not resolve are kept."""
    patch = lender_columns(to_canonical_lender({**raw, "id": row.id}))
    merged = _row_values(row, LENDER_COLUMNS)
    merged.update({column: value for column, value in patch.items() if value is not None})
    _check_bounds(merged, LENDER_BOUNDS)
    lender = to_canonical_lender(merged)
    validate_lender(lender)
    return lender


def merge_product(row: LenderProductRow, raw: dict[str, Any]) -> LenderProduct:
    """Apply a partial raw body over the stored row. A supplied rules object replaces the stored rules."""
    candidate = to_canonical_product({**raw, "id": row.id, "lender_id": row.lender_id})
    patch = product_columns(candidate)
    if not _rules_supplied(raw):
        patch.pop("rules")
    if first_present(raw, PRODUCT_REQUIRED_DOCUMENTS)[0] is None:
        patch.pop("required_documents")
    merged = _row_values(row, PRODUCT_COLUMNS)
    merged.update({column: value for column, value in patch.items() if value is not None})
    _check_bounds(merged, PRODUCT_BOUNDS)
    product = to_canonical_product(merged)
    if candidate.rules.malformed_fields:
        product.rules.malformed_fields = list(candidate.rules.malformed_fields)
    validate_product(product, raw)
    return product

