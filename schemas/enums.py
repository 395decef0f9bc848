"""Catalog enums and the product-category vocabulary."""
from enum import Enum
from typing import Any, Optional


class LenderCountry(str, Enum):
    """Markets a lender serves."""

    CANADA = "Canada"
    USA = "USA"
    BOTH = "Both"


class CountryOffered(str, Enum):
    """Market a single product is offered in."""

    CA = "CA"
    US = "US"


class FundingSpeed(str, Enum):
    ONE_DAY = "1 Day"
    TWO_TO_THREE_DAYS = "2-3 Days"
    ONE_WEEK = "1 Week"
    OVER_ONE_WEEK = ">1 Week"


class SubmissionMethod(str, Enum):
    """How applications are sent to a lender."""

    EMAIL = "Email"
    API = "API"
    PORTAL = "Portal"
    PHONE = "Phone"


class RateType(str, Enum):
    """Whether rate_range holds annual percentages or factor rates."""

    INTEREST = "interest"
    FACTOR = "factor"


class LifecycleStatus(str, Enum):
    """Lender / product lifecycle. Records are never physically removed by the API."""

    ACTIVE = "active"
    DEACTIVATED = "deactivated"
    PURGED_PENDING_DELETION = "purged_pending_deletion"


class ProductCategory(str, Enum):
    """Canonical product categories."""

    BUSINESS_LOAN = "business_loan"
    EQUIPMENT_FINANCING = "equipment_financing"
    LINE_OF_CREDIT = "line_of_credit"
    INVOICE_FACTORING = "invoice_factoring"
    MERCHANT_CASH_ADVANCE = "merchant_cash_advance"
    REAL_ESTATE = "real_estate"
    SBA_LOAN = "sba_loan"
    OTHER = "other"


CATEGORY_LABELS: dict[ProductCategory, str] = {
    ProductCategory.BUSINESS_LOAN: "Business Loan",
    ProductCategory.EQUIPMENT_FINANCING: "Equipment Financing",
    ProductCategory.LINE_OF_CREDIT: "Line of Credit",
    ProductCategory.INVOICE_FACTORING: "Invoice Factoring",
    ProductCategory.MERCHANT_CASH_ADVANCE: "Merchant Cash Advance",
    ProductCategory.REAL_ESTATE: "Real Estate",
    ProductCategory.SBA_LOAN: "SBA Loan",
    ProductCategory.OTHER: "Other",
}

# Free-text categories written by the older product forms, keyed lower-case.
LEGACY_CATEGORY_MAP: dict[str, ProductCategory] = {
    "term loan": ProductCategory.BUSINESS_LOAN,
    "business term loan": ProductCategory.BUSINESS_LOAN,
    "working capital": ProductCategory.BUSINESS_LOAN,
    "business line of credit": ProductCategory.LINE_OF_CREDIT,
    "loc": ProductCategory.LINE_OF_CREDIT,
    "equipment finance": ProductCategory.EQUIPMENT_FINANCING,
    "equipment leasing": ProductCategory.EQUIPMENT_FINANCING,
    "factoring": ProductCategory.INVOICE_FACTORING,
    "mca": ProductCategory.MERCHANT_CASH_ADVANCE,
    "commercial real estate": ProductCategory.REAL_ESTATE,
    "purchase order financing": ProductCategory.OTHER,
    "asset-based lending": ProductCategory.OTHER,
}

_CATEGORY_LOOKUP: dict[str, ProductCategory] = {
    **{c.value: c for c in ProductCategory},
    **{label.lower(): c for c, label in CATEGORY_LABELS.items()},
    **LEGACY_CATEGORY_MAP,
}


def normalize_category(value: Any) -> Optional[ProductCategory]:
    """
    Resolve a canonical value, a display label or a legacy free-text category.
    Unknown or non-string input returns None; nothing is guessed.
    """
    if isinstance(value, ProductCategory):
        return value
    if not isinstance(value, str):
        return None
    return _CATEGORY_LOOKUP.get(value.strip().lower())


def category_label(category: Optional[ProductCategory]) -> Optional[str]:
    return CATEGORY_LABELS.get(category) if category is not None else None
