"""
Assemble canonical view models from raw records of any historical API shape.

Three shapes reach this module: the legacy snake_case staff forms, the camelCase
v1 API, and the flattened "display" rows of the list endpoints. Each canonical
field is resolved through services.reconciliation; nothing downstream should
know which shape a record arrived in.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional, TypeVar

from schemas.canonical import Contact, Lender, LenderProduct, MissingIdentity, Range, Submission
from schemas.eligibility import ApplicantProfile, EligibilityRules
from schemas.enums import (
    CountryOffered,
    FundingSpeed,
    LenderCountry,
    LifecycleStatus,
    RateType,
    SubmissionMethod,
    category_label,
    normalize_category,
)
from services.reconciliation import (
    CONTACT_EMAIL,
    CONTACT_NAME,
    CONTACT_PHONE,
    LENDER_MAX_AMOUNT,
    LENDER_MIN_AMOUNT,
    LENDER_NAME,
    PRODUCT_MAX_AMOUNT,
    PRODUCT_MIN_AMOUNT,
    RECORD_ID,
    aliases,
    as_mapping,
    coerce_list,
    coerce_number,
    first_present,
    reconcile,
)
from utils.case import to_camel_key

E = TypeVar("E", bound=Enum)

# Lender
LENDER_WEBSITE = aliases("website", "url", "website_url", "websiteUrl")
LENDER_COUNTRY = aliases("country", "country_offered", "countryOffered")
LENDER_FUNDING_SPEED = aliases("funding_speed")
LENDER_DESCRIPTION = aliases("description", "company_bio", "companyBio", "notes")
CONTACT_FIRST = aliases(None, "mainContactFirst", "contact_first_name")
CONTACT_LAST = aliases(None, "mainContactLast", "contact_last_name")
SUBMISSION_METHOD = aliases("submission.method", "submission_method", "submissionMethod")
SUBMISSION_EMAIL = aliases("submission.email", "submission_email", "submissionEmail")
SUBMISSION_API_URL = aliases("submission.api_url", "api_url", "apiUrl")
SUBMISSION_API_TOKEN = aliases("submission.api_token", "api_token", "apiToken")

# Shared by lenders and products
IS_ACTIVE = aliases("is_active", "active")
STATUS = aliases("status", "lifecycle_status")
VERSION = aliases("version")

# Product
PRODUCT_LENDER_ID = aliases("lender_id", "lender.id")
PRODUCT_NAME = aliases("name", "productName", "product_name", "title")
PRODUCT_CATEGORY = aliases("category", "productCategory", "product_category", "productType", "product_type")
PRODUCT_COUNTRY = aliases("country_offered", "country")
PRODUCT_MIN_RATE = aliases(
    "rate_range.min", "minRate", "min_rate", "minInterest", "min_interest", "interest_rate_min", "interestRateMin"
)
PRODUCT_MAX_RATE = aliases(
    "rate_range.max", "maxRate", "max_rate", "maxInterest", "max_interest", "interest_rate_max", "interestRateMax"
)
PRODUCT_RATE_TYPE = aliases("rate_type")
PRODUCT_MIN_TERM = aliases("term_range_months.min", "minTermMonths", "min_term_months", "term_min", "termMin")
PRODUCT_MAX_TERM = aliases("term_range_months.max", "maxTermMonths", "max_term_months", "term_max", "termMax")
PRODUCT_DESCRIPTION = aliases("description", "notes")
PRODUCT_RULES = aliases("rules", "eligibility", "eligibility_rules", "matching_rules")
PRODUCT_REQUIRED_DOCUMENTS = aliases("required_documents", "doc_requirements", "documentRequirements", "requirements")

# Eligibility rules, keyed by canonical attribute
RULE_NUMBERS: dict[str, tuple[str, ...]] = {
    "min_credit_score": aliases("min_credit_score", "min_fico", "minFicoScore"),
    "min_annual_revenue": aliases("min_annual_revenue", "min_revenue", "minRevenue"),
    "time_in_business_months": aliases("time_in_business_months", "min_time_in_business", "minTimeInBusiness"),
    "max_debt_to_income": aliases("max_debt_to_income", "max_debt_ratio", "maxDebtRatio"),
}
RULE_LISTS: dict[str, tuple[str, ...]] = {
    "required_docs": aliases("required_docs"),
    "preferred_industries": aliases("preferred_industries"),
    "excluded_industries": aliases("excluded_industries"),
    "excluded_regions": aliases("excluded_regions", "excluded_states", "excludedStates"),
}
RULE_ADVANCED_LOGIC = aliases("advanced_logic")
RULE_MALFORMED = aliases("malformed_fields")

# Applicant profile; nested paths cover the application payload shape
APPLICANT_NUMBERS: dict[str, tuple[str, ...]] = {
    "credit_score": aliases(
        "credit_score", "fico_score", "ficoScore", "fico", "guarantor.fico_score", "guarantor.ficoScore"
    ),
    "annual_revenue": aliases(
        "annual_revenue", "revenue", "business.annual_revenue", "business.annualRevenue"
    ),
    "time_in_business_months": aliases("time_in_business_months", "time_in_business", "months_in_business"),
    "debt_to_income": aliases("debt_to_income", "debt_ratio", "dti"),
}
APPLICANT_YEARS_IN_BUSINESS = aliases(
    "years_in_business", "business.years_in_business", "business.yearsInBusiness"
)
APPLICANT_INDUSTRY = aliases("industry", "business.industry")
APPLICANT_STATE = aliases("state", "province", "province_state", "region", "business.state")


def _lookup_table(enum_cls: type[E], **synonyms: E) -> dict[str, E]:
    table = {member.value.lower(): member for member in enum_cls}
    for key, member in synonyms.items():
        table[key] = member
        table[key.replace("_", " ")] = member
    return table


_LENDER_COUNTRIES = _lookup_table(
    LenderCountry, ca=LenderCountry.CANADA, us=LenderCountry.USA, united_states=LenderCountry.USA
)
_LENDER_COUNTRIES.update({"ca/us": LenderCountry.BOTH, "us/ca": LenderCountry.BOTH, "canada & usa": LenderCountry.BOTH})
_OFFERED_COUNTRIES = _lookup_table(
    CountryOffered, canada=CountryOffered.CA, usa=CountryOffered.US, united_states=CountryOffered.US
)
_FUNDING_SPEEDS = _lookup_table(FundingSpeed)
_SUBMISSION_METHODS = _lookup_table(SubmissionMethod)
_RATE_TYPES = _lookup_table(RateType, apr=RateType.INTEREST, factor_rate=RateType.FACTOR)
_STATUSES = _lookup_table(
    LifecycleStatus,
    inactive=LifecycleStatus.DEACTIVATED,
    purged=LifecycleStatus.PURGED_PENDING_DELETION,
    deleted=LifecycleStatus.PURGED_PENDING_DELETION,
)


def offered_country(value: Any) -> Optional[CountryOffered]:
    """Resolve CA / Canada / US / USA / United States to the product country code."""
    if not isinstance(value, str):
        return None
    return _OFFERED_COUNTRIES.get(value.strip().lower())


def _enum_value(raw: Any, alias_list: tuple[str, ...], table: dict[str, E]) -> Optional[E]:
    value = reconcile(raw, alias_list, "text")
    if value is None:
        return None
    return table.get(value.lower())


def _range(raw: Any, min_aliases: tuple[str, ...], max_aliases: tuple[str, ...]) -> Range:
    """Both bounds reconciled independently; inverted bounds are swapped, a lone bound stays alone."""
    low = reconcile(raw, min_aliases, "number")
    high = reconcile(raw, max_aliases, "number")
    if low is not None and high is not None and low > high:
        low, high = high, low
    return Range(min=low, max=high)


def _identity(raw: Any, alias_list: tuple[str, ...] = RECORD_ID) -> Optional[str]:
    """Ids are opaque strings; integer ids from older tables are stringified."""
    value = reconcile(raw, alias_list)
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return value.strip() or None
    return None


def _version(raw: Any) -> Optional[int]:
    value = reconcile(raw, VERSION, "number")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value if isinstance(value, int) else None


def lifecycle_of(raw: Any) -> tuple[LifecycleStatus, bool]:
    """An explicit lifecycle status wins; otherwise the legacy is_active flag decides (absent means active)."""
    status = _enum_value(raw, STATUS, _STATUSES)
    if status is None:
        is_active = reconcile(raw, IS_ACTIVE, "bool")
        status = LifecycleStatus.DEACTIVATED if is_active is False else LifecycleStatus.ACTIVE
    return status, status == LifecycleStatus.ACTIVE


def _missing_identity(raw: Any, entity: str, name_aliases: tuple[str, ...]) -> MissingIdentity:
    keys = sorted(str(k) for k in raw) if isinstance(raw, dict) else []
    return MissingIdentity(entity=entity, name=reconcile(raw, name_aliases, "text"), keys=keys)


def _contact_name(raw: Any) -> Optional[str]:
    name = reconcile(raw, CONTACT_NAME, "text")
    if name is not None:
        return name
    parts = [reconcile(raw, CONTACT_FIRST, "text"), reconcile(raw, CONTACT_LAST, "text")]
    joined = " ".join(p for p in parts if p)
    return joined or None


def to_canonical_lender(raw: Any) -> Lender | MissingIdentity:
    """Build a canonical Lender from any lender shape, or MissingIdentity when no id is present."""
    raw = as_mapping(raw)
    lender_id = _identity(raw)
    if lender_id is None:
        return _missing_identity(raw, "lender", LENDER_NAME)
    status, is_active = lifecycle_of(raw)
    return Lender(
        id=lender_id,
        name=reconcile(raw, LENDER_NAME, "text"),
        contact=Contact(
            name=_contact_name(raw),
            email=reconcile(raw, CONTACT_EMAIL, "text"),
            phone=reconcile(raw, CONTACT_PHONE, "text"),
        ),
        website=reconcile(raw, LENDER_WEBSITE, "text"),
        country=_enum_value(raw, LENDER_COUNTRY, _LENDER_COUNTRIES),
        is_active=is_active,
        loan_range=_range(raw, LENDER_MIN_AMOUNT, LENDER_MAX_AMOUNT),
        funding_speed=_enum_value(raw, LENDER_FUNDING_SPEED, _FUNDING_SPEEDS),
        submission=Submission(
            method=_enum_value(raw, SUBMISSION_METHOD, _SUBMISSION_METHODS),
            email=reconcile(raw, SUBMISSION_EMAIL, "text"),
            api_url=reconcile(raw, SUBMISSION_API_URL, "text"),
            api_token=reconcile(raw, SUBMISSION_API_TOKEN, "text"),
        ),
        description=reconcile(raw, LENDER_DESCRIPTION, "text"),
        status=status,
        version=_version(raw),
    )


def to_canonical_product(raw: Any) -> LenderProduct | MissingIdentity:
    """Build a canonical LenderProduct from any product shape, or MissingIdentity when no id is present."""
    raw = as_mapping(raw)
    product_id = _identity(raw)
    if product_id is None:
        return _missing_identity(raw, "product", PRODUCT_NAME)
    status, is_active = lifecycle_of(raw)
    category = normalize_category(reconcile(raw, PRODUCT_CATEGORY, "text"))
    return LenderProduct(
        id=product_id,
        lender_id=_identity(raw, PRODUCT_LENDER_ID),
        name=reconcile(raw, PRODUCT_NAME, "text"),
        category=category,
        category_label=category_label(category),
        country_offered=_enum_value(raw, PRODUCT_COUNTRY, _OFFERED_COUNTRIES),
        amount_range=_range(raw, PRODUCT_MIN_AMOUNT, PRODUCT_MAX_AMOUNT),
        rate_range=_range(raw, PRODUCT_MIN_RATE, PRODUCT_MAX_RATE),
        rate_type=_enum_value(raw, PRODUCT_RATE_TYPE, _RATE_TYPES),
        term_range_months=_range(raw, PRODUCT_MIN_TERM, PRODUCT_MAX_TERM),
        is_active=is_active,
        description=reconcile(raw, PRODUCT_DESCRIPTION, "text"),
        rules=to_eligibility_rules(reconcile(raw, PRODUCT_RULES), fallback=raw),
        required_documents=reconcile(raw, PRODUCT_REQUIRED_DOCUMENTS, "list") or [],
        status=status,
        version=_version(raw),
    )


def to_eligibility_rules(raw: Any, fallback: Any = None) -> EligibilityRules:
    """
    Read operator-entered rules leniently.

    Keys may be camelCase (rules editor) or snake_case. `fallback` supplies flat
    rule columns from older product records that had no nested rules object.
    Unreadable values are dropped and their field names listed in malformed_fields.
    """
    raw = as_mapping(raw)
    if not isinstance(raw, dict):
        raw = {}
    fallback = as_mapping(fallback)
    sources = [raw, fallback] if isinstance(fallback, dict) else [raw]

    values: dict[str, Any] = {}
    malformed: list[str] = list(reconcile(raw, RULE_MALFORMED, "list") or [])

    def pick(alias_list: tuple[str, ...]) -> Any:
        for source in sources:
            _, value = first_present(source, alias_list)
            if value is not None:
                return value
        return None

    def flag(field: str) -> None:
        name = to_camel_key(field)
        if name not in malformed:
            malformed.append(name)

    for field, alias_list in RULE_NUMBERS.items():
        value = pick(alias_list)
        if value is None:
            continue
        number = coerce_number(value)
        if number is None:
            flag(field)
        else:
            values[field] = number

    for field, alias_list in RULE_LISTS.items():
        value = pick(alias_list)
        if value is None:
            continue
        items = coerce_list(value)
        if items is None:
            flag(field)
        else:
            values[field] = items

    advanced = pick(RULE_ADVANCED_LOGIC)
    if advanced is not None:
        if isinstance(advanced, str):
            values["advanced_logic"] = advanced.strip()
        else:
            flag("advanced_logic")

    return EligibilityRules(**values, malformed_fields=malformed)


def to_applicant_profile(raw: Any) -> ApplicantProfile:
    """Read an applicant profile from flat or application-shaped payloads; unreadable numbers count as absent."""
    raw = as_mapping(raw)
    values: dict[str, Any] = {
        field: reconcile(raw, alias_list, "number") for field, alias_list in APPLICANT_NUMBERS.items()
    }
    if values["time_in_business_months"] is None:
        years = reconcile(raw, APPLICANT_YEARS_IN_BUSINESS, "number")
        if years is not None:
            values["time_in_business_months"] = years * 12
    values["industry"] = reconcile(raw, APPLICANT_INDUSTRY, "text")
    values["state"] = reconcile(raw, APPLICANT_STATE, "text")
    return ApplicantProfile(**values)
