from schemas.canonical import Contact, Lender, LenderProduct, MissingIdentity, Range, Submission
from schemas.eligibility import (
    ApplicantProfile,
    EligibilityRules,
    Eligible,
    Indeterminate,
    Ineligible,
    MatchRequest,
    ProductMatch,
    Verdict,
)
from schemas.enums import (
    CountryOffered,
    FundingSpeed,
    LenderCountry,
    LifecycleStatus,
    ProductCategory,
    RateType,
    SubmissionMethod,
)

__all__ = [
    "ApplicantProfile",
    "Contact",
    "CountryOffered",
    "EligibilityRules",
    "Eligible",
    "FundingSpeed",
    "Indeterminate",
    "Ineligible",
    "Lender",
    "LenderCountry",
    "LenderProduct",
    "LifecycleStatus",
    "MatchRequest",
    "MissingIdentity",
    "ProductCategory",
    "ProductMatch",
    "Range",
    "RateType",
    "Submission",
    "SubmissionMethod",
    "Verdict",
]
