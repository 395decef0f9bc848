"""
Canonical lender and lender-product view models.

Attributes are snake_case in Python and serialize to camelCase for the staff UI.
Every field is always present; unresolved values are None.
"""
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from schemas.eligibility import EligibilityRules
from schemas.enums import (
    CountryOffered,
    FundingSpeed,
    LenderCountry,
    LifecycleStatus,
    ProductCategory,
    RateType,
    SubmissionMethod,
)

Number = float | int


class CanonicalModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class Range(CanonicalModel):
    """Inclusive bounds; either side may be unknown."""
    min: Optional[Number] = None
    max: Optional[Number] = None


class Contact(CanonicalModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class Submission(CanonicalModel):
    method: Optional[SubmissionMethod] = None
    email: Optional[str] = None
    api_url: Optional[str] = None
    api_token: Optional[str] = None


class Lender(CanonicalModel):
    id: str
    name: Optional[str] = None
    contact: Contact = Field(default_factory=Contact)
    website: Optional[str] = None
    country: Optional[LenderCountry] = None
    is_active: bool = True
    loan_range: Range = Field(default_factory=Range)
    funding_speed: Optional[FundingSpeed] = None
    submission: Submission = Field(default_factory=Submission)
    description: Optional[str] = None
    status: LifecycleStatus = LifecycleStatus.ACTIVE
    version: Optional[int] = None


class LenderProduct(CanonicalModel):
    id: str
    lender_id: Optional[str] = None
    name: Optional[str] = None
    category: Optional[ProductCategory] = None
    category_label: Optional[str] = None
    country_offered: Optional[CountryOffered] = None
    amount_range: Range = Field(default_factory=Range)
    rate_range: Range = Field(default_factory=Range)
    rate_type: Optional[RateType] = None
    term_range_months: Range = Field(default_factory=Range)
    is_active: bool = True
    description: Optional[str] = None
    rules: EligibilityRules = Field(default_factory=EligibilityRules)
    required_documents: list[str] = Field(default_factory=list)
    status: LifecycleStatus = LifecycleStatus.ACTIVE
    version: Optional[int] = None


class MissingIdentity(CanonicalModel):
    """Returned instead of a canonical record when the raw record carries no usable id."""
    kind: Literal["missing_identity"] = "missing_identity"
    entity: Literal["lender", "product"]
    name: Optional[str] = None
    keys: list[str] = Field(default_factory=list)
