"""
Eligibility rule model, applicant profile and evaluation verdicts.

Verdicts are tagged by `kind` so API clients can switch on a single field.
"""
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class EligibilityRules(_CamelModel):
    """Operator-entered matching rules embedded in a lender product."""
    min_credit_score: Optional[float | int] = None
    min_annual_revenue: Optional[float | int] = None
    time_in_business_months: Optional[float | int] = None
    max_debt_to_income: Optional[float | int] = Field(None, description="Decimal ratio, e.g. 0.40")
    required_docs: list[str] = Field(default_factory=list)
    preferred_industries: list[str] = Field(default_factory=list)
    excluded_industries: list[str] = Field(default_factory=list)
    excluded_regions: list[str] = Field(default_factory=list, description="State / province codes")
    advanced_logic: Optional[str] = Field(
        None,
        description="Free-text expression for human underwriters; never evaluated",
    )
    malformed_fields: list[str] = Field(
        default_factory=list,
        description="Rule fields whose stored value could not be read",
    )


class ApplicantProfile(_CamelModel):
    credit_score: Optional[float | int] = None
    annual_revenue: Optional[float | int] = None
    time_in_business_months: Optional[float | int] = None
    debt_to_income: Optional[float | int] = None
    industry: Optional[str] = None
    state: Optional[str] = None


class _VerdictBase(_CamelModel):
    advisories: list[str] = Field(default_factory=list)
    advanced_logic: Optional[str] = None
    requires_manual_review: bool = False


class Eligible(_VerdictBase):
    kind: Literal["eligible"] = "eligible"


class Ineligible(_VerdictBase):
    kind: Literal["ineligible"] = "ineligible"
    reasons: list[str]
    missing_fields: list[str] = Field(default_factory=list)


class Indeterminate(_VerdictBase):
    kind: Literal["indeterminate"] = "indeterminate"
    missing_fields: list[str] = Field(default_factory=list)
    malformed_rules: list[str] = Field(default_factory=list)


Verdict = Annotated[Union[Eligible, Ineligible, Indeterminate], Field(discriminator="kind")]


class ProductMatch(_CamelModel):
    """One product's verdict for an applicant, as returned by matching."""
    product_id: str
    product_name: Optional[str] = None
    lender_id: Optional[str] = None
    lender_name: Optional[str] = None
    category: Optional[str] = None
    verdict: Verdict


class MatchRequest(_CamelModel):
    applicant: dict = Field(default_factory=dict, description="Applicant profile in any supported key style")
    requested_amount: Optional[float] = None
    country: Optional[str] = Field(None, description="CA or US")
