"""
Evaluates an applicant profile against one product's eligibility rules.
Produces Eligible, Ineligible (every failed rule, not just the first) or Indeterminate (data missing).
Inputs may be models or raw dicts in any supported key style; raw input is read leniently and never raises.
"""
from __future__ import annotations

from typing import Any, Optional

from schemas.eligibility import (
    ApplicantProfile,
    EligibilityRules,
    Eligible,
    Indeterminate,
    Ineligible,
)
from services.canonical import to_applicant_profile, to_eligibility_rules

# (rule attribute, applicant attribute, applicant field name, failure reason, comparison)
NUMERIC_RULES: tuple[tuple[str, str, str, str, str], ...] = (
    ("min_credit_score", "credit_score", "creditScore", "credit_score_below_minimum", "min"),
    ("min_annual_revenue", "annual_revenue", "annualRevenue", "annual_revenue_below_minimum", "min"),
    ("time_in_business_months", "time_in_business_months", "timeInBusinessMonths", "time_in_business_below_minimum", "min"),
    ("max_debt_to_income", "debt_to_income", "debtToIncome", "debt_to_income_above_maximum", "max"),
)


def _normalized(values: list[str]) -> set[str]:
    return {v.strip().lower() for v in values if isinstance(v, str) and v.strip()}


def evaluate_eligibility(
    profile: ApplicantProfile | dict[str, Any] | None,
    rules: EligibilityRules | dict[str, Any] | None,
) -> Eligible | Ineligible | Indeterminate:
    """
    Check every rule and accumulate the outcome.
    Any failed hard rule -> Ineligible; otherwise any missing applicant value or unreadable rule -> Indeterminate.
    """
    if not isinstance(profile, ApplicantProfile):
        profile = to_applicant_profile(profile or {})
    if not isinstance(rules, EligibilityRules):
        rules = to_eligibility_rules(rules or {})

    reasons: list[str] = []
    missing: list[str] = []
    advisories: list[str] = []

    for rule_attr, applicant_attr, field_name, reason, comparison in NUMERIC_RULES:
        threshold = getattr(rules, rule_attr)
        if threshold is None:
            continue
        actual = getattr(profile, applicant_attr)
        if actual is None:
            missing.append(field_name)
            continue
        met = actual >= threshold if comparison == "min" else actual <= threshold
        if not met:
            reasons.append(reason)

    industry: Optional[str] = profile.industry.strip().lower() if profile.industry else None
    excluded_industries = _normalized(rules.excluded_industries)
    preferred_industries = _normalized(rules.preferred_industries)
    if excluded_industries or preferred_industries:
        if industry is None:
            if excluded_industries:
                missing.append("industry")
        else:
            if industry in excluded_industries:
                reasons.append("industry_excluded")
            # Preference only; never disqualifying
            if preferred_industries and industry not in preferred_industries:
                advisories.append("industry_not_preferred")

    excluded_regions = _normalized(rules.excluded_regions)
    if excluded_regions:
        state = profile.state.strip().lower() if profile.state else None
        if state is None:
            missing.append("state")
        elif state in excluded_regions:
            reasons.append("region_excluded")

    review = {
        "advisories": advisories,
        "advanced_logic": rules.advanced_logic,
        "requires_manual_review": bool(rules.advanced_logic),
    }
    if reasons:
        return Ineligible(reasons=reasons, missing_fields=missing, **review)
    if missing or rules.malformed_fields:
        return Indeterminate(missing_fields=missing, malformed_rules=list(rules.malformed_fields), **review)
    return Eligible(**review)
